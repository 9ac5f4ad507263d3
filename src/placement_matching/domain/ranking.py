"""Second-pass ranking: bounded multipliers and score-band interleaving.

Paid placement, provider reliability and availability freshness adjust the
order of matches only inside a score band, a run of matches whose base scores
sit within ``band_width`` points of the band's highest member. Bands keep
their base-score order, so a paid opening can overtake a near-equivalent free
one but never a meaningfully better one.

Usage example:
    from placement_matching.domain.ranking import rank_matches

    ranked = rank_matches(
        run.results,
        subscriptions=subscriptions,
        organizations=organizations,
        licenses=licenses,
        as_of=now,
    )
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from .assembler import MatchResult
from .freshness import calculate_freshness_score
from .matching_config import RankingPolicy
from .models import License, Organization, ReferralOutcome, Subscription


@dataclass(frozen=True)
class RankedMatch:
    """A match with its ranking multipliers and final score."""

    match: MatchResult
    base_score: float
    paid_multiplier: float
    reliability_multiplier: float
    freshness_score: float
    final_score: float
    is_paid: bool
    tier: str

    @property
    def opening_id(self) -> str:
        return self.match.opening_id

    @property
    def organization_id(self) -> str:
        return self.match.organization_id


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calculate_paid_multiplier(
    subscription: Subscription | None,
    policy: RankingPolicy | None = None,
) -> float:
    """Bounded boost for an active subscription; 1.0 otherwise."""
    policy = policy or RankingPolicy()
    if subscription is None or not subscription.is_active:
        return 1.0
    if subscription.priority_boost_factor:
        boost = subscription.priority_boost_factor
    else:
        boost = policy.plan_boosts.get(subscription.plan, 1.0)
    return _clamp(boost, policy.min_paid_multiplier, policy.max_paid_multiplier)


def calculate_reliability_multiplier(
    organization: Organization | None,
    licenses: Iterable[License],
    referral_history: Sequence[ReferralOutcome] = (),
    *,
    as_of: datetime,
    policy: RankingPolicy | None = None,
) -> float:
    """Adjust for verification, current licensing and acceptance history."""
    policy = policy or RankingPolicy()
    multiplier = 1.0

    status = organization.verification_status if organization else None
    if status == "verified":
        multiplier += policy.verified_bonus
    elif status == "unverified":
        multiplier -= policy.unverified_penalty

    today = as_of.date()
    if any(license.is_current(today) for license in licenses):
        multiplier += policy.current_license_bonus

    if len(referral_history) >= policy.min_history_for_acceptance:
        accepted = sum(1 for outcome in referral_history if outcome.is_acceptance)
        rate = accepted / len(referral_history)
        if rate >= policy.high_acceptance_rate:
            multiplier += policy.high_acceptance_bonus
        elif rate < policy.low_acceptance_rate:
            multiplier -= policy.low_acceptance_penalty

    return _clamp(
        multiplier,
        policy.min_reliability_multiplier,
        policy.max_reliability_multiplier,
    )


def group_into_score_bands(
    matches: Iterable[RankedMatch],
    band_width: float = 5.0,
) -> list[list[RankedMatch]]:
    """Split matches into contiguous bands anchored on each band's top score.

    A match joins the current band when it is at most ``band_width`` below the
    band's first member, so a match exactly ``band_width`` below stays in.
    """
    ordered = sorted(matches, key=lambda ranked: (-ranked.base_score, ranked.opening_id))
    bands: list[list[RankedMatch]] = []
    anchor: float | None = None
    for ranked in ordered:
        if anchor is None or anchor - ranked.base_score > band_width:
            bands.append([])
            anchor = ranked.base_score
        bands[-1].append(ranked)
    return bands


def _within_band_key(ranked: RankedMatch) -> tuple[float, float, float, float, str]:
    return (
        -ranked.paid_multiplier,
        -ranked.reliability_multiplier,
        -ranked.freshness_score,
        -ranked.base_score,
        ranked.opening_id,
    )


def _subscriptions_by_organization(
    subscriptions: Iterable[Subscription],
) -> dict[str, Subscription]:
    # An active subscription wins over inactive ones; otherwise the first seen.
    indexed: dict[str, Subscription] = {}
    for subscription in subscriptions:
        current = indexed.get(subscription.organization_id)
        if current is None or (subscription.is_active and not current.is_active):
            indexed[subscription.organization_id] = subscription
    return indexed


def enrich_match(
    match: MatchResult,
    *,
    subscription: Subscription | None,
    organization: Organization | None,
    licenses: Iterable[License],
    referral_history: Sequence[ReferralOutcome],
    as_of: datetime,
    policy: RankingPolicy,
) -> RankedMatch:
    """Compute multipliers and the final score for one match."""
    base_score = match.match_confidence_score
    paid = calculate_paid_multiplier(subscription, policy)
    reliability = calculate_reliability_multiplier(
        organization,
        licenses,
        referral_history,
        as_of=as_of,
        policy=policy,
    )
    freshness = calculate_freshness_score(match.opening, as_of=as_of, policy=policy)
    return RankedMatch(
        match=match,
        base_score=base_score,
        paid_multiplier=paid,
        reliability_multiplier=reliability,
        freshness_score=freshness,
        final_score=base_score * reliability * paid * freshness,
        is_paid=paid > 1.0,
        tier=subscription.plan if subscription is not None else "free",
    )


def rank_matches(
    matches: Iterable[MatchResult],
    subscriptions: Iterable[Subscription] = (),
    organizations: Iterable[Organization] = (),
    licenses: Iterable[License] = (),
    referral_history: Iterable[ReferralOutcome] = (),
    *,
    as_of: datetime,
    policy: RankingPolicy | None = None,
) -> list[RankedMatch]:
    """Re-rank assembled matches with fairness-preserving band interleaving.

    Args:
        matches: Assembler output (already eligible and thresholded).
        subscriptions: Provider subscriptions, any status.
        organizations: Provider organisations; the match's own record is used
            when an organisation is missing here.
        licenses: Licence records for all providers.
        referral_history: Past referral outcomes for all providers.
        as_of: Reference time for licence expiry and freshness.
        policy: Multiplier tables and bounds; defaults when omitted.

    Returns:
        Matches in final display order.
    """
    policy = policy or RankingPolicy()
    subscription_by_org = _subscriptions_by_organization(subscriptions)
    organization_by_id: dict[str, Organization] = {}
    for organization in organizations:
        organization_by_id.setdefault(organization.id, organization)
    licenses_by_org: dict[str, list[License]] = {}
    for license in licenses:
        licenses_by_org.setdefault(license.organization_id, []).append(license)
    history_by_org: dict[str, list[ReferralOutcome]] = {}
    for outcome in referral_history:
        history_by_org.setdefault(outcome.organization_id, []).append(outcome)

    enriched = [
        enrich_match(
            match,
            subscription=subscription_by_org.get(match.organization_id),
            organization=organization_by_id.get(match.organization_id, match.organization),
            licenses=licenses_by_org.get(match.organization_id, ()),
            referral_history=history_by_org.get(match.organization_id, ()),
            as_of=as_of,
            policy=policy,
        )
        for match in matches
    ]

    ranked: list[RankedMatch] = []
    for band in group_into_score_bands(enriched, policy.band_width):
        ranked.extend(sorted(band, key=_within_band_key))
    return ranked
