"""Match assembly: filter, score, threshold, classify, sort and truncate.

Usage example:
    from placement_matching.domain.assembler import match_referral_to_openings

    run = match_referral_to_openings(
        referral,
        openings,
        organizations,
        sites,
        licenses,
        capability_profiles,
    )
    for match in run.results:
        print(match.opening_id, match.total_score, match.quality)
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType

from ..protocols import ProximityResolver
from .eligibility import check_constraints
from .factors import (
    DEFAULT_PROXIMITY,
    score_age_match,
    score_availability,
    score_capability_match,
    score_county_match,
    score_funding_match,
    score_gender_match,
)
from .matching_config import MatchingConfig
from .models import CapabilityProfile, License, Opening, Organization, Referral, Site


@dataclass(frozen=True)
class MatchResult:
    """One eligible opening scored against a referral."""

    opening_id: str
    organization_id: str
    opening: Opening
    organization: Organization | None
    site: Site | None
    score_breakdown: MappingProxyType[str, float]
    total_score: float
    quality: str

    @property
    def match_confidence_score(self) -> float:
        """Base score consumed by the ranking service."""
        return self.total_score


@dataclass(frozen=True)
class MatchRunMeta:
    """Summary of one assembler run."""

    openings_searched: int
    matches_found: int
    top_match_score: float
    avg_match_score: float
    latency_ms: float
    config_used: dict[str, dict[str, object]]


@dataclass(frozen=True)
class MatchRun:
    """Assembler output: ordered matches plus run metadata."""

    results: tuple[MatchResult, ...]
    meta: MatchRunMeta


@dataclass(frozen=True)
class _Lookups:
    organizations: Mapping[str, Organization]
    sites: Mapping[str, Site]
    licenses: Mapping[str, License]
    capabilities: Mapping[str, CapabilityProfile]
    profiles_by_id: Mapping[str, CapabilityProfile]

    def capability_for(self, opening: Opening, site: Site | None) -> CapabilityProfile | None:
        """Site profile, then the profile the site links to, then the organisation's."""
        if opening.site_id is not None:
            site_profile = self.capabilities.get(f"site_{opening.site_id}")
            if site_profile is not None:
                return site_profile
        if site is not None and site.capability_profile_id is not None:
            linked = self.profiles_by_id.get(site.capability_profile_id)
            if linked is not None:
                return linked
        return self.capabilities.get(f"org_{opening.organization_id}")


def _build_lookups(
    organizations: Iterable[Organization],
    sites: Iterable[Site],
    licenses: Iterable[License],
    capability_profiles: Iterable[CapabilityProfile],
) -> _Lookups:
    license_by_org: dict[str, License] = {}
    for lic in licenses:
        current = license_by_org.get(lic.organization_id)
        # A verified licence is kept once seen; otherwise the latest record stands.
        if current is None or current.status != "verified":
            license_by_org[lic.organization_id] = lic
    capabilities: dict[str, CapabilityProfile] = {}
    profiles_by_id: dict[str, CapabilityProfile] = {}
    for profile in capability_profiles:
        profiles_by_id[profile.id] = profile
        if profile.site_id:
            capabilities[f"site_{profile.site_id}"] = profile
        elif profile.organization_id:
            capabilities[f"org_{profile.organization_id}"] = profile
    return _Lookups(
        organizations={org.id: org for org in organizations},
        sites={site.id: site for site in sites},
        licenses=license_by_org,
        capabilities=capabilities,
        profiles_by_id=profiles_by_id,
    )


def _evaluate_opening(
    opening: Opening,
    *,
    referral: Referral,
    lookups: _Lookups,
    config: MatchingConfig,
    proximity: ProximityResolver,
    as_of: datetime,
) -> MatchResult | None:
    if not opening.is_open:
        return None

    organization = lookups.organizations.get(opening.organization_id)
    site = lookups.sites.get(opening.site_id) if opening.site_id is not None else None
    license = lookups.licenses.get(opening.organization_id)
    capability = lookups.capability_for(opening, site)

    violations = check_constraints(
        referral,
        opening,
        organization,
        site,
        license,
        config.constraints,
        proximity,
    )
    if violations:
        return None

    weights = config.weights
    breakdown = {
        "county": score_county_match(
            referral.client_county,
            organization.counties_served if organization else (),
            site.county if site else None,
            weights,
            proximity,
        ),
        "funding": score_funding_match(referral.funding_source, opening.funding_accepted, weights),
        "gender": score_gender_match(referral.client_gender, opening.gender_requirement, weights),
        "age": score_age_match(referral.client_age, opening.age_min, opening.age_max, weights),
        "availability": score_availability(
            opening.spots_available,
            opening.status,
            referral.desired_start_date,
            opening.available_date,
            weights,
            today=as_of.date(),
        ),
        "capability": score_capability_match(referral, capability, weights),
    }
    total = sum(breakdown.values())
    if total < config.thresholds.minimum_score:
        return None

    return MatchResult(
        opening_id=opening.id,
        organization_id=opening.organization_id,
        opening=opening,
        organization=organization,
        site=site,
        score_breakdown=MappingProxyType(breakdown),
        total_score=total,
        quality=config.thresholds.classify(total),
    )


def sort_matches(matches: Iterable[MatchResult]) -> list[MatchResult]:
    """Order by total score descending, then opening id ascending."""
    return sorted(matches, key=lambda match: (-match.total_score, match.opening_id))


def match_referral_to_openings(
    referral: Referral,
    openings: Sequence[Opening],
    organizations: Iterable[Organization],
    sites: Iterable[Site],
    licenses: Iterable[License],
    capability_profiles: Iterable[CapabilityProfile],
    config: MatchingConfig | None = None,
    *,
    proximity: ProximityResolver | None = None,
    as_of: datetime | None = None,
    workers: int = 1,
) -> MatchRun:
    """Score every candidate opening for a referral and return the shortlist.

    Args:
        referral: The placement request.
        openings: Candidate openings (any status; closed ones are skipped).
        organizations: Organisations owning the openings.
        sites: Sites hosting the openings.
        licenses: Licence records keyed by organisation.
        capability_profiles: Site- or organisation-level capability profiles.
        config: Weights, constraints and thresholds; defaults when omitted.
        proximity: County proximity resolver; exact-county matching by default.
        as_of: Reference time for availability; now (UTC) when omitted.
        workers: Thread count for per-opening evaluation. Results are merged
            before sorting, so output does not depend on this value.

    Returns:
        A ``MatchRun`` with at most ``max_results`` matches.
    """
    started = time.perf_counter()
    config = config or MatchingConfig()
    proximity = proximity or DEFAULT_PROXIMITY
    as_of = as_of or datetime.now(UTC)
    lookups = _build_lookups(organizations, sites, licenses, capability_profiles)

    def evaluate(opening: Opening) -> MatchResult | None:
        return _evaluate_opening(
            opening,
            referral=referral,
            lookups=lookups,
            config=config,
            proximity=proximity,
            as_of=as_of,
        )

    if workers > 1 and len(openings) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            evaluated = list(pool.map(evaluate, openings))
    else:
        evaluated = [evaluate(opening) for opening in openings]

    kept = sort_matches(match for match in evaluated if match is not None)
    results = tuple(kept[: config.thresholds.max_results])

    scores = [match.total_score for match in results]
    meta = MatchRunMeta(
        openings_searched=len(openings),
        matches_found=len(results),
        top_match_score=round(scores[0], 2) if scores else 0.0,
        avg_match_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
        latency_ms=round((time.perf_counter() - started) * 1000.0, 3),
        config_used=config.as_dict(),
    )
    return MatchRun(results=results, meta=meta)
