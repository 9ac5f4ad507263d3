"""Factor scorers for referral-to-opening compatibility.

Each scorer is a pure function returning a non-negative contribution bounded
by its weight. Partial matches return fractions of the weight, so a total can
only approach the weight sum when every factor is an exact match.

Usage example:
    from placement_matching.domain.factors import score_funding_match
    from placement_matching.domain.matching_config import ScoringWeights

    score_funding_match("CADI", ("CADI", "EW"), ScoringWeights())  # 20.0
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import date

from typing_extensions import override

from ..protocols import ProximityResolver
from .keyword_rules import CAPABILITY_RULES
from .matching_config import ScoringWeights
from .models import CapabilityProfile, Referral

SERVED_COUNTY_FRACTION = 0.9
PARTIAL_FUNDING_FRACTION = 0.7
PARTIAL_FUNDING_MARKER = "MA"
NEAR_AGE_FRACTION = 0.5
NEAR_AGE_YEARS = 2
LATE_DAILY_DECAY = 0.1
LATE_FLOOR = 0.3
UNKNOWN_CAPABILITY_FRACTION = 0.5


class ServedCountyProximityResolver(ProximityResolver):
    """Exact-county proximity: same site county, else a served county.

    Adjacent counties are not modelled and score zero. Swap in another
    resolver once an adjacency or distance source exists.
    """

    @override
    def proximity(
        self,
        referral_county: str,
        site_county: str | None,
        counties_served: Collection[str],
    ) -> float:
        county = referral_county.strip().lower()
        if not county:
            return 0.0
        if site_county and site_county.strip().lower() == county:
            return 1.0
        if any(served.strip().lower() == county for served in counties_served):
            return SERVED_COUNTY_FRACTION
        return 0.0


DEFAULT_PROXIMITY = ServedCountyProximityResolver()


def score_county_match(
    referral_county: str | None,
    counties_served: Collection[str],
    site_county: str | None,
    weights: ScoringWeights,
    proximity: ProximityResolver = DEFAULT_PROXIMITY,
) -> float:
    """Score location fit between the client and the opening's site."""
    if not referral_county:
        return 0.0
    fraction = proximity.proximity(referral_county, site_county, counties_served)
    return weights.county_match * max(0.0, min(1.0, fraction))


def score_funding_match(
    referral_funding: str | None,
    funding_accepted: Sequence[str],
    weights: ScoringWeights,
) -> float:
    """Score funding compatibility, allowing partial credit for MA variants."""
    if not referral_funding or not funding_accepted:
        return 0.0

    funding = referral_funding.upper()
    accepted = [code.upper() for code in funding_accepted]
    if funding in accepted:
        return weights.funding_match

    # Medical Assistance variants are treated as partially compatible.
    if PARTIAL_FUNDING_MARKER in funding and any(
        PARTIAL_FUNDING_MARKER in code for code in accepted
    ):
        return weights.funding_match * PARTIAL_FUNDING_FRACTION
    return 0.0


def score_gender_match(
    client_gender: str | None,
    gender_requirement: str | None,
    weights: ScoringWeights,
) -> float:
    """Full credit unless both sides are specified and differ."""
    if not client_gender or not gender_requirement or gender_requirement.lower() == "any":
        return weights.gender_match
    if client_gender.lower() == gender_requirement.lower():
        return weights.gender_match
    return 0.0


def score_age_match(
    client_age: int | None,
    age_min: int | None,
    age_max: int | None,
    weights: ScoringWeights,
) -> float:
    """Score age fit; a missing bound is unbounded and unknown age is not penalised."""
    if client_age is None:
        return weights.age_match

    below = age_min - client_age if age_min is not None and client_age < age_min else 0
    above = client_age - age_max if age_max is not None and client_age > age_max else 0
    distance = below + above
    if distance == 0:
        return weights.age_match
    if distance <= NEAR_AGE_YEARS:
        return weights.age_match * NEAR_AGE_FRACTION
    return 0.0


def score_availability(
    spots_available: int,
    status: str,
    desired_start_date: date | None,
    available_date: date | None,
    weights: ScoringWeights,
    *,
    today: date,
) -> float:
    """Score how soon the opening can take the client."""
    if status != "active" or spots_available <= 0:
        return 0.0

    if available_date is None or available_date <= today:
        return weights.availability_match
    if desired_start_date is None or available_date <= desired_start_date:
        return weights.availability_match

    days_late = (available_date - desired_start_date).days
    return weights.availability_match * max(LATE_FLOOR, 1.0 - days_late * LATE_DAILY_DECAY)


def score_capability_match(
    referral: Referral,
    capability_profile: CapabilityProfile | None,
    weights: ScoringWeights,
) -> float:
    """Penalise openings whose capability profile lacks support for stated needs."""
    if capability_profile is None:
        return weights.capability_match * UNKNOWN_CAPABILITY_FRACTION

    summaries = {
        "behavioral": (referral.behavioral_summary or "").lower(),
        "medical": (referral.medical_summary or "").lower(),
    }
    penalties = 0.0
    for rule in CAPABILITY_RULES:
        text = summaries[rule.summary]
        if rule.applies_to(text) and rule.lacks_support(capability_profile, text):
            penalties += rule.penalty

    return weights.capability_match * max(0.0, 1.0 - penalties)
