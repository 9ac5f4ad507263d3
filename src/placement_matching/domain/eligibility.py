"""Hard eligibility constraints evaluated before any scoring.

Every enabled rule is evaluated so callers see all reasons an opening was
excluded, not just the first.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..protocols import ProximityResolver
from .factors import DEFAULT_PROXIMITY
from .matching_config import EligibilityConstraints
from .models import License, Opening, Organization, Referral, Site


@dataclass(frozen=True)
class Violation:
    """One failed hard constraint."""

    type: str
    message: str


def check_constraints(
    referral: Referral,
    opening: Opening,
    organization: Organization | None,
    site: Site | None,
    license: License | None,
    constraints: EligibilityConstraints,
    proximity: ProximityResolver = DEFAULT_PROXIMITY,
) -> list[Violation]:
    """Return every violated constraint; an empty list means eligible."""
    violations: list[Violation] = []

    if constraints.require_funding_match:
        funding = (referral.funding_source or "").upper()
        accepted = {code.upper() for code in opening.funding_accepted}
        if not funding or funding not in accepted:
            violations.append(Violation("funding", "Funding source not accepted"))

    requirement = (opening.gender_requirement or "").lower()
    if constraints.require_gender_match and requirement and requirement != "any":
        client_gender = (referral.client_gender or "").lower()
        if client_gender and client_gender != requirement:
            violations.append(Violation("gender", "Gender requirement not met"))

    if constraints.require_age_range_match and referral.client_age is not None:
        if opening.age_min is not None and referral.client_age < opening.age_min:
            violations.append(Violation("age", "Client below minimum age"))
        if opening.age_max is not None and referral.client_age > opening.age_max:
            violations.append(Violation("age", "Client above maximum age"))

    if constraints.require_verified_license and license is not None:
        if license.status != "verified":
            violations.append(Violation("license", "License not verified"))

    if constraints.require_county_proximity:
        counties_served = organization.counties_served if organization else ()
        site_county = site.county if site else None
        reachable = bool(referral.client_county) and (
            proximity.proximity(referral.client_county or "", site_county, counties_served) > 0
        )
        if not reachable:
            violations.append(Violation("county", "Client county outside service area"))

    return violations
