"""Explainability text derived from ranking multipliers.

No scoring happens here; every statement restates a field the ranking service
already computed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .freshness import hours_since_confirmation
from .models import Opening
from .ranking import RankedMatch

EXCELLENT_BASE_SCORE = 80
RECENT_FRESHNESS = 0.9
STALE_FRESHNESS = 0.8
HIGH_RELIABILITY = 1.05
LOW_RELIABILITY = 1.0


@dataclass(frozen=True)
class Explainability:
    """Why a match was shown and what a case manager should double-check."""

    matched_because: list[str] = field(default_factory=list)
    potential_concerns: list[str] = field(default_factory=list)
    freshness_hours: int | None = None
    verification_status: str = "unknown"


def build_explainability(
    ranked: RankedMatch,
    opening: Opening,
    *,
    as_of: datetime,
) -> Explainability:
    """Build positive signals and concerns for one ranked match."""
    matched_because: list[str] = []
    potential_concerns: list[str] = []
    hours = hours_since_confirmation(opening, as_of)

    if ranked.base_score >= EXCELLENT_BASE_SCORE:
        matched_because.append("Excellent compatibility match")
    if ranked.freshness_score >= RECENT_FRESHNESS:
        matched_because.append("Recently confirmed availability")
    if ranked.reliability_multiplier > HIGH_RELIABILITY:
        matched_because.append("Highly reliable provider")

    if ranked.freshness_score < STALE_FRESHNESS and hours is not None:
        potential_concerns.append(f"Not confirmed recently ({hours}h ago)")
    if ranked.reliability_multiplier < LOW_RELIABILITY:
        potential_concerns.append("Lower historical responsiveness")

    organization = ranked.match.organization
    verification_status = (
        organization.verification_status
        if organization is not None and organization.verification_status
        else "unknown"
    )
    return Explainability(
        matched_because=matched_because,
        potential_concerns=potential_concerns,
        freshness_hours=hours,
        verification_status=verification_status,
    )
