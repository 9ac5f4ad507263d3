"""Availability freshness: decay scores and the stale-opening policy.

Openings must be reconfirmed by providers. An opening last confirmed more than
48 hours ago is stale: it scores zero freshness in ranking and is reported for
inactivation by the stale-opening check.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from .matching_config import RankingPolicy
from .models import Opening

_SECONDS_PER_HOUR = 3600


def as_utc(moment: datetime) -> datetime:
    """Return ``moment`` unchanged when aware; naive values are read as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def hours_since(moment: datetime, as_of: datetime) -> int:
    """Whole hours elapsed from ``moment`` to ``as_of`` (truncated toward zero)."""
    return int((as_utc(as_of) - as_utc(moment)).total_seconds() / _SECONDS_PER_HOUR)


def hours_since_confirmation(opening: Opening, as_of: datetime) -> int | None:
    """Hours since the provider last confirmed the opening, if ever."""
    if opening.last_confirmed_at is None:
        return None
    return hours_since(opening.last_confirmed_at, as_of)


def calculate_freshness_score(
    opening: Opening,
    *,
    as_of: datetime,
    policy: RankingPolicy | None = None,
) -> float:
    """Score in [0, 1] that decays with time since last confirmation."""
    policy = policy or RankingPolicy()
    hours = hours_since_confirmation(opening, as_of)
    if hours is None:
        return policy.unconfirmed_freshness
    if hours > policy.stale_after_hours:
        return policy.stale_freshness
    for band in sorted(policy.freshness_bands, key=lambda item: item.max_hours):
        if hours <= band.max_hours:
            return band.score
    return policy.stale_freshness


@dataclass(frozen=True)
class StaleOpening:
    """An active opening that has gone unconfirmed past the policy window."""

    opening_id: str
    organization_id: str
    hours_since_confirmation: int | None
    hours_since_creation: int | None
    reason: str


def find_stale_openings(
    openings: Iterable[Opening],
    *,
    as_of: datetime,
    max_age_hours: int = 48,
) -> list[StaleOpening]:
    """List active openings that should be inactivated for staleness.

    Never-confirmed openings are judged by their creation time; openings with
    neither timestamp are left alone.
    """
    stale: list[StaleOpening] = []
    for opening in openings:
        if opening.status != "active":
            continue
        confirmed_hours = hours_since_confirmation(opening, as_of)
        created_hours = (
            hours_since(opening.created_at, as_of) if opening.created_at is not None else None
        )
        if confirmed_hours is not None:
            if confirmed_hours <= max_age_hours:
                continue
            reason = f"Stale: not confirmed in {max_age_hours} hours"
        elif created_hours is not None and created_hours > max_age_hours:
            reason = f"Stale: never confirmed since creation {created_hours} hours ago"
        else:
            continue
        stale.append(
            StaleOpening(
                opening_id=opening.id,
                organization_id=opening.organization_id,
                hours_since_confirmation=confirmed_hours,
                hours_since_creation=created_hours,
                reason=reason,
            )
        )
    return sorted(stale, key=lambda item: item.opening_id)
