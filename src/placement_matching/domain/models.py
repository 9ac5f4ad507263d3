"""Immutable snapshot records consumed by the matching engine.

Records are loaded and validated by the application layer. Only identifiers
are required; every other field may be missing, and scorers degrade rather
than fail when it is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

OpeningStatus = Literal[
    "active",
    "inactive",
    "filled",
    "withdrawn",
    "draft",
    "pending_approval",
]
Urgency = Literal["routine", "urgent", "crisis"]
SubscriptionPlan = Literal["free", "basic", "professional", "enterprise"]

ACCEPTED_OUTCOME_STATUSES = frozenset({"accepted", "placed"})


@dataclass(frozen=True)
class Referral:
    """One placement request for a client."""

    id: str
    client_county: str | None = None
    client_gender: str | None = None
    client_age: int | None = None
    funding_source: str | None = None
    desired_start_date: date | None = None
    urgency: str | None = None
    behavioral_summary: str | None = None
    medical_summary: str | None = None


@dataclass(frozen=True)
class Opening:
    """One fillable slot at a provider site."""

    id: str
    organization_id: str
    site_id: str | None = None
    status: str = "draft"
    spots_available: int = 0
    gender_requirement: str | None = None
    age_min: int | None = None
    age_max: int | None = None
    funding_accepted: tuple[str, ...] = ()
    available_date: date | None = None
    last_confirmed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        """Active with at least one spot left."""
        return self.status == "active" and self.spots_available > 0


@dataclass(frozen=True)
class Organization:
    """A provider organisation."""

    id: str
    counties_served: tuple[str, ...] = ()
    verification_status: str | None = None


@dataclass(frozen=True)
class Site:
    """A physical provider location."""

    id: str
    organization_id: str | None = None
    county: str | None = None
    capability_profile_id: str | None = None


@dataclass(frozen=True)
class BehavioralCapabilities:
    """Documented behavioural support levels."""

    aggression_physical: str | None = None
    elopement_risk: str | None = None


@dataclass(frozen=True)
class MedicalCapabilities:
    """Documented medical support."""

    tube_feeding: bool | None = None
    ventilator: bool | None = None
    seizure_management: str | None = None


@dataclass(frozen=True)
class CapabilityProfile:
    """Care capabilities attached to a site or, failing that, an organisation."""

    id: str
    site_id: str | None = None
    organization_id: str | None = None
    behavioral: BehavioralCapabilities = BehavioralCapabilities()
    medical: MedicalCapabilities = MedicalCapabilities()


@dataclass(frozen=True)
class License:
    """A provider licence record."""

    id: str
    organization_id: str
    status: str | None = None
    expiration_date: date | None = None

    def is_current(self, on: date) -> bool:
        """Verified and not yet expired on ``on``."""
        return (
            self.status == "verified"
            and self.expiration_date is not None
            and self.expiration_date > on
        )


@dataclass(frozen=True)
class Subscription:
    """A provider's marketplace subscription."""

    organization_id: str
    plan: str = "free"
    status: str | None = None
    priority_boost_factor: float | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class ReferralOutcome:
    """One historical referral sent to an organisation and how it ended."""

    organization_id: str
    status: str

    @property
    def is_acceptance(self) -> bool:
        return self.status in ACCEPTED_OUTCOME_STATUSES
