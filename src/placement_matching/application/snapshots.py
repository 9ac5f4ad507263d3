"""Load referral and marketplace snapshots exported as JSON.

A snapshot is one JSON object:

    {
      "as_of": "2025-01-15T12:00:00Z",
      "referral": {"id": "ref-1", "client_county": "Orange", ...},
      "openings": [...],
      "organizations": [...],
      "sites": [...],
      "licenses": [...],
      "capability_profiles": [...],
      "subscriptions": [...],
      "referral_history": [...]
    }

Every list is optional. Backend exports carry more columns than the engine
reads, so unknown fields are ignored rather than rejected. Naive timestamps
are read as UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.freshness import as_utc
from ..domain.models import (
    BehavioralCapabilities,
    CapabilityProfile,
    License,
    MedicalCapabilities,
    Opening,
    Organization,
    Referral,
    ReferralOutcome,
    Site,
    Subscription,
)
from ..exceptions import SnapshotFileNotFoundError, SnapshotValidationError
from ..protocols import FileSystem

_RECORD_CONFIG = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)


def _as_utc(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


class _ReferralModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    client_county: str | None = None
    client_gender: str | None = None
    client_age: int | None = None
    funding_source: str | None = None
    desired_start_date: date | None = None
    urgency: str | None = None
    behavioral_summary: str | None = None
    medical_summary: str | None = None

    def to_domain(self) -> Referral:
        return Referral(**self.model_dump())


class _OpeningModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    organization_id: str
    site_id: str | None = None
    status: str = "draft"
    spots_available: int | None = None
    gender_requirement: str | None = None
    age_min: int | None = None
    age_max: int | None = None
    funding_accepted: list[str] | None = None
    available_date: date | None = None
    last_confirmed_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("last_confirmed_at", "created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def to_domain(self) -> Opening:
        return Opening(
            id=self.id,
            organization_id=self.organization_id,
            site_id=self.site_id,
            status=self.status,
            spots_available=self.spots_available or 0,
            gender_requirement=self.gender_requirement,
            age_min=self.age_min,
            age_max=self.age_max,
            funding_accepted=tuple(self.funding_accepted or ()),
            available_date=self.available_date,
            last_confirmed_at=self.last_confirmed_at,
            created_at=self.created_at,
        )


class _OrganizationModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    counties_served: list[str] | None = None
    verification_status: str | None = None

    def to_domain(self) -> Organization:
        return Organization(
            id=self.id,
            counties_served=tuple(self.counties_served or ()),
            verification_status=self.verification_status,
        )


class _SiteModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    organization_id: str | None = None
    county: str | None = None
    capability_profile_id: str | None = None

    def to_domain(self) -> Site:
        return Site(**self.model_dump())


class _LicenseModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    organization_id: str
    status: str | None = None
    expiration_date: date | None = None

    def to_domain(self) -> License:
        return License(**self.model_dump())


class _BehavioralModel(BaseModel):
    model_config = _RECORD_CONFIG

    aggression_physical: str | None = None
    elopement_risk: str | None = None


class _MedicalModel(BaseModel):
    model_config = _RECORD_CONFIG

    tube_feeding: bool | None = None
    ventilator: bool | None = None
    seizure_management: str | None = None


class _CapabilityProfileModel(BaseModel):
    model_config = _RECORD_CONFIG

    id: str
    site_id: str | None = None
    organization_id: str | None = None
    behavioral: _BehavioralModel | None = Field(
        default=None,
        validation_alias=AliasChoices("behavioral", "behavioral_capabilities"),
    )
    medical: _MedicalModel | None = Field(
        default=None,
        validation_alias=AliasChoices("medical", "medical_capabilities"),
    )

    def to_domain(self) -> CapabilityProfile:
        behavioral = self.behavioral or _BehavioralModel()
        medical = self.medical or _MedicalModel()
        return CapabilityProfile(
            id=self.id,
            site_id=self.site_id,
            organization_id=self.organization_id,
            behavioral=BehavioralCapabilities(**behavioral.model_dump()),
            medical=MedicalCapabilities(**medical.model_dump()),
        )


class _SubscriptionModel(BaseModel):
    model_config = _RECORD_CONFIG

    organization_id: str
    plan: str = "free"
    status: str | None = None
    priority_boost_factor: float | None = None

    def to_domain(self) -> Subscription:
        return Subscription(**self.model_dump())


class _ReferralOutcomeModel(BaseModel):
    model_config = _RECORD_CONFIG

    organization_id: str
    status: str

    def to_domain(self) -> ReferralOutcome:
        return ReferralOutcome(**self.model_dump())


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    as_of: datetime | None = None
    referral: _ReferralModel | None = None
    openings: list[_OpeningModel] = []
    organizations: list[_OrganizationModel] = []
    sites: list[_SiteModel] = []
    licenses: list[_LicenseModel] = []
    capability_profiles: list[_CapabilityProfileModel] = []
    subscriptions: list[_SubscriptionModel] = []
    referral_history: list[_ReferralOutcomeModel] = []

    @field_validator("as_of")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


@dataclass(frozen=True)
class MatchSnapshot:
    """Domain records for one matching run."""

    referral: Referral | None
    openings: tuple[Opening, ...] = ()
    organizations: tuple[Organization, ...] = ()
    sites: tuple[Site, ...] = ()
    licenses: tuple[License, ...] = ()
    capability_profiles: tuple[CapabilityProfile, ...] = ()
    subscriptions: tuple[Subscription, ...] = ()
    referral_history: tuple[ReferralOutcome, ...] = ()
    as_of: datetime | None = None


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}" if location else message


def parse_match_snapshot(payload: object, *, source: str = "<memory>") -> MatchSnapshot:
    """Validate a decoded snapshot payload into domain records."""
    try:
        model = _SnapshotModel.model_validate(payload)
    except ValidationError as exc:
        raise SnapshotValidationError(source, _format_validation_error(exc)) from exc

    return MatchSnapshot(
        referral=model.referral.to_domain() if model.referral is not None else None,
        openings=tuple(item.to_domain() for item in model.openings),
        organizations=tuple(item.to_domain() for item in model.organizations),
        sites=tuple(item.to_domain() for item in model.sites),
        licenses=tuple(item.to_domain() for item in model.licenses),
        capability_profiles=tuple(item.to_domain() for item in model.capability_profiles),
        subscriptions=tuple(item.to_domain() for item in model.subscriptions),
        referral_history=tuple(item.to_domain() for item in model.referral_history),
        as_of=model.as_of,
    )


def load_match_snapshot(*, path: Path, fs: FileSystem) -> MatchSnapshot:
    """Read and validate a snapshot JSON file."""
    if not fs.exists(path):
        raise SnapshotFileNotFoundError(str(path))
    try:
        payload = fs.read_json(path)
    except ValueError as exc:
        raise SnapshotValidationError(str(path), str(exc)) from exc
    return parse_match_snapshot(payload, source=str(path))
