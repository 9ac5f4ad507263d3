"""Explicit configuration structs for matching and ranking.

Callers pass these at each invocation. Defaults live on the dataclasses and
overrides are merged into new instances; nothing is mutated in place.

Usage example:
    from placement_matching.domain.matching_config import MatchingConfig

    config = MatchingConfig().with_overrides(
        weights={"county_match": 30},
        thresholds={"minimum_score": 50},
    )
    assert config.weights.funding_match == 20
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from types import MappingProxyType
from typing import Self, TypeVar

from ..exceptions import MatchingConfigError

FACTOR_NAMES: tuple[str, ...] = (
    "county",
    "funding",
    "gender",
    "age",
    "availability",
    "capability",
)


@dataclass(frozen=True)
class ScoringWeights:
    """Maximum nominal contribution of each factor scorer."""

    county_match: float = 25.0
    funding_match: float = 20.0
    gender_match: float = 15.0
    age_match: float = 15.0
    availability_match: float = 15.0
    capability_match: float = 10.0

    @property
    def total(self) -> float:
        return (
            self.county_match
            + self.funding_match
            + self.gender_match
            + self.age_match
            + self.availability_match
            + self.capability_match
        )

    def for_factor(self, factor: str) -> float:
        """Return the weight for a breakdown key such as ``"county"``."""
        return float(getattr(self, f"{factor}_match"))


@dataclass(frozen=True)
class EligibilityConstraints:
    """Hard constraints; any violation excludes an opening."""

    require_funding_match: bool = True
    require_gender_match: bool = True
    require_age_range_match: bool = True
    require_verified_license: bool = True
    require_county_proximity: bool = False
    max_county_distance: float = 50.0


@dataclass(frozen=True)
class MatchThresholds:
    """Inclusion and quality-tier cut-offs for assembled matches."""

    minimum_score: float = 40.0
    good_score: float = 70.0
    excellent_score: float = 85.0
    max_results: int = 10

    def classify(self, total_score: float) -> str:
        """Classify a total score into a quality tier."""
        if total_score >= self.excellent_score:
            return "excellent"
        if total_score >= self.good_score:
            return "good"
        return "fair"


@dataclass(frozen=True)
class MatchingConfig:
    """Weights, constraints and thresholds for one matching run."""

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    constraints: EligibilityConstraints = field(default_factory=EligibilityConstraints)
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)

    def with_overrides(
        self,
        *,
        weights: Mapping[str, object] | None = None,
        constraints: Mapping[str, object] | None = None,
        thresholds: Mapping[str, object] | None = None,
    ) -> Self:
        """Return a new config with partial overrides merged onto this one."""
        return replace(
            self,
            weights=_merge(self.weights, weights, "weights"),
            constraints=_merge(self.constraints, constraints, "constraints"),
            thresholds=_merge(self.thresholds, thresholds, "thresholds"),
        )

    def as_dict(self) -> dict[str, dict[str, object]]:
        """Plain-dict snapshot for run metadata."""
        return {
            "weights": asdict(self.weights),
            "constraints": asdict(self.constraints),
            "thresholds": asdict(self.thresholds),
        }


def _default_plan_boosts() -> MappingProxyType[str, float]:
    return MappingProxyType(
        {
            "free": 1.0,
            "basic": 1.05,
            "professional": 1.10,
            "enterprise": 1.15,
        }
    )


@dataclass(frozen=True)
class FreshnessBand:
    """Score awarded when an opening was confirmed at most ``max_hours`` ago."""

    max_hours: int
    score: float


def _default_freshness_bands() -> tuple[FreshnessBand, ...]:
    return (
        FreshnessBand(max_hours=12, score=1.0),
        FreshnessBand(max_hours=24, score=0.9),
        FreshnessBand(max_hours=36, score=0.8),
        FreshnessBand(max_hours=48, score=0.7),
    )


@dataclass(frozen=True)
class RankingPolicy:
    """Bounds and tables for the second-pass re-ranker."""

    plan_boosts: MappingProxyType[str, float] = field(default_factory=_default_plan_boosts)
    min_paid_multiplier: float = 1.0
    max_paid_multiplier: float = 1.25
    min_reliability_multiplier: float = 0.8
    max_reliability_multiplier: float = 1.2
    verified_bonus: float = 0.1
    unverified_penalty: float = 0.1
    current_license_bonus: float = 0.05
    min_history_for_acceptance: int = 5
    high_acceptance_rate: float = 0.8
    high_acceptance_bonus: float = 0.05
    low_acceptance_rate: float = 0.3
    low_acceptance_penalty: float = 0.1
    band_width: float = 5.0
    freshness_bands: tuple[FreshnessBand, ...] = field(default_factory=_default_freshness_bands)
    unconfirmed_freshness: float = 0.5
    stale_freshness: float = 0.0

    @property
    def stale_after_hours(self) -> int:
        """Hours after which a confirmation is stale (the widest band)."""
        return max(band.max_hours for band in self.freshness_bands)

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name not in {"plan_boosts", "freshness_bands"}
        }
        payload["plan_boosts"] = dict(self.plan_boosts)
        payload["freshness_bands"] = [asdict(band) for band in self.freshness_bands]
        return payload


SectionT = TypeVar("SectionT", ScoringWeights, EligibilityConstraints, MatchThresholds)


def _merge(
    section: SectionT,
    overrides: Mapping[str, object] | None,
    name: str,
) -> SectionT:
    if not overrides:
        return section
    current = asdict(section)
    unknown = sorted(set(overrides) - set(current))
    if unknown:
        raise MatchingConfigError(name, f"unknown keys {', '.join(unknown)}")
    cleaned: dict[str, object] = {}
    for key, value in overrides.items():
        cleaned[key] = _coerce(value, current[key], f"{name}.{key}", name)
    return replace(section, **cleaned)


def _coerce(value: object, current: object, key: str, section: str) -> object:
    if isinstance(current, bool):
        if not isinstance(value, bool):
            raise MatchingConfigError(section, f"{key} must be a boolean")
        return value
    if isinstance(current, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise MatchingConfigError(section, f"{key} must be an integer")
        return value
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise MatchingConfigError(section, f"{key} must be a number")
    if value < 0:
        raise MatchingConfigError(section, f"{key} must not be negative")
    return float(value)
