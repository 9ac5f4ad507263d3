"""Typed parsing and validation for matching config files.

Example file:

    schema_version = 1

    [weights]
    county_match = 30

    [thresholds]
    minimum_score = 50
    max_results = 5

    [ranking.plan_boosts]
    enterprise = 1.2

Every table and key is optional; anything left out keeps its default.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .domain.matching_config import FreshnessBand, MatchingConfig, RankingPolicy
from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class MatchingConfigFile:
    """Validated matching and ranking configuration loaded from TOML."""

    matching: MatchingConfig = field(default_factory=MatchingConfig)
    ranking: RankingPolicy = field(default_factory=RankingPolicy)


class _WeightsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    county_match: float | None = None
    funding_match: float | None = None
    gender_match: float | None = None
    age_match: float | None = None
    availability_match: float | None = None
    capability_match: float | None = None

    @field_validator("*")
    @classmethod
    def _validate_non_negative(cls, value: float | None) -> float | None:
        if value is not None and value < 0.0:
            raise ValueError
        return value


class _ConstraintsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    require_funding_match: bool | None = None
    require_gender_match: bool | None = None
    require_age_range_match: bool | None = None
    require_verified_license: bool | None = None
    require_county_proximity: bool | None = None
    max_county_distance: float | None = None

    @field_validator("max_county_distance")
    @classmethod
    def _validate_distance(cls, value: float | None) -> float | None:
        if value is not None and value < 0.0:
            raise ValueError
        return value


class _ThresholdsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    minimum_score: float | None = None
    good_score: float | None = None
    excellent_score: float | None = None
    max_results: int | None = None

    @field_validator("minimum_score", "good_score", "excellent_score")
    @classmethod
    def _validate_score(cls, value: float | None) -> float | None:
        if value is not None and value < 0.0:
            raise ValueError
        return value

    @field_validator("max_results")
    @classmethod
    def _validate_max_results(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError
        return value


class _FreshnessBandModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_hours: int
    score: float

    @field_validator("max_hours")
    @classmethod
    def _validate_hours(cls, value: int) -> int:
        if value < 0:
            raise ValueError
        return value

    @field_validator("score")
    @classmethod
    def _validate_score(cls, value: float) -> float:
        if value < 0.0 or value > 1.0:
            raise ValueError
        return value


class _RankingModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    plan_boosts: dict[str, float] | None = None
    min_paid_multiplier: float | None = None
    max_paid_multiplier: float | None = None
    min_reliability_multiplier: float | None = None
    max_reliability_multiplier: float | None = None
    band_width: float | None = None
    min_history_for_acceptance: int | None = None
    freshness_bands: tuple[_FreshnessBandModel, ...] | None = None
    unconfirmed_freshness: float | None = None

    @field_validator("plan_boosts")
    @classmethod
    def _validate_plan_boosts(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        if value is None:
            return None
        cleaned: dict[str, float] = {}
        for plan, boost in value.items():
            name = plan.strip().lower()
            if not name or boost < 1.0:
                raise ValueError
            cleaned[name] = boost
        return cleaned

    @field_validator("min_paid_multiplier")
    @classmethod
    def _validate_min_paid(cls, value: float | None) -> float | None:
        # Paid placement may nudge up, never down.
        if value is not None and value < 1.0:
            raise ValueError
        return value

    @field_validator("band_width", "min_reliability_multiplier", "max_reliability_multiplier")
    @classmethod
    def _validate_positive(cls, value: float | None) -> float | None:
        if value is not None and value < 0.0:
            raise ValueError
        return value

    @field_validator("unconfirmed_freshness")
    @classmethod
    def _validate_fraction(cls, value: float | None) -> float | None:
        if value is not None and (value < 0.0 or value > 1.0):
            raise ValueError
        return value

    @field_validator("freshness_bands")
    @classmethod
    def _validate_bands(
        cls, value: tuple[_FreshnessBandModel, ...] | None
    ) -> tuple[_FreshnessBandModel, ...] | None:
        if value is None:
            return None
        hours = [band.max_hours for band in value]
        if not hours or sorted(hours) != hours or len(set(hours)) != len(hours):
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    weights: _WeightsModel = _WeightsModel()
    constraints: _ConstraintsModel = _ConstraintsModel()
    thresholds: _ThresholdsModel = _ThresholdsModel()
    ranking: _RankingModel = _RankingModel()

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value

    @model_validator(mode="after")
    def _validate_cross_field(self) -> _ConfigFileModel:
        defaults = MatchingConfig().thresholds
        minimum = _pick(self.thresholds.minimum_score, defaults.minimum_score)
        good = _pick(self.thresholds.good_score, defaults.good_score)
        excellent = _pick(self.thresholds.excellent_score, defaults.excellent_score)
        if not minimum <= good <= excellent:
            raise ValueError(
                "thresholds must satisfy minimum_score <= good_score <= excellent_score"
            )

        policy = RankingPolicy()
        paid_low = _pick(self.ranking.min_paid_multiplier, policy.min_paid_multiplier)
        paid_high = _pick(self.ranking.max_paid_multiplier, policy.max_paid_multiplier)
        if paid_low > paid_high:
            raise ValueError("ranking paid multiplier bounds are inverted")
        rel_low = _pick(self.ranking.min_reliability_multiplier, policy.min_reliability_multiplier)
        rel_high = _pick(self.ranking.max_reliability_multiplier, policy.max_reliability_multiplier)
        if rel_low > rel_high:
            raise ValueError("ranking reliability multiplier bounds are inverted")
        return self


ValueT = TypeVar("ValueT")


def _pick(value: ValueT | None, default: ValueT) -> ValueT:
    return default if value is None else value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}" if location else message


def _set_values(model: BaseModel) -> dict[str, object]:
    return model.model_dump(exclude_none=True)


def _to_ranking_policy(model: _RankingModel) -> RankingPolicy:
    policy = RankingPolicy()
    values = _set_values(model)
    values.pop("plan_boosts", None)
    values.pop("freshness_bands", None)
    policy = replace(policy, **values)
    if model.plan_boosts is not None:
        merged = {**policy.plan_boosts, **model.plan_boosts}
        policy = replace(policy, plan_boosts=MappingProxyType(merged))
    if model.freshness_bands is not None:
        policy = replace(
            policy,
            freshness_bands=tuple(
                FreshnessBand(max_hours=band.max_hours, score=band.score)
                for band in model.freshness_bands
            ),
        )
    return policy


def load_matching_config_file(*, path: Path, fs: FileSystem) -> MatchingConfigFile:
    """Load and validate a matching TOML config file."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    matching = MatchingConfig().with_overrides(
        weights=_set_values(model.weights),
        constraints=_set_values(model.constraints),
        thresholds=_set_values(model.thresholds),
    )
    return MatchingConfigFile(matching=matching, ranking=_to_ranking_policy(model.ranking))
