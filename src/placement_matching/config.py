"""Centralised, injectable runtime configuration for the matching engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .exceptions import PositiveIntegerEnvVarError


@dataclass(frozen=True)
class EngineConfig:
    """Immutable runtime configuration for CLI and application services.

    Load from environment with `EngineConfig.from_env()` or construct directly for testing.
    Scoring weights, constraints and ranking tables live in the TOML file at
    ``matching_config_path``; this object only says where things are and how
    to run.
    ``stale_after_hours`` overrides the stale-report window; when unset the
    widest ranking freshness band is used.
    """

    matching_config_path: str = ""
    output_dir: str = "data/processed"
    workers: int = 1
    stale_after_hours: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            EngineConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            matching_config_path=os.getenv("MATCHING_CONFIG_PATH", "").strip(),
            output_dir=os.getenv("MATCHING_OUTPUT_DIR", "data/processed").strip()
            or "data/processed",
            workers=_parse_positive_int(
                os.getenv("MATCHING_WORKERS", ""),
                env_name="MATCHING_WORKERS",
                default=1,
            ),
            stale_after_hours=_parse_optional_positive_int(
                os.getenv("STALE_AFTER_HOURS", ""),
                env_name="STALE_AFTER_HOURS",
            ),
            log_level=os.getenv("MATCHING_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def with_overrides(
        self,
        *,
        matching_config_path: str | None = None,
        output_dir: str | None = None,
        workers: int | None = None,
        stale_after_hours: int | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            matching_config_path=self.matching_config_path
            if matching_config_path is None
            else matching_config_path.strip(),
            output_dir=self.output_dir if output_dir is None else output_dir,
            workers=self.workers if workers is None else workers,
            stale_after_hours=self.stale_after_hours
            if stale_after_hours is None
            else stale_after_hours,
        )


def _parse_positive_int(value: str, *, env_name: str, default: int) -> int:
    """Parse a positive integer from an environment variable, or use the default."""
    text = value.strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse a positive integer from an environment variable, or None when unset."""
    if not value.strip():
        return None
    return _parse_positive_int(value, env_name=env_name, default=1)
