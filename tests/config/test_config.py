"""Tests for EngineConfig behaviour."""

from pathlib import Path

import pytest

from placement_matching.config import EngineConfig
from placement_matching.exceptions import PositiveIntegerEnvVarError

_ENV_VARS = (
    "MATCHING_CONFIG_PATH",
    "MATCHING_OUTPUT_DIR",
    "MATCHING_WORKERS",
    "STALE_AFTER_HOURS",
    "MATCHING_LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for name in _ENV_VARS:
        # Record every variable so values loaded from .env are undone at teardown.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    dotenv = tmp_path / ".env"
    dotenv.write_text("", encoding="utf-8")
    return dotenv


def test_from_env_defaults(clean_env: Path) -> None:
    config = EngineConfig.from_env(str(clean_env))

    assert config == EngineConfig()
    assert config.workers == 1
    assert config.stale_after_hours is None
    assert config.output_dir == "data/processed"


def test_from_env_reads_environment(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATCHING_CONFIG_PATH", " config/matching.toml ")
    monkeypatch.setenv("MATCHING_OUTPUT_DIR", "out")
    monkeypatch.setenv("MATCHING_WORKERS", "4")
    monkeypatch.setenv("STALE_AFTER_HOURS", "24")
    monkeypatch.setenv("MATCHING_LOG_LEVEL", "debug")

    config = EngineConfig.from_env(str(clean_env))

    assert config.matching_config_path == "config/matching.toml"
    assert config.output_dir == "out"
    assert config.workers == 4
    assert config.stale_after_hours == 24
    assert config.log_level == "DEBUG"


def test_from_env_reads_dotenv_file(clean_env: Path) -> None:
    clean_env.write_text("MATCHING_WORKERS=3\n", encoding="utf-8")

    config = EngineConfig.from_env(str(clean_env))

    assert config.workers == 3


@pytest.mark.parametrize("value", ["zero", "0", "-2", "1.5"])
def test_from_env_rejects_non_positive_workers(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    monkeypatch.setenv("MATCHING_WORKERS", value)

    with pytest.raises(PositiveIntegerEnvVarError, match="MATCHING_WORKERS"):
        EngineConfig.from_env(str(clean_env))


def test_from_env_rejects_non_positive_stale_window(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("STALE_AFTER_HOURS", "0")

    with pytest.raises(PositiveIntegerEnvVarError, match="STALE_AFTER_HOURS"):
        EngineConfig.from_env(str(clean_env))


def test_with_overrides_preserves_fields() -> None:
    base = EngineConfig(
        matching_config_path="config/matching.toml",
        output_dir="out",
        workers=2,
        stale_after_hours=36,
        log_level="WARNING",
    )

    updated = base.with_overrides(workers=8)
    unchanged = base.with_overrides()

    assert updated.workers == 8
    assert updated.matching_config_path == "config/matching.toml"
    assert updated.output_dir == "out"
    assert updated.stale_after_hours == 36
    assert updated.log_level == "WARNING"
    assert unchanged == base


def test_with_overrides_strips_config_path() -> None:
    assert EngineConfig().with_overrides(matching_config_path=" a.toml ").matching_config_path == "a.toml"
