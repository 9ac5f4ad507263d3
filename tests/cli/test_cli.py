"""Tests for CLI wiring and overrides."""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from placement_matching import cli
from placement_matching.application.shortlist import ShortlistResult
from placement_matching.cli import CliDependencies
from placement_matching.config import EngineConfig
from placement_matching.domain.assembler import MatchRunMeta
from placement_matching.protocols import FileSystem
from tests.fakes import InMemoryFileSystem
from tests.support.snapshots import make_snapshot_payload

runner = CliRunner()
_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")
SNAPSHOT = "data/snapshots/ref-100.json"


def _strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE_RE.sub("", text)


@pytest.fixture(autouse=True)
def default_config(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_from_env(cls: type[EngineConfig], dotenv_path: str | None = None) -> EngineConfig:
        _ = (cls, dotenv_path)
        return EngineConfig()

    monkeypatch.setattr(cli.EngineConfig, "from_env", classmethod(fake_from_env))


def _build_app_with_fs(fs: InMemoryFileSystem) -> typer.Typer:
    def build(*, config: EngineConfig) -> CliDependencies:
        _ = config
        return CliDependencies(fs=fs)

    return cli.create_app(build)


def _fs_with_snapshot() -> InMemoryFileSystem:
    fs = InMemoryFileSystem()
    fs.write_text(json.dumps(make_snapshot_payload()), Path(SNAPSHOT))
    return fs


def test_cli_version_option_prints_package_version(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "__version__", "9.9.9", raising=False)

    result = runner.invoke(_build_app_with_fs(InMemoryFileSystem()), ["--version"])

    assert result.exit_code == 0
    assert "9.9.9" in _strip_ansi(result.output)


def test_cli_shortlist_runs_end_to_end() -> None:
    fs = _fs_with_snapshot()

    result = runner.invoke(
        _build_app_with_fs(fs),
        ["shortlist", "--snapshot", SNAPSHOT, "--output-dir", "out"],
    )

    assert result.exit_code == 0, result.output
    output = _strip_ansi(result.output)
    assert "Shortlist complete" in output
    assert "op-a" in output
    assert "4 openings searched → 3 matches" in output
    assert fs.exists(Path("out/ranked_matches.csv"))
    assert fs.exists(Path("out/match_report.json"))


def test_cli_shortlist_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_run_match_shortlist(
        snapshot_path: str | Path,
        out_dir: str | Path | None,
        config: EngineConfig,
        fs: FileSystem,
        *,
        as_of: datetime | None = None,
    ) -> ShortlistResult:
        _ = fs
        captured["config"] = config
        captured["as_of"] = as_of
        captured["out_dir"] = out_dir
        return ShortlistResult(
            referral_id="ref-1",
            as_of=datetime(2025, 1, 15, tzinfo=UTC),
            meta=MatchRunMeta(
                openings_searched=0,
                matches_found=0,
                top_match_score=0.0,
                avg_match_score=0.0,
                latency_ms=0.1,
                config_used={},
            ),
            ranked=(),
            ranked_matches_path=Path("out/ranked_matches.csv"),
            report_path=Path("out/match_report.json"),
        )

    monkeypatch.setattr(cli, "run_match_shortlist", fake_run_match_shortlist)

    result = runner.invoke(
        _build_app_with_fs(InMemoryFileSystem()),
        [
            "shortlist",
            "--snapshot",
            SNAPSHOT,
            "--config",
            "config/matching.toml",
            "--workers",
            "3",
            "--as-of",
            "2025-01-15T08:30:00",
        ],
    )

    assert result.exit_code == 0, result.output
    config = captured["config"]
    assert isinstance(config, EngineConfig)
    assert config.matching_config_path == "config/matching.toml"
    assert config.workers == 3
    assert captured["as_of"] == datetime(2025, 1, 15, 8, 30)
    assert captured["out_dir"] is None


def test_cli_shortlist_rejects_zero_workers() -> None:
    result = runner.invoke(
        _build_app_with_fs(InMemoryFileSystem()),
        ["shortlist", "--snapshot", SNAPSHOT, "--workers", "0"],
    )

    assert result.exit_code != 0


def test_cli_stale_openings_reports_stale_rows() -> None:
    fs = _fs_with_snapshot()

    result = runner.invoke(
        _build_app_with_fs(fs),
        ["stale-openings", "--snapshot", SNAPSHOT, "--output-dir", "out"],
    )

    assert result.exit_code == 0, result.output
    output = _strip_ansi(result.output)
    assert "1 stale of 4 openings" in output
    assert "op-c: Stale: not confirmed in 48 hours" in output
    assert fs.exists(Path("out/stale_openings.csv"))


def test_cli_stale_openings_max_age_override() -> None:
    fs = _fs_with_snapshot()

    result = runner.invoke(
        _build_app_with_fs(fs),
        ["stale-openings", "--snapshot", SNAPSHOT, "--max-age-hours", "200"],
    )

    assert result.exit_code == 0, result.output
    assert "0 stale of 4 openings" in _strip_ansi(result.output)


def test_cli_show_config_defaults() -> None:
    result = runner.invoke(_build_app_with_fs(InMemoryFileSystem()), ["show-config"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["source"] == "defaults"
    assert payload["matching"]["weights"]["county_match"] == 25.0
    assert payload["ranking"]["band_width"] == 5.0


def test_cli_show_config_reads_file() -> None:
    fs = InMemoryFileSystem()
    fs.write_text("schema_version = 1\n[weights]\ncounty_match = 40\n", Path("matching.toml"))

    result = runner.invoke(_build_app_with_fs(fs), ["show-config", "--config", "matching.toml"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["source"] == "matching.toml"
    assert payload["matching"]["weights"]["county_match"] == 40.0
