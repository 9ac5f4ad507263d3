"""Tests for the stale-opening report."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from placement_matching.application.stale_openings import (
    STALE_OPENING_COLUMNS,
    STALE_OPENINGS_FILENAME,
    run_stale_openings_report,
)
from placement_matching.config import EngineConfig
from tests.fakes import InMemoryFileSystem
from tests.support.snapshots import make_snapshot_payload

SNAPSHOT = Path("data/snapshots/ref-100.json")
OUT_DIR = Path("out")


def _fs() -> InMemoryFileSystem:
    fs = InMemoryFileSystem()
    fs.write_text(json.dumps(make_snapshot_payload()), SNAPSHOT)
    return fs


def test_report_lists_stale_active_openings() -> None:
    fs = _fs()

    result = run_stale_openings_report(SNAPSHOT, OUT_DIR, EngineConfig(), fs)

    assert result.openings_checked == 4
    assert [item.opening_id for item in result.stale] == ["op-c"]
    assert result.stale[0].hours_since_confirmation == 84
    assert result.output_path == OUT_DIR / STALE_OPENINGS_FILENAME

    frame = fs.read_csv(result.output_path)
    assert list(frame.columns) == list(STALE_OPENING_COLUMNS)
    assert frame["reason"].tolist() == ["Stale: not confirmed in 48 hours"]


def test_window_comes_from_config() -> None:
    fs = _fs()

    result = run_stale_openings_report(
        SNAPSHOT, OUT_DIR, EngineConfig(stale_after_hours=100), fs
    )

    assert result.stale == ()
    assert fs.read_csv(result.output_path).empty


def test_as_of_override() -> None:
    fs = _fs()

    result = run_stale_openings_report(
        SNAPSHOT,
        OUT_DIR,
        EngineConfig(),
        fs,
        as_of=datetime(2025, 1, 20, tzinfo=UTC),
    )

    assert [item.opening_id for item in result.stale] == ["op-a", "op-b", "op-c"]


def test_window_defaults_to_widest_freshness_band_in_matching_config() -> None:
    fs = _fs()
    fs.write_text(
        "schema_version = 1\n\n"
        "[[ranking.freshness_bands]]\nmax_hours = 24\nscore = 1.0\n\n"
        "[[ranking.freshness_bands]]\nmax_hours = 96\nscore = 0.5\n",
        Path("matching.toml"),
    )

    widened = run_stale_openings_report(
        SNAPSHOT, OUT_DIR, EngineConfig(matching_config_path="matching.toml"), fs
    )
    explicit = run_stale_openings_report(
        SNAPSHOT,
        OUT_DIR,
        EngineConfig(matching_config_path="matching.toml", stale_after_hours=48),
        fs,
    )

    assert widened.stale == ()
    assert [item.opening_id for item in explicit.stale] == ["op-c"]
