"""Stale-opening report: active openings that providers stopped confirming.

The report lists openings for a marketplace operator to inactivate; nothing
here changes an opening's status.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from ..config import EngineConfig
from ..domain.freshness import StaleOpening, as_utc, find_stale_openings
from ..exceptions import DependencyMissingError
from ..observability import get_logger
from ..protocols import FileSystem
from .shortlist import resolve_matching_config
from .snapshots import load_match_snapshot

STALE_OPENINGS_FILENAME = "stale_openings.csv"
STALE_OPENING_COLUMNS: tuple[str, ...] = (
    "opening_id",
    "organization_id",
    "hours_since_confirmation",
    "hours_since_creation",
    "reason",
)


@dataclass(frozen=True)
class StaleOpeningsResult:
    """Outputs of one stale-opening check."""

    as_of: datetime
    openings_checked: int
    stale: tuple[StaleOpening, ...]
    output_path: Path


def run_stale_openings_report(
    snapshot_path: str | Path,
    out_dir: str | Path | None = None,
    config: EngineConfig | None = None,
    fs: FileSystem | None = None,
    *,
    as_of: datetime | None = None,
) -> StaleOpeningsResult:
    """Write ``stale_openings.csv`` for the openings in a snapshot.

    Args:
        snapshot_path: Snapshot JSON; only ``openings`` and ``as_of`` are read.
        out_dir: Directory for output files (default: ``config.output_dir``).
        config: Engine configuration. ``stale_after_hours`` sets the window;
            when unset it is the ranking policy's ``stale_after_hours``, read
            from the matching config file.
        fs: Filesystem (required; inject at entry point).
        as_of: Reference time. Falls back to the snapshot's ``as_of``, then now.
    """
    if config is None:
        raise DependencyMissingError("EngineConfig", reason="Load it at the entry point.")
    if fs is None:
        raise DependencyMissingError("FileSystem", reason="Inject it at the entry point.")

    logger = get_logger("placement_matching.stale_openings", level=config.log_level)
    snapshot_path = Path(snapshot_path)
    out_dir = Path(out_dir) if out_dir is not None else Path(config.output_dir)

    snapshot = load_match_snapshot(path=snapshot_path, fs=fs)
    reference_time = as_utc(as_of or snapshot.as_of or datetime.now(UTC))

    max_age_hours = config.stale_after_hours
    if max_age_hours is None:
        max_age_hours = resolve_matching_config(config, fs).ranking.stale_after_hours

    stale = find_stale_openings(
        snapshot.openings,
        as_of=reference_time,
        max_age_hours=max_age_hours,
    )

    fs.mkdir(out_dir, parents=True)
    output_path = out_dir / STALE_OPENINGS_FILENAME
    frame = pd.DataFrame(
        [asdict(item) for item in stale],
        columns=list(STALE_OPENING_COLUMNS),
    )
    fs.write_csv(frame, output_path)
    logger.info(
        "Stale openings: %s of %s (window=%sh) -> %s",
        len(stale),
        len(snapshot.openings),
        max_age_hours,
        output_path,
    )

    return StaleOpeningsResult(
        as_of=reference_time,
        openings_checked=len(snapshot.openings),
        stale=tuple(stale),
        output_path=output_path,
    )
