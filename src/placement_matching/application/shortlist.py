"""Shortlist run: match, rank and explain openings for one referral snapshot.

Usage example:
    >>> from placement_matching.application.shortlist import run_match_shortlist
    >>> from placement_matching.config import EngineConfig
    >>> config = EngineConfig.from_env()
    >>> fs = ...  # Injected FileSystem from the CLI/composition root
    >>> run_match_shortlist(
    ...     snapshot_path="data/snapshots/ref-1.json",
    ...     config=config,
    ...     fs=fs,
    ... )
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from ..config import EngineConfig
from ..config_file import MatchingConfigFile, load_matching_config_file
from ..domain.assembler import MatchRunMeta, match_referral_to_openings
from ..domain.explainability import Explainability, build_explainability
from ..domain.explanations import generate_match_explanation, identify_risk_flags
from ..domain.freshness import as_utc
from ..domain.matching_config import FACTOR_NAMES, MatchingConfig, RankingPolicy
from ..domain.models import Referral
from ..domain.ranking import RankedMatch, rank_matches
from ..exceptions import DependencyMissingError, SnapshotValidationError
from ..observability import get_logger, log_elapsed
from ..protocols import FileSystem
from .snapshots import load_match_snapshot

RANKED_MATCHES_FILENAME = "ranked_matches.csv"
MATCH_REPORT_FILENAME = "match_report.json"

RANKED_MATCH_COLUMNS: tuple[str, ...] = (
    "rank",
    "opening_id",
    "organization_id",
    "site_id",
    "quality",
    "base_score",
    *(f"{factor}_score" for factor in FACTOR_NAMES),
    "paid_multiplier",
    "reliability_multiplier",
    "freshness_score",
    "final_score",
    "is_paid",
    "tier",
    "explanation",
    "risk_flags",
    "matched_because",
    "potential_concerns",
    "freshness_hours",
    "verification_status",
)


@dataclass(frozen=True)
class ShortlistResult:
    """Outputs of one shortlist run."""

    referral_id: str
    as_of: datetime
    meta: MatchRunMeta
    ranked: tuple[RankedMatch, ...]
    ranked_matches_path: Path
    report_path: Path


def resolve_matching_config(
    config: EngineConfig,
    fs: FileSystem,
) -> MatchingConfigFile:
    """Load the TOML matching config named by ``config``, or defaults."""
    if not config.matching_config_path:
        return MatchingConfigFile()
    return load_matching_config_file(path=Path(config.matching_config_path), fs=fs)


@dataclass(frozen=True)
class _ExplainedMatch:
    ranked: RankedMatch
    explanation: str
    risk_flags: list[str]
    explainability: Explainability


def _explain(
    ranked: RankedMatch,
    *,
    referral: Referral,
    matching: MatchingConfig,
    as_of: datetime,
) -> _ExplainedMatch:
    match = ranked.match
    return _ExplainedMatch(
        ranked=ranked,
        explanation=generate_match_explanation(
            match.score_breakdown, match.total_score, matching.weights
        ),
        risk_flags=identify_risk_flags(referral, match),
        explainability=build_explainability(ranked, match.opening, as_of=as_of),
    )


def _report_record(position: int, item: _ExplainedMatch) -> dict[str, object]:
    ranked = item.ranked
    match = ranked.match
    return {
        "rank": position,
        "opening_id": ranked.opening_id,
        "organization_id": ranked.organization_id,
        "site_id": match.opening.site_id,
        "quality": match.quality,
        "base_score": round(ranked.base_score, 2),
        "score_breakdown": {
            factor: round(score, 2) for factor, score in match.score_breakdown.items()
        },
        "paid_multiplier": ranked.paid_multiplier,
        "reliability_multiplier": round(ranked.reliability_multiplier, 4),
        "freshness_score": ranked.freshness_score,
        "final_score": round(ranked.final_score, 2),
        "is_paid": ranked.is_paid,
        "tier": ranked.tier,
        "explanation": item.explanation,
        "risk_flags": item.risk_flags,
        "explainability": asdict(item.explainability),
    }


def _csv_row(position: int, item: _ExplainedMatch) -> dict[str, object]:
    ranked = item.ranked
    match = ranked.match
    row: dict[str, object] = {
        "rank": position,
        "opening_id": ranked.opening_id,
        "organization_id": ranked.organization_id,
        "site_id": match.opening.site_id or "",
        "quality": match.quality,
        "base_score": round(ranked.base_score, 2),
    }
    for factor in FACTOR_NAMES:
        row[f"{factor}_score"] = round(match.score_breakdown.get(factor, 0.0), 2)
    row.update(
        {
            "paid_multiplier": ranked.paid_multiplier,
            "reliability_multiplier": round(ranked.reliability_multiplier, 4),
            "freshness_score": ranked.freshness_score,
            "final_score": round(ranked.final_score, 2),
            "is_paid": ranked.is_paid,
            "tier": ranked.tier,
            "explanation": item.explanation,
            "risk_flags": "; ".join(item.risk_flags),
            "matched_because": "; ".join(item.explainability.matched_because),
            "potential_concerns": "; ".join(item.explainability.potential_concerns),
            "freshness_hours": item.explainability.freshness_hours,
            "verification_status": item.explainability.verification_status,
        }
    )
    return row


def run_match_shortlist(
    snapshot_path: str | Path,
    out_dir: str | Path | None = None,
    config: EngineConfig | None = None,
    fs: FileSystem | None = None,
    *,
    matching: MatchingConfig | None = None,
    ranking: RankingPolicy | None = None,
    as_of: datetime | None = None,
) -> ShortlistResult:
    """Rank openings for the referral in a snapshot and write the shortlist.

    Args:
        snapshot_path: Path to the referral snapshot JSON.
        out_dir: Directory for output files (default: ``config.output_dir``).
        config: Engine configuration (required; load at entry point).
        fs: Filesystem (required; inject at entry point).
        matching: Matching config; read from ``config.matching_config_path``
            when omitted.
        ranking: Ranking policy; read alongside ``matching`` when omitted.
        as_of: Reference time. Falls back to the snapshot's ``as_of``, then now.

    Returns:
        ShortlistResult with ranked matches, run metadata and output paths.
    """
    if config is None:
        raise DependencyMissingError("EngineConfig", reason="Load it at the entry point.")
    if fs is None:
        raise DependencyMissingError("FileSystem", reason="Inject it at the entry point.")

    logger = get_logger("placement_matching.shortlist", level=config.log_level)
    snapshot_path = Path(snapshot_path)
    out_dir = Path(out_dir) if out_dir is not None else Path(config.output_dir)

    if matching is None or ranking is None:
        loaded = resolve_matching_config(config, fs)
        matching = matching or loaded.matching
        ranking = ranking or loaded.ranking

    snapshot = load_match_snapshot(path=snapshot_path, fs=fs)
    referral = snapshot.referral
    if referral is None:
        raise SnapshotValidationError(str(snapshot_path), "referral: Field required")
    reference_time = as_utc(as_of or snapshot.as_of or datetime.now(UTC))

    with log_elapsed(logger, "Matched and ranked referral %s", referral.id):
        run = match_referral_to_openings(
            referral,
            snapshot.openings,
            snapshot.organizations,
            snapshot.sites,
            snapshot.licenses,
            snapshot.capability_profiles,
            matching,
            as_of=reference_time,
            workers=config.workers,
        )
        ranked = rank_matches(
            run.results,
            snapshot.subscriptions,
            snapshot.organizations,
            snapshot.licenses,
            snapshot.referral_history,
            as_of=reference_time,
            policy=ranking,
        )
    logger.info(
        "Referral %s: %s openings searched, %s matches (top=%s, avg=%s)",
        referral.id,
        run.meta.openings_searched,
        run.meta.matches_found,
        run.meta.top_match_score,
        run.meta.avg_match_score,
    )

    explained = [
        _explain(item, referral=referral, matching=matching, as_of=reference_time)
        for item in ranked
    ]

    fs.mkdir(out_dir, parents=True)
    ranked_path = out_dir / RANKED_MATCHES_FILENAME
    frame = pd.DataFrame(
        [_csv_row(position, item) for position, item in enumerate(explained, start=1)],
        columns=list(RANKED_MATCH_COLUMNS),
    )
    fs.write_csv(frame, ranked_path)
    logger.info("Ranked matches: %s (%s rows)", ranked_path, len(frame))

    report_path = out_dir / MATCH_REPORT_FILENAME
    fs.write_json(
        {
            "referral_id": referral.id,
            "as_of": reference_time.isoformat(),
            "meta": asdict(run.meta),
            "ranking_policy": ranking.as_dict(),
            "matches": [
                _report_record(position, item) for position, item in enumerate(explained, start=1)
            ],
        },
        report_path,
    )
    logger.info("Match report: %s", report_path)

    return ShortlistResult(
        referral_id=referral.id,
        as_of=reference_time,
        meta=run.meta,
        ranked=tuple(ranked),
        ranked_matches_path=ranked_path,
        report_path=report_path,
    )
