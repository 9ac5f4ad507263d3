"""CLI for the placement matching engine.

Commands:
- shortlist: Match, rank and explain openings for a referral snapshot
- stale-openings: Report active openings not reconfirmed within the window
- show-config: Print the effective matching and ranking configuration
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from . import __version__
from .application.shortlist import ShortlistResult, resolve_matching_config, run_match_shortlist
from .application.stale_openings import StaleOpeningsResult, run_stale_openings_report
from .config import EngineConfig
from .protocols import FileSystem


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: EngineConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    fs: FileSystem


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: EngineConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: EngineConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the placement-match entry point.")


AS_OF_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S%z"]


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"placement-match {__version__}")
        raise typer.Exit()


def _shortlist_table(result: ShortlistResult) -> Table:
    table = Table(title=f"Referral {result.referral_id}")
    table.add_column("#", justify="right")
    table.add_column("Opening")
    table.add_column("Organisation")
    table.add_column("Quality")
    table.add_column("Base", justify="right")
    table.add_column("Final", justify="right")
    table.add_column("Tier")
    for position, ranked in enumerate(result.ranked, start=1):
        table.add_row(
            str(position),
            ranked.opening_id,
            ranked.organization_id,
            ranked.match.quality,
            f"{ranked.base_score:.1f}",
            f"{ranked.final_score:.1f}",
            ranked.tier,
        )
    return table


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Placement matching engine: eligibility → scoring → fairness-aware ranking",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_version_callback,
                is_eager=True,
                help="Show the installed version and exit",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        ctx.obj = CliContext(config=EngineConfig.from_env(), deps_builder=deps_builder)

    @app.command()
    def shortlist(
        ctx: typer.Context,
        snapshot_path: Annotated[
            Path,
            typer.Option(
                "--snapshot",
                "-s",
                help="Path to referral snapshot JSON",
            ),
        ],
        out_dir: Annotated[
            Path | None,
            typer.Option(
                "--output-dir",
                "-o",
                help="Directory for output files (default: MATCHING_OUTPUT_DIR)",
            ),
        ] = None,
        config_path: Annotated[
            str | None,
            typer.Option(
                "--config",
                "-c",
                help="Matching config TOML (default: MATCHING_CONFIG_PATH)",
            ),
        ] = None,
        workers: Annotated[
            int | None,
            typer.Option(
                "--workers",
                "-w",
                min=1,
                help="Threads for per-opening scoring (default: MATCHING_WORKERS)",
            ),
        ] = None,
        as_of: Annotated[
            datetime | None,
            typer.Option(
                "--as-of",
                formats=AS_OF_FORMATS,
                help="Reference time (UTC when no offset); default: snapshot as_of, then now",
            ),
        ] = None,
    ) -> None:
        """Shortlist: match, rank and explain openings for one referral."""
        state = _get_context(ctx)
        config = state.config.with_overrides(
            matching_config_path=config_path,
            workers=workers,
        )
        deps = state.build_dependencies(config=config)
        result = run_match_shortlist(
            snapshot_path=snapshot_path,
            out_dir=out_dir,
            config=config,
            fs=deps.fs,
            as_of=as_of,
        )
        Console().print(_shortlist_table(result))
        rprint("[green]✓ Shortlist complete:[/green]")
        rprint(
            f"  {result.meta.openings_searched:,} openings searched → "
            f"{result.meta.matches_found:,} matches "
            f"(top {result.meta.top_match_score}, avg {result.meta.avg_match_score})"
        )
        rprint(f"  ranked: {result.ranked_matches_path}")
        rprint(f"  report: {result.report_path}")

    @app.command(name="stale-openings")
    def stale_openings(
        ctx: typer.Context,
        snapshot_path: Annotated[
            Path,
            typer.Option(
                "--snapshot",
                "-s",
                help="Path to snapshot JSON containing openings",
            ),
        ],
        out_dir: Annotated[
            Path | None,
            typer.Option(
                "--output-dir",
                "-o",
                help="Directory for output files (default: MATCHING_OUTPUT_DIR)",
            ),
        ] = None,
        max_age_hours: Annotated[
            int | None,
            typer.Option(
                "--max-age-hours",
                min=1,
                help="Hours without confirmation before an opening is stale "
                "(default: widest freshness band in the matching config)",
            ),
        ] = None,
        config_path: Annotated[
            str | None,
            typer.Option(
                "--config",
                "-c",
                help="Matching config TOML (default: MATCHING_CONFIG_PATH)",
            ),
        ] = None,
        as_of: Annotated[
            datetime | None,
            typer.Option(
                "--as-of",
                formats=AS_OF_FORMATS,
                help="Reference time (UTC when no offset); default: snapshot as_of, then now",
            ),
        ] = None,
    ) -> None:
        """Stale openings: list active openings that need reconfirmation."""
        state = _get_context(ctx)
        config = state.config.with_overrides(
            matching_config_path=config_path,
            stale_after_hours=max_age_hours,
        )
        deps = state.build_dependencies(config=config)
        result: StaleOpeningsResult = run_stale_openings_report(
            snapshot_path=snapshot_path,
            out_dir=out_dir,
            config=config,
            fs=deps.fs,
            as_of=as_of,
        )
        colour = "yellow" if result.stale else "green"
        rprint(
            f"[{colour}]{len(result.stale)} stale of {result.openings_checked} openings[/{colour}]"
        )
        for item in result.stale:
            rprint(f"  {item.opening_id}: {item.reason}")
        rprint(f"  report: {result.output_path}")

    @app.command(name="show-config")
    def show_config(
        ctx: typer.Context,
        config_path: Annotated[
            str | None,
            typer.Option(
                "--config",
                "-c",
                help="Matching config TOML (default: MATCHING_CONFIG_PATH)",
            ),
        ] = None,
    ) -> None:
        """Show config: print effective matching and ranking settings as JSON."""
        state = _get_context(ctx)
        config = state.config.with_overrides(matching_config_path=config_path)
        deps = state.build_dependencies(config=config)
        loaded = resolve_matching_config(config, deps.fs)
        payload = {
            "source": config.matching_config_path or "defaults",
            "matching": loaded.matching.as_dict(),
            "ranking": loaded.ranking.as_dict(),
        }
        typer.echo(json.dumps(payload, indent=2))

    _ = (main, shortlist, stale_openings, show_config)

    return app
