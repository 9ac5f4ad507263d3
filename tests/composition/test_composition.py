"""Tests for CLI composition root wiring."""

from __future__ import annotations

import typer

from placement_matching import composition
from placement_matching.config import EngineConfig
from placement_matching.infrastructure import LocalFileSystem


def test_build_cli_dependencies_uses_local_filesystem() -> None:
    deps = composition.build_cli_dependencies(config=EngineConfig())

    assert isinstance(deps.fs, LocalFileSystem)


def test_composition_exposes_typer_app() -> None:
    assert isinstance(composition.app, typer.Typer)
