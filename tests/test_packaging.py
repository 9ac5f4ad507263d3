"""Tests for project packaging metadata."""

import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_project_readme_exists_and_is_not_requirements_document() -> None:
    project = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))["project"]

    assert project["readme"] == "README.md"
    assert (ROOT / project["readme"]).is_file()
