"""Tests for filesystem infrastructure components."""

from pathlib import Path

import pandas as pd
import pytest

from placement_matching.infrastructure import LocalFileSystem
from placement_matching.infrastructure.filesystem import JsonObjectExpectedError


class TestLocalFileSystemJson:
    """Tests for LocalFileSystem JSON helpers."""

    def test_write_json_creates_parents_and_round_trips(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "nested" / "report.json"

        fs.write_json({"referral_id": "ref-1", "scores": [95.0]}, path)

        assert fs.read_json(path) == {"referral_id": "ref-1", "scores": [95.0]}

    def test_read_json_rejects_non_object_payload(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(JsonObjectExpectedError):
            fs.read_json(path)


class TestLocalFileSystemCsv:
    """Tests for LocalFileSystem write_csv."""

    def test_write_csv_without_index(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "out" / "ranked.csv"

        fs.write_csv(pd.DataFrame({"opening_id": ["op-a", "op-b"]}), path)

        assert path.read_text(encoding="utf-8").splitlines() == ["opening_id", "op-a", "op-b"]


def test_text_exists_and_mkdir(tmp_path: Path) -> None:
    fs = LocalFileSystem()
    path = tmp_path / "a" / "b.txt"

    assert fs.exists(path) is False
    fs.write_text("hello", path)
    fs.mkdir(tmp_path / "c" / "d")

    assert fs.read_text(path) == "hello"
    assert fs.exists(tmp_path / "c" / "d")
