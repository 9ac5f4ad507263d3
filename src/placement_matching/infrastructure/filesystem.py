"""Local filesystem implementation.

Usage example:
    from pathlib import Path

    import pandas as pd

    from placement_matching.infrastructure.filesystem import LocalFileSystem

    fs = LocalFileSystem()
    snapshot = fs.read_json(Path("data/snapshots/ref-1.json"))
    fs.write_csv(pd.DataFrame({"opening_id": ["op-1"]}), Path("data/processed/out.csv"))
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import pandas as pd
from typing_extensions import override

from ..protocols import FileSystem


class JsonObjectExpectedError(ValueError):
    """Raised when a JSON file holds something other than an object."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"JSON file must contain an object: {path}")


class LocalFileSystem(FileSystem):
    """Local filesystem implementation."""

    @override
    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    @override
    def write_text(self, content: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    @override
    def read_json(self, path: Path) -> dict[str, object]:
        payload: object = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise JsonObjectExpectedError(path)
        return {str(key): value for key, value in payload.items()}

    @override
    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(dict(data), ensure_ascii=False, indent=2, default=str),
            encoding="utf-8",
        )

    @override
    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

    @override
    def exists(self, path: Path) -> bool:
        return path.exists()

    @override
    def mkdir(self, path: Path, parents: bool = True) -> None:
        path.mkdir(parents=parents, exist_ok=True)
