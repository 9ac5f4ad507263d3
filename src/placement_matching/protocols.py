"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that engine components depend on,
enabling isolated unit testing and substitution of richer data sources.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd


@runtime_checkable
class ProximityResolver(Protocol):
    """Resolve how close an opening's location is to a client's county.

    Implementations return a fraction in [0, 1] that scales the county weight.
    Zero means "not reachable"; the eligibility filter treats zero as a county
    violation when proximity is required.
    """

    def proximity(
        self,
        referral_county: str,
        site_county: str | None,
        counties_served: Collection[str],
    ) -> float:
        """Return the proximity fraction for one opening."""
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Abstract filesystem for reading snapshots and writing reports."""

    def read_text(self, path: Path) -> str:
        """Read text file."""
        ...

    def write_text(self, content: str, path: Path) -> None:
        """Write text file."""
        ...

    def read_json(self, path: Path) -> dict[str, object]:
        """Read JSON object file."""
        ...

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        """Write JSON file."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write DataFrame to CSV file."""
        ...

    def exists(self, path: Path) -> bool:
        """Check if path exists."""
        ...

    def mkdir(self, path: Path, parents: bool = True) -> None:
        """Create directory."""
        ...
