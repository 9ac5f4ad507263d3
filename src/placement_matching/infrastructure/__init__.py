"""Infrastructure implementations for the matching engine."""

from .filesystem import LocalFileSystem

__all__ = ["LocalFileSystem"]
