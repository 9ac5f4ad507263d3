"""Custom exceptions for the placement matching engine.

The domain layer degrades sparse records to lower scores rather than raising.
These exceptions cover the application boundary: configuration and input
files that cannot be trusted.
"""

from __future__ import annotations


class MatchingEngineError(Exception):
    """Base exception for all engine errors."""

    pass


class MatchingConfigError(MatchingEngineError):
    """Raised when matching configuration overrides are invalid."""

    def __init__(self, section: str, detail: str) -> None:
        self.section = section
        super().__init__(f"Invalid {section} configuration: {detail}")


class ConfigFileNotFoundError(MatchingEngineError):
    """Raised when a matching config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Matching config file not found: {path}")


class ConfigFileParseError(MatchingEngineError):
    """Raised when a matching config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse matching config file {path}: {detail}")


class ConfigFileValidationError(MatchingEngineError):
    """Raised when a matching config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid matching config file {path}: {detail}")


class SnapshotFileNotFoundError(MatchingEngineError):
    """Raised when a referral snapshot file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Snapshot file not found: {path}\n"
            "Export the referral and marketplace records to JSON before matching."
        )


class SnapshotValidationError(MatchingEngineError):
    """Raised when a snapshot file does not match the input contract."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid snapshot file {path}: {detail}")


class DependencyMissingError(MatchingEngineError):
    """Raised when a required dependency was not injected."""

    def __init__(self, dependency: str, *, reason: str = "") -> None:
        message = f"{dependency} is required."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")
