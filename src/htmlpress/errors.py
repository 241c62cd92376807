from __future__ import annotations

# Shared error types for the compaction engine.


class PressError(Exception):
    """Base exception for known compaction errors."""


class ConfigurationError(PressError, ValueError):
    """Raised when compression options are invalid."""


class MinifierError(PressError):
    """Raised when an external minifier fails on a payload."""

    def __init__(self, message: str, *, kind: str, source: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.source = source


class MinifierNotFoundError(PressError):
    """Raised when a required external minifier binary cannot be located."""
