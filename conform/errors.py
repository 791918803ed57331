"""Error types raised by conform."""

from __future__ import annotations


class ConformError(Exception):
    """Base class for errors surfaced by `apply`."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message if path is None else f"{message} (at {path})")
        self.message = message
        self.path = path

    def to_dict(self) -> dict[str, object]:
        return {"message": self.message, "path": self.path}


class ConformUsageError(ConformError, TypeError):
    """The value handed to `apply` cannot be written in place.

    Raised for non-record inputs (bare strings, dicts, dataclass types) and
    for frozen dataclass instances.
    """
