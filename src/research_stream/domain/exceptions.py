"""Domain exceptions for the research stream engine.

All domain-specific exceptions inherit from ``ResearchStreamError`` so
callers can catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any


class ResearchStreamError(Exception):
    """Base exception for all research stream errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class MalformedFragmentError(ResearchStreamError):
    """Raised when a fragment has an unknown kind or an invalid payload.

    Never escapes the demultiplexer: it is caught there, logged, and the
    fragment is skipped.
    """

    def __init__(
        self,
        message: str = "Malformed fragment",
        position: int | None = None,
        kind: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.position = position
        self.kind = kind


class TurnStateError(ResearchStreamError):
    """Raised when a turn operation is invalid for the current turn state.

    Example: freezing before any turn has begun.
    """

    def __init__(
        self,
        message: str = "Invalid turn state",
        turn_index: int = -1,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.turn_index = turn_index


class HistoryKeyError(ResearchStreamError, KeyError):
    """Raised when the history cache is addressed with an invalid turn index."""

    def __init__(
        self,
        message: str = "Invalid turn index",
        turn_index: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.turn_index = turn_index

    def __str__(self) -> str:
        return self.args[0] if self.args else ""
