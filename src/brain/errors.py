"""Structured error types shared by the store, the CLI and the service surfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class ErrorResponse:
    """Serializable error payload returned by API handlers and MCP tools."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class BrainError(RuntimeError):
    """Base exception carrying a structured error response."""

    code = "BRAIN_ERROR"

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.error = ErrorResponse(
            code=self.code, message=message, details=dict(details or {})
        )


class NotFoundError(BrainError):
    """No task, dump item, project or note matches the request."""

    code = "NOT_FOUND"


class AmbiguousMatchError(BrainError):
    """A search pattern matched more than one task."""

    code = "AMBIGUOUS"

    def __init__(self, query: str, candidates: list) -> None:
        super().__init__(
            f"Multiple matches found for '{query}'. Be more specific or use an ID.",
            {"query": query, "candidates": [c.id for c in candidates]},
        )
        self.query = query
        self.candidates = list(candidates)


class InvalidInputError(BrainError):
    """Out-of-range priority, unknown status name, malformed date or name."""

    code = "INVALID_INPUT"


class IOFailureError(BrainError):
    """A file is missing, unreadable or not writable."""

    code = "IO_FAILURE"


class LockContentionError(BrainError):
    """The advisory lock was not obtained within the retry budget."""

    code = "LOCK_CONTENTION"


class CorruptionError(BrainError):
    """A line expected to match the checkbox grammar does not."""

    code = "CORRUPTION"


class RefileRemovalError(IOFailureError):
    """
    The refile destination was written but the dump item could not be removed.

    The item now exists in both places; retrying the removal is safe.
    """

    code = "REFILE_REMOVAL"


def error_response(error: ErrorResponse) -> dict[str, Any]:
    """Wrap an error response in the standard envelope."""
    return {"ok": False, "error": error.to_dict()}
