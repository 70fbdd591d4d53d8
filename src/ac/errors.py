"""Exception taxonomy for the tracker.

Lookup and validation failures subclass the builtin ``KeyError`` /
``ValueError`` so callers written against plain builtins keep working.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for every error raised by the tracker."""


class IssueNotFoundError(TrackerError, KeyError):
    """Raised when an issue id is not present in the store."""

    def __init__(self, issue_id: str) -> None:
        self.issue_id = issue_id
        super().__init__(f"Issue not found: {issue_id}")

    def __str__(self) -> str:
        return f"Issue not found: {self.issue_id}"


class ValidationError(TrackerError, ValueError):
    """Raised for malformed input: bad priority, unknown enum value, self-block, and so on."""


class StateConflictError(TrackerError, ValueError):
    """Raised when an ownership transition is not allowed from the current state."""

    def __init__(self, issue_id: str, reason: str) -> None:
        self.issue_id = issue_id
        self.reason = reason
        super().__init__(f"{issue_id} {reason}")


class StoreError(TrackerError):
    """Raised when the on-disk store cannot be read, parsed, or written."""


class NotInitializedError(StoreError):
    """Raised when no config record exists for the store directory."""


class ConcurrentModificationError(StoreError):
    """Raised by ``save`` when the issue file changed on disk since it was loaded."""


class ImportFieldError(TrackerError):
    """One problem with one imported record. Collected into a report, never raised out of an import."""

    def __init__(self, line: int, message: str, *, record_id: str | None = None) -> None:
        self.line = line
        self.message = message
        self.record_id = record_id
        where = f"line {line}" + (f" ({record_id})" if record_id else "")
        super().__init__(f"{where}: {message}")
