"""Shared utilities and Protocol for store mixins."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ac.core import Issue


def _now() -> datetime:
    return datetime.now(UTC)


def _sort_key(issue: Issue) -> tuple[int, datetime, str]:
    """Work-queue order: most urgent first, then oldest, then id for stability."""
    return (issue.priority, issue.created_at, issue.id)


class StoreProtocol(Protocol):
    """Shared attributes and methods that store mixins access via self.

    Mixins inherit this Protocol so mypy can type-check ``self.issues``,
    ``self.get_issue()``, etc. Actual implementations are provided by
    ``IssueStore`` at composition time.
    """

    ac_dir: Path
    prefix: str
    issues: dict[str, Issue]

    def get_issue(self, issue_id: str) -> Issue: ...


def truncate(text: str, width: int) -> str:
    """Cut *text* to *width* characters, ending in '...' when shortened."""
    return text if len(text) <= width else text[: width - 3] + "..."
