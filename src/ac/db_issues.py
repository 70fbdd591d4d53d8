"""OwnershipMixin: claim, release, finish, close, and per-session queries.

Each transition is decided by ``ac.workflow.apply_transition``; this mixin
only looks the issue up, applies the result and stamps ``updated_at``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ac.db_base import StoreProtocol, _now, _sort_key
from ac.validation import validate_session
from ac.workflow import Claim, Close, Finish, Ownership, Release, Transition, TransitionResult, apply_transition

if TYPE_CHECKING:
    from ac.core import Issue

logger = logging.getLogger(__name__)


class OwnershipMixin(StoreProtocol):
    """Session ownership of issues.

    Inherits ``StoreProtocol`` for type-safe access to shared attributes.
    """

    def _transition(self, issue_id: str, transition: Transition) -> tuple[Issue, TransitionResult]:
        issue = self.get_issue(issue_id)
        now = _now()
        result = apply_transition(
            issue_id,
            Ownership(issue.status, issue.session_id, issue.closed_at),
            transition,
            now,
        )
        if result.repaired:
            logger.warning("Repaired inconsistent ownership on %s (was %s without a session)", issue_id, issue.status)
        issue.status = result.ownership.status
        issue.session_id = result.ownership.session_id
        issue.closed_at = result.ownership.closed_at
        issue.updated_at = now
        return issue, result

    def claim_issue(self, issue_id: str, session: str) -> Issue:
        """Take ownership of an open issue. Claiming a closed issue reopens it."""
        session = validate_session(session)
        reopening = self.get_issue(issue_id).status == "closed"
        issue, _ = self._transition(issue_id, Claim(session))
        logger.info("%s %s by session %s", "Reopened and claimed" if reopening else "Claimed", issue_id, session)
        return issue

    def release_issue(self, issue_id: str) -> tuple[Issue, str | None]:
        """Give up ownership; returns the issue and the session that held it."""
        issue, result = self._transition(issue_id, Release())
        logger.info("Released %s (was %s)", issue_id, result.previous_session)
        return issue, result.previous_session

    def finish_issue(self, issue_id: str) -> tuple[Issue, str | None]:
        issue, result = self._transition(issue_id, Finish())
        logger.info("Finished %s (session %s)", issue_id, result.previous_session)
        return issue, result.previous_session

    def close_issue(self, issue_id: str) -> Issue:
        """Close an unowned issue without going through claim/finish."""
        issue, _ = self._transition(issue_id, Close())
        logger.info("Closed %s", issue_id)
        return issue

    def issues_for_session(self, session: str) -> list[Issue]:
        session = validate_session(session)
        mine = [i for i in self.issues.values() if i.session_id == session]
        return sorted(mine, key=_sort_key)
