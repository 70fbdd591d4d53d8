"""MetaMixin: comments, labels, simple field edits, and stats.

None of these touch ``status`` or ``session_id``; ownership only changes
through ``OwnershipMixin``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ac.db_base import StoreProtocol, _now
from ac.errors import ValidationError
from ac.types.core import VALID_ISSUE_TYPES, VALID_STATUSES, StatsResult
from ac.validation import validate_label, validate_label_action, validate_priority, validate_title

if TYPE_CHECKING:
    from ac.core import Comment, Issue

logger = logging.getLogger(__name__)


class MetaMixin(StoreProtocol):
    """Comments, labels, field edits, and stats.

    Inherits ``StoreProtocol`` for type-safe access to shared attributes.
    """

    if TYPE_CHECKING:
        # From GraphMixin
        def get_ready(self) -> list[Issue]: ...
        def get_blocked(self) -> list[Issue]: ...

    # -- Comments ------------------------------------------------------------

    def add_comment(self, issue_id: str, text: str, *, author: str = "") -> Comment:
        from ac.core import Comment

        if not text or not text.strip():
            msg = "Comment text cannot be empty"
            raise ValidationError(msg)
        issue = self.get_issue(issue_id)
        now = _now()
        comment = Comment(author=author, text=text, timestamp=now)
        issue.comments.append(comment)
        issue.updated_at = now
        return comment

    # -- Labels --------------------------------------------------------------

    def add_label(self, issue_id: str, label: str) -> bool:
        """Returns False when the label was already present."""
        normalized = validate_label(label)
        issue = self.get_issue(issue_id)
        if normalized in issue.labels:
            return False
        issue.labels.append(normalized)
        issue.updated_at = _now()
        return True

    def remove_label(self, issue_id: str, label: str) -> bool:
        """Returns False when the label was not present."""
        normalized = validate_label(label)
        issue = self.get_issue(issue_id)
        if normalized not in issue.labels:
            return False
        issue.labels.remove(normalized)
        issue.updated_at = _now()
        return True

    def update_label(self, issue_id: str, action: str, label: str) -> bool:
        match validate_label_action(action):
            case "add":
                return self.add_label(issue_id, label)
            case "remove":
                return self.remove_label(issue_id, label)

    # -- Field edits ---------------------------------------------------------

    def set_priority(self, issue_id: str, priority: int) -> Issue:
        return self.update_issue(issue_id, priority=priority)

    def update_issue(
        self,
        issue_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: int | None = None,
    ) -> Issue:
        """Edit title, description and priority. Status is not editable here."""
        issue = self.get_issue(issue_id)
        # Validate everything before mutating anything.
        if title is not None:
            title = validate_title(title)
        if priority is not None:
            priority = validate_priority(priority)

        changed = False
        if title is not None and title != issue.title:
            issue.title = title
            changed = True
        if description is not None and description != issue.description:
            issue.description = description
            changed = True
        if priority is not None and priority != issue.priority:
            issue.priority = priority
            changed = True
        if changed:
            issue.updated_at = _now()
            logger.debug("Updated fields on %s", issue_id)
        return issue

    # -- Stats ---------------------------------------------------------------

    def get_stats(self) -> StatsResult:
        by_status = dict.fromkeys(sorted(VALID_STATUSES), 0)
        by_type = dict.fromkeys(sorted(VALID_ISSUE_TYPES), 0)
        for issue in self.issues.values():
            by_status[issue.status] += 1
            by_type[issue.issue_type] += 1
        return {
            "total": len(self.issues),
            "by_status": by_status,
            "by_type": by_type,
            "ready_count": len(self.get_ready()),
            "blocked_count": len(self.get_blocked()),
            "claimed_count": sum(1 for i in self.issues.values() if i.session_id is not None),
            "total_dependencies": sum(len(i.blocked_by) for i in self.issues.values()),
        }
