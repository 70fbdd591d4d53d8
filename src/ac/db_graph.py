"""GraphMixin: blocking edges, ready/blocked queries, trees and cycles.

Edges live on the issues themselves (``blocks`` / ``blocked_by``) and are
always added and removed as a pair. Methods reach ``self.issues`` and
``self.get_issue()`` through the MRO when composed into ``IssueStore``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from ac.db_base import StoreProtocol, _now, _sort_key, truncate
from ac.errors import ValidationError
from ac.types.core import DependencyRecord, TreeNode

if TYPE_CHECKING:
    from ac.core import Issue

logger = logging.getLogger(__name__)

_STATUS_TAGS = {"open": "[OPEN]", "in_progress": "[IN_PROGRESS]", "closed": "[CLOSED]"}
_TREE_TITLE_WIDTH = 30


def canonical_cycle(cycle: list[str]) -> tuple[str, ...]:
    """Rotate a cycle so its smallest id comes first."""
    if not cycle:
        return ()
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])


class GraphMixin(StoreProtocol):
    """Dependency graph over the in-memory issue map.

    Inherits ``StoreProtocol`` for type-safe access to shared attributes.
    """

    # -- Dependencies --------------------------------------------------------

    def add_dependency(self, issue_id: str, blocker_id: str) -> None:
        """Record that *blocker_id* blocks *issue_id*."""
        if issue_id == blocker_id:
            msg = f"Issue cannot block itself: {issue_id}"
            raise ValidationError(msg)
        issue = self.get_issue(issue_id)
        blocker = self.get_issue(blocker_id)
        if blocker_id in issue.blocked_by:
            msg = f"{issue_id} is already blocked by {blocker_id}"
            raise ValidationError(msg)

        now = _now()
        issue.blocked_by.append(blocker_id)
        if issue_id not in blocker.blocks:
            blocker.blocks.append(issue_id)
        issue.updated_at = now
        blocker.updated_at = now
        logger.info("Added dependency %s blocked by %s", issue_id, blocker_id)

    def remove_dependency(self, issue_id: str, blocker_id: str) -> None:
        issue = self.get_issue(issue_id)
        blocker = self.get_issue(blocker_id)
        if blocker_id not in issue.blocked_by:
            msg = f"{issue_id} is not blocked by {blocker_id}"
            raise ValidationError(msg)

        now = _now()
        issue.blocked_by.remove(blocker_id)
        if issue_id in blocker.blocks:
            blocker.blocks.remove(issue_id)
        issue.updated_at = now
        blocker.updated_at = now
        logger.info("Removed dependency %s blocked by %s", issue_id, blocker_id)

    def get_all_dependencies(self) -> list[DependencyRecord]:
        """Every edge as ``{"from": blocked, "to": blocker}``, sorted."""
        return [
            {"from": issue.id, "to": blocker_id}
            for issue in sorted(self.issues.values(), key=lambda i: i.id)
            for blocker_id in issue.blocked_by
        ]

    # -- Ready / Blocked -----------------------------------------------------

    def open_blockers(self, issue: Issue) -> list[str]:
        """Blockers that exist and are not closed. Dangling ids never block."""
        result: list[str] = []
        for blocker_id in issue.blocked_by:
            blocker = self.issues.get(blocker_id)
            if blocker is None:
                logger.debug("%s: ignoring dangling blocker %s", issue.id, blocker_id)
                continue
            if blocker.status != "closed":
                result.append(blocker_id)
        return result

    def get_ready(self) -> list[Issue]:
        """Open issues with no open blockers."""
        ready = [i for i in self.issues.values() if i.status == "open" and not self.open_blockers(i)]
        return sorted(ready, key=_sort_key)

    def get_blocked(self) -> list[Issue]:
        """Open issues that have at least one existing, non-closed blocker."""
        blocked = [i for i in self.issues.values() if i.status == "open" and self.open_blockers(i)]
        return sorted(blocked, key=_sort_key)

    # -- Trees ---------------------------------------------------------------

    def build_tree(self, root_id: str) -> TreeNode:
        """Nested view of everything blocking *root_id*.

        The path from the root is tracked so a repeat on the current branch
        becomes a ``cycle`` leaf; the same issue may still appear under
        several sibling branches.
        """
        self.get_issue(root_id)
        return self._tree_node(root_id, [])

    def _tree_node(self, issue_id: str, path: list[str]) -> TreeNode:
        if issue_id in path:
            return {"id": issue_id, "cycle": True}
        issue = self.issues.get(issue_id)
        if issue is None:
            return {"id": issue_id, "missing": True}

        path.append(issue_id)
        children = [self._tree_node(child_id, path) for child_id in issue.blocked_by]
        path.pop()
        return {"id": issue.id, "title": issue.title, "status": issue.status, "blocked_by": children}

    def render_tree(self, root_id: str) -> str:
        """Text rendering of ``build_tree`` with box-drawing connectors."""
        lines: list[str] = []
        self._render_node(self.build_tree(root_id), "", None, lines)
        return "\n".join(lines)

    def _render_node(self, node: TreeNode, prefix: str, is_last: bool | None, lines: list[str]) -> None:
        # is_last is None for the root, which gets no connector.
        connector = "" if is_last is None else ("└── " if is_last else "├── ")
        node_id = node["id"]
        if node.get("missing"):
            lines.append(f"{prefix}{connector}{node_id} [MISSING]")
            return
        if node.get("cycle"):
            title = truncate(self.issues[node_id].title, _TREE_TITLE_WIDTH)
            lines.append(f"{prefix}{connector}{node_id}: {title} [CYCLE]")
            return

        title = truncate(node["title"], _TREE_TITLE_WIDTH)
        lines.append(f"{prefix}{connector}{node_id}: {title} {_STATUS_TAGS[node['status']]}")
        if is_last is None:
            child_prefix = ""
        else:
            child_prefix = prefix + ("    " if is_last else "│   ")
        children = node.get("blocked_by", [])
        for index, child in enumerate(children):
            self._render_node(child, child_prefix, index == len(children) - 1, lines)

    # -- Cycles --------------------------------------------------------------

    def _walk_cycles(self, start_id: str) -> Iterator[list[str]]:
        """Depth-first walk along blocked_by from *start_id*, yielding raw cycles."""
        visited: set[str] = set()
        path: list[str] = []
        stack: list[Iterator[str]] = []

        def enter(node_id: str) -> None:
            visited.add(node_id)
            path.append(node_id)
            issue = self.issues.get(node_id)
            stack.append(iter(issue.blocked_by if issue is not None else ()))

        enter(start_id)
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                path.pop()
                continue
            if child in path:
                yield path[path.index(child) :]
            elif child not in visited:
                enter(child)

    def detect_cycles(self) -> list[list[str]]:
        """Distinct blocking cycles, each rotated to start at its smallest id.

        A lower bound: the per-start visited set can hide some cycles that
        share nodes with ones already walked.
        """
        seen: set[tuple[str, ...]] = set()
        cycles: list[list[str]] = []
        for start_id in sorted(self.issues):
            for raw in self._walk_cycles(start_id):
                canonical = canonical_cycle(raw)
                if canonical not in seen:
                    seen.add(canonical)
                    cycles.append(list(canonical))
        if cycles:
            logger.debug("Detected %d cycle(s)", len(cycles))
        return cycles
