"""Foundational literals and TypedDicts for issue records and config."""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

Status = Literal["open", "in_progress", "closed"]
IssueType = Literal["task", "epic", "refactor", "spike"]
LabelAction = Literal["add", "remove"]

VALID_STATUSES: frozenset[str] = frozenset({"open", "in_progress", "closed"})
VALID_ISSUE_TYPES: frozenset[str] = frozenset({"task", "epic", "refactor", "spike"})
VALID_LABEL_ACTIONS: frozenset[str] = frozenset({"add", "remove"})


class ProjectConfig(TypedDict):
    """Shape of .ac/config.json."""

    version: int
    prefix: str


class CommentDict(TypedDict):
    author: str
    text: str
    timestamp: str


class IssueDict(TypedDict):
    id: str
    title: str
    description: str
    status: Status
    priority: int
    issue_type: IssueType
    session_id: NotRequired[str]
    labels: list[str]
    comments: list[CommentDict]
    created_at: str
    updated_at: str
    closed_at: NotRequired[str]
    blocks: list[str]
    blocked_by: list[str]


# DependencyRecord uses "from" as a key (a Python keyword), so it needs the functional form.
DependencyRecord = TypedDict("DependencyRecord", {"from": str, "to": str})


class TreeNode(TypedDict, total=False):
    """One node of a dependency tree built by ``GraphMixin.build_tree``.

    Regular nodes carry ``title``, ``status`` and ``blocked_by``; leaves that
    close a cycle carry ``cycle``; ids absent from the store carry ``missing``.
    """

    id: str
    title: str
    status: Status
    blocked_by: list[TreeNode]
    cycle: bool
    missing: bool


class StatsResult(TypedDict):
    total: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    ready_count: int
    blocked_count: int
    claimed_count: int
    total_dependencies: int
