# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin; this prevents circular imports.
"""Typed contracts shared by the store, the CLI and the import routine."""

from __future__ import annotations

from ac.types.core import (
    VALID_ISSUE_TYPES,
    VALID_LABEL_ACTIONS,
    VALID_STATUSES,
    CommentDict,
    DependencyRecord,
    IssueDict,
    IssueType,
    LabelAction,
    ProjectConfig,
    StatsResult,
    Status,
    TreeNode,
)

__all__ = [
    "VALID_ISSUE_TYPES",
    "VALID_LABEL_ACTIONS",
    "VALID_STATUSES",
    "CommentDict",
    "DependencyRecord",
    "IssueDict",
    "IssueType",
    "LabelAction",
    "ProjectConfig",
    "StatsResult",
    "Status",
    "TreeNode",
]
