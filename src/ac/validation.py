"""Shared validation functions for all entry points.

Pure functions with no click dependency. Each returns the cleaned value or
raises ``ValidationError``.
"""

from __future__ import annotations

from typing import Any

from ac.errors import ValidationError
from ac.types.core import VALID_ISSUE_TYPES, VALID_LABEL_ACTIONS, IssueType, LabelAction

MIN_PRIORITY = 0
MAX_PRIORITY = 4
_MAX_LABEL_LENGTH = 64


def validate_priority(value: Any) -> int:
    # bool is an int subclass; True is not a priority
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"Priority must be an integer, got {value!r}"
        raise ValidationError(msg)
    if not (MIN_PRIORITY <= value <= MAX_PRIORITY):
        msg = f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {value}"
        raise ValidationError(msg)
    return value


def validate_issue_type(value: str) -> IssueType:
    normalized = value.strip().lower()
    if normalized not in VALID_ISSUE_TYPES:
        msg = f"Unknown issue type '{value}'. Valid types: {', '.join(sorted(VALID_ISSUE_TYPES))}"
        raise ValidationError(msg)
    return normalized  # type: ignore[return-value]


def validate_title(value: str) -> str:
    if not value or not value.strip():
        msg = "Title cannot be empty"
        raise ValidationError(msg)
    return value


def validate_session(value: Any) -> str:
    """Sessions are opaque; only non-empty strings are required."""
    if not isinstance(value, str) or not value.strip():
        msg = "Session id cannot be empty"
        raise ValidationError(msg)
    return value


def validate_label(value: Any) -> str:
    if not isinstance(value, str):
        msg = "Label must be a string"
        raise ValidationError(msg)
    cleaned = value.strip()
    if not cleaned:
        msg = "Label cannot be empty"
        raise ValidationError(msg)
    if len(cleaned) > _MAX_LABEL_LENGTH:
        msg = f"Label must be at most {_MAX_LABEL_LENGTH} characters"
        raise ValidationError(msg)
    return cleaned


def validate_label_action(value: str) -> LabelAction:
    normalized = value.strip().lower()
    if normalized not in VALID_LABEL_ACTIONS:
        msg = f"Unknown label action '{value}'. Expected 'add' or 'remove'"
        raise ValidationError(msg)
    return normalized  # type: ignore[return-value]
