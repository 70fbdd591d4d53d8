"""Import issues from a beads-style JSONL export.

Each line is handled on its own: a bad record becomes an
``ImportFieldError`` in the report while the rest of the batch goes in.
Beads columns with no counterpart here (assignee, design, estimates, ...)
are dropped. Nothing is written to disk; the caller saves.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ac.core import DEFAULT_PRIORITY, Comment, Issue, IssueStore, parse_timestamp
from ac.errors import ImportFieldError, StoreError, ValidationError
from ac.ids import candidate_ids, generate_issue_id
from ac.types.core import VALID_ISSUE_TYPES, IssueType, Status
from ac.validation import MAX_PRIORITY, MIN_PRIORITY, validate_label

logger = logging.getLogger(__name__)

# Beads statuses that have a direct counterpart. "blocked" is derived from
# the graph here, so such issues come in as open.
_STATUS_MAP: dict[str, Status] = {
    "open": "open",
    "in_progress": "in_progress",
    "closed": "closed",
    "blocked": "open",
}


@dataclass
class ImportReport:
    imported: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[ImportFieldError] = field(default_factory=list)
    # Source id -> id in this store, for imported and skipped records.
    id_map: dict[str, str] = field(default_factory=dict)


@dataclass
class _Pending:
    line: int
    source_id: str
    issue: Issue
    depends_on: list[str]


def _require_str(record: dict[str, Any], key: str, line: int, record_id: str | None) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ImportFieldError(line, f"missing or empty '{key}'", record_id=record_id)
    return value


def _convert(record: Any, line: int) -> tuple[str, Issue, list[str]]:
    """Map one beads record to an Issue with no id and no edges yet."""
    if not isinstance(record, dict):
        raise ImportFieldError(line, "record is not a JSON object")
    source_id = _require_str(record, "id", line, None)
    title = _require_str(record, "title", line, source_id)
    try:
        created_at = parse_timestamp(record.get("created_at"), "created_at")
        updated_raw = record.get("updated_at")
        updated_at = created_at if updated_raw is None else parse_timestamp(updated_raw, "updated_at")
        closed_raw = record.get("closed_at")
        closed_at = None if closed_raw is None else parse_timestamp(closed_raw, "closed_at")
        comments = [
            Comment(
                author=str(c.get("author") or ""),
                text=str(c.get("text") or ""),
                timestamp=parse_timestamp(c.get("created_at"), "comment created_at"),
            )
            for c in record.get("comments") or []
            if isinstance(c, dict)
        ]
        labels: list[str] = []
        for raw_label in record.get("labels") or []:
            label = validate_label(raw_label)
            if label not in labels:
                labels.append(label)
    except ValidationError as exc:
        raise ImportFieldError(line, str(exc), record_id=source_id) from exc

    raw_status = record.get("status", "open")
    status = _STATUS_MAP.get(raw_status) if isinstance(raw_status, str) else None
    if status is None:
        raise ImportFieldError(line, f"unknown status {raw_status!r}", record_id=source_id)

    # An in-progress issue needs an owner; beads keeps it in "assignee".
    session_id: str | None = None
    if status == "in_progress":
        assignee = record.get("assignee")
        if isinstance(assignee, str) and assignee.strip():
            session_id = assignee.strip()
        else:
            status = "open"

    priority = record.get("priority")
    if priority is None:
        priority = DEFAULT_PRIORITY
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ImportFieldError(line, f"priority must be an integer, got {priority!r}", record_id=source_id)
    priority = max(MIN_PRIORITY, min(MAX_PRIORITY, priority))

    raw_type = record.get("issue_type")
    issue_type: IssueType = raw_type if raw_type in VALID_ISSUE_TYPES else "task"

    depends_on = [
        dep["depends_on_id"]
        for dep in record.get("dependencies") or []
        if isinstance(dep, dict) and dep.get("type") == "blocks" and isinstance(dep.get("depends_on_id"), str)
    ]

    issue = Issue(
        id="",
        title=title,
        description=str(record.get("description") or ""),
        status=status,
        priority=priority,
        issue_type=issue_type,
        session_id=session_id,
        labels=labels,
        comments=comments,
        created_at=created_at,
        updated_at=updated_at,
        closed_at=(closed_at or updated_at) if status == "closed" else None,
    )
    return source_id, issue, depends_on


def _is_same_record(existing: Issue | None, issue: Issue) -> bool:
    return existing is not None and existing.title == issue.title and existing.created_at == issue.created_at


def import_jsonl(store: IssueStore, path: str | Path, *, preserve_ids: bool = False) -> ImportReport:
    """Import a beads JSONL export into *store*.

    With ``preserve_ids`` the source ids are kept; otherwise ids are
    generated from title and creation time, so re-importing the same file
    skips what is already there.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read import file {path}: {exc}"
        raise StoreError(msg) from exc

    report = ImportReport()
    pending: list[_Pending] = []
    taken: set[str] = set(store.issues)
    # Store ids already matched by an earlier line of this file.
    matched: set[str] = set()

    # Pass 1: convert records and assign ids.
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            report.errors.append(ImportFieldError(lineno, f"invalid JSON: {exc.msg}"))
            continue
        try:
            source_id, issue, depends_on = _convert(record, lineno)
        except ImportFieldError as exc:
            report.errors.append(exc)
            continue

        windows = [source_id] if preserve_ids else candidate_ids(store.prefix, issue.title, issue.created_at)
        existing_id = next(
            (wid for wid in windows if wid not in matched and _is_same_record(store.issues.get(wid), issue)),
            None,
        )
        if existing_id is not None:
            matched.add(existing_id)
            report.skipped.append(existing_id)
            report.id_map[source_id] = existing_id
            continue
        target_id = source_id
        if preserve_ids and target_id in taken:
            report.errors.append(ImportFieldError(lineno, "id already exists in store", record_id=source_id))
            continue
        if not preserve_ids:
            target_id = generate_issue_id(store.prefix, issue.title, issue.created_at, taken)

        issue.id = target_id
        taken.add(target_id)
        report.id_map[source_id] = target_id
        pending.append(_Pending(lineno, source_id, issue, depends_on))

    # Pass 2: resolve blocking edges now that every id is known, then insert.
    for item in pending:
        for blocker_source in item.depends_on:
            blocker_id = report.id_map.get(blocker_source)
            if blocker_id is None and blocker_source in store.issues:
                blocker_id = blocker_source
            if blocker_id is None:
                logger.warning("Import %s: dropping dangling dependency on %s", item.source_id, blocker_source)
                continue
            if blocker_id == item.issue.id:
                logger.warning("Import %s: dropping self-dependency", item.source_id)
                continue
            if blocker_id not in item.issue.blocked_by:
                item.issue.blocked_by.append(blocker_id)
        try:
            store.insert_issue(item.issue)
        except ValidationError as exc:
            report.errors.append(ImportFieldError(item.line, str(exc), record_id=item.source_id))
            del report.id_map[item.source_id]
            continue
        report.imported.append(item.issue.id)

    logger.info(
        "Imported %d issue(s) from %s (%d skipped, %d error(s))",
        len(report.imported),
        path,
        len(report.skipped),
        len(report.errors),
    )
    return report
