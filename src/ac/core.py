"""Core store for the issue tracker.

Single source of truth for issue state. The CLI and the import routine both
go through ``IssueStore``. No daemon, no database: the whole store is one
JSONL file, loaded into memory per invocation and rewritten atomically on save.

Convention-based discovery: each project has an ``.ac/`` directory containing
``config.json`` (schema version, id prefix) and ``issues.jsonl`` (one issue
per line, sorted by id).
"""

from __future__ import annotations

import contextlib
import fcntl
import hashlib
import json
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from ac.db_base import _now, _sort_key
from ac.db_graph import GraphMixin
from ac.db_issues import OwnershipMixin
from ac.db_meta import MetaMixin
from ac.errors import (
    ConcurrentModificationError,
    IssueNotFoundError,
    NotInitializedError,
    StoreError,
    ValidationError,
)
from ac.ids import derive_prefix, generate_issue_id
from ac.types.core import (
    VALID_ISSUE_TYPES,
    VALID_STATUSES,
    CommentDict,
    IssueDict,
    IssueType,
    ProjectConfig,
    Status,
)
from ac.validation import (
    validate_issue_type,
    validate_label,
    validate_priority,
    validate_title,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

AC_DIR_NAME = ".ac"
ISSUES_FILENAME = "issues.jsonl"
CONFIG_FILENAME = "config.json"
LOCK_FILENAME = "issues.lock"
CURRENT_SCHEMA_VERSION = 1
DEFAULT_PRIORITY = 2


def find_ac_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for an .ac/ directory.

    Returns the .ac/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / AC_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"Not initialized: no {AC_DIR_NAME}/ directory found in {current} or any parent. Run 'ac init' first."
    raise NotInitializedError(msg)


def read_config(ac_dir: Path) -> ProjectConfig:
    """Read .ac/config.json. The config record is required."""
    config_path = ac_dir / CONFIG_FILENAME
    if not config_path.exists():
        msg = f"Not initialized: {config_path} not found. Run 'ac init' first."
        raise NotInitializedError(msg)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read config {config_path}: {exc}"
        raise StoreError(msg) from exc
    if not isinstance(data, dict) or not isinstance(data.get("prefix"), str) or not isinstance(data.get("version"), int):
        msg = f"Failed to parse config {config_path}: expected {{'version': int, 'prefix': str}}"
        raise StoreError(msg)
    return ProjectConfig(version=data["version"], prefix=data["prefix"])


def write_config(ac_dir: Path, config: ProjectConfig) -> None:
    """Write .ac/config.json."""
    write_atomic(ac_dir / CONFIG_FILENAME, json.dumps(config, indent=2) + "\n")


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via fsynced temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def _digest(raw: bytes | None) -> str | None:
    return None if raw is None else hashlib.sha256(raw).hexdigest()


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any, name: str) -> datetime:
    """Parse an RFC 3339 timestamp. Naive values are taken as UTC."""
    if not isinstance(value, str):
        msg = f"{name} must be an RFC 3339 string, got {value!r}"
        raise ValidationError(msg)
    try:
        dt = datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"{name} is not a valid timestamp: {value!r}"
        raise ValidationError(msg) from exc
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{key} must be a list of strings"
        raise ValidationError(msg)
    return list(value)


@dataclass
class Comment:
    author: str
    text: str
    timestamp: datetime

    def to_dict(self) -> CommentDict:
        return {"author": self.author, "text": self.text, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Any) -> Comment:
        if not isinstance(data, dict):
            msg = "comment must be an object"
            raise ValidationError(msg)
        return cls(
            author=str(data.get("author") or ""),
            text=str(data.get("text") or ""),
            timestamp=parse_timestamp(data.get("timestamp"), "comment timestamp"),
        )


@dataclass
class Issue:
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    status: Status = "open"
    priority: int = DEFAULT_PRIORITY
    issue_type: IssueType = "task"
    session_id: str | None = None
    labels: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    closed_at: datetime | None = None
    blocks: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)

    def to_dict(self) -> IssueDict:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "issue_type": self.issue_type,
        }
        if self.session_id is not None:
            data["session_id"] = self.session_id
        data["labels"] = list(self.labels)
        data["comments"] = [c.to_dict() for c in self.comments]
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        if self.closed_at is not None:
            data["closed_at"] = self.closed_at.isoformat()
        data["blocks"] = list(self.blocks)
        data["blocked_by"] = list(self.blocked_by)
        return cast(IssueDict, data)

    @classmethod
    def from_dict(cls, data: Any) -> Issue:
        """Build an Issue from one persisted record.

        Raises ValidationError for anything malformed. Unknown legacy
        ``issue_type`` values become ``task``.
        """
        if not isinstance(data, dict):
            msg = "record must be a JSON object"
            raise ValidationError(msg)
        for key in ("id", "title", "status", "created_at", "updated_at"):
            if key not in data:
                msg = f"missing required field '{key}'"
                raise ValidationError(msg)
        if not isinstance(data["id"], str) or not data["id"]:
            msg = "id must be a non-empty string"
            raise ValidationError(msg)
        status = data["status"]
        if status not in VALID_STATUSES:
            msg = f"unknown status {status!r}"
            raise ValidationError(msg)
        issue_type = data.get("issue_type", "task")
        if issue_type not in VALID_ISSUE_TYPES:
            issue_type = "task"
        session_id = data.get("session_id")
        if session_id is not None and not isinstance(session_id, str):
            msg = "session_id must be a string"
            raise ValidationError(msg)
        comments = data.get("comments") or []
        if not isinstance(comments, list):
            msg = "comments must be a list"
            raise ValidationError(msg)
        closed_at = data.get("closed_at")
        return cls(
            id=data["id"],
            title=str(data["title"]),
            description=str(data.get("description") or ""),
            status=status,
            priority=validate_priority(data.get("priority", DEFAULT_PRIORITY)),
            issue_type=issue_type,
            session_id=session_id,
            labels=list(dict.fromkeys(_string_list(data, "labels"))),
            comments=[Comment.from_dict(c) for c in comments],
            created_at=parse_timestamp(data["created_at"], "created_at"),
            updated_at=parse_timestamp(data["updated_at"], "updated_at"),
            closed_at=None if closed_at is None else parse_timestamp(closed_at, "closed_at"),
            blocks=_string_list(data, "blocks"),
            blocked_by=_string_list(data, "blocked_by"),
        )


def _parse_issues(raw: bytes, path: Path) -> dict[str, Issue]:
    """Parse the issue file. Any malformed line is fatal for the whole load."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Failed to decode {path}: {exc}"
        raise StoreError(msg) from exc
    issues: dict[str, Issue] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            issue = Issue.from_dict(json.loads(line))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Failed to parse issue at {path}:{lineno}: {exc}"
            raise StoreError(msg) from exc
        if issue.id in issues:
            msg = f"Duplicate issue id {issue.id} at {path}:{lineno}"
            raise StoreError(msg)
        issues[issue.id] = issue
    return issues


# ---------------------------------------------------------------------------
# IssueStore: the core
# ---------------------------------------------------------------------------


class IssueStore(OwnershipMixin, GraphMixin, MetaMixin):
    """In-memory issue map backed by .ac/issues.jsonl.

    Mutating methods validate fully before touching ``self.issues`` and never
    write to disk; callers persist with ``save()``.
    """

    def __init__(self, ac_dir: str | Path, *, prefix: str, issues: dict[str, Issue] | None = None) -> None:
        self.ac_dir = Path(ac_dir)
        self.prefix = prefix
        self.issues: dict[str, Issue] = issues if issues is not None else {}
        # Digest of issues.jsonl as last read or written; None means "no file".
        self._loaded_digest: str | None = None

    @property
    def issues_path(self) -> Path:
        return self.ac_dir / ISSUES_FILENAME

    # -- Lifecycle -----------------------------------------------------------

    @classmethod
    def init(cls, ac_dir: str | Path, *, cwd: Path | None = None, prefix: str | None = None) -> IssueStore:
        """Create ac_dir with a config record and an empty issue file, then load it."""
        ac_dir = Path(ac_dir)
        if (ac_dir / CONFIG_FILENAME).exists():
            msg = f"{ac_dir} is already initialized"
            raise StoreError(msg)
        prefix = prefix or derive_prefix((cwd or Path.cwd()).resolve())
        try:
            ac_dir.mkdir(parents=True, exist_ok=True)
            write_config(ac_dir, ProjectConfig(version=CURRENT_SCHEMA_VERSION, prefix=prefix))
            (ac_dir / ISSUES_FILENAME).touch()
        except OSError as exc:
            msg = f"Failed to initialize {ac_dir}: {exc}"
            raise StoreError(msg) from exc
        logger.info("Initialized %s with prefix '%s'", ac_dir, prefix)
        return cls.load(ac_dir)

    @classmethod
    def load(cls, ac_dir: str | Path) -> IssueStore:
        ac_dir = Path(ac_dir)
        config = read_config(ac_dir)
        issues_path = ac_dir / ISSUES_FILENAME
        try:
            raw = _read_bytes(issues_path)
        except OSError as exc:
            msg = f"Failed to read {issues_path}: {exc}"
            raise StoreError(msg) from exc

        store = cls(ac_dir, prefix=config["prefix"], issues=_parse_issues(raw or b"", issues_path))
        store._loaded_digest = _digest(raw)
        for issue in store.issues.values():
            if (issue.status == "in_progress") != (issue.session_id is not None):
                logger.warning(
                    "Issue %s has inconsistent ownership (status=%s, session=%s); next transition will repair it",
                    issue.id,
                    issue.status,
                    issue.session_id,
                )
        logger.debug("Loaded %d issues from %s", len(store.issues), issues_path)
        return store

    @classmethod
    def from_project(cls, start: Path | None = None) -> IssueStore:
        """Discover .ac/ from start (or cwd) and load it."""
        return cls.load(find_ac_root(start))

    @contextlib.contextmanager
    def _file_lock(self) -> Iterator[None]:
        """Hold an exclusive advisory lock on .ac/issues.lock."""
        with open(self.ac_dir / LOCK_FILENAME, "w") as lock_fd:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)

    def save(self) -> None:
        """Rewrite issues.jsonl, sorted by id, via temp file + atomic rename.

        Raises ConcurrentModificationError, writing nothing, when the file on
        disk is no longer the one this store loaded or last saved.
        """
        content = "".join(
            json.dumps(issue.to_dict(), ensure_ascii=False, separators=(",", ":")) + "\n"
            for issue in sorted(self.issues.values(), key=lambda i: i.id)
        )
        try:
            with self._file_lock():
                on_disk = _digest(_read_bytes(self.issues_path))
                if on_disk != self._loaded_digest:
                    msg = f"{self.issues_path} was modified by another process since it was loaded; reload and retry"
                    raise ConcurrentModificationError(msg)
                write_atomic(self.issues_path, content)
        except OSError as exc:
            msg = f"Failed to write {self.issues_path}: {exc}"
            raise StoreError(msg) from exc
        self._loaded_digest = _digest(content.encode("utf-8"))
        logger.debug("Saved %d issues to %s", len(self.issues), self.issues_path)

    # -- Issue CRUD ----------------------------------------------------------

    def create_issue(
        self,
        title: str,
        *,
        issue_type: str = "task",
        priority: int = DEFAULT_PRIORITY,
        description: str = "",
        labels: list[str] | None = None,
    ) -> Issue:
        title = validate_title(title)
        checked_type = validate_issue_type(issue_type)
        priority = validate_priority(priority)
        clean_labels: list[str] = []
        for label in labels or []:
            normalized = validate_label(label)
            if normalized not in clean_labels:
                clean_labels.append(normalized)

        now = _now()
        issue_id = generate_issue_id(self.prefix, title, now, self.issues)
        issue = Issue(
            id=issue_id,
            title=title,
            description=description,
            issue_type=checked_type,
            priority=priority,
            labels=clean_labels,
            created_at=now,
            updated_at=now,
        )
        self.issues[issue_id] = issue
        logger.info("Created issue %s", issue_id)
        return issue

    def get_issue(self, issue_id: str) -> Issue:
        issue = self.issues.get(issue_id)
        if issue is None:
            raise IssueNotFoundError(issue_id)
        return issue

    def list_issues(self, *, status: str | None = None, include_closed: bool = False) -> list[Issue]:
        """Issues ordered by (priority, created_at). Closed ones only on request or by status filter."""
        if status is not None:
            if status not in VALID_STATUSES:
                msg = f"Unknown status '{status}'. Valid statuses: {', '.join(sorted(VALID_STATUSES))}"
                raise ValidationError(msg)
            selected = [i for i in self.issues.values() if i.status == status]
        elif include_closed:
            selected = list(self.issues.values())
        else:
            selected = [i for i in self.issues.values() if i.status != "closed"]
        return sorted(selected, key=_sort_key)

    def insert_issue(self, issue: Issue) -> Issue:
        """Insert a fully-formed record (import path) and mirror its edges.

        Timestamps are kept as given. Edges are made symmetric against issues
        already in the store, in both directions.
        """
        if issue.id in self.issues:
            msg = f"Issue id already exists: {issue.id}"
            raise ValidationError(msg)
        validate_title(issue.title)
        validate_priority(issue.priority)
        if issue.id in issue.blocked_by or issue.id in issue.blocks:
            msg = f"Issue cannot block itself: {issue.id}"
            raise ValidationError(msg)

        for blocker_id in issue.blocked_by:
            blocker = self.issues.get(blocker_id)
            if blocker is not None and issue.id not in blocker.blocks:
                blocker.blocks.append(issue.id)
        for blocked_id in issue.blocks:
            blocked = self.issues.get(blocked_id)
            if blocked is not None and issue.id not in blocked.blocked_by:
                blocked.blocked_by.append(issue.id)
        for other in self.issues.values():
            if issue.id in other.blocked_by and other.id not in issue.blocks:
                issue.blocks.append(other.id)
            if issue.id in other.blocks and other.id not in issue.blocked_by:
                issue.blocked_by.append(other.id)

        self.issues[issue.id] = issue
        logger.debug("Inserted issue %s", issue.id)
        return issue
