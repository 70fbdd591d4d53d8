"""Shared pytest fixtures for ac tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from ac.core import AC_DIR_NAME, IssueStore


@pytest.fixture
def store(tmp_path: Path) -> IssueStore:
    """Fresh, initialized IssueStore for each test."""
    return IssueStore.init(tmp_path / AC_DIR_NAME, cwd=tmp_path, prefix="t")


@pytest.fixture
def populated_store(store: IssueStore) -> IssueStore:
    """IssueStore pre-populated with a representative issue set.

    Creates:
    - A (open P1, labels ["backend", "urgent"]), blocked by B
    - B (open P2) with one comment
    - C (closed P3)
    - E (epic, open P0)
    """
    epic = store.create_issue("Epic E", issue_type="epic", priority=0)
    a = store.create_issue("Issue A", priority=1, labels=["backend", "urgent"])
    b = store.create_issue("Issue B", priority=2)
    c = store.create_issue("Issue C", priority=3)
    store.close_issue(c.id)
    store.add_dependency(a.id, b.id)
    store.add_comment(b.id, "Looking into it", author="tester")
    store._test_ids = {"epic": epic.id, "a": a.id, "b": b.id, "c": c.id}  # type: ignore[attr-defined]
    return store


@pytest.fixture
def ac_project(tmp_path: Path) -> Path:
    """A tmp directory set up as an ac project (.ac/ with config + empty issue file).

    Returns the project root (parent of .ac/).
    """
    IssueStore.init(tmp_path / AC_DIR_NAME, cwd=tmp_path, prefix="proj")
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def beads_export(tmp_path: Path) -> Path:
    """A beads-style JSONL export with representative data.

    - bd-aaa111: epic, open, labelled, with a comment
    - bd-bbb222: task blocked by bd-ccc333 and by a deleted issue
    - bd-ccc333: closed bug (legacy type)
    - bd-ddd444: legacy "blocked" status, out-of-range priority
    """
    now = "2026-01-15T10:00:00+00:00"
    records = [
        {
            "id": "bd-aaa111",
            "title": "Epic one",
            "description": "An epic",
            "status": "open",
            "priority": 1,
            "issue_type": "epic",
            "labels": ["important"],
            "created_at": now,
            "updated_at": now,
            "comments": [{"author": "alice", "text": "kickoff", "created_at": now}],
        },
        {
            "id": "bd-bbb222",
            "title": "Task two",
            "status": "open",
            "priority": 2,
            "issue_type": "task",
            "assignee": "alice",
            "created_at": "2026-01-15T11:00:00+00:00",
            "updated_at": "2026-01-15T11:00:00+00:00",
            "dependencies": [
                {"issue_id": "bd-bbb222", "depends_on_id": "bd-ccc333", "type": "blocks"},
                {"issue_id": "bd-bbb222", "depends_on_id": "bd-del999", "type": "blocks"},
                {"issue_id": "bd-bbb222", "depends_on_id": "bd-aaa111", "type": "parent-child"},
            ],
        },
        {
            "id": "bd-ccc333",
            "title": "Closed bug",
            "status": "closed",
            "priority": 0,
            "issue_type": "bug",
            "created_at": "2026-01-15T12:00:00+00:00",
            "updated_at": "2026-01-16T12:00:00+00:00",
            "closed_at": "2026-01-16T12:00:00+00:00",
        },
        {
            "id": "bd-ddd444",
            "title": "Was blocked",
            "status": "blocked",
            "priority": 9,
            "created_at": "2026-01-15T13:00:00+00:00",
        },
    ]
    path = tmp_path / "beads.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n")
    return path
