"""Tests for issue creation, queries, field edits, labels, comments and stats."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from ac.core import Issue, IssueStore
from ac.errors import IssueNotFoundError, ValidationError


class TestCreateIssue:
    def test_defaults(self, store: IssueStore) -> None:
        issue = store.create_issue("Write docs")
        assert issue.id.startswith("t-")
        assert issue.status == "open"
        assert issue.priority == 2
        assert issue.issue_type == "task"
        assert issue.session_id is None
        assert issue.blocks == []
        assert issue.blocked_by == []
        assert issue.created_at == issue.updated_at
        assert issue.created_at.tzinfo is not None

    def test_with_options(self, store: IssueStore) -> None:
        issue = store.create_issue(
            "Spike it",
            issue_type="spike",
            priority=0,
            description="Find out",
            labels=["research", " research ", "infra"],
        )
        assert issue.issue_type == "spike"
        assert issue.priority == 0
        assert issue.description == "Find out"
        assert issue.labels == ["research", "infra"]

    def test_empty_title_rejected(self, store: IssueStore) -> None:
        with pytest.raises(ValidationError, match="Title"):
            store.create_issue("  ")
        assert store.issues == {}

    def test_unknown_type_rejected(self, store: IssueStore) -> None:
        with pytest.raises(ValidationError, match="Unknown issue type"):
            store.create_issue("Bug report", issue_type="bug")

    @pytest.mark.parametrize("priority", [-1, 5])
    def test_priority_out_of_range(self, store: IssueStore, priority: int) -> None:
        with pytest.raises(ValidationError):
            store.create_issue("X", priority=priority)
        assert store.issues == {}

    def test_same_title_gets_distinct_ids(self, store: IssueStore) -> None:
        ids = {store.create_issue("Same").id for _ in range(10)}
        assert len(ids) == 10


class TestQueries:
    def test_get_issue_not_found(self, store: IssueStore) -> None:
        with pytest.raises(IssueNotFoundError, match="Issue not found: t-nope"):
            store.get_issue("t-nope")

    def test_not_found_is_key_error(self, store: IssueStore) -> None:
        with pytest.raises(KeyError):
            store.get_issue("t-nope")

    def test_list_excludes_closed_by_default(self, populated_store: IssueStore) -> None:
        ids = populated_store._test_ids  # type: ignore[attr-defined]
        listed = [i.id for i in populated_store.list_issues()]
        assert ids["c"] not in listed
        assert listed == [ids["epic"], ids["a"], ids["b"]]

    def test_list_include_closed(self, populated_store: IssueStore) -> None:
        assert len(populated_store.list_issues(include_closed=True)) == 4

    def test_list_by_status(self, populated_store: IssueStore) -> None:
        ids = populated_store._test_ids  # type: ignore[attr-defined]
        assert [i.id for i in populated_store.list_issues(status="closed")] == [ids["c"]]

    def test_list_unknown_status(self, store: IssueStore) -> None:
        with pytest.raises(ValidationError, match="Unknown status"):
            store.list_issues(status="blocked")

    def test_ordering_ties_broken_by_created_at(self, store: IssueStore) -> None:
        first = store.create_issue("First")
        second = store.create_issue("Second")
        first.created_at = second.created_at + timedelta(seconds=1)
        assert [i.id for i in store.list_issues()] == [second.id, first.id]


class TestFieldEdits:
    def test_update_title_description_priority(self, store: IssueStore) -> None:
        issue = store.create_issue("Old")
        before = issue.updated_at
        store.update_issue(issue.id, title="New", description="Body", priority=4)
        assert (issue.title, issue.description, issue.priority) == ("New", "Body", 4)
        assert issue.updated_at >= before

    def test_update_never_touches_status(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        store.claim_issue(issue.id, "s1")
        store.update_issue(issue.id, priority=0)
        assert issue.status == "in_progress"
        assert issue.session_id == "s1"

    def test_invalid_priority_leaves_issue_unchanged(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        with pytest.raises(ValidationError):
            store.update_issue(issue.id, title="Y", priority=9)
        assert issue.title == "X"
        assert issue.priority == 2

    def test_set_priority(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        store.set_priority(issue.id, 1)
        assert issue.priority == 1

    def test_update_missing_issue(self, store: IssueStore) -> None:
        with pytest.raises(IssueNotFoundError):
            store.update_issue("t-missing", title="Y")


class TestLabels:
    def test_add_and_remove(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        assert store.update_label(issue.id, "add", "backend") is True
        assert store.update_label(issue.id, "add", "backend") is False
        assert issue.labels == ["backend"]
        assert store.update_label(issue.id, "remove", "backend") is True
        assert store.update_label(issue.id, "remove", "backend") is False
        assert issue.labels == []

    def test_malformed_action(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        with pytest.raises(ValidationError, match="label action"):
            store.update_label(issue.id, "toggle", "backend")

    def test_empty_label(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        with pytest.raises(ValidationError):
            store.add_label(issue.id, "  ")


class TestComments:
    def test_append_only_in_order(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        store.add_comment(issue.id, "first", author="s1")
        store.add_comment(issue.id, "second")
        assert [c.text for c in issue.comments] == ["first", "second"]
        assert issue.comments[0].author == "s1"
        assert issue.comments[1].author == ""

    def test_empty_comment_rejected(self, store: IssueStore) -> None:
        issue = store.create_issue("X")
        with pytest.raises(ValidationError, match="Comment text cannot be empty"):
            store.add_comment(issue.id, "   ")
        assert issue.comments == []


class TestInsertIssue:
    def _issue(self, issue_id: str, **kwargs: object) -> Issue:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        return Issue(id=issue_id, title=f"Issue {issue_id}", created_at=now, updated_at=now, **kwargs)  # type: ignore[arg-type]

    def test_keeps_timestamps(self, store: IssueStore) -> None:
        inserted = store.insert_issue(self._issue("x-1"))
        assert inserted.created_at == datetime(2026, 1, 1, tzinfo=UTC)

    def test_duplicate_rejected(self, store: IssueStore) -> None:
        store.insert_issue(self._issue("x-1"))
        with pytest.raises(ValidationError, match="already exists"):
            store.insert_issue(self._issue("x-1"))

    def test_self_block_rejected(self, store: IssueStore) -> None:
        with pytest.raises(ValidationError, match="cannot block itself"):
            store.insert_issue(self._issue("x-1", blocked_by=["x-1"]))

    def test_priority_out_of_range_rejected(self, store: IssueStore) -> None:
        with pytest.raises(ValidationError):
            store.insert_issue(self._issue("x-1", priority=8))

    def test_edges_mirrored_in_either_insert_order(self, store: IssueStore) -> None:
        store.insert_issue(self._issue("x-2", blocked_by=["x-1"]))
        store.insert_issue(self._issue("x-1"))
        assert store.get_issue("x-1").blocks == ["x-2"]

        store.insert_issue(self._issue("x-3", blocked_by=["x-1"]))
        assert store.get_issue("x-1").blocks == ["x-2", "x-3"]


class TestStats:
    def test_counts(self, populated_store: IssueStore) -> None:
        ids = populated_store._test_ids  # type: ignore[attr-defined]
        populated_store.claim_issue(ids["epic"], "s1")
        s = populated_store.get_stats()
        assert s["total"] == 4
        assert s["by_status"] == {"closed": 1, "in_progress": 1, "open": 2}
        assert s["by_type"]["epic"] == 1
        assert s["by_type"]["task"] == 3
        assert s["ready_count"] == 1
        assert s["blocked_count"] == 1
        assert s["claimed_count"] == 1
        assert s["total_dependencies"] == 1
