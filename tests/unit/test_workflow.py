"""Tests for the ownership state machine, one case per transition rule."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from ac.errors import StateConflictError
from ac.workflow import Claim, Close, Finish, Ownership, Release, Transition, TransitionResult, apply_transition

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
EARLIER = datetime(2026, 2, 1, 9, 30, tzinfo=UTC)


def _apply(state: Ownership, transition: Transition) -> TransitionResult:
    return apply_transition("t-1", state, transition, NOW)


class TestClaim:
    def test_open_unowned_claims(self) -> None:
        result = _apply(Ownership("open"), Claim("s1"))
        assert result.ownership == Ownership("in_progress", "s1", None)
        assert not result.repaired

    def test_open_owned_by_same_session(self) -> None:
        with pytest.raises(StateConflictError, match="already claimed by this session"):
            _apply(Ownership("open", "s1"), Claim("s1"))

    def test_open_owned_by_other_session(self) -> None:
        with pytest.raises(StateConflictError, match="already claimed by s2"):
            _apply(Ownership("open", "s2"), Claim("s1"))

    def test_closed_reopens_and_clears_closed_at(self) -> None:
        result = _apply(Ownership("closed", None, EARLIER), Claim("s1"))
        assert result.ownership == Ownership("in_progress", "s1", None)

    def test_closed_with_stale_owner_reopens(self) -> None:
        result = _apply(Ownership("closed", "old", EARLIER), Claim("s1"))
        assert result.ownership.session_id == "s1"
        assert result.ownership.closed_at is None

    def test_in_progress_owned_by_same_session(self) -> None:
        with pytest.raises(StateConflictError, match="already claimed by this session"):
            _apply(Ownership("in_progress", "s1"), Claim("s1"))

    def test_in_progress_owned_by_other_session(self) -> None:
        with pytest.raises(StateConflictError, match="already claimed by s2"):
            _apply(Ownership("in_progress", "s2"), Claim("s1"))

    def test_in_progress_unowned_is_repaired(self) -> None:
        result = _apply(Ownership("in_progress"), Claim("s1"))
        assert result.ownership == Ownership("in_progress", "s1", None)
        assert result.repaired


class TestRelease:
    def test_in_progress_owned_releases(self) -> None:
        result = _apply(Ownership("in_progress", "s1"), Release())
        assert result.ownership == Ownership("open", None, None)
        assert result.previous_session == "s1"

    @pytest.mark.parametrize("status", ["open", "in_progress", "closed"])
    def test_unowned_is_not_claimed(self, status: str) -> None:
        with pytest.raises(StateConflictError, match="is not claimed"):
            _apply(Ownership(status), Release())  # type: ignore[arg-type]

    @pytest.mark.parametrize("status", ["open", "closed"])
    def test_owned_but_not_in_progress(self, status: str) -> None:
        with pytest.raises(StateConflictError, match="not in progress"):
            _apply(Ownership(status, "s1"), Release())  # type: ignore[arg-type]


class TestFinish:
    def test_in_progress_owned_finishes(self) -> None:
        result = _apply(Ownership("in_progress", "s1"), Finish())
        assert result.ownership == Ownership("closed", None, NOW)
        assert result.previous_session == "s1"

    @pytest.mark.parametrize("status", ["open", "in_progress", "closed"])
    def test_unowned_points_to_close(self, status: str) -> None:
        with pytest.raises(StateConflictError, match=r"not claimed \(use close\)"):
            _apply(Ownership(status), Finish())  # type: ignore[arg-type]

    def test_closed_owned_is_already_closed(self) -> None:
        with pytest.raises(StateConflictError, match="already closed"):
            _apply(Ownership("closed", "s1", EARLIER), Finish())

    def test_open_owned_is_not_in_progress(self) -> None:
        with pytest.raises(StateConflictError, match="open, not in progress"):
            _apply(Ownership("open", "s1"), Finish())


class TestClose:
    def test_open_unowned_closes(self) -> None:
        result = _apply(Ownership("open"), Close())
        assert result.ownership == Ownership("closed", None, NOW)
        assert not result.repaired

    @pytest.mark.parametrize("session", [None, "s1"])
    def test_closed_is_already_closed(self, session: str | None) -> None:
        with pytest.raises(StateConflictError, match="already closed"):
            _apply(Ownership("closed", session, EARLIER), Close())

    @pytest.mark.parametrize("status", ["open", "in_progress"])
    def test_owned_must_release_or_finish(self, status: str) -> None:
        with pytest.raises(StateConflictError, match="claimed by s1; release or finish first"):
            _apply(Ownership(status, "s1"), Close())  # type: ignore[arg-type]

    def test_in_progress_unowned_is_repaired(self) -> None:
        result = _apply(Ownership("in_progress"), Close())
        assert result.ownership == Ownership("closed", None, NOW)
        assert result.repaired


class TestErrors:
    def test_error_carries_issue_id(self) -> None:
        with pytest.raises(StateConflictError) as exc_info:
            _apply(Ownership("open"), Release())
        assert exc_info.value.issue_id == "t-1"
        assert str(exc_info.value) == "t-1 is not claimed"

    def test_state_conflict_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            _apply(Ownership("closed"), Close())

    def test_consistency_flag(self) -> None:
        assert Ownership("in_progress", "s1").is_consistent
        assert Ownership("open").is_consistent
        assert not Ownership("in_progress").is_consistent
        assert not Ownership("open", "s1").is_consistent
