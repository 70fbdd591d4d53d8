"""Ownership state machine.

The only code that changes ``status`` and ``session_id``. ``apply_transition``
is a pure function of the current ownership state and a transition; the store
mixin in ``db_issues`` applies its result to an issue and stamps
``updated_at``.

Hand-edited or imported files can hold inconsistent pairs (``in_progress``
without a session, ``open`` with one). Claim and Close on an unowned
``in_progress`` issue repair it instead of rejecting; Release and Finish on an
owned ``open``/``closed`` issue are refused.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ac.errors import StateConflictError
from ac.types.core import Status


@dataclass(frozen=True)
class Claim:
    session: str


@dataclass(frozen=True)
class Release:
    pass


@dataclass(frozen=True)
class Finish:
    pass


@dataclass(frozen=True)
class Close:
    pass


Transition = Claim | Release | Finish | Close


@dataclass(frozen=True)
class Ownership:
    status: Status
    session_id: str | None = None
    closed_at: datetime | None = None

    @property
    def is_consistent(self) -> bool:
        return (self.status == "in_progress") == (self.session_id is not None)


@dataclass(frozen=True)
class TransitionResult:
    ownership: Ownership
    # Session that owned the issue before Release/Finish.
    previous_session: str | None = None
    repaired: bool = False


def apply_transition(issue_id: str, state: Ownership, transition: Transition, now: datetime) -> TransitionResult:
    """Return the ownership state after *transition*, or raise StateConflictError."""
    status, session = state.status, state.session_id

    match transition:
        case Claim(session=claimant):
            if status == "closed":
                # Reopen path: any stale owner is replaced.
                return TransitionResult(Ownership("in_progress", claimant, None))
            if session is not None:
                if session == claimant:
                    raise StateConflictError(issue_id, "is already claimed by this session")
                raise StateConflictError(issue_id, f"is already claimed by {session}")
            if status == "in_progress":
                return TransitionResult(Ownership("in_progress", claimant, state.closed_at), repaired=True)
            return TransitionResult(Ownership("in_progress", claimant, state.closed_at))

        case Release():
            if session is None:
                raise StateConflictError(issue_id, "is not claimed")
            if status != "in_progress":
                raise StateConflictError(issue_id, f"is not in progress (status: {status})")
            return TransitionResult(Ownership("open", None, state.closed_at), previous_session=session)

        case Finish():
            if session is None:
                raise StateConflictError(issue_id, "is not claimed (use close)")
            if status == "closed":
                raise StateConflictError(issue_id, "is already closed")
            if status == "open":
                raise StateConflictError(issue_id, "is open, not in progress")
            return TransitionResult(Ownership("closed", None, now), previous_session=session)

        case Close():
            if status == "closed":
                raise StateConflictError(issue_id, "is already closed")
            if session is not None:
                raise StateConflictError(issue_id, f"is claimed by {session}; release or finish first")
            return TransitionResult(Ownership("closed", None, now), repaired=status == "in_progress")

    msg = f"Unknown transition: {transition!r}"
    raise TypeError(msg)
