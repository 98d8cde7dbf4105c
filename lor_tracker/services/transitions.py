"""Submission status transition policy.

Every status change on a submission is decided here. The module performs no
I/O: callers pass in the current status, the requested status, the acting
principal and the user ids that own the submission, and receive a
``TransitionDecision`` describing either the audit entry to append or the
reason the change was refused.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from lor_tracker.core.errors import BadRequestError
from lor_tracker.db.base import utcnow
from lor_tracker.models.enums import Role, SubmissionStatus


ALLOWED_TRANSITIONS: Mapping[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.SUBMITTED: frozenset(
        {SubmissionStatus.RESUBMISSION, SubmissionStatus.APPROVED, SubmissionStatus.REJECTED}
    ),
    SubmissionStatus.RESUBMISSION: frozenset({SubmissionStatus.SUBMITTED}),
    SubmissionStatus.APPROVED: frozenset({SubmissionStatus.COMPLETED}),
    SubmissionStatus.REJECTED: frozenset(),
    SubmissionStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES = frozenset({SubmissionStatus.REJECTED, SubmissionStatus.COMPLETED})

_STUDENT_TRANSITIONS: Mapping[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.RESUBMISSION: frozenset({SubmissionStatus.SUBMITTED}),
}

# (role, current status) -> statuses that role may move a submission to.
ROLE_TRANSITIONS: Mapping[Role, Mapping[SubmissionStatus, frozenset[SubmissionStatus]]] = {
    Role.STUDENT: _STUDENT_TRANSITIONS,
    Role.ALUMNI: _STUDENT_TRANSITIONS,
    Role.FACULTY: ALLOWED_TRANSITIONS,
    Role.ADMIN: ALLOWED_TRANSITIONS,
}

MSG_IMMUTABLE = "Completed/rejected submissions are immutable"
MSG_INVALID_ROLE = "Invalid role"
MSG_STUDENT_NOT_OWNER = "Students can only manage their own submissions"
MSG_STUDENT_RESUBMIT_ONLY = "Students can only resubmit revised drafts"
MSG_FACULTY_NOT_OWNER = "Faculty can only manage assigned submissions"


@dataclass(frozen=True)
class AuditFields:
    at: datetime
    actor_id: int
    from_status: Optional[SubmissionStatus]
    to_status: SubmissionStatus
    remark: Optional[str] = None


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    audit: Optional[AuditFields] = None
    reason: Optional[str] = None

    def raise_for_denial(self) -> AuditFields:
        if not self.allowed or self.audit is None:
            raise BadRequestError(self.reason or "Invalid transition", code="INVALID_TRANSITION")
        return self.audit


def _coerce_role(value: Role | str | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def _coerce_status(value: SubmissionStatus | str) -> Optional[SubmissionStatus]:
    if isinstance(value, SubmissionStatus):
        return value
    try:
        return SubmissionStatus(str(value))
    except ValueError:
        return None


def _label(value: SubmissionStatus | str) -> str:
    return value.value if isinstance(value, SubmissionStatus) else str(value)


def _deny(reason: str) -> TransitionDecision:
    return TransitionDecision(allowed=False, reason=reason)


def is_terminal(status: SubmissionStatus) -> bool:
    return status in TERMINAL_STATUSES


def permitted_targets(role: Role | str, current_status: SubmissionStatus) -> frozenset[SubmissionStatus]:
    """Statuses ``role`` may request from ``current_status``, ownership aside."""
    coerced = _coerce_role(role)
    if coerced is None or current_status in TERMINAL_STATUSES:
        return frozenset()
    return ROLE_TRANSITIONS[coerced].get(current_status, frozenset())


def decide(
    current_status: SubmissionStatus | str,
    requested_status: SubmissionStatus | str,
    actor_role: Role | str,
    actor_id: int,
    student_user_id: int,
    faculty_user_id: int,
    *,
    remark: Optional[str] = None,
    at: Optional[datetime] = None,
) -> TransitionDecision:
    """Decide a requested status change. The first violated rule wins.

    1. A terminal current status refuses everything.
    2. The pair must be an edge of ``ALLOWED_TRANSITIONS``.
    3. The actor's role must be known, the actor must own the submission for
       that role (admins own everything), and the role's capability table
       must contain the edge.
    """
    current = _coerce_status(current_status)
    requested = _coerce_status(requested_status)
    if current is None or requested is None:
        return _deny(f"Invalid transition: {_label(current_status)} → {_label(requested_status)}")

    if current in TERMINAL_STATUSES:
        return _deny(MSG_IMMUTABLE)

    if requested not in ALLOWED_TRANSITIONS[current]:
        return _deny(f"Invalid transition: {current.value} → {requested.value}")

    role = _coerce_role(actor_role)
    if role is None:
        return _deny(MSG_INVALID_ROLE)

    if role in (Role.STUDENT, Role.ALUMNI):
        if actor_id != student_user_id:
            return _deny(MSG_STUDENT_NOT_OWNER)
        if requested not in ROLE_TRANSITIONS[role].get(current, frozenset()):
            return _deny(MSG_STUDENT_RESUBMIT_ONLY)
    elif role == Role.FACULTY:
        if actor_id != faculty_user_id:
            return _deny(MSG_FACULTY_NOT_OWNER)

    return TransitionDecision(
        allowed=True,
        audit=AuditFields(
            at=at or utcnow(),
            actor_id=actor_id,
            from_status=current,
            to_status=requested,
            remark=remark,
        ),
    )


def is_version_bump(from_status: Optional[SubmissionStatus], to_status: SubmissionStatus) -> bool:
    """A revised draft is accepted only on resubmission -> submitted."""
    return from_status == SubmissionStatus.RESUBMISSION and to_status == SubmissionStatus.SUBMITTED
