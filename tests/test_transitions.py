"""Policy engine tests: every (role, from, to) combination is checked."""
import itertools
from datetime import datetime, timezone

import pytest

from lor_tracker.core.errors import BadRequestError
from lor_tracker.models.enums import Role, SubmissionStatus
from lor_tracker.services.transitions import (
    ALLOWED_TRANSITIONS,
    MSG_FACULTY_NOT_OWNER,
    MSG_IMMUTABLE,
    MSG_INVALID_ROLE,
    MSG_STUDENT_NOT_OWNER,
    MSG_STUDENT_RESUBMIT_ONLY,
    TERMINAL_STATUSES,
    TransitionDecision,
    decide,
    is_terminal,
    is_version_bump,
    permitted_targets,
)

STUDENT_USER = 10
FACULTY_USER = 20
ADMIN_USER = 30
STRANGER = 99

S = SubmissionStatus


def _actor_for(role):
    return {
        Role.STUDENT: STUDENT_USER,
        Role.ALUMNI: STUDENT_USER,
        Role.FACULTY: FACULTY_USER,
        Role.ADMIN: ADMIN_USER,
    }[role]


def _decide(current, requested, role, actor_id=None, **kwargs):
    return decide(
        current,
        requested,
        role,
        actor_id if actor_id is not None else _actor_for(role),
        STUDENT_USER,
        FACULTY_USER,
        **kwargs,
    )


def _expected_allowed(role, current, requested):
    if current in TERMINAL_STATUSES or requested not in ALLOWED_TRANSITIONS[current]:
        return False
    if role in (Role.STUDENT, Role.ALUMNI):
        return current == S.RESUBMISSION and requested == S.SUBMITTED
    return True


@pytest.mark.parametrize(
    "role,current,requested",
    list(itertools.product(list(Role), list(SubmissionStatus), list(SubmissionStatus))),
)
def test_owner_decisions_match_capability_table(role, current, requested):
    decision = _decide(current, requested, role)

    assert decision.allowed is _expected_allowed(role, current, requested)
    if decision.allowed:
        assert decision.audit.from_status == current
        assert decision.audit.to_status == requested
        assert decision.audit.actor_id == _actor_for(role)
        assert decision.reason is None
    else:
        assert decision.audit is None
        assert decision.reason


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("current", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
@pytest.mark.parametrize("requested", list(SubmissionStatus))
def test_terminal_states_refuse_everything(role, current, requested):
    decision = _decide(current, requested, role)
    assert decision.allowed is False
    assert decision.reason == MSG_IMMUTABLE


def test_terminal_check_runs_before_table_check():
    # rejected -> submitted is not an edge either; immutability still wins.
    decision = _decide(S.REJECTED, S.SUBMITTED, Role.ADMIN)
    assert decision.reason == MSG_IMMUTABLE


def test_table_miss_reports_both_statuses():
    decision = _decide(S.SUBMITTED, S.COMPLETED, Role.FACULTY)
    assert decision.reason == "Invalid transition: submitted → completed"


def test_unknown_status_value_is_denied():
    decision = decide("submitted", "archived", Role.ADMIN, ADMIN_USER, STUDENT_USER, FACULTY_USER)
    assert decision.allowed is False
    assert decision.reason == "Invalid transition: submitted → archived"


def test_unknown_role_is_denied_after_table_check():
    decision = decide(S.SUBMITTED, S.APPROVED, "registrar", 1, STUDENT_USER, FACULTY_USER)
    assert decision.reason == MSG_INVALID_ROLE


def test_string_inputs_are_accepted():
    decision = decide("submitted", "approved", "faculty", FACULTY_USER, STUDENT_USER, FACULTY_USER)
    assert decision.allowed is True
    assert decision.audit.to_status == S.APPROVED


@pytest.mark.parametrize("role", [Role.STUDENT, Role.ALUMNI])
def test_student_cannot_approve(role):
    decision = _decide(S.SUBMITTED, S.APPROVED, role)
    assert decision.allowed is False
    assert decision.reason == MSG_STUDENT_RESUBMIT_ONLY


@pytest.mark.parametrize("role", [Role.STUDENT, Role.ALUMNI])
def test_student_must_own_submission(role):
    decision = _decide(S.RESUBMISSION, S.SUBMITTED, role, actor_id=STRANGER)
    assert decision.reason == MSG_STUDENT_NOT_OWNER


def test_ownership_is_checked_before_student_capability():
    decision = _decide(S.SUBMITTED, S.APPROVED, Role.STUDENT, actor_id=STRANGER)
    assert decision.reason == MSG_STUDENT_NOT_OWNER


def test_faculty_must_be_assigned():
    decision = _decide(S.SUBMITTED, S.APPROVED, Role.FACULTY, actor_id=STRANGER)
    assert decision.reason == MSG_FACULTY_NOT_OWNER


def test_admin_may_act_on_any_submission():
    decision = _decide(S.APPROVED, S.COMPLETED, Role.ADMIN, actor_id=STRANGER)
    assert decision.allowed is True
    assert decision.audit.actor_id == STRANGER


def test_audit_fields_carry_remark_and_timestamp():
    at = datetime(2030, 1, 1, tzinfo=timezone.utc)
    decision = _decide(S.SUBMITTED, S.RESUBMISSION, Role.FACULTY, remark="add GPA", at=at)
    assert decision.audit.remark == "add GPA"
    assert decision.audit.at == at


def test_raise_for_denial_returns_audit_when_allowed():
    decision = _decide(S.SUBMITTED, S.REJECTED, Role.FACULTY)
    assert decision.raise_for_denial() is decision.audit


def test_raise_for_denial_carries_reason():
    decision = TransitionDecision(allowed=False, reason=MSG_IMMUTABLE)
    with pytest.raises(BadRequestError) as exc_info:
        decision.raise_for_denial()
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == MSG_IMMUTABLE
    assert exc_info.value.code == "INVALID_TRANSITION"


def test_permitted_targets():
    assert permitted_targets(Role.STUDENT, S.RESUBMISSION) == frozenset({S.SUBMITTED})
    assert permitted_targets(Role.ALUMNI, S.SUBMITTED) == frozenset()
    assert permitted_targets(Role.FACULTY, S.SUBMITTED) == frozenset({S.RESUBMISSION, S.APPROVED, S.REJECTED})
    assert permitted_targets(Role.ADMIN, S.COMPLETED) == frozenset()
    assert permitted_targets("nobody", S.SUBMITTED) == frozenset()


def test_terminal_and_version_helpers():
    assert is_terminal(S.REJECTED)
    assert is_terminal(S.COMPLETED)
    assert not is_terminal(S.APPROVED)
    assert is_version_bump(S.RESUBMISSION, S.SUBMITTED)
    assert not is_version_bump(None, S.SUBMITTED)
    assert not is_version_bump(S.SUBMITTED, S.APPROVED)
