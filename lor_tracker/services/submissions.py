from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal
from lor_tracker.core.errors import BadRequestError, DuplicateError, ForbiddenError, NotFoundError
from lor_tracker.core.observability import record_transition
from lor_tracker.core.settings import settings
from lor_tracker.db.base import as_utc, utcnow
from lor_tracker.models.enums import NotificationEvent, RecordState, Role, STUDENT_ROLES, SubmissionStatus
from lor_tracker.models.profile import FacultyProfile
from lor_tracker.models.submission import Submission
from lor_tracker.schemas.submission import SubmissionCreate, SubmissionDetail
from lor_tracker.services import directory
from lor_tracker.services.audit import append_audit_entry
from lor_tracker.services.notifications import STATUS_EVENTS, NotificationOutbox
from lor_tracker.services.transitions import AuditFields, decide, is_version_bump

logger = logging.getLogger(__name__)

DUPLICATE_ACTIVE_MESSAGE = "An active submission already exists for this faculty"
UNDELETABLE_STATUSES = frozenset({SubmissionStatus.APPROVED, SubmissionStatus.COMPLETED})


def get_active_submission(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id)
    if not submission or not submission.is_active:
        raise NotFoundError("Submission not found")
    return submission


def notification_context(submission: Submission, **extra) -> dict:
    context = {
        "submission_id": submission.id,
        "student_name": submission.student.user.display_name,
        "faculty_name": submission.faculty.user.display_name,
        "university_name": submission.university_name,
        "deadline": submission.deadline,
    }
    context.update(extra)
    return context


def detail_view(submission: Submission, principal: Principal) -> SubmissionDetail:
    detail = SubmissionDetail.model_validate(submission)
    if principal.role in STUDENT_ROLES:
        detail.faculty_notes = None
    return detail


def create_submission(
    db: Session,
    *,
    principal: Principal,
    payload: SubmissionCreate,
    outbox: NotificationOutbox,
) -> Submission:
    if principal.role not in STUDENT_ROLES:
        raise ForbiddenError("Only students and alumni can create submissions")

    deadline = as_utc(payload.deadline)
    if deadline <= utcnow():
        raise BadRequestError("Deadline must be in the future")

    student = directory.find_active_student_profile(db, principal.user_id)

    faculty = db.get(FacultyProfile, payload.faculty_id)
    if not faculty or not faculty.is_active:
        raise BadRequestError("Faculty not found or inactive")

    existing = (
        db.query(Submission.id)
        .filter(
            Submission.student_id == student.id,
            Submission.faculty_id == faculty.id,
            Submission.record_state == RecordState.ACTIVE,
        )
        .first()
    )
    if existing:
        raise DuplicateError(DUPLICATE_ACTIVE_MESSAGE)

    submission = Submission(
        student_id=student.id,
        faculty_id=faculty.id,
        status=SubmissionStatus.SUBMITTED,
        deadline=deadline,
        university_name=payload.university_name,
        purpose=payload.purpose,
        is_alumni=student.is_alumni,
        current_version=1,
        record_state=RecordState.ACTIVE,
    )
    submission.student = student
    submission.faculty = faculty
    db.add(submission)
    try:
        append_audit_entry(
            db,
            submission=submission,
            fields=AuditFields(
                at=utcnow(),
                actor_id=principal.user_id,
                from_status=None,
                to_status=SubmissionStatus.SUBMITTED,
            ),
        )
    except IntegrityError as exc:
        # Lost a race against a concurrent create for the same pair.
        db.rollback()
        raise DuplicateError(DUPLICATE_ACTIVE_MESSAGE) from exc

    record_transition(None, SubmissionStatus.SUBMITTED.value)
    logger.info(
        "submission_created",
        extra={"submission_id": submission.id, "user_id": principal.user_id},
    )
    outbox.add(
        NotificationEvent.NEW_SUBMISSION,
        faculty.user.email,
        **notification_context(submission),
    )
    return submission


def list_submissions(
    db: Session,
    *,
    principal: Principal,
    status: Optional[SubmissionStatus] = None,
    is_active: bool = True,
    limit: Optional[int] = None,
) -> list[Submission]:
    query = db.query(Submission)
    if principal.role in STUDENT_ROLES:
        student = directory.find_active_student_profile(db, principal.user_id)
        query = query.filter(Submission.student_id == student.id)
    elif principal.role == Role.FACULTY:
        faculty = directory.find_active_faculty_profile(db, principal.user_id)
        query = query.filter(Submission.faculty_id == faculty.id)
    elif principal.role != Role.ADMIN:
        raise ForbiddenError("Invalid role")

    record_state = RecordState.ACTIVE if is_active else RecordState.ARCHIVED
    query = query.filter(Submission.record_state == record_state)
    if status is not None:
        query = query.filter(Submission.status == status)

    page_size = min(limit or settings.submission_list_limit, settings.submission_list_limit)
    return (
        query.order_by(Submission.created_at.desc(), Submission.id.desc())
        .limit(page_size)
        .all()
    )


def get_submission(db: Session, *, submission_id: int, principal: Principal) -> Submission:
    submission = get_active_submission(db, submission_id)
    owners = directory.resolve_submission_owners(db, submission)
    directory.ensure_submission_party(principal, owners, detail="You do not have access to this submission")
    return submission


def update_status(
    db: Session,
    *,
    submission_id: int,
    principal: Principal,
    new_status: SubmissionStatus,
    remark: Optional[str] = None,
    outbox: NotificationOutbox,
    submission: Optional[Submission] = None,
) -> Submission:
    submission = submission or get_active_submission(db, submission_id)
    owners = directory.resolve_submission_owners(db, submission)

    decision = decide(
        submission.status,
        new_status,
        principal.role,
        principal.user_id,
        owners.student_user_id,
        owners.faculty_user_id,
        remark=remark,
    )
    fields = decision.raise_for_denial()

    submission.status = fields.to_status
    bumped = is_version_bump(fields.from_status, fields.to_status)
    if bumped:
        submission.current_version += 1
    db.add(submission)
    append_audit_entry(db, submission=submission, fields=fields)

    record_transition(fields.from_status.value if fields.from_status else None, fields.to_status.value)
    logger.info(
        "submission_transition",
        extra={
            "submission_id": submission.id,
            "user_id": principal.user_id,
            "event_type": f"{fields.from_status.value}->{fields.to_status.value}",
        },
    )

    event = STATUS_EVENTS.get(fields.to_status)
    if event is not None:
        outbox.add(event, submission.student.user.email, **notification_context(submission, remark=remark))
    if bumped:
        outbox.add(
            NotificationEvent.DRAFT_RESUBMITTED,
            submission.faculty.user.email,
            **notification_context(submission, remark=remark, version=submission.current_version),
        )
    return submission


def update_faculty_notes(
    db: Session,
    *,
    submission_id: int,
    principal: Principal,
    faculty_notes: Optional[str],
) -> Submission:
    if principal.role not in (Role.FACULTY, Role.ADMIN):
        raise ForbiddenError("Only the assigned faculty can edit notes")
    submission = get_active_submission(db, submission_id)
    owners = directory.resolve_submission_owners(db, submission)
    directory.ensure_submission_party(principal, owners, detail="Faculty can only manage assigned submissions")

    submission.faculty_notes = faculty_notes
    db.add(submission)
    db.flush()
    return submission


def archive_submission(db: Session, *, submission_id: int, principal: Principal) -> Submission:
    """Soft delete: the row stays for history but frees the (student, faculty) pair."""
    if principal.role not in STUDENT_ROLES:
        raise ForbiddenError("Only students can delete submissions")
    submission = get_active_submission(db, submission_id)
    owner_id = directory.resolve_student_owner(db, submission.student_id)
    if owner_id != principal.user_id:
        raise ForbiddenError("You can only delete your own submissions")
    if submission.status in UNDELETABLE_STATUSES:
        raise BadRequestError("Cannot delete approved or completed submissions")

    submission.record_state = RecordState.ARCHIVED
    submission.archived_at = utcnow()
    db.add(submission)
    db.flush()
    logger.info("submission_archived", extra={"submission_id": submission.id, "user_id": principal.user_id})
    return submission


def note_draft_attached(submission: Submission, *, version: int, outbox: NotificationOutbox) -> None:
    """Report a new draft file. Only status transitions change ``current_version``."""
    outbox.add(
        NotificationEvent.DRAFT_UPLOADED,
        submission.faculty.user.email,
        **notification_context(submission, version=version),
    )
