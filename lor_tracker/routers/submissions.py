from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal, get_current_principal, get_notifier, require_roles
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role, SubmissionStatus
from lor_tracker.schemas.submission import (
    FacultyNotesUpdate,
    StatusUpdate,
    SubmissionCreate,
    SubmissionDetail,
    SubmissionList,
    SubmissionSummary,
)
from lor_tracker.services import submissions as submission_service
from lor_tracker.services.notifications import NotificationOutbox, Notifier

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def _list_view(items) -> SubmissionList:
    summaries = [SubmissionSummary.model_validate(item) for item in items]
    return SubmissionList(submissions=summaries, count=len(summaries))


@router.post("", response_model=SubmissionDetail, status_code=status.HTTP_201_CREATED)
def create_submission(
    payload: SubmissionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.STUDENT, Role.ALUMNI)),
    notifier: Notifier = Depends(get_notifier),
) -> SubmissionDetail:
    outbox = NotificationOutbox()
    submission = submission_service.create_submission(db, principal=principal, payload=payload, outbox=outbox)
    db.commit()
    db.refresh(submission)
    background_tasks.add_task(notifier.dispatch, outbox.drain())
    return submission_service.detail_view(submission, principal)


@router.get("", response_model=SubmissionList)
def list_submissions(
    status_filter: Optional[SubmissionStatus] = Query(default=None, alias="status"),
    is_active: bool = Query(default=True),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> SubmissionList:
    items = submission_service.list_submissions(db, principal=principal, status=status_filter, is_active=is_active)
    return _list_view(items)


@router.get("/faculty/pending", response_model=SubmissionList)
def list_pending_for_faculty(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.FACULTY)),
) -> SubmissionList:
    items = submission_service.list_submissions(db, principal=principal, status=SubmissionStatus.SUBMITTED)
    return _list_view(items)


@router.get("/{submission_id}", response_model=SubmissionDetail)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> SubmissionDetail:
    submission = submission_service.get_submission(db, submission_id=submission_id, principal=principal)
    return submission_service.detail_view(submission, principal)


@router.post("/{submission_id}/status", response_model=SubmissionDetail)
def update_submission_status(
    submission_id: int,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    notifier: Notifier = Depends(get_notifier),
) -> SubmissionDetail:
    outbox = NotificationOutbox()
    submission = submission_service.update_status(
        db,
        submission_id=submission_id,
        principal=principal,
        new_status=payload.new_status,
        remark=payload.remark,
        outbox=outbox,
    )
    db.commit()
    db.refresh(submission)
    background_tasks.add_task(notifier.dispatch, outbox.drain())
    return submission_service.detail_view(submission, principal)


@router.patch("/{submission_id}/notes", response_model=SubmissionDetail)
def update_faculty_notes(
    submission_id: int,
    payload: FacultyNotesUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.FACULTY, Role.ADMIN)),
) -> SubmissionDetail:
    submission = submission_service.update_faculty_notes(
        db,
        submission_id=submission_id,
        principal=principal,
        faculty_notes=payload.faculty_notes,
    )
    db.commit()
    db.refresh(submission)
    return submission_service.detail_view(submission, principal)


@router.delete("/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    submission_service.archive_submission(db, submission_id=submission_id, principal=principal)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
