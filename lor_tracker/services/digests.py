from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from lor_tracker.models.enums import NotificationEvent, RecordState, SubmissionStatus
from lor_tracker.models.profile import FacultyProfile
from lor_tracker.models.submission import Submission
from lor_tracker.services.notifications import NotificationOutbox

PENDING_STATUSES = (SubmissionStatus.SUBMITTED, SubmissionStatus.RESUBMISSION)


@dataclass
class FacultyPendingSummary:
    faculty: FacultyProfile
    submission_ids: list[int] = field(default_factory=list)
    earliest_deadline: Optional[datetime] = None

    @property
    def pending_count(self) -> int:
        return len(self.submission_ids)


def collect_pending_summaries(db: Session) -> list[FacultyPendingSummary]:
    """Group active submissions awaiting faculty action by faculty, earliest deadline first."""
    rows = (
        db.query(Submission)
        .options(joinedload(Submission.faculty).joinedload(FacultyProfile.user))
        .join(FacultyProfile, Submission.faculty_id == FacultyProfile.id)
        .filter(
            Submission.record_state == RecordState.ACTIVE,
            Submission.status.in_(PENDING_STATUSES),
            FacultyProfile.is_active.is_(True),
        )
        .order_by(Submission.faculty_id.asc(), Submission.deadline.asc(), Submission.id.asc())
        .all()
    )
    summaries: dict[int, FacultyPendingSummary] = {}
    for submission in rows:
        summary = summaries.setdefault(submission.faculty_id, FacultyPendingSummary(faculty=submission.faculty))
        summary.submission_ids.append(submission.id)
        if summary.earliest_deadline is None:
            summary.earliest_deadline = submission.deadline
    return list(summaries.values())


def queue_pending_summaries(summaries: list[FacultyPendingSummary], outbox: NotificationOutbox) -> None:
    for summary in summaries:
        user = summary.faculty.user
        outbox.add(
            NotificationEvent.FACULTY_PENDING_SUMMARY,
            user.email,
            faculty_name=user.display_name,
            pending_count=summary.pending_count,
            earliest_deadline=summary.earliest_deadline,
            submission_ids=summary.submission_ids,
        )
