from datetime import datetime, timedelta, timezone

from lor_tracker.models.enums import NotificationEvent, RecordState, SubmissionStatus
from lor_tracker.models.submission import Submission
from lor_tracker.scripts import send_pending_summaries
from lor_tracker.services.digests import collect_pending_summaries, queue_pending_summaries
from lor_tracker.services.notifications import NotificationOutbox, Notifier


def _submission(db, student, faculty, *, days, status=SubmissionStatus.SUBMITTED, state=RecordState.ACTIVE):
    submission = Submission(
        student_id=student.id,
        faculty_id=faculty.id,
        status=status,
        deadline=datetime.now(timezone.utc) + timedelta(days=days),
        record_state=state,
    )
    db.add(submission)
    db.commit()
    return submission


def test_pending_summaries_group_by_faculty(db, make_student, make_faculty):
    rao, iyer, idle = make_faculty(), make_faculty(), make_faculty()
    s1, s2, s3 = make_student(), make_student(), make_student()

    late = _submission(db, s1, rao, days=20)
    soon = _submission(db, s2, rao, days=3, status=SubmissionStatus.RESUBMISSION)
    _submission(db, s3, rao, days=1, status=SubmissionStatus.APPROVED)
    _submission(db, s3, iyer, days=2, state=RecordState.ARCHIVED)
    only = _submission(db, s1, iyer, days=9)
    _submission(db, s2, idle, days=5, status=SubmissionStatus.REJECTED)

    summaries = {summary.faculty.id: summary for summary in collect_pending_summaries(db)}

    assert set(summaries) == {rao.id, iyer.id}
    assert summaries[rao.id].submission_ids == [soon.id, late.id]
    assert summaries[rao.id].pending_count == 2
    assert summaries[iyer.id].submission_ids == [only.id]

    outbox = NotificationOutbox()
    queue_pending_summaries(list(summaries.values()), outbox)
    events = outbox.drain()
    assert {e.recipient_email for e in events} == {rao.user.email, iyer.user.email}
    assert all(e.event_type == NotificationEvent.FACULTY_PENDING_SUMMARY for e in events)


def test_script_run_dispatches_digests(db, session_factory, make_student, make_faculty, sender):
    faculty = make_faculty(email="digest@example.com")
    _submission(db, make_student(), faculty, days=4)

    assert send_pending_summaries.run(dry_run=True, session_factory=session_factory) == 1
    assert sender.sent == []

    delivered = send_pending_summaries.run(notifier=Notifier(sender=sender), session_factory=session_factory)
    assert delivered == 1
    assert sender.sent[0]["to"] == "digest@example.com"
    assert sender.sent[0]["subject"].startswith("LoR Requests Pending - ")


def test_script_parses_dry_run_flag():
    assert send_pending_summaries.parse_args(["--dry-run"]).dry_run is True
    assert send_pending_summaries.parse_args([]).dry_run is False
