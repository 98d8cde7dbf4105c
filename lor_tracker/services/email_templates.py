from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Any, Mapping

from lor_tracker.core.settings import settings
from lor_tracker.models.enums import NotificationEvent


def _join_text(*parts: str) -> str:
    return "\n".join([part for part in parts if part])


def _fmt_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d %b %Y")
    return str(value) if value else "—"


def _student_link(base_url: str, submission_id: Any) -> str:
    return f"{base_url}/student/requests/{submission_id}"


def _faculty_link(base_url: str, submission_id: Any) -> str:
    return f"{base_url}/faculty/requests/{submission_id}"


def _remark_block(remark: str | None, label: str = "Remarks") -> tuple[str, str]:
    if not remark:
        return "", ""
    return f"<p><strong>{label}:</strong><br>{escape(remark)}</p>", f"{label}: {remark}"


def build_email(event_type: NotificationEvent | str, context: Mapping[str, Any]) -> dict:
    """Render ``{subject, html, text}`` for a lifecycle event.

    Raises ``ValueError`` for an unknown event type; the notifier logs and
    skips such events.
    """
    event = NotificationEvent(event_type)
    base_url = settings.app_base_url.rstrip("/")
    submission_id = context.get("submission_id")
    student = escape(str(context.get("student_name") or "Student"))
    faculty = escape(str(context.get("faculty_name") or "Faculty"))
    university = context.get("university_name")
    remark_html, remark_text = _remark_block(context.get("remark"))

    if event == NotificationEvent.NEW_SUBMISSION:
        link = _faculty_link(base_url, submission_id)
        subject = "New LoR Request"
        html = (
            f"<p>Dear Prof. <strong>{faculty}</strong>,</p>"
            f"<p><strong>{student}</strong> has requested a letter of recommendation"
            f"{f' for {escape(university)}' if university else ''}.</p>"
            f"<p>Deadline: {_fmt_date(context.get('deadline'))}</p>"
            f"<p><a href=\"{link}\">Review the request</a></p>"
        )
        text = _join_text(
            f"{context.get('student_name') or 'A student'} has requested a letter of recommendation.",
            f"University: {university}" if university else "",
            f"Deadline: {_fmt_date(context.get('deadline'))}",
            f"Portal: {link}",
        )
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.DRAFT_UPLOADED:
        link = _faculty_link(base_url, submission_id)
        version = context.get("version")
        subject = "LoR Draft Uploaded"
        html = (
            f"<p>Dear Prof. <strong>{faculty}</strong>,</p>"
            f"<p><strong>{student}</strong> uploaded draft version {version}.</p>"
            f"<p><a href=\"{link}\">Review the draft</a></p>"
        )
        text = _join_text(
            f"{context.get('student_name') or 'A student'} uploaded draft version {version}.",
            f"Portal: {link}",
        )
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.DRAFT_RESUBMITTED:
        link = _faculty_link(base_url, submission_id)
        version = context.get("version")
        subject = "LoR Draft Resubmitted"
        html = (
            f"<p>Dear Prof. <strong>{faculty}</strong>,</p>"
            f"<p><strong>{student}</strong> resubmitted the LoR request (version {version}).</p>"
            f"{remark_html}"
            f"<p><a href=\"{link}\">Review the revision</a></p>"
        )
        text = _join_text(
            f"{context.get('student_name') or 'A student'} resubmitted the LoR request (version {version}).",
            remark_text,
            f"Portal: {link}",
        )
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.RESUBMISSION_REQUESTED:
        link = _student_link(base_url, submission_id)
        subject = "Resubmission Requested - LoR Request"
        html = (
            f"<p>Dear <strong>{student}</strong>,</p>"
            f"<p>Prof. <strong>{faculty}</strong> has requested resubmission for your LoR request.</p>"
            f"{remark_html}"
            f"<p><a href=\"{link}\">View request and resubmit</a></p>"
        )
        text = _join_text(
            "Your LoR request needs a revised draft.",
            remark_text,
            f"Portal: {link}",
        )
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.SUBMISSION_REJECTED:
        link = _student_link(base_url, submission_id)
        reason_html, reason_text = _remark_block(context.get("remark"), label="Reason")
        subject = "LoR Request Rejected"
        html = (
            f"<p>Dear <strong>{student}</strong>,</p>"
            f"<p>Your LoR request has been <strong>rejected</strong> by Prof. <strong>{faculty}</strong>.</p>"
            f"{reason_html}"
            f"<p><a href=\"{link}\">View request</a></p>"
        )
        text = _join_text("Your LoR request has been rejected.", reason_text, f"Portal: {link}")
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.DRAFT_APPROVED:
        link = _student_link(base_url, submission_id)
        subject = "LoR Draft Approved"
        html = (
            f"<p>Dear <strong>{student}</strong>,</p>"
            f"<p>Your LoR draft has been <strong>approved</strong> by Prof. <strong>{faculty}</strong>.</p>"
            f"{remark_html}"
            "<p>The final LoR will be uploaded soon.</p>"
        )
        text = _join_text(
            "Your LoR draft has been approved. The final LoR will be uploaded soon.",
            remark_text,
            f"Portal: {link}",
        )
        return {"subject": subject, "html": html, "text": text}

    if event == NotificationEvent.LOR_COMPLETED:
        link = _student_link(base_url, submission_id)
        subject = "LoR Completed"
        html = (
            f"<p>Dear <strong>{student}</strong>,</p>"
            f"<p>Your LoR request is now <strong>completed</strong>.</p>"
            f"<p>Prof. <strong>{faculty}</strong> has finalized your recommendation.</p>"
            f"<p><a href=\"{link}\">Download the final LoR</a></p>"
        )
        text = _join_text("Your LoR request is now completed.", f"Portal: {link}")
        return {"subject": subject, "html": html, "text": text}

    # FACULTY_PENDING_SUMMARY
    link = f"{base_url}/faculty/requests"
    count = context.get("pending_count", 0)
    earliest = _fmt_date(context.get("earliest_deadline"))
    ids = ", ".join(f"#{sid}" for sid in context.get("submission_ids") or [])
    subject = f"LoR Requests Pending - {earliest}"
    html = (
        f"<p>Dear Prof. <strong>{faculty}</strong>,</p>"
        f"<p>You have <strong>{count}</strong> pending LoR request(s).</p>"
        f"<p>Earliest deadline: {earliest}</p>"
        f"<p>Requests: {ids or '—'}</p>"
        f"<p><a href=\"{link}\">Open your queue</a></p>"
    )
    text = _join_text(
        f"You have {count} pending LoR request(s).",
        f"Earliest deadline: {earliest}",
        f"Requests: {ids}" if ids else "",
        f"Portal: {link}",
    )
    return {"subject": subject, "html": html, "text": text}
