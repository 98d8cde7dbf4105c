"""Lifecycle notifications.

Services record what happened as ``LifecycleEvent`` objects in a
``NotificationOutbox``. Routers commit first and only then hand the drained
events to ``Notifier.dispatch`` as a background task, so a mail failure can
never roll back or fail the request that produced it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from lor_tracker.core.observability import record_notification
from lor_tracker.models.enums import NotificationEvent, SubmissionStatus
from lor_tracker.services.email import EmailSendError, EmailSendResult, email_enabled, send_email
from lor_tracker.services.email_templates import build_email

logger = logging.getLogger(__name__)

EmailSender = Callable[..., EmailSendResult]

# Student-facing event for each status reached by a faculty/admin decision.
STATUS_EVENTS: dict[SubmissionStatus, NotificationEvent] = {
    SubmissionStatus.RESUBMISSION: NotificationEvent.RESUBMISSION_REQUESTED,
    SubmissionStatus.REJECTED: NotificationEvent.SUBMISSION_REJECTED,
    SubmissionStatus.APPROVED: NotificationEvent.DRAFT_APPROVED,
    SubmissionStatus.COMPLETED: NotificationEvent.LOR_COMPLETED,
}


@dataclass(frozen=True)
class LifecycleEvent:
    event_type: NotificationEvent
    recipient_email: str
    context: dict[str, Any] = field(default_factory=dict)


class NotificationOutbox:
    """Request-scoped buffer of events waiting for the primary write to commit."""

    def __init__(self) -> None:
        self._events: list[LifecycleEvent] = []

    def add(self, event_type: NotificationEvent, recipient_email: Optional[str], **context: Any) -> None:
        if not recipient_email:
            logger.warning("notification_without_recipient", extra={"event_type": event_type.value})
            return
        self._events.append(LifecycleEvent(event_type, recipient_email, dict(context)))

    def drain(self) -> list[LifecycleEvent]:
        events, self._events = self._events, []
        return events


class Notifier:
    def __init__(self, sender: Optional[EmailSender] = None) -> None:
        self._sender = sender

    def enabled(self) -> bool:
        return self._sender is not None or email_enabled()

    def deliver(self, event: LifecycleEvent) -> None:
        content = build_email(event.event_type, event.context)
        sender = self._sender or send_email
        sender(
            to_address=event.recipient_email,
            subject=content["subject"],
            html=content["html"],
            text=content.get("text"),
        )

    def dispatch(self, events: Iterable[LifecycleEvent]) -> int:
        """Send every event; returns how many were delivered. Never raises."""
        delivered = 0
        for event in events:
            event_type = event.event_type.value
            extra = {"event_type": event_type, "submission_id": event.context.get("submission_id")}
            if not self.enabled():
                logger.info("notification_skipped_email_disabled", extra=extra)
                record_notification(event_type, "skipped")
                continue
            try:
                self.deliver(event)
            except EmailSendError as exc:
                logger.warning("notification_send_failed: %s", exc, extra=extra)
                record_notification(event_type, "failed")
                continue
            except Exception:
                logger.exception("notification_failed", extra=extra)
                record_notification(event_type, "failed")
                continue
            delivered += 1
            record_notification(event_type, "sent")
            logger.info("notification_sent", extra=extra)
        return delivered
