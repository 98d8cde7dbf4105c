"""Send each faculty member a digest of LoR requests waiting on them.

Usage: python -m lor_tracker.scripts.send_pending_summaries [--dry-run]
"""
from __future__ import annotations

import argparse
import logging
from typing import Callable

from sqlalchemy.orm import Session

from lor_tracker.core.logging import configure_logging
from lor_tracker.core.settings import settings
from lor_tracker.db.session import SessionLocal
from lor_tracker.services.digests import collect_pending_summaries, queue_pending_summaries
from lor_tracker.services.notifications import NotificationOutbox, Notifier

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Email pending LoR summaries to faculty")
    parser.add_argument("--dry-run", action="store_true", help="Only log who would be emailed")
    return parser.parse_args(argv)


def run(
    *,
    dry_run: bool = False,
    notifier: Notifier | None = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> int:
    outbox = NotificationOutbox()
    with session_factory() as db:
        summaries = collect_pending_summaries(db)
        queue_pending_summaries(summaries, outbox)

    events = outbox.drain()
    if dry_run:
        for event in events:
            logger.info(
                "pending_summary_dry_run: %s (%s pending)",
                event.recipient_email,
                event.context.get("pending_count"),
                extra={"event_type": event.event_type.value},
            )
        return len(events)
    return (notifier or Notifier()).dispatch(events)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(level=settings.log_level)
    count = run(dry_run=args.dry_run)
    logger.info("pending_summaries_done: %d", count)


if __name__ == "__main__":
    main()
