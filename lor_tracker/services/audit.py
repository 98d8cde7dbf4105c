from __future__ import annotations

from sqlalchemy.orm import Session

from lor_tracker.models.submission import AuditEntry, Submission
from lor_tracker.services.transitions import AuditFields


def append_audit_entry(db: Session, *, submission: Submission, fields: AuditFields) -> AuditEntry:
    """Append one entry to the submission's audit log. Entries are never updated."""
    entry = AuditEntry(
        position=len(submission.audit_log),
        at=fields.at,
        actor_id=fields.actor_id,
        from_status=fields.from_status,
        to_status=fields.to_status,
        remark=fields.remark,
    )
    submission.audit_log.append(entry)
    db.flush()
    return entry
