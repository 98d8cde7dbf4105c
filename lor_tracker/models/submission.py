from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lor_tracker.db.base import Base, IDMixin, utcnow, TimestampMixin
from lor_tracker.models.enums import RecordState, SubmissionStatus

if TYPE_CHECKING:
    from lor_tracker.models.file import StoredFile
    from lor_tracker.models.profile import FacultyProfile, StudentProfile


_ACTIVE_ONLY = "record_state = 'ACTIVE'"

submission_status_enum = Enum(SubmissionStatus, name="submission_status")


class Submission(IDMixin, TimestampMixin, Base):
    __tablename__ = "submissions"
    __table_args__ = (
        # At most one ACTIVE submission per (student, faculty) pair; archived rows are exempt.
        Index(
            "uq_submissions_active_pair",
            "student_id",
            "faculty_id",
            unique=True,
            postgresql_where=text(_ACTIVE_ONLY),
            sqlite_where=text(_ACTIVE_ONLY),
        ),
        Index("ix_submissions_faculty_status", "faculty_id", "status"),
        Index("ix_submissions_student_status", "student_id", "status"),
        Index("ix_submissions_status_deadline", "status", "deadline"),
        CheckConstraint("current_version >= 1", name="current_version_positive"),
    )

    student_id: Mapped[int] = mapped_column(ForeignKey("student_profiles.id"), nullable=False, index=True)
    faculty_id: Mapped[int] = mapped_column(ForeignKey("faculty_profiles.id"), nullable=False, index=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        submission_status_enum,
        default=SubmissionStatus.SUBMITTED,
        nullable=False,
        index=True,
    )
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    university_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    purpose: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_alumni: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    current_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    faculty_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    record_state: Mapped[RecordState] = mapped_column(
        Enum(RecordState, name="record_state"),
        default=RecordState.ACTIVE,
        nullable=False,
        index=True,
    )
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped["StudentProfile"] = relationship(foreign_keys=[student_id])
    faculty: Mapped["FacultyProfile"] = relationship(foreign_keys=[faculty_id])
    audit_log: Mapped[List["AuditEntry"]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="AuditEntry.position",
    )
    files: Mapped[List["StoredFile"]] = relationship(back_populates="submission")

    @hybrid_property
    def is_active(self) -> bool:
        return self.record_state == RecordState.ACTIVE


class AuditEntry(IDMixin, Base):
    """One recorded status transition. Rows are only ever inserted."""

    __tablename__ = "submission_audit_entries"
    __table_args__ = (UniqueConstraint("submission_id", "position", name="uq_submission_audit_entries_position"),)

    submission_id: Mapped[int] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    actor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    from_status: Mapped[Optional[SubmissionStatus]] = mapped_column(
        submission_status_enum,
        nullable=True,
    )
    to_status: Mapped[SubmissionStatus] = mapped_column(
        submission_status_enum,
        nullable=False,
    )
    remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    submission: Mapped["Submission"] = relationship(back_populates="audit_log")
