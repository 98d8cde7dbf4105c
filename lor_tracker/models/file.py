from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lor_tracker.db.base import Base, CreatedAtMixin, IDMixin
from lor_tracker.models.enums import FileType

if TYPE_CHECKING:
    from lor_tracker.models.submission import Submission


_FINAL_ONLY = "type = 'FINAL'"


class StoredFile(IDMixin, CreatedAtMixin, Base):
    """Metadata for an uploaded binary. Immutable once written."""

    __tablename__ = "files"
    __table_args__ = (
        CheckConstraint(
            "submission_id IS NOT NULL OR student_profile_id IS NOT NULL",
            name="owner_present",
        ),
        CheckConstraint("version >= 1", name="version_positive"),
        CheckConstraint("size >= 1", name="size_positive"),
        Index(
            "uq_files_single_final",
            "submission_id",
            unique=True,
            postgresql_where=text(_FINAL_ONLY),
            sqlite_where=text(_FINAL_ONLY),
        ),
        Index("ix_files_submission_type_version", "submission_id", "type", "version"),
        Index("ix_files_student_profile_type", "student_profile_id", "type"),
    )

    submission_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("submissions.id"),
        nullable=True,
        index=True,
    )
    student_profile_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("student_profiles.id"),
        nullable=True,
        index=True,
    )
    type: Mapped[FileType] = mapped_column(Enum(FileType, name="file_type"), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    uploaded_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)

    submission: Mapped[Optional["Submission"]] = relationship(back_populates="files")
