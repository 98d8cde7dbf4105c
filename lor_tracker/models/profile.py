from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lor_tracker.db.base import Base, IDMixin, TimestampMixin
from lor_tracker.models.enums import CertificateType, EmploymentStatus, VerificationStatus

if TYPE_CHECKING:
    from lor_tracker.models.file import StoredFile
    from lor_tracker.models.user import User


MAX_TARGET_UNIVERSITIES = 5
MAX_CERTIFICATES = 5


def default_employment() -> dict:
    return {"status": EmploymentStatus.STUDYING.value}


class StudentProfile(IDMixin, TimestampMixin, Base):
    __tablename__ = "student_profiles"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False, index=True)
    registration_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    is_alumni: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    department: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, name="verification_status"),
        default=VerificationStatus.PENDING,
        nullable=False,
        index=True,
    )
    employment_json: Mapped[dict] = mapped_column(JSON, default=default_employment, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    user: Mapped["User"] = relationship(back_populates="student_profile")
    target_universities: Mapped[List["TargetUniversity"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="TargetUniversity.id",
    )
    certificates: Mapped[List["Certificate"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="Certificate.id",
    )


class TargetUniversity(IDMixin, TimestampMixin, Base):
    __tablename__ = "student_target_universities"

    profile_id: Mapped[int] = mapped_column(
        ForeignKey("student_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    university: Mapped[str] = mapped_column(String(255), nullable=False)
    program: Mapped[str] = mapped_column(String(255), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)

    profile: Mapped["StudentProfile"] = relationship(back_populates="target_universities")


class Certificate(IDMixin, TimestampMixin, Base):
    __tablename__ = "student_certificates"

    profile_id: Mapped[int] = mapped_column(
        ForeignKey("student_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[CertificateType] = mapped_column(Enum(CertificateType, name="certificate_type"), nullable=False)
    file_id: Mapped[int] = mapped_column(ForeignKey("files.id"), nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    profile: Mapped["StudentProfile"] = relationship(back_populates="certificates")
    file: Mapped["StoredFile"] = relationship()


class FacultyProfile(IDMixin, TimestampMixin, Base):
    __tablename__ = "faculty_profiles"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False, index=True)
    faculty_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    department: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    designation: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    user: Mapped["User"] = relationship(back_populates="faculty_profile")
