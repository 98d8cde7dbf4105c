from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lor_tracker.db.base import Base, IDMixin, TimestampMixin
from lor_tracker.models.enums import Role, UserStatus

if TYPE_CHECKING:
    from lor_tracker.models.profile import FacultyProfile, StudentProfile


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role_status", "role", "status"),)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="user_role"), nullable=False, index=True)
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status"),
        default=UserStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    student_profile: Mapped[Optional["StudentProfile"]] = relationship(back_populates="user", uselist=False)
    faculty_profile: Mapped[Optional["FacultyProfile"]] = relationship(back_populates="user", uselist=False)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def display_name(self) -> str:
        return self.email.split("@")[0]
