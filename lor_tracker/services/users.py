from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from lor_tracker.core.errors import BadRequestError, DuplicateError, NotFoundError
from lor_tracker.core.security import get_password_hash, verify_password
from lor_tracker.db.base import utcnow
from lor_tracker.models.enums import Role, STUDENT_ROLES, UserStatus
from lor_tracker.models.profile import FacultyProfile, StudentProfile
from lor_tracker.models.user import User
from lor_tracker.schemas.profile import FacultyProfileCreate, StudentProfileCreate
from lor_tracker.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(db: Session, *, payload: UserCreate) -> User:
    if db.query(User.id).filter(User.email == payload.email).first():
        raise DuplicateError("Email already registered")
    user = User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        status=payload.status,
    )
    db.add(user)
    db.flush()
    logger.info("user_created", extra={"user_id": user.id})
    return user


def set_status(db: Session, *, user_id: int, status: UserStatus) -> User:
    user = get_user_or_404(db, user_id)
    user.status = status
    db.add(user)
    db.flush()
    return user


def authenticate(db: Session, *, email: str, password: str) -> User | None:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def record_login(db: Session, user: User) -> None:
    user.last_login_at = utcnow()
    db.add(user)
    db.flush()


def create_student_profile(db: Session, *, user_id: int, payload: StudentProfileCreate) -> StudentProfile:
    user = get_user_or_404(db, user_id)
    if user.role not in STUDENT_ROLES:
        raise BadRequestError("Student profiles can only be created for student or alumni users")
    if db.query(StudentProfile.id).filter(StudentProfile.user_id == user.id).first():
        raise DuplicateError("Student profile already exists for this user")
    if (
        db.query(StudentProfile.id)
        .filter(StudentProfile.registration_number == payload.registration_number)
        .first()
    ):
        raise DuplicateError("Registration number already in use")

    profile = StudentProfile(
        user_id=user.id,
        registration_number=payload.registration_number,
        department=payload.department.strip(),
        is_alumni=payload.is_alumni or user.role == Role.ALUMNI,
    )
    profile.user = user
    db.add(profile)
    db.flush()
    return profile


def create_faculty_profile(db: Session, *, user_id: int, payload: FacultyProfileCreate) -> FacultyProfile:
    user = get_user_or_404(db, user_id)
    if user.role != Role.FACULTY:
        raise BadRequestError("Faculty profiles can only be created for faculty users")
    if db.query(FacultyProfile.id).filter(FacultyProfile.user_id == user.id).first():
        raise DuplicateError("Faculty profile already exists for this user")
    if db.query(FacultyProfile.id).filter(FacultyProfile.faculty_code == payload.faculty_code).first():
        raise DuplicateError("Faculty code already in use")

    profile = FacultyProfile(
        user_id=user.id,
        faculty_code=payload.faculty_code,
        department=payload.department.strip(),
        designation=payload.designation.strip(),
    )
    profile.user = user
    db.add(profile)
    db.flush()
    return profile
