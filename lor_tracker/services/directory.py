"""Owner resolution from profile identity to global user identity."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal
from lor_tracker.core.errors import ForbiddenError, NotFoundError
from lor_tracker.models.enums import Role, STUDENT_ROLES
from lor_tracker.models.profile import FacultyProfile, StudentProfile
from lor_tracker.models.submission import Submission


@dataclass(frozen=True)
class SubmissionOwners:
    student_user_id: int
    faculty_user_id: int


def resolve_student_owner(db: Session, student_profile_id: int) -> int:
    profile = db.get(StudentProfile, student_profile_id)
    if not profile:
        raise NotFoundError("Related profile not found")
    return profile.user_id


def resolve_faculty_owner(db: Session, faculty_profile_id: int) -> int:
    profile = db.get(FacultyProfile, faculty_profile_id)
    if not profile:
        raise NotFoundError("Related profile not found")
    return profile.user_id


def resolve_submission_owners(db: Session, submission: Submission) -> SubmissionOwners:
    return SubmissionOwners(
        student_user_id=resolve_student_owner(db, submission.student_id),
        faculty_user_id=resolve_faculty_owner(db, submission.faculty_id),
    )


def find_active_student_profile(db: Session, user_id: int) -> StudentProfile:
    profile = (
        db.query(StudentProfile)
        .filter(StudentProfile.user_id == user_id, StudentProfile.is_active.is_(True))
        .first()
    )
    if not profile:
        raise NotFoundError("Student profile not found")
    return profile


def find_active_faculty_profile(db: Session, user_id: int) -> FacultyProfile:
    profile = (
        db.query(FacultyProfile)
        .filter(FacultyProfile.user_id == user_id, FacultyProfile.is_active.is_(True))
        .first()
    )
    if not profile:
        raise NotFoundError("Faculty profile not found")
    return profile


def find_active_profile_by_user(db: Session, user_id: int, role: Role) -> StudentProfile | FacultyProfile:
    if role in STUDENT_ROLES:
        return find_active_student_profile(db, user_id)
    if role == Role.FACULTY:
        return find_active_faculty_profile(db, user_id)
    raise NotFoundError("No profile exists for this role")


def is_submission_party(principal: Principal, owners: SubmissionOwners) -> bool:
    if principal.role == Role.ADMIN:
        return True
    if principal.role in STUDENT_ROLES:
        return principal.user_id == owners.student_user_id
    if principal.role == Role.FACULTY:
        return principal.user_id == owners.faculty_user_id
    return False


def ensure_submission_party(principal: Principal, owners: SubmissionOwners, *, detail: str) -> None:
    if not is_submission_party(principal, owners):
        raise ForbiddenError(detail)
