from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from lor_tracker.core.errors import BadRequestError, ForbiddenError, NotFoundError
from lor_tracker.models.enums import CertificateType, EmploymentStatus, FileType
from lor_tracker.models.file import StoredFile
from lor_tracker.models.profile import (
    MAX_CERTIFICATES,
    MAX_TARGET_UNIVERSITIES,
    Certificate,
    StudentProfile,
    TargetUniversity,
    default_employment,
)
from lor_tracker.schemas.profile import (
    CertificateCreate,
    CertificateRead,
    CompletionBreakdown,
    Employment,
    ProfileCompletion,
    StudentProfileRead,
    TargetUniversityCreate,
    TargetUniversityRead,
)
from lor_tracker.services.directory import find_active_student_profile

logger = logging.getLogger(__name__)


def profile_view(profile: StudentProfile) -> StudentProfileRead:
    return StudentProfileRead(
        id=profile.id,
        user_id=profile.user_id,
        email=profile.user.email if profile.user else None,
        registration_number=profile.registration_number,
        is_alumni=profile.is_alumni,
        department=profile.department,
        verification_status=profile.verification_status,
        is_active=profile.is_active,
        employment=get_employment(profile),
        target_universities=[TargetUniversityRead.model_validate(item) for item in profile.target_universities],
        certificates=[CertificateRead.model_validate(item) for item in profile.certificates],
    )


def get_employment(profile: StudentProfile) -> Employment:
    return Employment.model_validate(profile.employment_json or default_employment())


def validate_employment(employment: Employment) -> None:
    if employment.status == EmploymentStatus.EMPLOYED and not (employment.company and employment.role):
        raise BadRequestError("Company and role are required when employed")
    if employment.status == EmploymentStatus.STUDYING and not (employment.university and employment.course):
        raise BadRequestError("University and course are required when studying")


def is_employment_complete(employment: Employment) -> bool:
    if employment.status == EmploymentStatus.EMPLOYED:
        return bool(employment.company and employment.role)
    if employment.status == EmploymentStatus.STUDYING:
        return bool(employment.university and employment.course)
    return True


def update_employment(db: Session, *, user_id: int, employment: Employment) -> Employment:
    validate_employment(employment)
    profile = find_active_student_profile(db, user_id)
    profile.employment_json = employment.model_dump(mode="json", exclude_none=True)
    db.add(profile)
    db.flush()
    return get_employment(profile)


def add_target_university(db: Session, *, user_id: int, payload: TargetUniversityCreate) -> TargetUniversity:
    profile = find_active_student_profile(db, user_id)
    if len(profile.target_universities) >= MAX_TARGET_UNIVERSITIES:
        raise BadRequestError(f"Maximum {MAX_TARGET_UNIVERSITIES} target universities allowed")
    target = TargetUniversity(**payload.model_dump())
    profile.target_universities.append(target)
    db.flush()
    return target


def delete_target_university(db: Session, *, user_id: int, target_id: int) -> None:
    profile = find_active_student_profile(db, user_id)
    target = next((item for item in profile.target_universities if item.id == target_id), None)
    if not target:
        raise NotFoundError("Target university not found")
    profile.target_universities.remove(target)
    db.flush()


def add_certificate(db: Session, *, user_id: int, payload: CertificateCreate) -> Certificate:
    profile = find_active_student_profile(db, user_id)
    if len(profile.certificates) >= MAX_CERTIFICATES:
        raise BadRequestError(f"Maximum {MAX_CERTIFICATES} certificates allowed")

    stored = db.get(StoredFile, payload.file_id)
    if not stored or stored.student_profile_id != profile.id or stored.type != FileType.CERTIFICATE:
        raise ForbiddenError("File not found or you don't have permission to access it")

    if payload.type == CertificateType.OTHER and not (payload.comment or "").strip():
        raise BadRequestError("Comment is required for certificate type OTHER")

    certificate = Certificate(type=payload.type, file_id=stored.id, comment=payload.comment)
    certificate.file = stored
    profile.certificates.append(certificate)
    db.flush()
    logger.info("certificate_added", extra={"user_id": user_id})
    return certificate


def delete_certificate(db: Session, *, user_id: int, certificate_id: int) -> None:
    profile = find_active_student_profile(db, user_id)
    certificate = next((item for item in profile.certificates if item.id == certificate_id), None)
    if not certificate:
        raise NotFoundError("Certificate not found")
    profile.certificates.remove(certificate)
    db.flush()


def profile_completion(profile: StudentProfile) -> ProfileCompletion:
    breakdown = CompletionBreakdown(
        targets=bool(profile.target_universities),
        certificates=bool(profile.certificates),
        employment=is_employment_complete(get_employment(profile)),
    )
    checks = [breakdown.targets, breakdown.certificates, breakdown.employment]
    completed = sum(1 for check in checks if check)
    return ProfileCompletion(
        percentage=round(completed / len(checks) * 100),
        completed=completed,
        total=len(checks),
        breakdown=breakdown,
    )
