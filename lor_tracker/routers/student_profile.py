from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal, require_roles
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role
from lor_tracker.schemas.profile import (
    CertificateCreate,
    CertificateRead,
    Employment,
    ProfileCompletion,
    StudentProfileRead,
    TargetUniversityCreate,
    TargetUniversityRead,
)
from lor_tracker.services import student_profiles
from lor_tracker.services.directory import find_active_student_profile

router = APIRouter(prefix="/api/student/profile", tags=["student-profile"])

require_student = require_roles(Role.STUDENT, Role.ALUMNI)


@router.get("", response_model=StudentProfileRead)
def get_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> StudentProfileRead:
    profile = find_active_student_profile(db, principal.user_id)
    return student_profiles.profile_view(profile)


@router.get("/employment", response_model=Employment)
def get_employment(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> Employment:
    return student_profiles.get_employment(find_active_student_profile(db, principal.user_id))


@router.patch("/employment", response_model=Employment)
def update_employment(
    payload: Employment,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> Employment:
    employment = student_profiles.update_employment(db, user_id=principal.user_id, employment=payload)
    db.commit()
    return employment


@router.get("/targets", response_model=list[TargetUniversityRead])
def list_targets(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> list[TargetUniversityRead]:
    profile = find_active_student_profile(db, principal.user_id)
    return [TargetUniversityRead.model_validate(t) for t in profile.target_universities]


@router.post("/targets", response_model=TargetUniversityRead, status_code=status.HTTP_201_CREATED)
def add_target(
    payload: TargetUniversityCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> TargetUniversityRead:
    target = student_profiles.add_target_university(db, user_id=principal.user_id, payload=payload)
    db.commit()
    db.refresh(target)
    return TargetUniversityRead.model_validate(target)


@router.delete("/targets/{target_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_target(
    target_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> Response:
    student_profiles.delete_target_university(db, user_id=principal.user_id, target_id=target_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/certificates", response_model=list[CertificateRead])
def list_certificates(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> list[CertificateRead]:
    profile = find_active_student_profile(db, principal.user_id)
    return [CertificateRead.model_validate(c) for c in profile.certificates]


@router.post("/certificates", response_model=CertificateRead, status_code=status.HTTP_201_CREATED)
def add_certificate(
    payload: CertificateCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> CertificateRead:
    certificate = student_profiles.add_certificate(db, user_id=principal.user_id, payload=payload)
    db.commit()
    db.refresh(certificate)
    return CertificateRead.model_validate(certificate)


@router.delete("/certificates/{certificate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> Response:
    student_profiles.delete_certificate(db, user_id=principal.user_id, certificate_id=certificate_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/completion", response_model=ProfileCompletion)
def get_completion(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> ProfileCompletion:
    return student_profiles.profile_completion(find_active_student_profile(db, principal.user_id))
