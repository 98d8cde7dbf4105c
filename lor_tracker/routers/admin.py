from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal, require_roles
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role
from lor_tracker.schemas.profile import (
    FacultyProfileCreate,
    FacultyProfileRead,
    StudentProfileCreate,
    StudentProfileRead,
)
from lor_tracker.schemas.user import UserCreate, UserRead, UserStatusUpdate
from lor_tracker.services import faculty_profiles, student_profiles
from lor_tracker.services import users as user_service

router = APIRouter(prefix="/api/admin", tags=["admin"])

require_admin = require_roles(Role.ADMIN)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> UserRead:
    user = user_service.create_user(db, payload=payload)
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}/status", response_model=UserRead)
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> UserRead:
    user = user_service.set_status(db, user_id=user_id, status=payload.status)
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.post(
    "/users/{user_id}/student-profile",
    response_model=StudentProfileRead,
    status_code=status.HTTP_201_CREATED,
)
def create_student_profile(
    user_id: int,
    payload: StudentProfileCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> StudentProfileRead:
    profile = user_service.create_student_profile(db, user_id=user_id, payload=payload)
    db.commit()
    db.refresh(profile)
    return student_profiles.profile_view(profile)


@router.post(
    "/users/{user_id}/faculty-profile",
    response_model=FacultyProfileRead,
    status_code=status.HTTP_201_CREATED,
)
def create_faculty_profile(
    user_id: int,
    payload: FacultyProfileCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
) -> FacultyProfileRead:
    profile = user_service.create_faculty_profile(db, user_id=user_id, payload=payload)
    db.commit()
    db.refresh(profile)
    return faculty_profiles.profile_view(profile)
