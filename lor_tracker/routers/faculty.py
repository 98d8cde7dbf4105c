from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal, require_roles
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role
from lor_tracker.schemas.profile import (
    FacultyDirectoryList,
    FacultyProfileList,
    FacultyProfileRead,
    FacultyProfileUpdate,
)
from lor_tracker.services import faculty_profiles
from lor_tracker.services.directory import find_active_faculty_profile

router = APIRouter(prefix="/api/faculty", tags=["faculty"])


@router.get("/profile", response_model=FacultyProfileRead)
def get_profile(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.FACULTY)),
) -> FacultyProfileRead:
    return faculty_profiles.profile_view(find_active_faculty_profile(db, principal.user_id))


@router.patch("/profile", response_model=FacultyProfileRead)
def update_profile(
    payload: FacultyProfileUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.FACULTY)),
) -> FacultyProfileRead:
    profile = faculty_profiles.update_profile(db, user_id=principal.user_id, payload=payload)
    db.commit()
    db.refresh(profile)
    return faculty_profiles.profile_view(profile)


@router.get("/profiles", response_model=FacultyProfileList)
def list_profiles(
    department: Optional[str] = Query(default=None),
    is_active: bool = Query(default=True),
    limit: int = Query(default=50, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(Role.ADMIN)),
) -> FacultyProfileList:
    return faculty_profiles.list_profiles(db, department=department, is_active=is_active, limit=limit, skip=skip)


@router.get("/directory", response_model=FacultyDirectoryList)
def list_directory(
    search: Optional[str] = Query(default=None, max_length=100),
    department: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    skip: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(Role.STUDENT, Role.ALUMNI)),
) -> FacultyDirectoryList:
    return faculty_profiles.list_directory(db, search=search, department=department, limit=limit, skip=skip)
