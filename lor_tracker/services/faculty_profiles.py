from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from lor_tracker.models.profile import FacultyProfile
from lor_tracker.models.user import User
from lor_tracker.schemas.profile import (
    FacultyDirectoryItem,
    FacultyDirectoryList,
    FacultyProfileList,
    FacultyProfileRead,
    FacultyProfileUpdate,
)
from lor_tracker.services.directory import find_active_faculty_profile

MAX_PAGE_SIZE = 100


def profile_view(profile: FacultyProfile) -> FacultyProfileRead:
    return FacultyProfileRead(
        id=profile.id,
        user_id=profile.user_id,
        faculty_code=profile.faculty_code,
        department=profile.department,
        designation=profile.designation,
        is_active=profile.is_active,
        email=profile.user.email if profile.user else None,
    )


def update_profile(db: Session, *, user_id: int, payload: FacultyProfileUpdate) -> FacultyProfile:
    profile = find_active_faculty_profile(db, user_id)
    if payload.designation is not None:
        profile.designation = payload.designation.strip()
    db.add(profile)
    db.flush()
    return profile


def _page(limit: int, skip: int) -> tuple[int, int]:
    return max(1, min(limit, MAX_PAGE_SIZE)), max(0, skip)


def list_profiles(
    db: Session,
    *,
    department: Optional[str] = None,
    is_active: bool = True,
    limit: int = 50,
    skip: int = 0,
) -> FacultyProfileList:
    limit, skip = _page(limit, skip)
    query = db.query(FacultyProfile).filter(FacultyProfile.is_active.is_(is_active))
    if department:
        query = query.filter(FacultyProfile.department == department)
    total = query.count()
    profiles = (
        query.options(joinedload(FacultyProfile.user))
        .order_by(FacultyProfile.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return FacultyProfileList(profiles=[profile_view(p) for p in profiles], total=total)


def list_directory(
    db: Session,
    *,
    search: Optional[str] = None,
    department: Optional[str] = None,
    limit: int = 50,
    skip: int = 0,
) -> FacultyDirectoryList:
    limit, skip = _page(limit, skip)
    query = (
        db.query(FacultyProfile)
        .join(User, FacultyProfile.user_id == User.id)
        .filter(FacultyProfile.is_active.is_(True))
    )
    if department:
        query = query.filter(FacultyProfile.department == department)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(FacultyProfile.faculty_code).like(pattern),
                func.lower(FacultyProfile.department).like(pattern),
                func.lower(FacultyProfile.designation).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )
    total = query.count()
    profiles = query.order_by(FacultyProfile.department.asc(), FacultyProfile.id.asc()).offset(skip).limit(limit).all()
    items = [
        FacultyDirectoryItem(
            id=profile.id,
            faculty_code=profile.faculty_code,
            department=profile.department,
            designation=profile.designation,
            email=profile.user.email,
            display_name=profile.user.display_name,
        )
        for profile in profiles
    ]
    return FacultyDirectoryList(profiles=items, total=total)
