from __future__ import annotations

import argparse
from datetime import timedelta

from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal
from lor_tracker.core.security import get_password_hash
from lor_tracker.core.settings import settings
from lor_tracker.db.base import Base, utcnow
from lor_tracker.db.session import SessionLocal, engine
from lor_tracker.models.enums import EmploymentStatus, Role
from lor_tracker.models.profile import FacultyProfile, StudentProfile, TargetUniversity
from lor_tracker.models.user import User
from lor_tracker.schemas.submission import SubmissionCreate
from lor_tracker.services.notifications import NotificationOutbox
from lor_tracker.services.submissions import create_submission

DEMO_PASSWORD = "password"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the LoR Tracker database with demo data")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    return parser.parse_args()


def reset_db() -> None:
    if settings.is_production:
        raise RuntimeError("Refusing to drop tables in production.")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_or_create_user(db: Session, *, email: str, role: Role) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(email=email, hashed_password=get_password_hash(DEMO_PASSWORD), role=role)
    db.add(user)
    db.flush()
    return user


def seed_faculty(db: Session) -> list[FacultyProfile]:
    rows = [
        ("faculty.cse@lor.local", "FAC-CSE-01", "Computer Science", "Professor"),
        ("faculty.ece@lor.local", "FAC-ECE-01", "Electronics", "Associate Professor"),
    ]
    profiles = []
    for email, code, department, designation in rows:
        user = get_or_create_user(db, email=email, role=Role.FACULTY)
        profile = FacultyProfile(user_id=user.id, faculty_code=code, department=department, designation=designation)
        db.add(profile)
        profiles.append(profile)
    db.flush()
    return profiles


def seed_students(db: Session) -> list[StudentProfile]:
    student = get_or_create_user(db, email="student@lor.local", role=Role.STUDENT)
    alumni = get_or_create_user(db, email="alumni@lor.local", role=Role.ALUMNI)
    profiles = [
        StudentProfile(
            user_id=student.id,
            registration_number="REG2024001",
            department="Computer Science",
            employment_json={"status": EmploymentStatus.STUDYING.value, "university": "Demo Institute", "course": "B.Tech"},
        ),
        StudentProfile(
            user_id=alumni.id,
            registration_number="REG2019042",
            department="Electronics",
            is_alumni=True,
            employment_json={"status": EmploymentStatus.EMPLOYED.value, "company": "Acme", "role": "Engineer"},
        ),
    ]
    db.add_all(profiles)
    db.flush()
    profiles[0].target_universities.append(
        TargetUniversity(
            university="Example University",
            program="MS Computer Science",
            deadline=utcnow() + timedelta(days=60),
            purpose="Graduate admission",
        )
    )
    db.flush()
    return profiles


def main() -> None:
    args = parse_args()
    if args.reset:
        reset_db()

    with SessionLocal() as db:
        admin_exists = db.query(User).filter(User.email == "admin@lor.local").first()
        if admin_exists and not args.reset:
            print("Seed appears to have already run. Use --reset to reseed.")
            return

        get_or_create_user(db, email="admin@lor.local", role=Role.ADMIN)
        faculty = seed_faculty(db)
        students = seed_students(db)

        student_user = students[0].user
        create_submission(
            db,
            principal=Principal(user_id=student_user.id, role=student_user.role, email=student_user.email),
            payload=SubmissionCreate(
                faculty_id=faculty[0].id,
                deadline=utcnow() + timedelta(days=30),
                university_name="Example University",
                purpose="Graduate admission",
            ),
            outbox=NotificationOutbox(),
        )

        db.commit()
        print("Seed complete.")
        print(f"Admin login: admin@lor.local / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
