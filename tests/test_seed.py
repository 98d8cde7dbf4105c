from lor_tracker import seed
from lor_tracker.core.security import verify_password
from lor_tracker.models.enums import Role


def test_seed_creates_demo_faculty_and_students(db):
    faculty = seed.seed_faculty(db)
    students = seed.seed_students(db)
    db.commit()

    assert [f.faculty_code for f in faculty] == ["FAC-CSE-01", "FAC-ECE-01"]
    assert all(f.user.role == Role.FACULTY for f in faculty)
    assert [s.is_alumni for s in students] == [False, True]
    assert students[1].user.role == Role.ALUMNI
    assert len(students[0].target_universities) == 1
    assert verify_password(seed.DEMO_PASSWORD, students[0].user.hashed_password)


def test_get_or_create_user_is_idempotent(db):
    first = seed.get_or_create_user(db, email="admin@lor.local", role=Role.ADMIN)
    again = seed.get_or_create_user(db, email="admin@lor.local", role=Role.ADMIN)
    assert first.id == again.id
