import pytest

from lor_tracker.core.errors import ForbiddenError, NotFoundError
from lor_tracker.core.deps import Principal
from lor_tracker.models.enums import Role
from lor_tracker.services import directory


def test_owner_resolution_maps_profiles_to_users(db, make_student, make_faculty):
    student, faculty = make_student(), make_faculty()
    assert directory.resolve_student_owner(db, student.id) == student.user_id
    assert directory.resolve_faculty_owner(db, faculty.id) == faculty.user_id

    with pytest.raises(NotFoundError) as exc_info:
        directory.resolve_faculty_owner(db, 4242)
    assert exc_info.value.message == "Related profile not found"


def test_profile_lookup_by_role(db, make_student, make_faculty, make_user):
    student, faculty = make_student(alumni=True), make_faculty()
    assert directory.find_active_profile_by_user(db, student.user_id, Role.ALUMNI) is student
    assert directory.find_active_profile_by_user(db, faculty.user_id, Role.FACULTY) is faculty
    with pytest.raises(NotFoundError):
        directory.find_active_profile_by_user(db, make_user(Role.ADMIN).id, Role.ADMIN)


def test_inactive_faculty_profile_is_not_found(db, make_faculty):
    faculty = make_faculty(is_active=False)
    with pytest.raises(NotFoundError) as exc_info:
        directory.find_active_faculty_profile(db, faculty.user_id)
    assert exc_info.value.message == "Faculty profile not found"


@pytest.mark.parametrize(
    "role,user_id,expected",
    [
        (Role.STUDENT, 1, True),
        (Role.ALUMNI, 1, True),
        (Role.STUDENT, 2, False),
        (Role.FACULTY, 2, True),
        (Role.FACULTY, 1, False),
        (Role.ADMIN, 99, True),
    ],
)
def test_submission_party(role, user_id, expected):
    owners = directory.SubmissionOwners(student_user_id=1, faculty_user_id=2)
    principal = Principal(user_id=user_id, role=role, email="x@example.com")
    assert directory.is_submission_party(principal, owners) is expected
    if not expected:
        with pytest.raises(ForbiddenError):
            directory.ensure_submission_party(principal, owners, detail="Access denied")
