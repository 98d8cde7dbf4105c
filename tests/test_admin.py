import pytest

from lor_tracker.core.errors import BadRequestError, DuplicateError
from lor_tracker.models.enums import Role
from lor_tracker.schemas.profile import StudentProfileCreate
from lor_tracker.services import users as user_service


@pytest.fixture()
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user(Role.ADMIN))


def test_admin_onboards_student_with_profile(client, admin_headers):
    response = client.post(
        "/api/admin/users",
        json={"email": "New.Student@Example.com", "password": "initial-pass", "role": "alumni"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    user = response.json()
    assert user["email"] == "new.student@example.com"
    assert user["status"] == "active"

    response = client.post(
        f"/api/admin/users/{user['id']}/student-profile",
        json={"registration_number": " reg2019 ", "department": "Physics"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    profile = response.json()
    assert profile["registration_number"] == "REG2019"
    assert profile["is_alumni"] is True
    assert profile["verification_status"] == "pending"

    login = client.post("/auth/login", json={"email": "new.student@example.com", "password": "initial-pass"})
    assert login.status_code == 200


def test_duplicate_email_is_rejected(client, admin_headers, make_user):
    make_user(Role.FACULTY, email="taken@example.com")
    response = client.post(
        "/api/admin/users",
        json={"email": "taken@example.com", "password": "initial-pass", "role": "faculty"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Email already registered", "code": "DUPLICATE"}


def test_faculty_profile_requires_faculty_role(client, admin_headers, make_user):
    student = make_user(Role.STUDENT)
    response = client.post(
        f"/api/admin/users/{student.id}/faculty-profile",
        json={"faculty_code": "f-01", "department": "Maths", "designation": "Professor"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    faculty = make_user(Role.FACULTY)
    response = client.post(
        f"/api/admin/users/{faculty.id}/faculty-profile",
        json={"faculty_code": "f-01", "department": "Maths", "designation": "Professor"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["faculty_code"] == "F-01"


def test_status_change_locks_out_user(client, admin_headers, make_user, auth_headers):
    user = make_user(Role.STUDENT)
    response = client.patch(f"/api/admin/users/{user.id}/status", json={"status": "inactive"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"
    assert client.get("/auth/me", headers=auth_headers(user)).status_code == 401

    response = client.patch("/api/admin/users/9999/status", json={"status": "active"}, headers=admin_headers)
    assert response.status_code == 404


def test_admin_routes_require_admin(client, make_user, auth_headers):
    faculty = make_user(Role.FACULTY)
    response = client.post(
        "/api/admin/users",
        json={"email": "x@example.com", "password": "initial-pass", "role": "student"},
        headers=auth_headers(faculty),
    )
    assert response.status_code == 403


def test_student_profile_uniqueness(db, make_student, make_user):
    existing = make_student()
    with pytest.raises(DuplicateError) as exc_info:
        user_service.create_student_profile(
            db,
            user_id=existing.user_id,
            payload=StudentProfileCreate(registration_number="REG9999", department="Maths"),
        )
    assert exc_info.value.message == "Student profile already exists for this user"

    newcomer = make_user(Role.STUDENT)
    with pytest.raises(DuplicateError) as exc_info:
        user_service.create_student_profile(
            db,
            user_id=newcomer.id,
            payload=StudentProfileCreate(registration_number=existing.registration_number, department="Maths"),
        )
    assert exc_info.value.message == "Registration number already in use"

    faculty = make_user(Role.FACULTY)
    with pytest.raises(BadRequestError):
        user_service.create_student_profile(
            db,
            user_id=faculty.id,
            payload=StudentProfileCreate(registration_number="REG7777", department="Maths"),
        )
