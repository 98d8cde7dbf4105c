import pytest

from lor_tracker.models.enums import Role
from lor_tracker.services import faculty_profiles as service


@pytest.fixture()
def faculty_roster(make_faculty):
    return [
        make_faculty(email="rao@example.com", department="Computer Science", designation="Professor"),
        make_faculty(email="iyer@example.com", department="Electronics", designation="Associate Professor"),
        make_faculty(email="das@example.com", department="Computer Science", designation="Lecturer", is_active=False),
    ]


def test_directory_lists_active_faculty_only(db, faculty_roster):
    result = service.list_directory(db)
    assert result.total == 2
    assert {item.email for item in result.profiles} == {"rao@example.com", "iyer@example.com"}
    assert {item.display_name for item in result.profiles} == {"rao", "iyer"}


@pytest.mark.parametrize(
    "search,expected",
    [
        ("electronics", {"iyer@example.com"}),
        ("RAO", {"rao@example.com"}),
        ("professor", {"rao@example.com", "iyer@example.com"}),
        ("nobody", set()),
    ],
)
def test_directory_search_is_case_insensitive(db, faculty_roster, search, expected):
    result = service.list_directory(db, search=search)
    assert {item.email for item in result.profiles} == expected


def test_directory_filters_and_pages(db, faculty_roster):
    assert service.list_directory(db, department="Electronics").total == 1
    page = service.list_directory(db, limit=1, skip=1)
    assert page.total == 2
    assert len(page.profiles) == 1


def test_admin_listing_can_show_inactive(db, faculty_roster):
    assert service.list_profiles(db).total == 2
    inactive = service.list_profiles(db, is_active=False)
    assert [p.email for p in inactive.profiles] == ["das@example.com"]


def test_faculty_profile_endpoints(client, faculty_roster, auth_headers, make_student, make_user):
    rao = faculty_roster[0]
    headers = auth_headers(rao.user)

    response = client.get("/api/faculty/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["faculty_code"] == rao.faculty_code

    response = client.patch("/api/faculty/profile", json={"designation": " Dean "}, headers=headers)
    assert response.status_code == 200
    assert response.json()["designation"] == "Dean"

    student_headers = auth_headers(make_student().user)
    response = client.get("/api/faculty/directory", params={"search": "iyer"}, headers=student_headers)
    assert response.status_code == 200
    assert [item["email"] for item in response.json()["profiles"]] == ["iyer@example.com"]
    assert client.get("/api/faculty/directory", headers=headers).status_code == 403

    admin_headers = auth_headers(make_user(Role.ADMIN))
    response = client.get("/api/faculty/profiles", headers=admin_headers)
    assert response.json()["total"] == 2
    assert client.get("/api/faculty/profiles", headers=student_headers).status_code == 403
