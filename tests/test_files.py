"""File upload, linkage and download tests."""
import io
from datetime import datetime, timedelta, timezone

import pytest

from lor_tracker.core.errors import BadRequestError
from lor_tracker.core.settings import settings
from lor_tracker.models.enums import FileType, Role, SubmissionStatus
from lor_tracker.models.file import StoredFile
from lor_tracker.models.submission import Submission
from lor_tracker.services import files as file_service

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _pdf(name="draft.pdf", body=b"%PDF-1.4 test letter"):
    return {"file": (name, io.BytesIO(body), PDF)}


@pytest.fixture()
def parties(make_student, make_faculty):
    return make_student(email="meera@example.com"), make_faculty(email="prof.iyer@example.com")


@pytest.fixture()
def submission_id(client, parties, auth_headers):
    student, faculty = parties
    deadline = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
    response = client.post(
        "/api/submissions",
        json={"faculty_id": faculty.id, "deadline": deadline},
        headers=auth_headers(student.user),
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _set_status(client, submission_id, user, status, auth_headers):
    response = client.post(
        f"/api/submissions/{submission_id}/status",
        json={"new_status": status},
        headers=auth_headers(user),
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_draft_versions_increase_without_touching_submission_version(
    client, parties, submission_id, auth_headers, sender
):
    student, _ = parties
    headers = auth_headers(student.user)

    first = client.post(f"/api/files/upload-draft/{submission_id}", files=_pdf(), headers=headers)
    second = client.post(f"/api/files/upload-draft/{submission_id}", files=_pdf("v2.pdf"), headers=headers)

    assert first.status_code == 201, first.text
    assert first.json()["version"] == 1
    assert first.json()["type"] == "draft"
    assert second.json()["version"] == 2

    detail = client.get(f"/api/submissions/{submission_id}", headers=headers).json()
    assert detail["current_version"] == 1
    assert sender.subjects_for("prof.iyer@example.com").count("LoR Draft Uploaded") == 2


def test_draft_upload_requires_owner_and_open_status(
    client, parties, submission_id, auth_headers, make_student
):
    student, faculty = parties
    outsider = make_student()

    response = client.post(
        f"/api/files/upload-draft/{submission_id}", files=_pdf(), headers=auth_headers(outsider.user)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only upload files to your own submissions"

    _set_status(client, submission_id, faculty.user, "approved", auth_headers)
    response = client.post(
        f"/api/files/upload-draft/{submission_id}", files=_pdf(), headers=auth_headers(student.user)
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Cannot upload draft in status: approved")


def test_final_upload_completes_submission(
    client, db, parties, submission_id, auth_headers, sender, blob_store
):
    student, faculty = parties
    _set_status(client, submission_id, faculty.user, "approved", auth_headers)

    response = client.post(
        f"/api/files/upload-final/{submission_id}",
        files=_pdf("final.pdf"),
        headers=auth_headers(faculty.user),
    )
    assert response.status_code == 201, response.text
    assert response.json()["type"] == "final"
    assert response.json()["version"] == 1

    detail = client.get(f"/api/submissions/{submission_id}", headers=auth_headers(student.user)).json()
    assert detail["status"] == "completed"
    last = detail["audit_log"][-1]
    assert (last["from_status"], last["to_status"]) == ("approved", "completed")
    assert last["actor_id"] == faculty.user_id
    assert last["remark"] == "Final LoR uploaded"
    assert "LoR Completed" in sender.subjects_for("meera@example.com")

    record = db.get(StoredFile, response.json()["id"])
    assert blob_store.resolve_path(record.storage_key).is_file()

    response = client.delete(f"/api/submissions/{submission_id}", headers=auth_headers(student.user))
    assert response.status_code == 400


def test_final_upload_requires_approved_status(client, parties, submission_id, auth_headers):
    _, faculty = parties
    response = client.post(
        f"/api/files/upload-final/{submission_id}",
        files=_pdf("final.pdf"),
        headers=auth_headers(faculty.user),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Cannot upload final LoR. Submission must be in 'approved' status, currently: submitted"
    )


def test_final_upload_requires_assigned_faculty(client, parties, submission_id, auth_headers, make_faculty):
    _, faculty = parties
    _set_status(client, submission_id, faculty.user, "approved", auth_headers)
    stranger = make_faculty()
    response = client.post(
        f"/api/files/upload-final/{submission_id}",
        files=_pdf("final.pdf"),
        headers=auth_headers(stranger.user),
    )
    assert response.status_code == 403


@pytest.fixture()
def approved_with_final(db, parties):
    student, faculty = parties
    submission = Submission(
        student_id=student.id,
        faculty_id=faculty.id,
        status=SubmissionStatus.APPROVED,
        deadline=datetime.now(timezone.utc) + timedelta(days=3),
    )
    db.add(submission)
    db.flush()
    db.add(
        StoredFile(
            submission_id=submission.id,
            type=FileType.FINAL,
            version=1,
            uploaded_by=faculty.user_id,
            storage_key="finals/existing.pdf",
            original_name="existing.pdf",
            mime_type=PDF,
            size=10,
        )
    )
    db.commit()
    return submission.id


def _upload_second_final(db, faculty, submission_id, principal_for, blob_store):
    upload = file_service.UploadedContent(content=b"%PDF again", original_name="again.pdf", mime_type=PDF)
    return file_service.upload_final(
        db,
        submission_id=submission_id,
        principal=principal_for(faculty.user),
        upload=upload,
        blob_store=blob_store,
        outbox=None,
    )


def test_second_final_upload_is_rejected(db, parties, approved_with_final, principal_for, blob_store):
    _, faculty = parties
    with pytest.raises(BadRequestError) as exc_info:
        _upload_second_final(db, faculty, approved_with_final, principal_for, blob_store)
    assert exc_info.value.message == file_service.FINAL_EXISTS_MESSAGE


def test_concurrent_final_upload_maps_to_bad_request_and_drops_blob(
    db, parties, approved_with_final, principal_for, blob_store, miss_lookup
):
    _, faculty = parties
    miss_lookup(StoredFile.id)

    with pytest.raises(BadRequestError) as exc_info:
        _upload_second_final(db, faculty, approved_with_final, principal_for, blob_store)
    assert exc_info.value.message == file_service.FINAL_EXISTS_MESSAGE

    finals_dir = blob_store.base_dir / "finals" / str(approved_with_final)
    assert not finals_dir.exists() or list(finals_dir.iterdir()) == []
    assert db.get(Submission, approved_with_final).status == SubmissionStatus.APPROVED


def test_file_listing_and_download(client, parties, submission_id, auth_headers, make_student):
    student, faculty = parties
    headers = auth_headers(student.user)
    body = b"%PDF-1.4 my draft"
    uploaded = client.post(f"/api/files/upload-draft/{submission_id}", files=_pdf(body=body), headers=headers)
    file_id = uploaded.json()["id"]

    listing = client.get(f"/api/files/submission/{submission_id}", headers=auth_headers(faculty.user))
    assert listing.status_code == 200
    assert listing.json()["count"] == 1
    assert listing.json()["files"][0]["original_name"] == "draft.pdf"

    download = client.get(f"/api/files/{file_id}/download", headers=auth_headers(faculty.user))
    assert download.status_code == 200
    assert download.content == body
    assert download.headers["content-type"].startswith(PDF)

    outsider = auth_headers(make_student().user)
    assert client.get(f"/api/files/submission/{submission_id}", headers=outsider).status_code == 403
    assert client.get(f"/api/files/{file_id}/download", headers=outsider).status_code == 403
    assert client.get("/api/files/9999/download", headers=headers).status_code == 404


def test_files_of_archived_submission_are_hidden(client, parties, submission_id, auth_headers):
    student, _ = parties
    headers = auth_headers(student.user)
    file_id = client.post(f"/api/files/upload-draft/{submission_id}", files=_pdf(), headers=headers).json()["id"]
    client.delete(f"/api/submissions/{submission_id}", headers=headers)

    response = client.get(f"/api/files/{file_id}/download", headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Associated submission not found"


def test_certificate_download_is_owner_or_admin(client, parties, auth_headers, make_user):
    student, faculty = parties
    uploaded = client.post("/api/files/upload", files=_pdf("gre.pdf"), headers=auth_headers(student.user))
    assert uploaded.status_code == 201
    assert uploaded.json()["type"] == "certificate"
    assert uploaded.json()["student_profile_id"] == student.id
    file_id = uploaded.json()["id"]

    assert client.get(f"/api/files/{file_id}/download", headers=auth_headers(student.user)).status_code == 200
    assert client.get(f"/api/files/{file_id}/download", headers=auth_headers(make_user(Role.ADMIN))).status_code == 200
    assert client.get(f"/api/files/{file_id}/download", headers=auth_headers(faculty.user)).status_code == 403


@pytest.mark.parametrize(
    "name,content,mime,detail",
    [
        ("empty.pdf", b"", PDF, "No file uploaded"),
        ("notes.txt", b"plain text", "text/plain", "Invalid file type. Only PDF, DOC and DOCX files are allowed"),
    ],
)
def test_upload_validation(client, parties, submission_id, auth_headers, name, content, mime, detail):
    student, _ = parties
    response = client.post(
        f"/api/files/upload-draft/{submission_id}",
        files={"file": (name, io.BytesIO(content), mime)},
        headers=auth_headers(student.user),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == detail


def test_read_upload_limits():
    too_big = io.BytesIO(b"x" * (settings.max_upload_bytes + 1))
    with pytest.raises(BadRequestError) as exc_info:
        file_service.read_upload(too_big, filename="big.pdf", content_type=PDF)
    assert exc_info.value.message == "File too large. Maximum size is 5MB"

    upload = file_service.read_upload(io.BytesIO(b"doc"), filename="../../letter.docx", content_type=f"{DOCX}; x=y")
    assert upload.mime_type == DOCX
    assert upload.original_name == "....letter.docx"
