from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lor_tracker.core.deps import Principal
from lor_tracker.core.errors import BadRequestError, ForbiddenError, NotFoundError
from lor_tracker.core.settings import settings
from lor_tracker.models.enums import FileType, Role, STUDENT_ROLES, SubmissionStatus
from lor_tracker.models.file import StoredFile
from lor_tracker.models.profile import StudentProfile
from lor_tracker.services import directory, submissions
from lor_tracker.services.notifications import NotificationOutbox
from lor_tracker.services.storage import LocalBlobStore, StoredBlob, sanitize_filename

logger = logging.getLogger(__name__)

DRAFT_STATUSES = frozenset({SubmissionStatus.SUBMITTED, SubmissionStatus.RESUBMISSION})
FINAL_EXISTS_MESSAGE = (
    "Final LoR already uploaded for this submission. Delete existing one first if you need to replace it."
)
FINAL_UPLOAD_REMARK = "Final LoR uploaded"


@dataclass(frozen=True)
class UploadedContent:
    content: bytes
    original_name: str
    mime_type: str


def read_upload(stream: BinaryIO, *, filename: Optional[str], content_type: Optional[str]) -> UploadedContent:
    """Read and validate an incoming file against the size and type limits."""
    content = stream.read(settings.max_upload_bytes + 1)
    if not content:
        raise BadRequestError("No file uploaded")
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise BadRequestError(f"File too large. Maximum size is {limit_mb}MB")
    mime_type = (content_type or "").split(";")[0].strip().lower()
    if mime_type not in settings.allowed_upload_mime_types:
        raise BadRequestError("Invalid file type. Only PDF, DOC and DOCX files are allowed")
    return UploadedContent(content=content, original_name=sanitize_filename(filename), mime_type=mime_type)


def _persist(
    db: Session,
    *,
    blob_store: LocalBlobStore,
    blob: StoredBlob,
    record: StoredFile,
) -> StoredFile:
    db.add(record)
    try:
        db.flush()
    except Exception:
        blob_store.delete(blob.storage_key)
        raise
    return record


def _next_draft_version(db: Session, submission_id: int) -> int:
    current = (
        db.query(func.max(StoredFile.version))
        .filter(StoredFile.submission_id == submission_id, StoredFile.type == FileType.DRAFT)
        .scalar()
    )
    return (current or 0) + 1


def upload_certificate(
    db: Session,
    *,
    principal: Principal,
    upload: UploadedContent,
    blob_store: LocalBlobStore,
) -> StoredFile:
    profile = directory.find_active_student_profile(db, principal.user_id)
    blob = blob_store.save(upload.content, prefix=f"certificates/{profile.id}", original_name=upload.original_name)
    record = StoredFile(
        student_profile_id=profile.id,
        type=FileType.CERTIFICATE,
        version=1,
        uploaded_by=principal.user_id,
        storage_key=blob.storage_key,
        original_name=upload.original_name,
        mime_type=upload.mime_type,
        size=blob.size,
    )
    _persist(db, blob_store=blob_store, blob=blob, record=record)
    logger.info("certificate_uploaded", extra={"user_id": principal.user_id})
    return record


def upload_draft(
    db: Session,
    *,
    submission_id: int,
    principal: Principal,
    upload: UploadedContent,
    blob_store: LocalBlobStore,
    outbox: NotificationOutbox,
) -> StoredFile:
    """Attach the next draft version. ``current_version`` is left alone: only resubmission->submitted bumps it."""
    submission = submissions.get_active_submission(db, submission_id)
    profile = directory.find_active_student_profile(db, principal.user_id)
    if submission.student_id != profile.id:
        raise ForbiddenError("You can only upload files to your own submissions")
    if submission.status not in DRAFT_STATUSES:
        raise BadRequestError(
            f"Cannot upload draft in status: {submission.status.value}. "
            "Only allowed in 'submitted' or 'resubmission' status."
        )

    version = _next_draft_version(db, submission.id)
    blob = blob_store.save(upload.content, prefix=f"drafts/{submission.id}", original_name=upload.original_name)
    record = StoredFile(
        submission_id=submission.id,
        type=FileType.DRAFT,
        version=version,
        uploaded_by=principal.user_id,
        storage_key=blob.storage_key,
        original_name=upload.original_name,
        mime_type=upload.mime_type,
        size=blob.size,
    )
    _persist(db, blob_store=blob_store, blob=blob, record=record)
    submissions.note_draft_attached(submission, version=version, outbox=outbox)
    logger.info(
        "draft_uploaded",
        extra={"submission_id": submission.id, "user_id": principal.user_id},
    )
    return record


def upload_final(
    db: Session,
    *,
    submission_id: int,
    principal: Principal,
    upload: UploadedContent,
    blob_store: LocalBlobStore,
    outbox: NotificationOutbox,
) -> StoredFile:
    """Store the final letter and complete the submission in the same unit of work."""
    submission = submissions.get_active_submission(db, submission_id)
    profile = directory.find_active_faculty_profile(db, principal.user_id)
    if submission.faculty_id != profile.id:
        raise ForbiddenError("You can only upload final files to your assigned submissions")
    if submission.status != SubmissionStatus.APPROVED:
        raise BadRequestError(
            "Cannot upload final LoR. Submission must be in 'approved' status, "
            f"currently: {submission.status.value}"
        )
    existing = (
        db.query(StoredFile.id)
        .filter(StoredFile.submission_id == submission.id, StoredFile.type == FileType.FINAL)
        .first()
    )
    if existing:
        raise BadRequestError(FINAL_EXISTS_MESSAGE)

    blob = blob_store.save(upload.content, prefix=f"finals/{submission.id}", original_name=upload.original_name)
    record = StoredFile(
        submission_id=submission.id,
        type=FileType.FINAL,
        version=1,
        uploaded_by=principal.user_id,
        storage_key=blob.storage_key,
        original_name=upload.original_name,
        mime_type=upload.mime_type,
        size=blob.size,
    )
    try:
        _persist(db, blob_store=blob_store, blob=blob, record=record)
    except IntegrityError as exc:
        db.rollback()
        raise BadRequestError(FINAL_EXISTS_MESSAGE) from exc

    try:
        submissions.update_status(
            db,
            submission_id=submission.id,
            submission=submission,
            principal=principal,
            new_status=SubmissionStatus.COMPLETED,
            remark=FINAL_UPLOAD_REMARK,
            outbox=outbox,
        )
    except Exception:
        blob_store.delete(blob.storage_key)
        raise
    logger.info("final_uploaded", extra={"submission_id": submission.id, "user_id": principal.user_id})
    return record


def list_submission_files(db: Session, *, submission_id: int, principal: Principal) -> list[StoredFile]:
    submission = submissions.get_active_submission(db, submission_id)
    owners = directory.resolve_submission_owners(db, submission)
    directory.ensure_submission_party(principal, owners, detail="Access denied")
    return (
        db.query(StoredFile)
        .filter(StoredFile.submission_id == submission.id)
        .order_by(StoredFile.type.asc(), StoredFile.version.desc())
        .all()
    )


def _ensure_certificate_access(db: Session, record: StoredFile, principal: Principal) -> None:
    if principal.role == Role.ADMIN:
        return
    profile = db.get(StudentProfile, record.student_profile_id) if record.student_profile_id else None
    if not profile:
        raise NotFoundError("File not found")
    if principal.role not in STUDENT_ROLES or profile.user_id != principal.user_id:
        raise ForbiddenError("Access denied")


def resolve_download(
    db: Session,
    *,
    file_id: int,
    principal: Principal,
    blob_store: LocalBlobStore,
) -> tuple[StoredFile, Path]:
    record = db.get(StoredFile, file_id)
    if not record:
        raise NotFoundError("File not found")

    if record.submission_id is not None:
        submission = record.submission
        if not submission or not submission.is_active:
            raise NotFoundError("Associated submission not found")
        owners = directory.resolve_submission_owners(db, submission)
        directory.ensure_submission_party(principal, owners, detail="Access denied")
    else:
        _ensure_certificate_access(db, record, principal)

    return record, blob_store.resolve_path(record.storage_key)
