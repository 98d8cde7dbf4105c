from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from lor_tracker.core.deps import (
    Principal,
    get_blob_store,
    get_current_principal,
    get_notifier,
    require_roles,
)
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role
from lor_tracker.schemas.file import FileList, FileRead
from lor_tracker.services import files as file_service
from lor_tracker.services.notifications import NotificationOutbox, Notifier
from lor_tracker.services.storage import LocalBlobStore

router = APIRouter(prefix="/api/files", tags=["files"])


def _read(file: UploadFile) -> file_service.UploadedContent:
    return file_service.read_upload(file.file, filename=file.filename, content_type=file.content_type)


@router.post("/upload", response_model=FileRead, status_code=status.HTTP_201_CREATED)
def upload_certificate(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.STUDENT, Role.ALUMNI)),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> FileRead:
    record = file_service.upload_certificate(db, principal=principal, upload=_read(file), blob_store=blob_store)
    db.commit()
    db.refresh(record)
    return FileRead.model_validate(record)


@router.post("/upload-draft/{submission_id}", response_model=FileRead, status_code=status.HTTP_201_CREATED)
def upload_draft(
    submission_id: int,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.STUDENT, Role.ALUMNI)),
    blob_store: LocalBlobStore = Depends(get_blob_store),
    notifier: Notifier = Depends(get_notifier),
) -> FileRead:
    outbox = NotificationOutbox()
    record = file_service.upload_draft(
        db,
        submission_id=submission_id,
        principal=principal,
        upload=_read(file),
        blob_store=blob_store,
        outbox=outbox,
    )
    db.commit()
    db.refresh(record)
    background_tasks.add_task(notifier.dispatch, outbox.drain())
    return FileRead.model_validate(record)


@router.post("/upload-final/{submission_id}", response_model=FileRead, status_code=status.HTTP_201_CREATED)
def upload_final(
    submission_id: int,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.FACULTY)),
    blob_store: LocalBlobStore = Depends(get_blob_store),
    notifier: Notifier = Depends(get_notifier),
) -> FileRead:
    outbox = NotificationOutbox()
    record = file_service.upload_final(
        db,
        submission_id=submission_id,
        principal=principal,
        upload=_read(file),
        blob_store=blob_store,
        outbox=outbox,
    )
    db.commit()
    db.refresh(record)
    background_tasks.add_task(notifier.dispatch, outbox.drain())
    return FileRead.model_validate(record)


@router.get("/submission/{submission_id}", response_model=FileList)
def list_submission_files(
    submission_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> FileList:
    records = file_service.list_submission_files(db, submission_id=submission_id, principal=principal)
    return FileList(files=[FileRead.model_validate(r) for r in records], count=len(records))


@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    blob_store: LocalBlobStore = Depends(get_blob_store),
) -> FileResponse:
    record, path = file_service.resolve_download(db, file_id=file_id, principal=principal, blob_store=blob_store)
    return FileResponse(path, media_type=record.mime_type, filename=record.original_name)
