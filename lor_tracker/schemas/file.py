from __future__ import annotations

from datetime import datetime
from typing import Optional

from lor_tracker.models.enums import FileType
from lor_tracker.schemas.base import ORMModel


class FileRead(ORMModel):
    id: int
    submission_id: Optional[int] = None
    student_profile_id: Optional[int] = None
    type: FileType
    version: int
    original_name: str
    mime_type: str
    size: int
    created_at: datetime


class FileList(ORMModel):
    files: list[FileRead]
    count: int
