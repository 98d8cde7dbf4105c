from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from lor_tracker.models.enums import SubmissionStatus
from lor_tracker.schemas.base import ORMModel


class SubmissionCreate(ORMModel):
    faculty_id: int
    deadline: datetime
    university_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    purpose: Optional[str] = Field(default=None, min_length=1, max_length=500)


class StatusUpdate(ORMModel):
    new_status: SubmissionStatus
    remark: Optional[str] = Field(default=None, min_length=1, max_length=1000)


class FacultyNotesUpdate(ORMModel):
    faculty_notes: Optional[str] = Field(default=None, max_length=2000)


class AuditEntryRead(ORMModel):
    at: datetime
    actor_id: int
    from_status: Optional[SubmissionStatus] = None
    to_status: SubmissionStatus
    remark: Optional[str] = None


class SubmissionSummary(ORMModel):
    id: int
    student_id: int
    faculty_id: int
    status: SubmissionStatus
    deadline: datetime
    university_name: Optional[str] = None
    purpose: Optional[str] = None
    is_alumni: bool
    current_version: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class SubmissionDetail(SubmissionSummary):
    faculty_notes: Optional[str] = None
    audit_log: list[AuditEntryRead] = []


class SubmissionList(ORMModel):
    submissions: list[SubmissionSummary]
    count: int
