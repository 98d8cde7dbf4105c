from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lor_tracker.models.enums import CertificateType, EmploymentStatus, VerificationStatus
from lor_tracker.schemas.base import ORMModel


class StudentProfileCreate(ORMModel):
    registration_number: str = Field(..., min_length=1, max_length=64)
    department: str = Field(..., min_length=1, max_length=255)
    is_alumni: bool = False

    @field_validator("registration_number")
    @classmethod
    def upper_registration(cls, value: str) -> str:
        return value.strip().upper()


class FacultyProfileCreate(ORMModel):
    faculty_code: str = Field(..., min_length=1, max_length=64)
    department: str = Field(..., min_length=1, max_length=255)
    designation: str = Field(..., min_length=1, max_length=255)

    @field_validator("faculty_code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()


class Employment(ORMModel):
    status: EmploymentStatus
    company: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=255)
    university: Optional[str] = Field(default=None, max_length=255)
    course: Optional[str] = Field(default=None, max_length=255)
    remarks: Optional[str] = Field(default=None, max_length=1000)


class TargetUniversityCreate(ORMModel):
    university: str = Field(..., min_length=1, max_length=255)
    program: str = Field(..., min_length=1, max_length=255)
    deadline: datetime
    purpose: str = Field(..., min_length=1, max_length=1000)


class TargetUniversityRead(ORMModel):
    id: int
    university: str
    program: str
    deadline: datetime
    purpose: str


class CertificateCreate(ORMModel):
    type: CertificateType
    file_id: int
    comment: Optional[str] = Field(default=None, max_length=1000)


class CertificateFileRead(ORMModel):
    id: int
    original_name: str
    mime_type: str
    size: int
    created_at: datetime


class CertificateRead(ORMModel):
    id: int
    type: CertificateType
    file_id: int
    comment: Optional[str] = None
    file: Optional[CertificateFileRead] = None


class StudentProfileRead(ORMModel):
    id: int
    user_id: int
    email: Optional[str] = None
    registration_number: str
    is_alumni: bool
    department: str
    verification_status: VerificationStatus
    is_active: bool
    employment: Employment
    target_universities: list[TargetUniversityRead] = []
    certificates: list[CertificateRead] = []


class CompletionBreakdown(ORMModel):
    targets: bool
    certificates: bool
    employment: bool


class ProfileCompletion(ORMModel):
    percentage: int
    completed: int
    total: int
    breakdown: CompletionBreakdown


class FacultyProfileRead(ORMModel):
    id: int
    user_id: int
    faculty_code: str
    department: str
    designation: str
    is_active: bool
    email: Optional[str] = None


class FacultyProfileUpdate(ORMModel):
    designation: Optional[str] = Field(default=None, min_length=1, max_length=255)


class FacultyProfileList(ORMModel):
    profiles: list[FacultyProfileRead]
    total: int


class FacultyDirectoryItem(ORMModel):
    id: int
    faculty_code: str
    department: str
    designation: str
    email: Optional[str] = None
    display_name: str


class FacultyDirectoryList(ORMModel):
    profiles: list[FacultyDirectoryItem]
    total: int
