from __future__ import annotations

import enum


class Role(str, enum.Enum):
    STUDENT = "student"
    ALUMNI = "alumni"
    FACULTY = "faculty"
    ADMIN = "admin"


STUDENT_ROLES = frozenset({Role.STUDENT, Role.ALUMNI})


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class SubmissionStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    RESUBMISSION = "resubmission"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class RecordState(str, enum.Enum):
    """Soft-delete lifecycle of a record, independent of its workflow status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class FileType(str, enum.Enum):
    DRAFT = "draft"
    FINAL = "final"
    CERTIFICATE = "certificate"


class EmploymentStatus(str, enum.Enum):
    EMPLOYED = "employed"
    STUDYING = "studying"
    UNEMPLOYED = "unemployed"


class CertificateType(str, enum.Enum):
    GRE = "GRE"
    GMAT = "GMAT"
    CAT = "CAT"
    MAT = "MAT"
    OTHER = "OTHER"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NotificationEvent(str, enum.Enum):
    NEW_SUBMISSION = "new_submission"
    DRAFT_UPLOADED = "draft_uploaded"
    DRAFT_RESUBMITTED = "draft_resubmitted"
    RESUBMISSION_REQUESTED = "resubmission_requested"
    SUBMISSION_REJECTED = "submission_rejected"
    DRAFT_APPROVED = "draft_approved"
    LOR_COMPLETED = "lor_completed"
    FACULTY_PENDING_SUMMARY = "faculty_pending_summary"
