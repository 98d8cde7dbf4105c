from lor_tracker.models.file import StoredFile
from lor_tracker.models.profile import Certificate, FacultyProfile, StudentProfile, TargetUniversity
from lor_tracker.models.submission import AuditEntry, Submission
from lor_tracker.models.user import User

__all__ = [
    "AuditEntry",
    "Certificate",
    "FacultyProfile",
    "StoredFile",
    "StudentProfile",
    "Submission",
    "TargetUniversity",
    "User",
]
