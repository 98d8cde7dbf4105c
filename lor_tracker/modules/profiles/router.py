"""Student and faculty profile router aggregation."""
from lor_tracker.routers import faculty, student_profile

ROUTERS = [student_profile.router, faculty.router]
