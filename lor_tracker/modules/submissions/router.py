"""Submission lifecycle and file linkage router aggregation."""
from lor_tracker.routers import files, submissions

ROUTERS = [submissions.router, files.router]
