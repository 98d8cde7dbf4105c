"""Auth and user administration router aggregation."""
from lor_tracker.routers import admin, auth

ROUTERS = [auth.router, admin.router]
