import itertools
import os
import tempfile

# Settings are read at import time; point them at throwaway resources first.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="lor-tracker-uploads-")
os.environ["EMAIL_PROVIDER"] = "disabled"
os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lor_tracker.core.deps import Principal
from lor_tracker.core.security import create_access_token, get_password_hash
from lor_tracker.db.base_metadata import target_metadata
from lor_tracker.db.session import get_db
from lor_tracker.main import create_app
from lor_tracker.models.enums import Role, UserStatus
from lor_tracker.models.profile import FacultyProfile, StudentProfile
from lor_tracker.models.user import User
from lor_tracker.services.email import EmailSendResult
from lor_tracker.services.notifications import Notifier
from lor_tracker.services.storage import LocalBlobStore


class RecordingSender:
    """Stands in for the email provider and keeps every rendered message."""

    def __init__(self):
        self.sent = []

    def __call__(self, *, to_address, subject, html, text=None):
        self.sent.append({"to": to_address, "subject": subject, "html": html, "text": text})
        return EmailSendResult(provider="test", message_id=str(len(self.sent)))

    def subjects_for(self, address):
        return [message["subject"] for message in self.sent if message["to"] == address]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    target_metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "uploads")


@pytest.fixture()
def sender():
    return RecordingSender()


@pytest.fixture()
def client(session_factory, blob_store, sender):
    app = create_app(blob_store=blob_store, notifier=Notifier(sender=sender))

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    def _make(role=Role.STUDENT, *, email=None, password=None, status=UserStatus.ACTIVE):
        n = next(counter)
        user = User(
            email=email or f"{role.value}{n}@example.com",
            hashed_password=get_password_hash(password) if password else "not-used",
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_student(db, make_user):
    counter = itertools.count(1)

    def _make(*, alumni=False, email=None, department="Computer Science"):
        n = next(counter)
        user = make_user(Role.ALUMNI if alumni else Role.STUDENT, email=email)
        profile = StudentProfile(
            user_id=user.id,
            registration_number=f"REG{n:04d}",
            department=department,
            is_alumni=alumni,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def make_faculty(db, make_user):
    counter = itertools.count(1)

    def _make(*, email=None, department="Computer Science", designation="Professor", is_active=True):
        n = next(counter)
        user = make_user(Role.FACULTY, email=email)
        profile = FacultyProfile(
            user_id=user.id,
            faculty_code=f"FAC{n:03d}",
            department=department,
            designation=designation,
            is_active=is_active,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def principal_for():
    def _principal(user):
        return Principal(user_id=user.id, role=user.role, email=user.email)

    return _principal


class _NoMatch:
    """A query whose ``filter(...).first()`` finds nothing."""

    def filter(self, *criteria):
        return self

    def first(self):
        return None


@pytest.fixture()
def miss_lookup(db, monkeypatch):
    """Make ``db.query(column)`` come back empty, as if a concurrent writer had not committed yet."""

    def _miss(column):
        real_query = db.query

        def query(*entities, **kwargs):
            if entities and entities[0] is column:
                return _NoMatch()
            return real_query(*entities, **kwargs)

        monkeypatch.setattr(db, "query", query)

    return _miss
