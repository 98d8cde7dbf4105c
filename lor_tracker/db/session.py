from __future__ import annotations

from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from lor_tracker.core.settings import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Pool settings for the configured backend; SQLite gets a thread-shareable connection instead."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"future": True, "connect_args": {"check_same_thread": False}}
    return {
        "future": True,
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def enforce_sqlite_foreign_keys(target: Engine) -> None:
    # SQLite ignores foreign keys unless each connection opts in.
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _enable_fk(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str) -> Engine:
    built = create_engine(database_url, **engine_options(database_url))
    enforce_sqlite_foreign_keys(built)
    return built


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    with SessionLocal() as db:
        yield db
