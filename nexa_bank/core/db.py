from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..models import db as _db_models  # noqa: F401 - ensure models register with metadata
from .config import get_settings


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_url(database_url: str, busy_timeout: float = 30.0) -> Engine:
    """Build an engine; SQLite connections enforce foreign keys and wait out writer locks."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=False)

    connect_args: dict[str, Any] = {"check_same_thread": False, "timeout": busy_timeout}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


settings = get_settings()
engine = create_engine_for_url(settings.database_url, settings.database_busy_timeout)


def init_db() -> None:
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def set_engine(new_engine: Engine) -> None:
    global engine
    engine = new_engine
