"""Database configuration and session management for the waitlist."""

import pathlib
from collections.abc import Generator

import sqlalchemy
import sqlmodel

import common.settings


def make_engine(url: str = common.settings.DATABASE_URL) -> sqlalchemy.Engine:
    """Create an engine, allowing SQLite connections to cross threads."""
    connect_args = {'check_same_thread': False} if url.startswith('sqlite') else {}
    return sqlmodel.create_engine(url, connect_args=connect_args, echo=False)


engine = make_engine()


def create_db_and_tables() -> None:
    """Create database tables if they don't exist."""
    # Import models to ensure they're registered with SQLModel
    from . import models  # noqa: F401 # pyright: ignore[reportUnusedImport]

    database = engine.url.database
    if engine.url.get_backend_name() == 'sqlite' and database:
        pathlib.Path(database).parent.mkdir(parents=True, exist_ok=True)
    sqlmodel.SQLModel.metadata.create_all(engine)


def get_session() -> Generator[sqlmodel.Session, None, None]:
    """Get database session."""
    with sqlmodel.Session(engine) as session:
        yield session
