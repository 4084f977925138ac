"""Database models for the waitlist."""

import datetime
from datetime import UTC

from sqlmodel import Field, SQLModel


class WaitlistEntry(SQLModel, table=True):
    """One person waiting for access, identified by email."""

    __tablename__ = 'waitlist'  # type: ignore[misc]

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=320)
    name: str | None = Field(default=None, max_length=200)
    referrer: str | None = Field(default=None, max_length=200)
    joined_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(UTC)
    )
