"""Waitlist signup and count services."""

import logging

import pydantic
import sqlalchemy
import sqlalchemy.exc
from sqlmodel import Session, select

from .models import WaitlistEntry

logger = logging.getLogger(__name__)

EMAIL_REQUIRED = 'Email is required'
ALREADY_JOINED = 'This email is already on the waitlist'
JOIN_FAILED = 'Failed to join waitlist. Please try again later.'


class WaitlistSignup(pydantic.BaseModel):
    """Signup form payload."""

    email: str = ''
    name: str | None = None
    referrer: str | None = None


class WaitlistResult(pydantic.BaseModel):
    """Outcome of a signup; failures carry a user-facing message."""

    success: bool
    error: str | None = None


def add_to_waitlist(session: Session, signup: WaitlistSignup) -> WaitlistResult:
    """Insert a waitlist entry.

    Never raises: a missing email, a duplicate email and database errors are
    reported through the returned result.
    """
    email = signup.email.strip()
    if not email:
        return WaitlistResult(success=False, error=EMAIL_REQUIRED)

    entry = WaitlistEntry(
        email=email,
        name=(signup.name or '').strip() or None,
        referrer=(signup.referrer or '').strip() or None,
    )
    session.add(entry)
    try:
        session.commit()
    except sqlalchemy.exc.IntegrityError:
        session.rollback()
        logger.info('Duplicate waitlist signup for %s', email)
        return WaitlistResult(success=False, error=ALREADY_JOINED)
    except sqlalchemy.exc.SQLAlchemyError:
        session.rollback()
        logger.exception('Error adding %s to waitlist', email)
        return WaitlistResult(success=False, error=JOIN_FAILED)

    logger.info('Added %s to waitlist', email)
    return WaitlistResult(success=True)


def get_waitlist_count(session: Session) -> int:
    """Return the number of waitlist entries, or 0 if the count fails."""
    try:
        statement = select(sqlalchemy.func.count()).select_from(WaitlistEntry)
        count = session.exec(statement).one()
    except sqlalchemy.exc.SQLAlchemyError:
        logger.exception('Error getting waitlist count')
        return 0
    return int(count)
