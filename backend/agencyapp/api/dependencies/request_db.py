"""Helpers for getting database sessions from request state."""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from agencyapp.database.session import get_db_session_sync


def get_request_db_session(request: Request) -> Generator[Session, None, None]:
    """
    Yield the session stored on request state, or a new one.

    Tests and middleware may set request.state.db; otherwise a session is
    opened for the duration of the request.
    """
    db = getattr(request.state, "db", None)
    if db is not None:
        yield db
        return

    yield from get_db_session_sync()
