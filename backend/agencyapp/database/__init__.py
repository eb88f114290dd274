from agencyapp.database.session import (
    SessionLocal,
    engine,
    get_db_session_sync,
)

__all__ = [
    "SessionLocal",
    "engine",
    "get_db_session_sync",
]
