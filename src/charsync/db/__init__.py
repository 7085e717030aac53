"""
Database module for charsync.

Provides SQLAlchemy ORM models and session management.

Usage:
    from charsync.db import get_session, CharacterStatus

    with get_session() as session:
        statuses = session.query(CharacterStatus).all()
"""

from charsync.db.models import (
    Base,
    Character,
    CharacterStatus,
    ShipHistory,
    TaskLock,
)
from charsync.db.session import SessionLocal, get_engine, get_session, get_session_factory

__all__ = [
    # Base
    "Base",
    # Models
    "Character",
    "CharacterStatus",
    "ShipHistory",
    "TaskLock",
    # Session
    "get_session",
    "get_session_factory",
    "get_engine",
    "SessionLocal",
]
