"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from charsync.db.models import Base, Character, CharacterStatus
from stubs import CHARACTER_ID


@pytest.fixture
def test_engine():
    """
    Create a test database engine.

    SQLite in-memory with a single shared connection, so separate sessions
    (the task's own, the lock manager's, the test's) all see the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def status_id(db_session):
    """A tracked character docked at Jita 4-4 in a Rifter."""
    character = Character(id=CHARACTER_ID, name="Test Pilot", esi_access_token="token-abc")
    status = CharacterStatus(
        character=character,
        solarsystem_id=30000142,
        station_id=60003760,
        structure_id=None,
        ship_name="Rifter",
        ship_type_id=587,
        ship_item_id=1000000001,
    )
    db_session.add_all([character, status])
    db_session.commit()
    return status.id
