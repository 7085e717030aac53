"""Unit tests for expiring task locks."""

from datetime import datetime, timedelta

import pytest

from charsync.db.models import TaskLock
from charsync.tasks.locks import DatabaseLockManager, InMemoryLockManager, without_overlapping


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def mono_clock():
    return FakeClock(1000.0)


@pytest.fixture
def wall_clock():
    return FakeClock(datetime(2026, 10, 18, 12, 0, 0))


def test_in_memory_second_acquire_is_refused(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)

    first = locks.try_acquire("update-character-location:1", 60)
    second = locks.try_acquire("update-character-location:1", 60)

    assert first is not None
    assert second is None


def test_in_memory_lock_expires_after_ttl(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)
    locks.try_acquire("key", 60)

    mono_clock.advance(59.9)
    assert locks.try_acquire("key", 60) is None

    mono_clock.advance(0.1)
    assert locks.try_acquire("key", 60) is not None


def test_in_memory_release_requires_owner_token(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)
    token = locks.try_acquire("key", 60)

    locks.release("key", "someone-else")
    assert locks.try_acquire("key", 60) is None

    locks.release("key", token)
    assert locks.try_acquire("key", 60) is not None


def test_in_memory_stale_owner_cannot_release_new_holder(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)
    stale = locks.try_acquire("key", 60)
    mono_clock.advance(61)
    fresh = locks.try_acquire("key", 60)

    locks.release("key", stale)

    assert fresh is not None
    assert locks.try_acquire("key", 60) is None


def test_in_memory_keys_are_independent(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)
    assert locks.try_acquire("a", 60) is not None
    assert locks.try_acquire("b", 60) is not None


def test_database_second_acquire_is_refused(session_factory, wall_clock):
    locks = DatabaseLockManager(session_factory, clock=wall_clock)

    assert locks.try_acquire("update-character-location:7", 60) is not None
    assert locks.try_acquire("update-character-location:7", 60) is None


def test_database_lock_expires_after_ttl(session_factory, wall_clock):
    locks = DatabaseLockManager(session_factory, clock=wall_clock)
    first = locks.try_acquire("key", 60)

    wall_clock.advance(timedelta(seconds=59))
    assert locks.try_acquire("key", 60) is None

    wall_clock.advance(timedelta(seconds=1))
    second = locks.try_acquire("key", 60)
    assert second is not None
    assert second != first


def test_database_release_deletes_only_own_row(session_factory, db_session, wall_clock):
    locks = DatabaseLockManager(session_factory, clock=wall_clock)
    token = locks.try_acquire("key", 60)

    locks.release("key", "not-the-owner")
    assert db_session.query(TaskLock).count() == 1

    locks.release("key", token)
    assert db_session.query(TaskLock).count() == 0
    assert locks.try_acquire("key", 60) is not None


def test_database_lock_row_records_expiry(session_factory, db_session, wall_clock):
    locks = DatabaseLockManager(session_factory, clock=wall_clock)
    token = locks.try_acquire("key", 60)

    row = db_session.get(TaskLock, "key")
    assert row.owner == token
    assert row.acquired_at == datetime(2026, 10, 18, 12, 0, 0)
    assert row.expires_at == datetime(2026, 10, 18, 12, 1, 0)


def test_without_overlapping_yields_and_releases(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)

    with without_overlapping(locks, "key", 60) as acquired:
        assert acquired is True
        with without_overlapping(locks, "key", 60) as nested:
            assert nested is False

    assert locks.try_acquire("key", 60) is not None


def test_without_overlapping_releases_on_error(mono_clock):
    locks = InMemoryLockManager(clock=mono_clock)

    with pytest.raises(ValueError):
        with without_overlapping(locks, "key", 60):
            raise ValueError("boom")

    assert locks.try_acquire("key", 60) is not None
