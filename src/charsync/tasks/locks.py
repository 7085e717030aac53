"""Expiring named locks for drop-if-busy task orchestration."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Generator, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from charsync.db.models import TaskLock

logger = logging.getLogger(__name__)


class LockManager(Protocol):
    """
    Named mutual exclusion with a hard expiry.

    try_acquire returns an owner token when the lock is now held by the
    caller, or None when someone else holds an unexpired lock on the key.
    """

    def try_acquire(self, key: str, ttl_seconds: float) -> Optional[str]:
        ...

    def release(self, key: str, token: str) -> None:
        ...


class InMemoryLockManager:
    """Process-local lock manager; safe to share between threads."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._guard = threading.Lock()
        self._held: dict[str, tuple[str, float]] = {}

    def try_acquire(self, key: str, ttl_seconds: float) -> Optional[str]:
        now = self._clock()
        with self._guard:
            held = self._held.get(key)
            if held is not None and held[1] > now:
                return None
            token = uuid.uuid4().hex
            self._held[key] = (token, now + ttl_seconds)
            return token

    def release(self, key: str, token: str) -> None:
        with self._guard:
            held = self._held.get(key)
            if held is not None and held[0] == token:
                del self._held[key]


class DatabaseLockManager:
    """
    Lock manager backed by the task_locks table.

    Works across processes and hosts sharing the database. The primary key on
    task_locks.key makes acquisition atomic: an expired row is deleted and a
    fresh one inserted in the same transaction, and whichever worker's insert
    loses gets an IntegrityError and is told the lock is busy.

    Each call uses its own short-lived session so lock rows are committed
    independently of the caller's unit of work.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    def try_acquire(self, key: str, ttl_seconds: float) -> Optional[str]:
        token = uuid.uuid4().hex
        session: Session = self._session_factory()
        try:
            now = self._clock()
            session.execute(
                delete(TaskLock).where(TaskLock.key == key, TaskLock.expires_at <= now)
            )
            session.add(
                TaskLock(
                    key=key,
                    owner=token,
                    acquired_at=now,
                    expires_at=now + timedelta(seconds=ttl_seconds),
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return None
            return token
        finally:
            session.close()

    def release(self, key: str, token: str) -> None:
        session: Session = self._session_factory()
        try:
            session.execute(
                delete(TaskLock).where(TaskLock.key == key, TaskLock.owner == token)
            )
            session.commit()
        finally:
            session.close()


@contextmanager
def without_overlapping(
    manager: LockManager,
    key: str,
    ttl_seconds: float,
) -> Generator[bool, None, None]:
    """
    Hold ``key`` for the life of this context if it is free.

    Yields:
        True if the lock was acquired, False if it was busy. A busy lock is
        not waited on; the caller is expected to drop its work.
    """
    token = manager.try_acquire(key, ttl_seconds)
    if token is None:
        logger.debug("Lock %s is busy", key)
    try:
        yield token is not None
    finally:
        if token is not None:
            manager.release(key, token)
