"""Task runtime utilities for character sync jobs."""

from charsync.tasks.dispatch import BatchSummary, list_status_ids, sync_character_locations
from charsync.tasks.location import UpdateCharacterLocation, location_lock_key
from charsync.tasks.locks import (
    DatabaseLockManager,
    InMemoryLockManager,
    LockManager,
    without_overlapping,
)
from charsync.tasks.runtime import SyncResult

__all__ = [
    "BatchSummary",
    "DatabaseLockManager",
    "InMemoryLockManager",
    "LockManager",
    "SyncResult",
    "UpdateCharacterLocation",
    "list_status_ids",
    "location_lock_key",
    "sync_character_locations",
    "without_overlapping",
]
