"""
Character location sync task.

Fetches a character's location and active ship from ESI and writes both to
their CharacterStatus row. When anything changed, the row is stamped with
event_queued_at so the external notifier knows to announce it; this task
never sends the event itself.

Flow for one status id:
1. Take the per-record lock (drop the run if it's busy)
2. Load the CharacterStatus (gone -> nothing to do)
3. Fetch location, then ship (either fails -> log and stop, nothing written)
4. Normalize the ship name and write all six fields in one commit
5. If any field changed, stamp event_queued_at in a second write
6. Record the ship in ship history

Usage:
    task = UpdateCharacterLocation(status_id)
    result = task.run(SessionLocal, EsiClient(), InMemoryLockManager())
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.orm import Session, sessionmaker

from charsync.config import settings
from charsync.db.models import Character, CharacterStatus
from charsync.esi.client import EsiResult
from charsync.esi.models import Location, Ship
from charsync.ships.history import ShipHistoryRecorder
from charsync.ships.names import normalize_ship_name
from charsync.tasks.locks import LockManager, without_overlapping
from charsync.tasks.runtime import SyncResult, SyncStatus

logger = logging.getLogger(__name__)

# Fields written by every successful sync; a change in any of them queues an event
TRACKED_FIELDS = (
    "solarsystem_id",
    "station_id",
    "structure_id",
    "ship_name",
    "ship_type_id",
    "ship_item_id",
)


class CharacterLocationService(Protocol):
    """The two ESI lookups the sync depends on."""

    def get_location(self, character: Character) -> EsiResult[Location]:
        ...

    def get_ship(self, character: Character) -> EsiResult[Ship]:
        ...


class ShipRecorder(Protocol):
    def record(
        self,
        character_id: int,
        ship_item_id: int,
        ship_type_id: int,
        ship_name: str,
    ) -> Any:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def location_lock_key(character_status_id: int) -> str:
    """Lock name guarding syncs of one status record."""
    return f"update-character-location:{character_status_id}"


class UpdateCharacterLocation:
    """
    Sync one CharacterStatus row with ESI.

    run() wraps handle() in the per-record lock and owns the session;
    handle() does the actual work against a session the caller provides.
    Persistence and lock errors propagate to the caller.
    """

    def __init__(self, character_status_id: int, lock_ttl_seconds: Optional[int] = None):
        self.character_status_id = character_status_id
        self.lock_ttl_seconds = (
            lock_ttl_seconds if lock_ttl_seconds is not None else settings.location_lock_ttl_seconds
        )

    @property
    def lock_key(self) -> str:
        return location_lock_key(self.character_status_id)

    def run(
        self,
        session_factory: sessionmaker,
        esi: CharacterLocationService,
        lock_manager: LockManager,
        recorder_factory: Callable[[Session], ShipRecorder] = ShipHistoryRecorder,
    ) -> SyncResult:
        """Run the sync unless another run for the same record holds the lock."""
        started_at = _utc_now()

        with without_overlapping(lock_manager, self.lock_key, self.lock_ttl_seconds) as acquired:
            if not acquired:
                logger.info(
                    "Location sync for status %d already running, dropping",
                    self.character_status_id,
                )
                return self._result("dropped", started_at)

            session = session_factory()
            try:
                return self.handle(session, esi, recorder_factory(session), started_at=started_at)
            finally:
                session.close()

    def handle(
        self,
        session: Session,
        esi: CharacterLocationService,
        recorder: ShipRecorder,
        started_at: Optional[datetime] = None,
    ) -> SyncResult:
        started_at = started_at or _utc_now()

        status = session.get(CharacterStatus, self.character_status_id)
        if status is None:
            # Deleted since the run was scheduled
            return self._result("missing", started_at)

        character = status.character

        location_request = esi.get_location(character)
        if location_request.failed:
            logger.info(
                "Failed to fetch location for character %d",
                status.character_id,
                extra={"payload": location_request.to_dict()},
            )
            return self._result("location_failed", started_at)

        ship_request = esi.get_ship(character)
        if ship_request.failed:
            logger.info(
                "Failed to fetch ship for character %d",
                status.character_id,
                extra={"payload": ship_request.to_dict()},
            )
            return self._result("ship_failed", started_at)

        location = location_request.data
        ship = ship_request.data
        ship_name = normalize_ship_name(ship.ship_name)

        values = {
            "solarsystem_id": location.solar_system_id,
            "station_id": location.station_id,
            "structure_id": location.structure_id,
            "ship_name": ship_name,
            "ship_type_id": ship.ship_type_id,
            "ship_item_id": ship.ship_item_id,
        }
        changed_fields = [name for name in TRACKED_FIELDS if getattr(status, name) != values[name]]

        for name, value in values.items():
            setattr(status, name, value)
        session.commit()

        # Marker commits before the history row; a recorder failure leaves it set
        if changed_fields:
            status.event_queued_at = _utc_now()
            session.commit()

        recorder.record(status.character_id, ship.ship_item_id, ship.ship_type_id, ship_name)
        session.commit()

        if changed_fields:
            logger.debug(
                "Character %d status changed: %s",
                status.character_id,
                ", ".join(changed_fields),
            )
            return self._result("changed", started_at, changed_fields)
        return self._result("unchanged", started_at)

    def _result(
        self,
        status: SyncStatus,
        started_at: datetime,
        changed_fields: Optional[list[str]] = None,
    ) -> SyncResult:
        return SyncResult(
            status_id=self.character_status_id,
            status=status,
            started_at=started_at,
            ended_at=_utc_now(),
            changed_fields=changed_fields or [],
        )
