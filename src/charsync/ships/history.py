"""
Ship history recording.

Keeps one ShipHistory row per stint in a ship instance. Called after every
successful location sync with the ship the character is currently in.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from charsync.db.models import ShipHistory

logger = logging.getLogger(__name__)


class ShipHistoryRecorder:
    """
    Records which ship instances a character has flown.

    The recorder only flushes; committing is up to the caller so the history
    row lands in the same transaction as whatever else the caller writes.

    Usage:
        recorder = ShipHistoryRecorder(session)
        recorder.record(character_id, ship_item_id, ship_type_id, "Rifter")
        session.commit()
    """

    def __init__(self, session: Session):
        self.session = session

    def latest(self, character_id: int) -> Optional[ShipHistory]:
        """Most recent history row for a character, or None."""
        return (
            self.session.query(ShipHistory)
            .filter(ShipHistory.character_id == character_id)
            .order_by(ShipHistory.last_seen_at.desc(), ShipHistory.id.desc())
            .first()
        )

    def record(
        self,
        character_id: int,
        ship_item_id: int,
        ship_type_id: int,
        ship_name: str,
    ) -> ShipHistory:
        """
        Record that a character is currently in the given ship.

        If the character's latest stint is in the same ship instance it is
        extended (and renamed, if the pilot renamed the ship). Otherwise a
        new stint starts.

        Returns:
            The ShipHistory row that was updated or created
        """
        now = datetime.utcnow()
        current = self.latest(character_id)

        if current is not None and current.ship_item_id == ship_item_id:
            current.ship_name = ship_name
            current.ship_type_id = ship_type_id
            current.last_seen_at = now
            self.session.flush()
            return current

        entry = ShipHistory(
            character_id=character_id,
            ship_item_id=ship_item_id,
            ship_type_id=ship_type_id,
            ship_name=ship_name,
            first_seen_at=now,
            last_seen_at=now,
        )
        self.session.add(entry)
        self.session.flush()

        logger.debug(
            "Character %d boarded ship %d (type %d, '%s')",
            character_id, ship_item_id, ship_type_id, ship_name,
        )
        return entry
