"""
SQLAlchemy ORM models for charsync.

Tables:
- characters: Tracked characters and their ESI bearer token
- character_statuses: Last known location and ship per character
- ship_histories: Which ship instances a character has flown, and when
- task_locks: Expiring named locks guarding concurrent task runs
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Character Models
# =============================================================================

class Character(Base):
    """
    A tracked EVE character.

    The primary key is the in-game character id, so ESI paths can be built
    from it directly.
    """
    __tablename__ = "characters"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Bearer token for the authenticated location/ship endpoints.
    # Refreshing it is handled outside this project.
    esi_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    status: Mapped[Optional["CharacterStatus"]] = relationship(back_populates="character")

    def __repr__(self) -> str:
        return f"<Character(id={self.id}, name='{self.name}')>"


class CharacterStatus(Base):
    """
    Last known location and active ship of a character.

    Location fields mirror ESI's /characters/{id}/location/ payload: a
    character in space only has a solar system, a docked character also has
    either a station (NPC) or a structure (player-owned).

    event_queued_at is set whenever a sync changes any tracked field; an
    external notifier picks it up and clears it after announcing.
    """
    __tablename__ = "character_statuses"

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    # Location
    solarsystem_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    station_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    structure_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Active ship
    ship_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ship_type_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    ship_item_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    event_queued_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    character: Mapped["Character"] = relationship(back_populates="status")

    __table_args__ = (
        Index("idx_character_statuses_event_queued", "event_queued_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CharacterStatus(id={self.id}, character_id={self.character_id}, "
            f"solarsystem_id={self.solarsystem_id})>"
        )


class ShipHistory(Base):
    """
    One stint of a character in a specific ship instance.

    A new row starts whenever the character is seen in a different
    ship_item_id; while they stay in the same ship, last_seen_at moves.
    """
    __tablename__ = "ship_histories"

    id: Mapped[int] = mapped_column(primary_key=True)
    character_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("characters.id", ondelete="CASCADE"), nullable=False
    )
    ship_item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ship_type_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ship_name: Mapped[str] = mapped_column(String(255), nullable=False)

    first_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_ship_histories_character_last_seen", "character_id", "last_seen_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShipHistory(character_id={self.character_id}, "
            f"ship_item_id={self.ship_item_id}, name='{self.ship_name}')>"
        )


# =============================================================================
# Operations Models
# =============================================================================

class TaskLock(Base):
    """Named lock with a hard expiry, shared by all workers via the database."""

    __tablename__ = "task_locks"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    owner: Mapped[str] = mapped_column(String(64), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<TaskLock(key='{self.key}', expires_at={self.expires_at})>"
