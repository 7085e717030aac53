"""Shared runtime dataclasses for character sync tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

SyncStatus = Literal[
    "changed",
    "unchanged",
    "missing",
    "location_failed",
    "ship_failed",
    "dropped",
    "error",
]


@dataclass
class SyncResult:
    """Outcome of one location sync for one status record."""

    status_id: int
    status: SyncStatus
    started_at: datetime
    ended_at: datetime
    changed_fields: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def duration_s(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_id": self.status_id,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_s": self.duration_s,
            "changed_fields": self.changed_fields,
            "error": self.error,
        }
