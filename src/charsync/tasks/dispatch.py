"""
Batch runner for location syncs.

Runs one UpdateCharacterLocation per status id with bounded parallelism.
Each sync blocks on HTTP and the database, so syncs run in worker threads
while an asyncio semaphore caps how many are in flight. A sync that raises
is reported as an "error" result; the rest of the batch carries on.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from sqlalchemy.orm import Session

from charsync.db.models import CharacterStatus
from charsync.tasks.runtime import SyncResult

logger = logging.getLogger(__name__)

SyncRunner = Callable[[int], SyncResult]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class BatchSummary:
    """Results of one batch, in the order the status ids were given."""

    results: list[SyncResult] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return dict(Counter(result.status for result in self.results))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.results),
            "counts": self.counts,
            "results": [result.to_dict() for result in self.results],
        }


def list_status_ids(session: Session) -> list[int]:
    """All CharacterStatus ids, oldest first."""
    rows = session.query(CharacterStatus.id).order_by(CharacterStatus.id.asc()).all()
    return [row.id for row in rows]


async def _run_guarded(
    status_id: int,
    run_one: SyncRunner,
    semaphore: asyncio.Semaphore,
) -> SyncResult:
    async with semaphore:
        started_at = _utc_now()
        try:
            return await asyncio.to_thread(run_one, status_id)
        except Exception as exc:
            logger.exception("Location sync for status %d failed: %s", status_id, exc)
            return SyncResult(
                status_id=status_id,
                status="error",
                started_at=started_at,
                ended_at=_utc_now(),
                error=f"{type(exc).__name__}: {exc}",
            )


async def sync_character_locations(
    status_ids: Iterable[int],
    run_one: SyncRunner,
    max_parallel: int = 8,
) -> BatchSummary:
    """
    Sync many status records concurrently.

    Args:
        status_ids: CharacterStatus ids to sync
        run_one: Callable running a single sync, e.g. a bound
            UpdateCharacterLocation(...).run
        max_parallel: Maximum syncs in flight at once

    Returns:
        BatchSummary with one result per id
    """
    semaphore = asyncio.Semaphore(max(1, max_parallel))
    results = await asyncio.gather(
        *(_run_guarded(status_id, run_one, semaphore) for status_id in status_ids)
    )
    summary = BatchSummary(results=list(results))
    logger.info("Location sync batch finished: %s", summary.counts)
    return summary
