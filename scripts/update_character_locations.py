#!/usr/bin/env python3
"""
Sync character locations and ships from ESI.

Runs UpdateCharacterLocation for every tracked character (or only the
given status ids) with bounded parallelism. Records already being synced
by another worker are dropped, not waited on.

Usage:
    # Sync everyone
    python scripts/update_character_locations.py

    # Sync two records, four at a time, writing metrics
    python scripts/update_character_locations.py --status-id 12 --status-id 40 \
        --max-parallel 4 --metrics-json artifacts/locations.json

    # Single process, no shared database locks
    python scripts/update_character_locations.py --lock-backend memory
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from charsync.config import settings
from charsync.db import get_session, get_session_factory
from charsync.esi import EsiClient
from charsync.logging_config import configure_logging
from charsync.tasks import (
    DatabaseLockManager,
    InMemoryLockManager,
    UpdateCharacterLocation,
    list_status_ids,
    sync_character_locations,
)

logger = logging.getLogger(__name__)


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync character location and ship from ESI."
    )
    parser.add_argument(
        "--status-id",
        type=int,
        action="append",
        dest="status_ids",
        help="CharacterStatus id to sync (repeatable). Defaults to all.",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        default=settings.sync_max_parallel,
        help="Maximum syncs in flight at once.",
    )
    parser.add_argument(
        "--lock-backend",
        choices=["database", "memory"],
        default="database",
        help="Where per-record locks live. 'memory' only guards this process.",
    )
    parser.add_argument(
        "--metrics-json",
        type=Path,
        default=None,
        help="Optional path for a JSON summary of the run.",
    )
    return parser


def _run_one(
    status_id: int,
    *,
    session_factory,
    lock_manager,
):
    # requests.Session is not thread-safe; each sync gets its own client
    esi = EsiClient()
    try:
        return UpdateCharacterLocation(status_id).run(session_factory, esi, lock_manager)
    finally:
        esi.close()


async def main() -> int:
    args = _build_parser().parse_args()
    configure_logging()

    session_factory = get_session_factory()
    if args.lock_backend == "database":
        lock_manager = DatabaseLockManager(session_factory)
    else:
        lock_manager = InMemoryLockManager()

    if args.status_ids:
        status_ids = args.status_ids
    else:
        with get_session() as session:
            status_ids = list_status_ids(session)

    started_at = datetime.now(timezone.utc)
    logger.info("Syncing %d character statuses (max_parallel=%d)", len(status_ids), args.max_parallel)

    summary = await sync_character_locations(
        status_ids,
        partial(_run_one, session_factory=session_factory, lock_manager=lock_manager),
        max_parallel=args.max_parallel,
    )

    if args.metrics_json is not None:
        payload = {
            "script": "update_character_locations",
            "started_at": started_at.isoformat(),
            "ended_at": datetime.now(timezone.utc).isoformat(),
            **summary.to_dict(),
        }
        _write_json(args.metrics_json, payload)

    return 1 if summary.counts.get("error") else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
