"""Unit tests for the location sync batch runner."""

import asyncio
import logging
import threading
from datetime import datetime

from charsync.db.models import Character, CharacterStatus
from charsync.tasks.dispatch import BatchSummary, list_status_ids, sync_character_locations
from charsync.tasks.location import UpdateCharacterLocation
from charsync.tasks.locks import InMemoryLockManager
from charsync.tasks.runtime import SyncResult
from stubs import StubEsi, location_ok, ship_ok


def _result(status_id, status):
    now = datetime(2026, 10, 18, 12, 0, 0)
    return SyncResult(status_id=status_id, status=status, started_at=now, ended_at=now)


def test_results_keep_input_order_and_are_counted():
    outcomes = {1: "changed", 2: "unchanged", 3: "changed", 4: "missing"}

    summary = asyncio.run(
        sync_character_locations([1, 2, 3, 4], lambda sid: _result(sid, outcomes[sid]), max_parallel=2)
    )

    assert [r.status_id for r in summary.results] == [1, 2, 3, 4]
    assert summary.counts == {"changed": 2, "unchanged": 1, "missing": 1}


def test_raising_sync_becomes_error_result():
    def run_one(status_id):
        if status_id == 2:
            raise RuntimeError("database is locked")
        return _result(status_id, "unchanged")

    summary = asyncio.run(sync_character_locations([1, 2, 3], run_one))

    assert summary.counts == {"unchanged": 2, "error": 1}
    failed = summary.results[1]
    assert failed.status_id == 2
    assert failed.error == "RuntimeError: database is locked"


def test_raising_sync_logs_traceback(caplog):
    def run_one(status_id):
        raise RuntimeError("database is locked")

    with caplog.at_level(logging.ERROR, logger="charsync.tasks.dispatch"):
        asyncio.run(sync_character_locations([7], run_one))

    record = next(r for r in caplog.records if "status 7 failed" in r.getMessage())
    assert record.exc_info is not None
    assert record.exc_info[0] is RuntimeError
    assert "Traceback" in caplog.text


def test_parallelism_is_bounded():
    lock = threading.Lock()
    in_flight = 0
    peak = 0
    release = threading.Event()

    def run_one(status_id):
        nonlocal in_flight, peak
        with lock:
            in_flight += 1
            peak = max(peak, in_flight)
        release.wait(timeout=0.05)
        with lock:
            in_flight -= 1
        return _result(status_id, "unchanged")

    asyncio.run(sync_character_locations(range(10), run_one, max_parallel=3))

    assert 1 <= peak <= 3


def test_summary_to_dict():
    summary = BatchSummary(results=[_result(1, "changed"), _result(2, "dropped")])

    payload = summary.to_dict()

    assert payload["total"] == 2
    assert payload["counts"] == {"changed": 1, "dropped": 1}
    assert payload["results"][1]["status"] == "dropped"


def test_list_status_ids(db_session):
    for character_id in (3, 1, 2):
        db_session.add(
            CharacterStatus(character=Character(id=character_id, name=f"Pilot {character_id}"))
        )
    db_session.commit()

    assert list_status_ids(db_session) == [1, 2, 3]


def test_batch_of_real_tasks(session_factory, status_id):
    locks = InMemoryLockManager()
    esi = StubEsi(location=location_ok(solar_system_id=30002187), ship=ship_ok())

    summary = asyncio.run(
        sync_character_locations(
            [status_id, status_id + 100],
            lambda sid: UpdateCharacterLocation(sid).run(session_factory, esi, locks),
            # One shared SQLite connection; keep database access on one thread at a time
            max_parallel=1,
        )
    )

    assert summary.counts == {"changed": 1, "missing": 1}
