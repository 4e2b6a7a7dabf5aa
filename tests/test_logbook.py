from __future__ import annotations

import logging

from neetsync.storage import ChromaStore, SyncLog


def test_entries_are_newest_first(sync_log: SyncLog, clock) -> None:
    sync_log.info("first")
    clock.advance(seconds=1)
    sync_log.error("second", "boom")

    entries = sync_log.entries()
    assert [entry.message for entry in entries] == ["second", "first"]
    assert entries[0].level == "error"
    assert entries[0].details == "boom"
    assert entries[0].timestamp > entries[1].timestamp


def test_ring_buffer_drops_oldest(store: ChromaStore, clock) -> None:
    log = SyncLog(store, capacity=3, clock=clock)
    for index in range(5):
        log.info(f"entry {index}")

    messages = [entry.message for entry in log.entries()]
    assert messages == ["entry 4", "entry 3", "entry 2"]
    assert len(store.get_logs()) == 3


def test_limit_and_clear(sync_log: SyncLog) -> None:
    for index in range(4):
        sync_log.success(f"synced {index}")

    assert len(sync_log.entries(2)) == 2
    sync_log.clear()
    assert sync_log.entries() == []


def test_entries_mirror_to_stdlib_logging(sync_log: SyncLog, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="neetsync.sync"):
        sync_log.warn("Retry 1/5 for Two Sum", "409 conflict")

    record = next(record for record in caplog.records if record.name == "neetsync.sync")
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "Retry 1/5 for Two Sum"
    assert record.sync_level == "warn"
    assert record.details == "409 conflict"
