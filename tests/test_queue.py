from __future__ import annotations

from neetsync.storage import ChromaStore, MappingEntry, SolvedEntry, SyncLog
from neetsync.storage.models import epoch_ms
from neetsync.sync import QueueManager, SubmissionPayload, fingerprint


def _submission(**overrides) -> SubmissionPayload:
    payload = {
        "slug": "two-sum",
        "title": "Two Sum",
        "language": "python",
        "code": "class Solution: pass",
        "source": "dom",
    }
    payload.update(overrides)
    return SubmissionPayload.model_validate(payload)


def _manager(store: ChromaStore, sync_log: SyncLog, clock, **kwargs) -> QueueManager:
    return QueueManager(store, sync_log, clock=clock, **kwargs)


def test_enqueue_persists_item_and_kicks(store, sync_log, clock) -> None:
    kicks: list[bool] = []
    manager = _manager(store, sync_log, clock, kick=lambda: kicks.append(True))

    assert manager.enqueue(_submission()) is True

    queue = store.get_queue()
    assert len(queue) == 1
    assert queue[0].slug == "two-sum"
    assert queue[0].retries == 0
    assert queue[0].at == epoch_ms(clock())
    assert kicks == [True]
    assert sync_log.entries()[0].message == "Queued: Two Sum (python)"


def test_identical_submission_is_already_queued(store, sync_log, clock) -> None:
    manager = _manager(store, sync_log, clock)
    manager.enqueue(_submission())
    assert manager.enqueue(_submission()) is False
    assert len(store.get_queue()) == 1


def test_changed_code_replaces_pending_item(store, sync_log, clock) -> None:
    manager = _manager(store, sync_log, clock)
    manager.enqueue(_submission())
    first_id = store.get_queue()[0].id

    clock.advance(seconds=5)
    assert manager.enqueue(_submission(code="class Solution:\n    pass")) is True

    queue = store.get_queue()
    assert len(queue) == 1
    assert queue[0].id != first_id
    assert queue[0].code == "class Solution:\n    pass"


def test_other_language_is_queued_separately(store, sync_log, clock) -> None:
    manager = _manager(store, sync_log, clock)
    manager.enqueue(_submission())
    manager.enqueue(_submission(language="java", code="class Solution {}"))
    assert [item.language for item in store.get_queue()] == ["python", "java"]


def test_recently_synced_solution_is_dropped(store, sync_log, clock) -> None:
    code = "class Solution: pass"
    store.update_solved(
        "two-sum",
        SolvedEntry(
            title="Two Sum",
            language="python",
            solved_at=epoch_ms(clock()),
            sha256=fingerprint("two-sum", "python", code),
        ),
    )
    manager = _manager(store, sync_log, clock, duplicate_window_seconds=60)

    clock.advance(seconds=30)
    assert manager.enqueue(_submission(code=code)) is False
    assert store.get_queue() == []

    clock.advance(seconds=31)
    assert manager.enqueue(_submission(code=code)) is True


def test_missing_code_is_skipped(store, sync_log, clock) -> None:
    manager = _manager(store, sync_log, clock)
    assert manager.enqueue(_submission(code=None)) is False
    assert store.get_queue() == []
    assert sync_log.entries()[0].level == "warn"


def test_defaults_fill_from_mapping(store, sync_log, clock) -> None:
    store.merge_mapping(
        {"two-sum": MappingEntry(category="Arrays & Hashing", list_name="Blind 75", difficulty="Easy")}
    )
    manager = _manager(store, sync_log, clock)
    manager.enqueue(_submission(title="", language=None, category="Hashing"))

    item = store.get_queue()[0]
    assert item.title == "Two Sum"
    assert item.language == "unknown"
    assert item.category == "Hashing"
    assert item.list_name == "Blind 75"
    assert item.difficulty == "Easy"


def test_fingerprint_is_stable() -> None:
    assert fingerprint("two-sum", "python", "x") == fingerprint("two-sum", "python", "x")
    assert fingerprint("two-sum", "python", "x") != fingerprint("two-sum", "java", "x")
    assert len(fingerprint("a", "b", "c")) == 64
