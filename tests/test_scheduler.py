from __future__ import annotations

import asyncio
import logging

from neetsync.sync import PassResult, PeriodicSync


class StubProcessor:
    def __init__(self, *, fail: bool = False) -> None:
        self.calls = 0
        self._fail = fail

    async def process_queue(self) -> PassResult:
        self.calls += 1
        if self._fail:
            raise RuntimeError("boom")
        return PassResult()


def test_runs_on_start_and_every_interval() -> None:
    processor = StubProcessor()
    periodic = PeriodicSync(processor, interval_seconds=0.01)

    async def scenario() -> None:
        periodic.start()
        assert periodic.running
        await asyncio.sleep(0.05)
        await periodic.stop()

    asyncio.run(scenario())
    assert processor.calls >= 2
    assert not periodic.running


def test_failed_pass_is_logged_and_loop_continues(caplog) -> None:
    processor = StubProcessor(fail=True)
    periodic = PeriodicSync(processor, interval_seconds=0.01)

    async def scenario() -> None:
        periodic.start()
        await asyncio.sleep(0.05)
        await periodic.stop()

    with caplog.at_level(logging.ERROR):
        asyncio.run(scenario())

    assert processor.calls >= 2
    assert any("Queue processing pass failed" in record.getMessage() for record in caplog.records)


def test_kick_schedules_a_pass() -> None:
    processor = StubProcessor()
    periodic = PeriodicSync(processor, interval_seconds=60)

    async def scenario() -> None:
        task = periodic.kick()
        assert task is not None
        await task

    asyncio.run(scenario())
    assert processor.calls == 1


def test_kick_without_loop_is_ignored() -> None:
    processor = StubProcessor()
    assert PeriodicSync(processor).kick() is None
    assert processor.calls == 0
