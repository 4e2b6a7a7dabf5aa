"""Timer and post-enqueue triggers for queue processing."""

from __future__ import annotations

import asyncio
import logging

from .processor import SyncProcessor

logger = logging.getLogger(__name__)


class PeriodicSync:
    """Run a processing pass on start, every ``interval_seconds``, and when kicked."""

    def __init__(self, processor: SyncProcessor, *, interval_seconds: float = 60.0) -> None:
        self._processor = processor
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None
        self._kicks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        """Run one pass; failures are logged so the timer keeps firing."""

        try:
            await self._processor.process_queue()
        except Exception:
            logger.exception("Queue processing pass failed")

    async def _run(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info("Periodic sync started", extra={"interval_seconds": self._interval})
        return self._task

    async def stop(self) -> None:
        tasks = [task for task in (self._task, *self._kicks) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        self._kicks.clear()

    def kick(self) -> asyncio.Task | None:
        """Schedule a pass without waiting for it; ignored when no loop is running."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; queued item waits for the next tick")
            return None
        task = loop.create_task(self.tick())
        self._kicks.add(task)
        task.add_done_callback(self._kicks.discard)
        return task


__all__ = ["PeriodicSync"]
