"""Exponential backoff for queued submissions."""

from __future__ import annotations

from dataclasses import dataclass

from ..storage.models import QueueItem


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Decides when a failed item may be attempted again and when to give up."""

    max_retries: int = 5
    base_delay_ms: int = 1000
    max_delay_ms: int = 60_000

    def delay_for(self, retries: int) -> int:
        """Milliseconds that must pass after the last attempt of an item with ``retries`` failures."""

        if retries <= 0:
            return 0
        return min(self.base_delay_ms * 2 ** (retries - 1), self.max_delay_ms)

    def eligible_now(self, item: QueueItem, now_ms: int) -> bool:
        if item.retries <= 0 or item.last_attempt is None:
            return True
        return now_ms - item.last_attempt >= self.delay_for(item.retries)

    def exhausted(self, item: QueueItem) -> bool:
        """True when the failure just observed is the item's last allowed one."""

        return item.retries + 1 >= self.max_retries


__all__ = ["RetryPolicy"]
