"""Persistent audit log kept as a bounded, newest-first ring buffer."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable

from .chroma import ChromaStore, new_record_id
from .models import LogEntry, epoch_ms

logger = logging.getLogger("neetsync.sync")

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class SyncLog:
    """Audit trail surfaced to users; every entry is mirrored to stdlib logging."""

    def __init__(
        self,
        store: ChromaStore,
        *,
        capacity: int = 100,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._capacity = capacity
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def capacity(self) -> int:
        return self._capacity

    def _append(self, level: str, message: str, details: str | None) -> LogEntry:
        entry = LogEntry(
            id=new_record_id(self._clock),
            timestamp=epoch_ms(self._clock()),
            level=level,
            message=message,
            details=details,
        )
        logger.log(
            _LEVELS[level],
            message,
            extra={"sync_level": level, "details": details} if details else {"sync_level": level},
        )

        # Oldest entries fall off the right end once capacity is reached.
        ring: deque[dict] = deque(self._store.get_logs(), maxlen=self._capacity)
        ring.appendleft(entry.to_document())
        self._store.save_logs(ring)
        return entry

    def info(self, message: str, details: str | None = None) -> LogEntry:
        return self._append("info", message, details)

    def warn(self, message: str, details: str | None = None) -> LogEntry:
        return self._append("warn", message, details)

    def error(self, message: str, details: str | None = None) -> LogEntry:
        return self._append("error", message, details)

    def success(self, message: str, details: str | None = None) -> LogEntry:
        return self._append("success", message, details)

    def entries(self, limit: int | None = None) -> list[LogEntry]:
        stored = self._store.get_logs()
        if limit is not None:
            stored = stored[:limit]
        return [LogEntry.model_validate(item) for item in stored]

    def clear(self) -> None:
        self._store.save_logs([])


__all__ = ["SyncLog"]
