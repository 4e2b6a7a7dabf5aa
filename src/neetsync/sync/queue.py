"""Queue manager: dedup on enqueue and pending-item bookkeeping."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from ..storage import ChromaStore, QueueItem, SyncLog
from ..storage.chroma import new_record_id
from ..storage.models import epoch_ms
from .fingerprint import fingerprint
from .models import SubmissionPayload
from .paths import slug_to_title

UNKNOWN_LANGUAGE = "unknown"


class QueueManager:
    """Accepts submissions into the durable queue, collapsing duplicates."""

    def __init__(
        self,
        store: ChromaStore,
        log: SyncLog,
        *,
        duplicate_window_seconds: int = 60,
        kick: Callable[[], object] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._log = log
        self._duplicate_window_ms = duplicate_window_seconds * 1000
        self.kick = kick
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def enqueue(self, submission: SubmissionPayload) -> bool:
        """Queue ``submission`` unless it duplicates a pending or just-synced solution.

        Returns True when a new item was persisted. A processing pass is kicked
        off without waiting for it.
        """

        title = submission.title or slug_to_title(submission.slug)
        language = submission.language or UNKNOWN_LANGUAGE
        self._log.info(
            f"Submission received: {title}",
            f"Language: {language}, Source: {submission.source}",
        )
        if not submission.code:
            self._log.warn(f"Submission has no code, skipping: {title}")
            return False

        code_hash = fingerprint(submission.slug, language, submission.code)
        now = epoch_ms(self._clock())

        solved = self._store.get_progress().solved.get(submission.slug)
        if (
            solved is not None
            and solved.sha256 == code_hash
            and now - solved.solved_at < self._duplicate_window_ms
        ):
            self._log.info(f"Duplicate submission ignored: {title}")
            return False

        queue = self._store.get_queue()
        for existing in queue:
            if existing.slug != submission.slug or existing.language != language:
                continue
            if fingerprint(existing.slug, existing.language, existing.code) == code_hash:
                self._log.info(f"Already queued: {title}")
                return False
            queue = [item for item in queue if item.id != existing.id]
            self._log.info(f"Replacing queued solution: {title} ({language})")
            break

        entry = self._store.get_mapping().entries.get(submission.slug)
        queue.append(
            QueueItem(
                id=new_record_id(self._clock),
                slug=submission.slug,
                title=title,
                category=submission.category or (entry.category if entry else None),
                list_name=submission.list_name or (entry.list_name if entry else None),
                difficulty=submission.difficulty or (entry.difficulty if entry else None),
                language=language,
                code=submission.code,
                meta=submission.meta,
                source=submission.source,
                at=now,
            )
        )
        self._store.save_queue(queue)
        self._log.success(f"Queued: {title} ({language})")

        if self.kick is not None:
            self.kick()
        return True

    def pending(self) -> list[QueueItem]:
        return self._store.get_queue()

    def remove(self, item: QueueItem) -> None:
        self._store.remove_from_queue(item.id)

    def record_failure(self, item: QueueItem, now_ms: int) -> QueueItem | None:
        return self._store.update_queue_item(item.id, retries=item.retries + 1, last_attempt=now_ms)


__all__ = ["QueueManager", "UNKNOWN_LANGUAGE"]
