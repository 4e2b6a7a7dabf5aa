"""Single-flight processing of the submission queue."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator

from ..github import GitHubClient, GitHubError
from ..storage import (
    ChromaStore,
    Mapping,
    MappingEntry,
    QueueItem,
    SolvedEntry,
    SyncLog,
    SyncSettings,
)
from ..storage.models import epoch_ms, from_epoch_ms
from .fingerprint import fingerprint
from .models import PassResult
from .paths import resolve
from .progress import ProgressAggregator
from .queue import QueueManager
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], GitHubClient]


class SyncLease:
    """Process-wide Idle/Running flag; at most one pass holds it."""

    def __init__(self) -> None:
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    @contextmanager
    def acquire(self) -> Iterator[bool]:
        """Yield True if the lease was taken, False if another pass holds it."""

        if self._held:
            yield False
            return
        self._held = True
        try:
            yield True
        finally:
            self._held = False


class SyncProcessor:
    """Commits queued submissions to GitHub and refreshes the progress documents."""

    def __init__(
        self,
        store: ChromaStore,
        queue: QueueManager,
        log: SyncLog,
        *,
        client_factory: ClientFactory,
        aggregator: ProgressAggregator | None = None,
        policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._queue = queue
        self._log = log
        self._client_factory = client_factory
        self._aggregator = aggregator or ProgressAggregator(clock=clock)
        self._policy = policy or RetryPolicy()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lease = SyncLease()

    @property
    def is_processing(self) -> bool:
        return self._lease.held

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def process_queue(self) -> PassResult:
        """Run one pass over the queue; a no-op while another pass is running."""

        with self._lease.acquire() as acquired:
            if not acquired:
                self._log.info("Queue processing already in progress")
                return PassResult(skipped=True)
            return await self._run_pass()

    async def sync_progress(self) -> tuple[bool, str | None]:
        """Regenerate and commit the progress documents outside of a queue pass."""

        with self._lease.acquire() as acquired:
            if not acquired:
                return False, "Queue processing in progress"
            settings, token = self._store.get_settings(), self._store.get_token()
            if not token or not settings.is_configured:
                self._log.warn("GitHub not configured")
                return False, "GitHub not configured"
            async with self._client_factory(token, settings.repo_full_name) as client:
                return await self._publish_progress(client, settings)

    async def _run_pass(self) -> PassResult:
        result = PassResult()
        queue = self._store.get_queue()
        if not queue:
            return result

        settings = self._store.get_settings()
        token = self._store.get_token()
        if not token or not settings.is_configured:
            self._log.warn("GitHub not configured, skipping queue processing")
            result.configured = False
            return result

        self._log.info(f"Processing {len(queue)} queued items")
        async with self._client_factory(token, settings.repo_full_name) as client:
            for item in queue:
                if not self._policy.eligible_now(item, epoch_ms(self._clock())):
                    result.deferred += 1
                    continue

                mapping = self._store.get_mapping()
                try:
                    await self._commit_item(client, item, settings, mapping)
                except GitHubError as exc:
                    self._handle_failure(item, exc, result)
                    continue
                except Exception as exc:
                    logger.exception("Unexpected error committing queued item", extra={"slug": item.slug})
                    self._handle_failure(item, exc, result)
                    continue

                self._record_solved(item, mapping)
                self._queue.remove(item)
                result.processed += 1

            if result.processed:
                result.progress_synced, _ = await self._publish_progress(client, settings)
                self._store.set_last_sync(epoch_ms(self._clock()))
                self._log.success(
                    f"Queue processed: {result.processed} synced, {result.failed} failed"
                )

        logger.debug("Queue pass finished", extra=result.to_dict())
        return result

    async def _commit_item(
        self,
        client: GitHubClient,
        item: QueueItem,
        settings: SyncSettings,
        mapping: Mapping,
    ) -> None:
        resolved = resolve(
            settings,
            item.slug,
            item.title,
            item.language,
            self._classification(item, mapping),
            item.difficulty,
            runtime=item.meta.runtime if item.meta else None,
            memory=item.meta.memory if item.meta else None,
            solved_at=from_epoch_ms(item.at),
        )
        if settings.debug_mode:
            self._log.info(f"Resolved {item.slug} to {resolved.path}")

        content = resolved.header + item.code if settings.include_header else item.code
        commit = await client.commit_file(
            resolved.path,
            content,
            f"Solve: {item.title}",
            settings.branch,
            overwrite=settings.overwrite,
        )
        if commit.wrote:
            self._log.success(f"Committed: {resolved.path}")
        else:
            self._log.info(f"File already exists, skipping: {resolved.path}")

    @staticmethod
    def _classification(item: QueueItem, mapping: Mapping) -> MappingEntry:
        known = mapping.entries.get(item.slug) or MappingEntry()
        return MappingEntry(
            title=item.title or known.title,
            category=item.category or known.category,
            list_name=item.list_name or known.list_name,
            difficulty=item.difficulty or known.difficulty,
            sources=list(known.sources),
        )

    def _record_solved(self, item: QueueItem, mapping: Mapping) -> None:
        classification = self._classification(item, mapping)
        self._store.update_solved(
            item.slug,
            SolvedEntry(
                title=item.title,
                category=classification.category,
                list_name=classification.list_name,
                difficulty=classification.difficulty,
                language=item.language,
                solved_at=item.at,
                sha256=fingerprint(item.slug, item.language, item.code),
            ),
        )

    def _handle_failure(self, item: QueueItem, exc: Exception, result: PassResult) -> None:
        if self._policy.exhausted(item):
            self._queue.remove(item)
            result.failed += 1
            self._log.error(f"Max retries reached for {item.title}, removing from queue", str(exc))
            return

        self._queue.record_failure(item, epoch_ms(self._clock()))
        result.retried += 1
        self._log.warn(
            f"Retry {item.retries + 1}/{self._policy.max_retries} for {item.title}",
            str(exc),
        )

    async def _publish_progress(
        self, client: GitHubClient, settings: SyncSettings
    ) -> tuple[bool, str | None]:
        try:
            await self._aggregator.publish(
                client, settings, self._store.get_progress(), self._store.get_mapping()
            )
        except GitHubError as exc:
            self._log.error("Failed to sync progress files", str(exc))
            return False, str(exc)
        self._log.success("Progress files synced to GitHub")
        return True, None


__all__ = ["ClientFactory", "SyncLease", "SyncProcessor"]
