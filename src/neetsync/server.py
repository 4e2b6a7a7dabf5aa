"""FastMCP server bootstrap for NeetSync."""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .catalog import CatalogLoadError, CatalogLoader
from .config import NeetSyncSettings, get_settings
from .github import GitHubClient
from .storage import ChromaStore, ChromaUnavailableError, SyncLog
from .storage.chroma import STATE_COLLECTION
from .sync import PeriodicSync, ProgressAggregator, QueueManager, RetryPolicy, SyncProcessor
from .tools import apply_catalog, register_tools

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for the NeetSync server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def default_client_factory(settings: NeetSyncSettings) -> Callable[[str, str], GitHubClient]:
    def factory(token: str, repo_full_name: str) -> GitHubClient:
        return GitHubClient(
            token,
            repo_full_name,
            api_base=settings.github_api_base,
            timeout=settings.request_timeout,
        )

    return factory


def build_status(
    *,
    settings: NeetSyncSettings,
    store: ChromaStore,
    processor: SyncProcessor,
    scheduler: PeriodicSync,
    catalog_loader: CatalogLoader,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Summarize runtime state for the status resource."""

    storage_error = None
    queue_summary: dict[str, Any] = {}
    try:
        queue = store.get_queue()
        sync_settings = store.get_settings()
        queue_summary = {
            "count": len(queue),
            "retrying": sum(1 for item in queue if item.retries),
            "oldest_at": min((item.at for item in queue), default=None),
        }
        repository = {
            "repo_full_name": sync_settings.repo_full_name or None,
            "branch": sync_settings.branch,
            "configured": sync_settings.is_configured and store.get_token() is not None,
        }
        solved_count = len(store.get_progress().solved)
        last_sync = store.get_last_sync()
    except Exception as exc:  # status must render even when storage is unhealthy
        storage_error = str(exc)
        repository = {}
        solved_count = None
        last_sync = None

    policy = processor.policy
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "log_level": settings.log_level,
        "storage": {
            "path": str(settings.store_path),
            "collection": STATE_COLLECTION,
            "error": storage_error,
        },
        "repository": repository,
        "queue": queue_summary,
        "solved_count": solved_count,
        "last_sync": last_sync,
        "sync": {
            "is_processing": processor.is_processing,
            "scheduler_running": scheduler.running,
            "interval_seconds": settings.sync_interval_seconds,
            "max_retries": policy.max_retries,
            "base_delay_ms": policy.base_delay_ms,
            "max_delay_ms": policy.max_delay_ms,
        },
        "catalog_paths": [str(path) for path in catalog_loader.search_paths],
        "request_id": request_id,
    }


def create_server(
    settings: Optional[NeetSyncSettings] = None,
    store: ChromaStore | None = None,
    client_factory: Callable[[str, str], GitHubClient] | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server and wire the sync pipeline behind it."""

    settings = settings or get_settings()
    client_factory = client_factory or default_client_factory(settings)

    if store is None:
        store = ChromaStore(settings.store_path)
    # Raises ChromaUnavailableError when the store cannot be opened.
    store.ping()

    log = SyncLog(store, capacity=settings.log_capacity)
    queue_manager = QueueManager(
        store, log, duplicate_window_seconds=settings.duplicate_window_seconds
    )
    processor = SyncProcessor(
        store,
        queue_manager,
        log,
        client_factory=client_factory,
        aggregator=ProgressAggregator(
            json_name=settings.progress_json_name,
            markdown_name=settings.progress_md_name,
        ),
        policy=RetryPolicy(
            max_retries=settings.max_retries,
            base_delay_ms=settings.retry_base_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
        ),
    )
    scheduler = PeriodicSync(processor, interval_seconds=settings.sync_interval_seconds)
    queue_manager.kick = scheduler.kick

    catalog_loader = CatalogLoader(settings.catalog_paths)
    try:
        merged = apply_catalog(store, log, catalog_loader.load_all())
        logger.info("Catalog files merged", extra={"count": merged})
    except CatalogLoadError as exc:
        log.warn("Catalog files could not be loaded", str(exc))

    @asynccontextmanager
    async def lifespan(_server):
        scheduler.start()
        try:
            yield {}
        finally:
            await scheduler.stop()

    server = FastMCP(
        name="NeetSync MCP",
        version=__version__,
        instructions=(
            "NeetSync commits accepted NeetCode solutions to a GitHub repository and "
            "keeps PROGRESS.json and PROGRESS.md up to date. Submit solutions with "
            "submit_solution and inspect the pipeline with get_state."
        ),
        lifespan=lifespan,
    )

    handles = register_tools(
        server,
        store=store,
        queue_manager=queue_manager,
        processor=processor,
        log=log,
        settings=settings,
        catalog_loader=catalog_loader,
        client_factory=client_factory,
    )

    @server.resource(
        "resource://neetsync/status",
        name="neetsync_status",
        title="NeetSync Status",
        description="Provides the current runtime status of the NeetSync sync pipeline.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing basic runtime state."""

        return json.dumps(
            build_status(
                settings=settings,
                store=store,
                processor=processor,
                scheduler=scheduler,
                catalog_loader=catalog_loader,
                request_id=getattr(context, "request_id", None),
            )
        )

    setattr(server, "neetsync_store", store)
    setattr(server, "sync_log", log)
    setattr(server, "queue_manager", queue_manager)
    setattr(server, "sync_processor", processor)
    setattr(server, "periodic_sync", scheduler)
    setattr(server, "catalog_loader", catalog_loader)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the NeetSync MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        server = create_server(settings)
    except ChromaUnavailableError as exc:
        logger.error("Durable store unavailable", extra={"path": str(settings.store_path)})
        raise SystemExit(str(exc)) from exc

    logger.info(
        "Launching NeetSync MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "store_path": str(settings.store_path),
            "sync_interval_seconds": settings.sync_interval_seconds,
        },
    )
    server.run()


if __name__ == "__main__":
    main()
