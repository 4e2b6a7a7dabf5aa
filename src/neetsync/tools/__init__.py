"""Tool registration for the NeetSync MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastmcp import Context, FastMCP
from pydantic import ValidationError

from ..catalog import CatalogLoader, CatalogLoadError
from ..config import NeetSyncSettings
from ..github import GitHubClient
from ..storage import ChromaStore, SyncLog
from ..sync import CatalogMergePayload, QueueManager, SubmissionPayload, SyncProcessor

logger = logging.getLogger(__name__)

STATE_LOG_LIMIT = 50


@dataclass(slots=True)
class ToolHandles:
    submit_solution: Any
    merge_catalog: Any
    reload_catalog: Any
    get_state: Any
    save_settings: Any
    save_token: Any
    process_queue: Any
    sync_progress: Any
    clear_logs: Any


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def apply_catalog(
    store: ChromaStore, log: SyncLog, payload: CatalogMergePayload
) -> int:
    """Merge catalog entries into the stored mapping and return how many were applied."""

    if not payload.entries:
        return 0
    store.merge_mapping(
        {slug: entry.to_mapping_entry() for slug, entry in payload.entries.items()}
    )
    log.info(f"Mapping updated: {len(payload.entries)} entries merged")
    return len(payload.entries)


def register_tools(
    server: FastMCP,
    *,
    store: ChromaStore,
    queue_manager: QueueManager,
    processor: SyncProcessor,
    log: SyncLog,
    settings: NeetSyncSettings,
    catalog_loader: CatalogLoader,
    client_factory: Callable[[str, str], GitHubClient],
) -> ToolHandles:
    """Register the NeetSync manual operations on the server."""

    async def _submit_solution(
        submission: dict[str, Any], context: Context | None = None
    ) -> dict[str, Any]:
        """Accept a solved submission and queue it for commit."""

        try:
            payload = SubmissionPayload.model_validate(submission)
        except ValidationError as exc:
            _emit_log(context, "warning", "Rejected submission", extra={"errors": exc.error_count()})
            return {"success": False, "error": _validation_message(exc)}

        queued = queue_manager.enqueue(payload)
        return {"success": queued}

    def _merge_catalog(payload: dict[str, Any]) -> dict[str, Any]:
        try:
            event = CatalogMergePayload.model_validate(payload)
        except ValidationError as exc:
            return {"success": False, "count": 0, "error": _validation_message(exc)}
        return {"success": True, "count": apply_catalog(store, log, event)}

    def _reload_catalog(context: Context | None = None) -> dict[str, Any]:
        try:
            event = catalog_loader.load_all()
        except CatalogLoadError as exc:
            log.error("Failed to load catalog files", str(exc))
            return {"success": False, "count": 0, "error": str(exc)}
        count = apply_catalog(store, log, event)
        _emit_log(
            context,
            "info",
            "Catalog reloaded",
            extra={"count": count, "paths": [str(path) for path in catalog_loader.search_paths]},
        )
        return {"success": True, "count": count}

    def _get_state() -> dict[str, Any]:
        mapping = store.get_mapping()
        return {
            "success": True,
            "settings": store.get_settings().to_document(),
            "has_token": store.get_token() is not None,
            "mapping_count": len(mapping.entries),
            "mapping_updated_at": mapping.updated_at,
            "solved_count": len(store.get_progress().solved),
            "queue_count": len(store.get_queue()),
            "last_sync": store.get_last_sync(),
            "is_processing": processor.is_processing,
            "sync_interval_seconds": settings.sync_interval_seconds,
            "logs": [entry.to_document() for entry in log.entries(STATE_LOG_LIMIT)],
        }

    def _save_settings(updates: dict[str, Any]) -> dict[str, Any]:
        try:
            saved = store.save_settings(updates)
        except ValidationError as exc:
            return {"success": False, "error": _validation_message(exc)}
        log.info("Settings saved")
        return {"success": True, "settings": saved.to_document()}

    async def _save_token(token: str) -> dict[str, Any]:
        """Store the GitHub credential, checking it against the configured repository first."""

        token = token.strip()
        if not token:
            return {"success": False, "valid": False, "error": "Token must not be empty"}

        repo_full_name = store.get_settings().repo_full_name
        if repo_full_name:
            async with client_factory(token, repo_full_name) as client:
                check = await client.verify_access()
            if not check.valid:
                log.error("Token validation failed", check.error)
                return {"success": False, "valid": False, "error": check.error}

        store.save_token(token)
        log.success("GitHub token saved")
        return {"success": True, "valid": True}

    async def _process_queue(context: Context | None = None) -> dict[str, Any]:
        result = await processor.process_queue()
        _emit_log(context, "info", "Queue pass finished", extra=result.to_dict())
        return {"success": True, "result": result.to_dict()}

    async def _sync_progress() -> dict[str, Any]:
        ok, error = await processor.sync_progress()
        response: dict[str, Any] = {"success": ok}
        if error:
            response["error"] = error
        return response

    def _clear_logs() -> dict[str, Any]:
        log.clear()
        return {"success": True}

    tool_submit = server.tool(
        name="submit_solution",
        description="Queue an accepted solution for commit to the configured GitHub repository.",
    )(_submit_solution)

    tool_merge = server.tool(
        name="merge_catalog",
        description="Merge problem classification metadata discovered on catalog pages.",
    )(_merge_catalog)

    tool_reload = server.tool(
        name="reload_catalog",
        description="Re-read catalog YAML files from the configured search paths and merge them.",
    )(_reload_catalog)

    tool_state = server.tool(
        name="get_state",
        description="Return settings, queue and solved counts, last sync time and recent logs.",
    )(_get_state)

    tool_settings = server.tool(
        name="save_settings",
        description="Update repository, branch, folder layout and header options.",
    )(_save_settings)

    tool_token = server.tool(
        name="save_token",
        description="Save the GitHub token after verifying it can read the configured repository.",
    )(_save_token)

    tool_process = server.tool(
        name="process_queue",
        description="Run one queue processing pass now.",
    )(_process_queue)

    tool_progress = server.tool(
        name="sync_progress",
        description="Regenerate and commit PROGRESS.json and PROGRESS.md.",
    )(_sync_progress)

    tool_clear = server.tool(
        name="clear_logs",
        description="Clear the sync activity log.",
    )(_clear_logs)

    return ToolHandles(
        submit_solution=tool_submit,
        merge_catalog=tool_merge,
        reload_catalog=tool_reload,
        get_state=tool_state,
        save_settings=tool_settings,
        save_token=tool_token,
        process_queue=tool_process,
        sync_progress=tool_progress,
        clear_logs=tool_clear,
    )


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


__all__ = ["ToolHandles", "apply_catalog", "register_tools"]
