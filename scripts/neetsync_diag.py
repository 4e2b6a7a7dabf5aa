"""NeetSync diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone

from neetsync.config import NeetSyncSettings
from neetsync.storage import ChromaStore, ChromaUnavailableError
from neetsync.sync import RetryPolicy
from neetsync.sync.paths import normalize_difficulty
from neetsync.sync.progress import DIFFICULTY_BUCKETS


def load_store(settings: NeetSyncSettings) -> ChromaStore:
    try:
        store = ChromaStore(settings.store_path)
        store.ping()
        return store
    except ChromaUnavailableError as exc:
        print(f"Chroma unavailable: {exc}")
        raise SystemExit(1)


def _iso(timestamp_ms: int | None) -> str | None:
    if timestamp_ms is None:
        return None
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def cmd_queue(args: argparse.Namespace) -> None:
    settings = NeetSyncSettings()
    store = load_store(settings)
    queue = store.get_queue()
    if args.json:
        print(json.dumps([item.to_document() for item in queue], indent=2))
        return
    for item in queue:
        print(
            f"{item.id} {item.slug} ({item.language}) retries={item.retries} "
            f"last_attempt={_iso(item.last_attempt)}"
        )


def cmd_solved(args: argparse.Namespace) -> None:
    settings = NeetSyncSettings()
    store = load_store(settings)
    solved = store.get_progress().solved
    rows = sorted(solved.items(), key=lambda pair: pair[1].solved_at, reverse=True)
    if args.limit is not None and args.limit > 0:
        rows = rows[: args.limit]
    if args.json:
        print(json.dumps({slug: entry.to_document() for slug, entry in rows}, indent=2))
        return
    for slug, entry in rows:
        print(f"{_iso(entry.solved_at)} {slug} [{entry.difficulty or '-'}] {entry.language}")


def cmd_logs(args: argparse.Namespace) -> None:
    settings = NeetSyncSettings()
    store = load_store(settings)
    logs = store.get_logs()
    if args.level:
        logs = [entry for entry in logs if entry.get("level") == args.level]
    if args.limit is not None and args.limit > 0:
        logs = logs[: args.limit]
    print(json.dumps(logs, indent=2))


def cmd_metrics(args: argparse.Namespace) -> None:
    settings = NeetSyncSettings()
    store = load_store(settings)
    queue = store.get_queue()
    progress = store.get_progress()
    mapping = store.get_mapping()
    logs = store.get_logs()
    policy = RetryPolicy(max_retries=settings.max_retries)

    retry_counts: dict[str, int] = {}
    for item in queue:
        key = str(item.retries)
        retry_counts[key] = retry_counts.get(key, 0) + 1

    level_counts: dict[str, int] = {}
    for entry in logs:
        level = entry.get("level", "unknown")
        level_counts[level] = level_counts.get(level, 0) + 1

    difficulty_counts = dict.fromkeys(DIFFICULTY_BUCKETS, 0)
    for entry in progress.solved.values():
        difficulty_counts[normalize_difficulty(entry.difficulty) or "Unknown"] += 1

    metrics = {
        "queue_total": len(queue),
        "queue_by_retries": retry_counts,
        "queue_near_ceiling": sum(1 for item in queue if policy.exhausted(item)),
        "solved_total": len(progress.solved),
        "solved_by_difficulty": difficulty_counts,
        "mapping_total": len(mapping.entries),
        "last_sync": _iso(store.get_last_sync()),
        "log_levels": level_counts,
        "has_token": store.get_token() is not None,
    }
    print(json.dumps(metrics, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NeetSync diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_queue = sub.add_parser("queue", help="List pending queue items")
    p_queue.add_argument("--json", action="store_true", help="Output JSON")
    p_queue.set_defaults(func=cmd_queue)

    p_solved = sub.add_parser("solved", help="List solved problems, newest first")
    p_solved.add_argument("--json", action="store_true", help="Output JSON")
    p_solved.add_argument("--limit", type=int, default=None)
    p_solved.set_defaults(func=cmd_solved)

    p_logs = sub.add_parser("logs", help="Dump the sync activity log")
    p_logs.add_argument("--level", choices=["info", "warn", "error", "success"])
    p_logs.add_argument("--limit", type=int, default=None)
    p_logs.set_defaults(func=cmd_logs)

    p_metrics = sub.add_parser("metrics", help="Show queue/solved/log counts")
    p_metrics.set_defaults(func=cmd_metrics)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
