"""Forward persisted sync errors to monitoring-friendly output."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from neetsync.config import NeetSyncSettings
from neetsync.storage import ChromaStore, ChromaUnavailableError


def load_store(settings: NeetSyncSettings) -> ChromaStore:
    """Construct a ChromaStore using the provided settings."""

    store = ChromaStore(settings.store_path)
    store.ping()
    return store


def _normalize_entries(
    entries: Iterable[dict[str, Any]],
    *,
    levels: set[str],
) -> list[dict[str, object]]:
    filtered: list[dict[str, object]] = []
    for entry in entries:
        if entry.get("level") not in levels:
            continue
        timestamp = entry.get("timestamp") or 0
        filtered.append(
            {
                "entry_id": entry.get("id"),
                "level": entry.get("level"),
                "message": entry.get("message"),
                "details": entry.get("details"),
                "timestamp": datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).isoformat(),
            }
        )
    filtered.sort(key=lambda item: item["timestamp"])
    return filtered


def _default_entry_formatter(item: dict[str, object]) -> str:
    parts = [
        f"level={item['level']}",
        f"message={item['message']}",
        f"timestamp={item['timestamp']}",
    ]
    if item.get("details"):
        parts.insert(2, f"details={item['details']}")
    return " | ".join(parts)


def forward_logs(args: argparse.Namespace, *, formatter=_default_entry_formatter) -> int:
    settings = NeetSyncSettings()
    try:
        store = load_store(settings)
    except ChromaUnavailableError as exc:
        print(f"Chroma unavailable: {exc}", file=sys.stderr)
        return 1

    levels = {"error", "warn"} if args.include_warnings else {"error"}
    payload = _normalize_entries(store.get_logs(), levels=levels)
    if args.limit is not None and args.limit > 0:
        payload = payload[-args.limit :]
    if args.format == "json":
        output_text = json.dumps(payload, indent=2)
    else:
        output_text = "\n".join(formatter(item) for item in payload)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Forward sync error log entries to stdout or a file for monitoring integrations."
    )
    parser.add_argument(
        "--include-warnings",
        action="store_true",
        help="Also forward warn-level entries such as retry notices",
    )
    parser.add_argument(
        "--format",
        choices={"json", "text"},
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument("--output", help="Optional path to write the payload to")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="If provided, emit only the latest N entries after filtering",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    exit_code = forward_logs(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
