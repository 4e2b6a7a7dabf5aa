"""Summary documents regenerated from the solved-set."""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from ..github import GitHubClient
from ..storage.models import Mapping, Progress, SolvedEntry, SyncSettings, epoch_ms, from_epoch_ms
from .paths import PROBLEM_URL, normalize_difficulty, normalize_group_name, slug_to_title

RECENT_LIMIT = 20
DIFFICULTY_BUCKETS = ("Easy", "Medium", "Hard", "Unknown")


@dataclass(frozen=True, slots=True)
class ProgressDocuments:
    snapshot: str
    digest: str


@dataclass(frozen=True, slots=True)
class _Row:
    slug: str
    entry: SolvedEntry
    list_name: str | None
    category: str | None

    @property
    def title(self) -> str:
        return self.entry.title or slug_to_title(self.slug)

    @property
    def link(self) -> str:
        # A bare pipe would split the Recently Solved table cell.
        title = self.title.replace("|", "\\|")
        return f"[{title}]({PROBLEM_URL.format(slug=self.slug)})"

    @property
    def difficulty(self) -> str | None:
        return normalize_difficulty(self.entry.difficulty)


def _by_title(rows: Iterable[_Row]) -> list[_Row]:
    return sorted(rows, key=lambda row: (row.title.lower(), row.slug))


def _bullet(row: _Row) -> str:
    suffix = f" ({row.difficulty})" if row.difficulty else ""
    return f"- {row.link}{suffix}"


class ProgressAggregator:
    """Render and publish ``PROGRESS.json`` and ``PROGRESS.md``."""

    def __init__(
        self,
        *,
        json_name: str = "PROGRESS.json",
        markdown_name: str = "PROGRESS.md",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._json_name = json_name
        self._markdown_name = markdown_name
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def paths(self, settings: SyncSettings) -> tuple[str, str]:
        return (
            f"{settings.base_dir}/{self._json_name}",
            f"{settings.base_dir}/{self._markdown_name}",
        )

    def render_snapshot(self, progress: Progress) -> str:
        payload = {
            "updatedAt": epoch_ms(self._clock()),
            "solved": {slug: entry.to_document() for slug, entry in progress.solved.items()},
        }
        return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    def render_digest(self, progress: Progress, mapping: Mapping) -> str:
        rows = []
        for slug, entry in progress.solved.items():
            known = mapping.entries.get(slug)
            rows.append(
                _Row(
                    slug=slug,
                    entry=entry,
                    list_name=entry.list_name or (known.list_name if known else None),
                    category=entry.category or (known.category if known else None),
                )
            )

        lines = [
            "# NeetSync Progress",
            "",
            f"> Last updated: {self._clock().astimezone(timezone.utc).isoformat()}",
            f"> Total solved: {len(rows)}",
            "",
        ]

        recent = sorted(rows, key=lambda row: (-row.entry.solved_at, row.slug))[:RECENT_LIMIT]
        if recent:
            lines += [
                "## Recently Solved",
                "",
                "| Problem | Difficulty | Language | Solved At |",
                "|---------|------------|----------|-----------|",
            ]
            for row in recent:
                solved_on = from_epoch_ms(row.entry.solved_at).date().isoformat()
                lines.append(
                    f"| {row.link} | {row.difficulty or '-'} | {row.entry.language or '-'} | {solved_on} |"
                )
            lines.append("")

        by_list: dict[str, list[_Row]] = defaultdict(list)
        by_category: dict[str, list[_Row]] = defaultdict(list)
        other: list[_Row] = []
        for row in rows:
            if row.list_name:
                by_list[normalize_group_name(row.list_name)].append(row)
            elif row.category:
                by_category[normalize_group_name(row.category)].append(row)
            else:
                other.append(row)

        if by_list:
            lines += ["## By List", ""]
            for list_name in sorted(by_list):
                lines += [f"### {list_name}", ""]
                groups: dict[str, list[_Row]] = defaultdict(list)
                for row in by_list[list_name]:
                    groups[row.category or "Other"].append(row)
                for category in sorted(groups):
                    lines += [f"#### {category}", ""]
                    lines += [_bullet(row) for row in _by_title(groups[category])]
                    lines.append("")

        if by_category:
            lines += ["## By Category", ""]
            for category in sorted(by_category):
                lines += [f"### {category}", ""]
                lines += [_bullet(row) for row in _by_title(by_category[category])]
                lines.append("")

        if other:
            lines += ["## Other Problems", ""]
            lines += [_bullet(row) for row in _by_title(other)]
            lines.append("")

        counts = dict.fromkeys(DIFFICULTY_BUCKETS, 0)
        for row in rows:
            counts[row.difficulty or "Unknown"] += 1
        lines += ["---", "", "## Statistics", ""]
        lines += [f"- {bucket}: {counts[bucket]}" for bucket in DIFFICULTY_BUCKETS]
        lines += ["", "---", "*Generated by NeetSync*", ""]
        return "\n".join(lines)

    def regenerate(self, progress: Progress, mapping: Mapping) -> ProgressDocuments:
        return ProgressDocuments(
            snapshot=self.render_snapshot(progress),
            digest=self.render_digest(progress, mapping),
        )

    async def publish(
        self,
        client: GitHubClient,
        settings: SyncSettings,
        progress: Progress,
        mapping: Mapping,
    ) -> ProgressDocuments:
        """Commit both documents, always overwriting; they are regenerated wholesale."""

        documents = self.regenerate(progress, mapping)
        json_path, markdown_path = self.paths(settings)
        await client.commit_file(
            json_path,
            documents.snapshot,
            f"Update {self._json_name}",
            settings.branch,
            overwrite=True,
        )
        await client.commit_file(
            markdown_path,
            documents.digest,
            f"Update {self._markdown_name}",
            settings.branch,
            overwrite=True,
        )
        return documents


__all__ = ["ProgressAggregator", "ProgressDocuments", "RECENT_LIMIT"]
