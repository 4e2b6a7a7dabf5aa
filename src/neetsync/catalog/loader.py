"""Catalog loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from ..sync.models import CatalogEntry, CatalogMergePayload
from .models import CatalogFile


class CatalogLoadError(RuntimeError):
    """Raised when one or more catalog files cannot be parsed."""


class CatalogLoader:
    """Loads catalog merge events from YAML files on disk."""

    def __init__(self, search_paths: Iterable[Path] | None = None) -> None:
        paths = [Path(path) for path in (search_paths or [])]
        self._search_paths: list[Path] = [path for path in paths if path.exists()]

    @property
    def search_paths(self) -> list[Path]:
        """Return the normalized search paths."""

        return list(self._search_paths)

    def load_all(self) -> CatalogMergePayload:
        """Load catalog entries from all configured search paths.

        Files are applied in order; a later file's non-empty fields win over an
        earlier file's for the same slug.
        """

        entries: dict[str, CatalogEntry] = {}
        errors: list[str] = []

        for base in self._search_paths:
            for path in sorted(base.glob("*.yml")) + sorted(base.glob("*.yaml")):
                try:
                    document = yaml.safe_load(path.read_text(encoding="utf-8"))
                except yaml.YAMLError as exc:  # pragma: no cover - library type
                    errors.append(f"Failed to parse YAML in {path}: {exc}")
                    continue

                if document is None:
                    continue

                try:
                    catalog = CatalogFile.model_validate(document)
                except ValidationError as exc:
                    errors.append(f"Catalog validation error in {path}: {exc}")
                    continue

                for slug, entry in catalog.resolved_entries().items():
                    previous = entries.get(slug)
                    if previous is None:
                        entries[slug] = entry
                        continue
                    entries[slug] = CatalogEntry(
                        title=entry.title or previous.title,
                        category=entry.category or previous.category,
                        list_name=entry.list_name or previous.list_name,
                        difficulty=entry.difficulty or previous.difficulty,
                        source_url=entry.source_url or previous.source_url,
                    )

        if errors:
            raise CatalogLoadError("; ".join(errors))

        return CatalogMergePayload(entries=entries)


def load_catalogs(search_paths: Iterable[Path] | None = None) -> CatalogMergePayload:
    """Convenience wrapper for loading catalogs from the provided paths."""

    loader = CatalogLoader(search_paths)
    return loader.load_all()


__all__ = ["CatalogLoadError", "CatalogLoader", "load_catalogs"]
