"""Catalog file models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..sync.models import CatalogEntry


class CatalogFile(BaseModel):
    """A YAML document listing problem classifications scraped from one catalog page."""

    source_url: str = Field(..., description="Page the entries were discovered on.")
    list_name: str | None = Field(
        default=None,
        description="List applied to every entry that does not name its own.",
    )
    entries: dict[str, CatalogEntry] = Field(
        default_factory=dict,
        description="Classification metadata keyed by problem slug.",
    )

    @field_validator("source_url")
    @classmethod
    def _normalize_source(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Catalog source_url must not be empty")
        return normalized

    @field_validator("entries", mode="before")
    @classmethod
    def _ensure_mapping(cls, value: Any):
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(slug).strip(): entry or {} for slug, entry in value.items()}
        raise TypeError("Catalog entries must be a mapping of slug to metadata")

    def resolved_entries(self) -> dict[str, CatalogEntry]:
        """Entries with the file-level source and list filled in."""

        return {
            slug: entry.model_copy(
                update={
                    "source_url": entry.source_url or self.source_url,
                    "list_name": entry.list_name or self.list_name,
                }
            )
            for slug, entry in self.entries.items()
        }


__all__ = ["CatalogFile"]
