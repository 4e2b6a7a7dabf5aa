"""Inbound events and pass results for the sync pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..storage.models import MappingEntry, SolutionMeta


class _Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SubmissionPayload(_Event):
    """An accepted verdict captured by the page collaborator."""

    slug: str
    title: str = ""
    category: str | None = None
    list_name: str | None = None
    difficulty: str | None = None
    language: str | None = None
    code: str | None = None
    meta: SolutionMeta | None = None
    source: Literal["dom", "intercept"] = "dom"
    at: int | None = None

    @field_validator("slug")
    @classmethod
    def _normalize_slug(cls, value: str) -> str:
        normalized = value.strip().strip("/")
        if not normalized:
            raise ValueError("Submission slug must not be empty")
        return normalized

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return value.strip()


class CatalogEntry(_Event):
    title: str | None = None
    category: str | None = None
    list_name: str | None = None
    difficulty: str | None = None
    source_url: str = ""

    def to_mapping_entry(self) -> MappingEntry:
        return MappingEntry(
            title=self.title or None,
            category=self.category or None,
            list_name=self.list_name or None,
            difficulty=self.difficulty or None,
            sources=[self.source_url] if self.source_url else [],
        )


class CatalogMergePayload(_Event):
    """Classification metadata discovered on catalog pages."""

    entries: dict[str, CatalogEntry] = Field(default_factory=dict)
    updated_at: int | None = None


@dataclass(slots=True)
class PassResult:
    """Outcome of one processing pass."""

    skipped: bool = False
    configured: bool = True
    processed: int = 0
    retried: int = 0
    failed: int = 0
    deferred: int = 0
    progress_synced: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["CatalogEntry", "CatalogMergePayload", "PassResult", "SubmissionPayload"]
