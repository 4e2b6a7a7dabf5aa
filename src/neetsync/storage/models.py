"""Data models for persisted sync state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def epoch_ms(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""

    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class _Record(BaseModel):
    """Base for records persisted and exchanged in camelCase form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OrganizationMode(str, Enum):
    """Folder layout used when placing a synced solution file."""

    AUTO = "AUTO"
    CATEGORY = "CATEGORY"
    DIFFICULTY = "DIFFICULTY"
    FLAT = "FLAT"


class SyncSettings(_Record):
    """User-facing sync settings, merged with defaults on every load."""

    repo_full_name: str = ""
    branch: str = "main"
    base_dir: str = "NeetSync"
    organization_mode: OrganizationMode = OrganizationMode.AUTO
    overwrite: bool = True
    include_header: bool = True
    include_difficulty_folder: bool = False
    include_list_folder_when_known: bool = True
    filename_include_slug: bool = False
    debug_mode: bool = False

    @field_validator("repo_full_name")
    @classmethod
    def _validate_repo(cls, value: str) -> str:
        normalized = value.strip().strip("/")
        if not normalized:
            return ""
        owner, _, repo = normalized.partition("/")
        if not owner or not repo or "/" in repo:
            raise ValueError("Repository must be given as 'owner/repo'")
        return normalized

    @field_validator("branch")
    @classmethod
    def _normalize_branch(cls, value: str) -> str:
        return value.strip() or "main"

    @field_validator("base_dir")
    @classmethod
    def _normalize_base_dir(cls, value: str) -> str:
        return value.strip().strip("/") or "NeetSync"

    @field_validator("organization_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_configured(self) -> bool:
        return bool(self.repo_full_name)


class SolutionMeta(_Record):
    runtime: str | None = None
    memory: str | None = None


class QueueItem(_Record):
    """One pending submission awaiting remote commit."""

    id: str
    slug: str
    title: str
    category: str | None = None
    list_name: str | None = None
    difficulty: str | None = None
    language: str
    code: str
    meta: SolutionMeta | None = None
    source: Literal["dom", "intercept"] = "dom"
    at: int
    retries: int = 0
    last_attempt: int | None = None


class SolvedEntry(_Record):
    """Record of the most recent successful sync of a slug."""

    title: str
    category: str | None = None
    list_name: str | None = None
    difficulty: str | None = None
    language: str
    solved_at: int
    sha256: str | None = None


class Progress(_Record):
    solved: dict[str, SolvedEntry] = Field(default_factory=dict)


class MappingEntry(_Record):
    """Best-known classification metadata for a slug."""

    title: str | None = None
    category: str | None = None
    list_name: str | None = None
    difficulty: str | None = None
    sources: list[str] = Field(default_factory=list)


class Mapping(_Record):
    version: int = 1
    updated_at: int = 0
    entries: dict[str, MappingEntry] = Field(default_factory=dict)


class LogEntry(_Record):
    id: str
    timestamp: int
    level: Literal["info", "warn", "error", "success"]
    message: str
    details: str | None = None


__all__ = [
    "LogEntry",
    "Mapping",
    "MappingEntry",
    "OrganizationMode",
    "Progress",
    "QueueItem",
    "SolutionMeta",
    "SolvedEntry",
    "SyncSettings",
    "epoch_ms",
    "from_epoch_ms",
]
