"""Storage abstractions for NeetSync."""

from .chroma import ChromaStore, ChromaUnavailableError
from .logbook import SyncLog
from .models import (
    LogEntry,
    Mapping,
    MappingEntry,
    OrganizationMode,
    Progress,
    QueueItem,
    SolutionMeta,
    SolvedEntry,
    SyncSettings,
)

__all__ = [
    "ChromaStore",
    "ChromaUnavailableError",
    "LogEntry",
    "Mapping",
    "MappingEntry",
    "OrganizationMode",
    "Progress",
    "QueueItem",
    "SolutionMeta",
    "SolvedEntry",
    "SyncLog",
    "SyncSettings",
]
