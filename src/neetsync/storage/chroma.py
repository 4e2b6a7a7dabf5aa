"""Chroma-based persistence layer."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping as MappingType, Protocol

from .models import (
    Mapping,
    MappingEntry,
    Progress,
    QueueItem,
    SolvedEntry,
    SyncSettings,
    epoch_ms,
)

STATE_COLLECTION = "neetsync_state"
CREDENTIAL_COLLECTION = "neetsync_credentials"

KEYS = {
    "settings": "settings",
    "mapping": "mapping",
    "progress": "progress",
    "queue": "queue",
    "last_sync": "last_sync",
    "logs": "logs",
    "token": "github_token",
}

# Records are looked up by id only; the vector is a fixed placeholder so no
# embedding model is ever loaded.
_PLACEHOLDER_EMBEDDING = [0.0]


class ChromaUnavailableError(RuntimeError):
    """Raised when the Chroma client cannot be constructed."""


class CollectionProtocol(Protocol):
    """Protocol for the minimal Chroma collection API used by NeetSync."""

    def upsert(
        self,
        *,
        ids: Iterable[str],
        documents: Iterable[str],
        metadatas: Iterable[dict[str, Any]],
        embeddings: Iterable[list[float]],
    ) -> None:
        ...

    def get(self, *, ids: Iterable[str] | None = None) -> dict[str, list[Any]]:
        ...

    def delete(self, *, ids: Iterable[str]) -> None:
        ...


class ClientProtocol(Protocol):
    """Protocol for the minimal Chroma client API used by NeetSync."""

    def get_or_create_collection(self, name: str) -> CollectionProtocol:
        ...


class ChromaStore:
    """Key-value persistence of queue, solved-set, mapping, settings and logs via ChromaDB.

    Every getter decodes a fresh copy from the stored JSON document, so callers
    never hold a reference into persisted state.
    """

    def __init__(
        self,
        path: Path,
        *,
        client_factory: Callable[[], ClientProtocol] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._path = Path(path)
        self._client_factory = client_factory or self._default_client_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._client: ClientProtocol | None = None
        self._collections: dict[str, CollectionProtocol] = {}

    def _default_client_factory(self) -> ClientProtocol:
        try:
            import chromadb
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise ChromaUnavailableError(
                "chromadb package is not installed; install neetsync-mcp with its dependencies"
            ) from exc

        return chromadb.PersistentClient(path=str(self._path))

    def _collection(self, name: str) -> CollectionProtocol:
        if name not in self._collections:
            client = self._client or self._client_factory()
            self._client = client
            self._collections[name] = client.get_or_create_collection(name)
        return self._collections[name]

    def ping(self) -> bool:
        """Verify that the underlying collections can be obtained."""

        self._collection(STATE_COLLECTION)
        self._collection(CREDENTIAL_COLLECTION)
        return True

    # Raw key access

    def read(self, key: str, *, collection: str = STATE_COLLECTION) -> Any:
        result = self._collection(collection).get(ids=[key])
        documents = result.get("documents") or []
        if not documents or documents[0] is None:
            return None
        return json.loads(documents[0])

    def write(self, key: str, value: Any, *, collection: str = STATE_COLLECTION) -> None:
        self._collection(collection).upsert(
            ids=[key],
            documents=[json.dumps(value)],
            metadatas=[{"key": key, "updated_at": self._clock().isoformat()}],
            embeddings=[_PLACEHOLDER_EMBEDDING],
        )

    def delete(self, key: str, *, collection: str = STATE_COLLECTION) -> None:
        self._collection(collection).delete(ids=[key])

    # Settings

    def get_settings(self) -> SyncSettings:
        stored = self.read(KEYS["settings"]) or {}
        return SyncSettings.model_validate(stored)

    def save_settings(self, updates: MappingType[str, Any]) -> SyncSettings:
        """Merge a partial update onto the current settings and persist the result."""

        # Updates may use either camelCase aliases or field names.
        names = {field.alias or name: name for name, field in SyncSettings.model_fields.items()}
        normalized = {names.get(key, key): value for key, value in updates.items()}
        current = self.get_settings().model_dump()
        merged = SyncSettings.model_validate({**current, **normalized})
        self.write(KEYS["settings"], merged.to_document())
        return merged

    # Credential, kept in its own collection

    def get_token(self) -> str | None:
        token = self.read(KEYS["token"], collection=CREDENTIAL_COLLECTION)
        return token or None

    def save_token(self, token: str) -> None:
        self.write(KEYS["token"], token, collection=CREDENTIAL_COLLECTION)

    # Mapping

    def get_mapping(self) -> Mapping:
        stored = self.read(KEYS["mapping"])
        return Mapping.model_validate(stored) if stored else Mapping()

    def save_mapping(self, mapping: Mapping) -> None:
        self.write(KEYS["mapping"], mapping.to_document())

    def merge_mapping(self, entries: MappingType[str, MappingEntry]) -> Mapping:
        """Merge incoming entries field by field; empty values never erase stored ones."""

        current = self.get_mapping()
        for slug, incoming in entries.items():
            existing = current.entries.get(slug) or MappingEntry()
            sources = list(existing.sources)
            for source in incoming.sources:
                if source and source not in sources:
                    sources.append(source)
            current.entries[slug] = MappingEntry(
                title=incoming.title or existing.title,
                category=incoming.category or existing.category,
                list_name=incoming.list_name or existing.list_name,
                difficulty=incoming.difficulty or existing.difficulty,
                sources=sources,
            )
        current.updated_at = epoch_ms(self._clock())
        self.save_mapping(current)
        return current

    # Solved-set

    def get_progress(self) -> Progress:
        stored = self.read(KEYS["progress"])
        return Progress.model_validate(stored) if stored else Progress()

    def save_progress(self, progress: Progress) -> None:
        self.write(KEYS["progress"], progress.to_document())

    def update_solved(self, slug: str, entry: SolvedEntry) -> Progress:
        progress = self.get_progress()
        progress.solved[slug] = entry
        self.save_progress(progress)
        return progress

    # Queue

    def get_queue(self) -> list[QueueItem]:
        stored = self.read(KEYS["queue"]) or []
        return [QueueItem.model_validate(item) for item in stored]

    def save_queue(self, queue: Iterable[QueueItem]) -> None:
        self.write(KEYS["queue"], [item.to_document() for item in queue])

    def remove_from_queue(self, item_id: str) -> None:
        queue = self.get_queue()
        self.save_queue(item for item in queue if item.id != item_id)

    def update_queue_item(self, item_id: str, **updates: Any) -> QueueItem | None:
        queue = self.get_queue()
        for index, item in enumerate(queue):
            if item.id == item_id:
                queue[index] = item.model_copy(update=updates)
                self.save_queue(queue)
                return queue[index]
        return None

    # Last sync

    def get_last_sync(self) -> int | None:
        return self.read(KEYS["last_sync"])

    def set_last_sync(self, timestamp: int) -> None:
        self.write(KEYS["last_sync"], timestamp)

    # Log ring buffer

    def get_logs(self) -> list[dict[str, Any]]:
        return self.read(KEYS["logs"]) or []

    def save_logs(self, entries: Iterable[dict[str, Any]]) -> None:
        self.write(KEYS["logs"], list(entries))


def new_record_id(clock: Callable[[], datetime]) -> str:
    """Return a time-prefixed unique identifier for queue items and log entries."""

    return f"{epoch_ms(clock())}-{uuid.uuid4().hex[:9]}"


__all__ = [
    "CREDENTIAL_COLLECTION",
    "ChromaStore",
    "ChromaUnavailableError",
    "KEYS",
    "STATE_COLLECTION",
    "new_record_id",
]
