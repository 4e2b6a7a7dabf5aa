from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from neetsync.storage import ChromaStore, SyncLog


class StubCollection:
    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}

    def upsert(self, *, ids, documents, metadatas, embeddings) -> None:  # type: ignore[override]
        for record_id, document, metadata, embedding in zip(ids, documents, metadatas, embeddings):
            self.records[record_id] = {
                "document": document,
                "metadata": dict(metadata),
                "embedding": list(embedding),
            }

    def get(self, *, ids=None):  # type: ignore[override]
        selected = [record_id for record_id in (ids or self.records) if record_id in self.records]
        return {
            "ids": selected,
            "documents": [self.records[record_id]["document"] for record_id in selected],
            "metadatas": [self.records[record_id]["metadata"] for record_id in selected],
        }

    def delete(self, *, ids) -> None:  # type: ignore[override]
        for record_id in ids:
            self.records.pop(record_id, None)


class StubClient:
    def __init__(self) -> None:
        self.collections: defaultdict[str, StubCollection] = defaultdict(StubCollection)

    def get_or_create_collection(self, name: str) -> StubCollection:
        return self.collections[name]


class SteppingClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def chroma_client() -> StubClient:
    return StubClient()


@pytest.fixture
def store(tmp_path: Path, chroma_client: StubClient, clock: SteppingClock) -> ChromaStore:
    return ChromaStore(tmp_path / "chroma", client_factory=lambda: chroma_client, clock=clock)


@pytest.fixture
def sync_log(store: ChromaStore, clock: SteppingClock) -> SyncLog:
    return SyncLog(store, clock=clock)
