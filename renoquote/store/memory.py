"""In-process document store.

Behaves like Firestore where the pipeline can tell the difference: batches
are atomic, capped at 500 writes, and the server timestamp sentinel is
resolved once per commit from the store's own clock.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from renoquote.store.base import DocumentRef, DocumentStore, StoredDocument, WriteBatch

logger = logging.getLogger(__name__)

MAX_WRITES_PER_BATCH = 500


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    # Singleton: must survive the copies taken when writes are queued
    def __copy__(self) -> _ServerTimestamp:
        return self

    def __deepcopy__(self, memo: dict) -> _ServerTimestamp:
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryWriteBatch(WriteBatch):
    """Queued writes applied to an ``InMemoryStore`` on commit."""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._ops: list[tuple[str, DocumentRef, dict[str, Any] | None]] = []
        self._committed = False

    def _queue(self, op: str, ref: DocumentRef, data: dict[str, Any] | None) -> None:
        if self._committed:
            raise ValueError("Cannot add writes to a committed batch")
        if len(self._ops) >= self._store.max_batch_size:
            raise ValueError(
                f"Batch exceeds the maximum of {self._store.max_batch_size} writes"
            )
        self._ops.append((op, ref, data))

    def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        self._queue("set", ref, copy.deepcopy(data))

    def delete(self, ref: DocumentRef) -> None:
        self._queue("delete", ref, None)

    async def commit(self) -> None:
        if self._committed:
            raise ValueError("Batch already committed")
        self._store._apply(self._ops)
        self._committed = True

    def __len__(self) -> int:
        return len(self._ops)


class InMemoryStore(DocumentStore):
    """Dict-backed ``DocumentStore``.

    Args:
        clock: Source of commit timestamps (defaults to UTC now)
        max_batch_size: Writes allowed per batch
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        max_batch_size: int = MAX_WRITES_PER_BATCH,
    ):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._clock = clock or _utcnow
        self.max_batch_size = max_batch_size
        self.commit_count = 0

    async def list_documents(self, collection: str) -> list[StoredDocument]:
        docs = self._collections.get(collection, {})
        return [
            StoredDocument(ref=DocumentRef(collection, doc_id), data=copy.deepcopy(data))
            for doc_id, data in docs.items()
        ]

    def document(self, collection: str, doc_id: str | None = None) -> DocumentRef:
        return DocumentRef(collection, doc_id or uuid.uuid4().hex[:20])

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP

    def _apply(self, ops: list[tuple[str, DocumentRef, dict[str, Any] | None]]) -> None:
        now = self._clock()
        for op, ref, data in ops:
            docs = self._collections.setdefault(ref.collection, {})
            if op == "delete":
                docs.pop(ref.id, None)
            else:
                docs[ref.id] = {
                    key: now if value is SERVER_TIMESTAMP else value
                    for key, value in data.items()
                }
        self.commit_count += 1
        logger.debug(f"Committed batch of {len(ops)} write(s)")

    # Test and dry-run helpers

    def put(self, collection: str, documents: dict[str, dict[str, Any]]) -> None:
        """Write documents directly, bypassing batches."""
        self._collections.setdefault(collection, {}).update(copy.deepcopy(documents))

    def snapshot(self, collection: str) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._collections.get(collection, {}))

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
