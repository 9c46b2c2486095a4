"""Abstract document store used by the reseed pipeline and catalog fetch.

Defines the capability set RenoQuote needs from a document database:

- enumerate every document in a collection
- create document references (generated or fixed ids)
- atomic write batches with ``set``/``delete``/``commit``
- a server-assigned timestamp sentinel, resolved by the store at commit

Implementations: ``InMemoryStore`` (tests, dry runs) and ``FirestoreStore``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DocumentRef:
    """Store-neutral pointer to one document."""

    collection: str
    id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


@dataclass(frozen=True)
class StoredDocument:
    """A document read back from the store."""

    ref: DocumentRef
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.ref.id


class WriteBatch(ABC):
    """A group of writes that commit together or not at all."""

    @abstractmethod
    def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """Queue a full overwrite of ``ref`` with ``data``."""

    @abstractmethod
    def delete(self, ref: DocumentRef) -> None:
        """Queue deletion of ``ref``."""

    @abstractmethod
    async def commit(self) -> None:
        """Apply every queued write atomically.

        Raises:
            Exception: Any store error; none of the batch's writes are applied
        """

    @abstractmethod
    def __len__(self) -> int:
        """Number of queued writes."""


class DocumentStore(ABC):
    """External document store collaborator.

    One handle is constructed at startup and passed by reference into every
    consumer; implementations must not be rebuilt per call.
    """

    @abstractmethod
    async def list_documents(self, collection: str) -> list[StoredDocument]:
        """Return every document currently in ``collection``."""

    @abstractmethod
    def document(self, collection: str, doc_id: str | None = None) -> DocumentRef:
        """Reference a document, generating a fresh id when ``doc_id`` is None."""

    @abstractmethod
    def batch(self) -> WriteBatch:
        """Start a new atomic write batch."""

    @abstractmethod
    def server_timestamp(self) -> Any:
        """Sentinel the store replaces with its own clock at commit time."""
