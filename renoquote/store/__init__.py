"""Document store collaborators.

``FirestoreStore`` lives in ``renoquote.store.firestore`` and is imported on
demand so the in-memory store works without Google credentials.
"""

from renoquote.store.base import DocumentRef, DocumentStore, StoredDocument, WriteBatch
from renoquote.store.memory import SERVER_TIMESTAMP, InMemoryStore

__all__ = [
    "DocumentRef",
    "DocumentStore",
    "StoredDocument",
    "WriteBatch",
    "InMemoryStore",
    "SERVER_TIMESTAMP",
]
