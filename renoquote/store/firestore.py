"""Cloud Firestore implementation of ``DocumentStore``.

Wraps ``google.cloud.firestore.AsyncClient``. The client honours
``FIRESTORE_EMULATOR_HOST`` on its own, so pointing the CLI at the emulator
needs no code path of its own beyond a project id.
"""

from __future__ import annotations

import logging
from typing import Any

from google.cloud import firestore
from google.oauth2 import service_account

from renoquote.config import StoreConfig
from renoquote.exceptions import StoreInitializationError
from renoquote.store.base import DocumentRef, DocumentStore, StoredDocument, WriteBatch

logger = logging.getLogger(__name__)

EMULATOR_PROJECT_ID = "demo-renoquote"


class FirestoreWriteBatch(WriteBatch):
    """Thin adapter over ``AsyncWriteBatch``."""

    def __init__(self, client: firestore.AsyncClient):
        self._client = client
        self._batch = client.batch()
        self._count = 0

    def _native(self, ref: DocumentRef):
        return self._client.collection(ref.collection).document(ref.id)

    def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        self._batch.set(self._native(ref), data)
        self._count += 1

    def delete(self, ref: DocumentRef) -> None:
        self._batch.delete(self._native(ref))
        self._count += 1

    async def commit(self) -> None:
        await self._batch.commit()

    def __len__(self) -> int:
        return self._count


class FirestoreStore(DocumentStore):
    """``DocumentStore`` backed by Cloud Firestore."""

    def __init__(self, client: firestore.AsyncClient):
        self._client = client

    @classmethod
    def from_config(cls, config: StoreConfig) -> FirestoreStore:
        """Build the client once at startup.

        Credentials come from ``config.credentials_path`` when set, else from
        application default credentials. Against the emulator no credentials
        are loaded.

        Raises:
            StoreInitializationError: If the client cannot be constructed
        """
        kwargs: dict[str, Any] = {}
        if config.project_id:
            kwargs["project"] = config.project_id

        try:
            if config.emulator_host:
                kwargs.setdefault("project", EMULATOR_PROJECT_ID)
                logger.info(f"Using Firestore emulator at {config.emulator_host}")
            elif config.credentials_path:
                credentials = service_account.Credentials.from_service_account_file(
                    config.credentials_path
                )
                kwargs["credentials"] = credentials
                kwargs.setdefault("project", credentials.project_id)

            client = firestore.AsyncClient(**kwargs)
        except Exception as e:
            raise StoreInitializationError(
                f"Could not initialise Firestore client: {e}"
            ) from e

        logger.info(f"Firestore client ready (project={client.project})")
        return cls(client)

    async def list_documents(self, collection: str) -> list[StoredDocument]:
        documents = []
        async for snapshot in self._client.collection(collection).stream():
            documents.append(
                StoredDocument(
                    ref=DocumentRef(collection, snapshot.id),
                    data=snapshot.to_dict() or {},
                )
            )
        return documents

    def document(self, collection: str, doc_id: str | None = None) -> DocumentRef:
        collection_ref = self._client.collection(collection)
        native = collection_ref.document(doc_id) if doc_id else collection_ref.document()
        return DocumentRef(collection, native.id)

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self._client)

    def server_timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP
