"""Unit tests for moving catalogs through a document store.

Also covers the Firestore adapter with the client mocked out.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from renoquote.catalog.store_io import CATALOG_COLLECTIONS, catalog_documents, fetch_definition
from renoquote.config import StoreConfig
from renoquote.exceptions import ConfigurationError, StoreInitializationError
from renoquote.models import EntityType
from renoquote.store.base import DocumentRef
from renoquote.store.firestore import EMULATOR_PROJECT_ID, FirestoreStore


class TestCatalogDocuments:
    """Test seed records built from a validated catalog."""

    def test_one_entry_per_collection(self, catalog):
        documents = catalog_documents(catalog)

        assert tuple(documents) == CATALOG_COLLECTIONS
        assert [r.document_id for r in documents[EntityType.MATERIAL_OPTION]] == [
            "option-1",
            "option-2",
            "option-3",
        ]

    def test_fields_use_definition_keys(self, catalog):
        (area,) = catalog_documents(catalog)[EntityType.AREA]

        assert area.document_fields() == {
            "name": "Bathroom",
            "categories": ("category-1", "category-2"),
        }

    def test_task_fields_drop_unused_price(self, catalog):
        task = catalog_documents(catalog)[EntityType.TASK][0]

        fields = task.document_fields()
        assert fields["pricingMethod"].value == "fixed"
        assert "meter_rate" not in fields


class TestFetchDefinition:
    """Test reading a definition back from the store."""

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        definition = await fetch_definition(store)

        assert definition.areas == ()
        assert definition.material_options == ()

    @pytest.mark.asyncio
    async def test_document_id_is_entity_id(self, store):
        store.put(
            "areas",
            {
                "area-9": {
                    "name": "Laundry",
                    "name_lowercase": "laundry",
                    "categories": [],
                    "areaId": "stale-id",
                }
            },
        )

        definition = await fetch_definition(store)

        assert definition.areas[0].id == "area-9"
        assert definition.areas[0].name == "Laundry"

    @pytest.mark.asyncio
    async def test_malformed_document(self, store):
        store.put("materials", {"material-1": {"materialOptions": []}})

        with pytest.raises(ConfigurationError, match="materials/material-1"):
            await fetch_definition(store)


class _AsyncStream:
    def __init__(self, snapshots):
        self._snapshots = iter(snapshots)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._snapshots)
        except StopIteration:
            raise StopAsyncIteration from None


def _snapshot(doc_id: str, data: dict) -> MagicMock:
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.to_dict.return_value = data
    return snapshot


class TestFirestoreStore:
    """Test the Firestore adapter against a mocked AsyncClient."""

    def test_emulator_uses_demo_project(self):
        with patch("renoquote.store.firestore.firestore.AsyncClient") as client_cls:
            FirestoreStore.from_config(StoreConfig(emulator_host="localhost:8080"))

        client_cls.assert_called_once_with(project=EMULATOR_PROJECT_ID)

    def test_service_account_credentials(self):
        credentials = MagicMock(project_id="renoquote-prod")
        with patch(
            "renoquote.store.firestore.service_account.Credentials.from_service_account_file",
            return_value=credentials,
        ) as load, patch("renoquote.store.firestore.firestore.AsyncClient") as client_cls:
            FirestoreStore.from_config(StoreConfig(credentials_path="/secrets/sa.json"))

        load.assert_called_once_with("/secrets/sa.json")
        client_cls.assert_called_once_with(credentials=credentials, project="renoquote-prod")

    def test_explicit_project_wins(self):
        credentials = MagicMock(project_id="from-key-file")
        with patch(
            "renoquote.store.firestore.service_account.Credentials.from_service_account_file",
            return_value=credentials,
        ), patch("renoquote.store.firestore.firestore.AsyncClient") as client_cls:
            FirestoreStore.from_config(
                StoreConfig(project_id="renoquote-dev", credentials_path="/secrets/sa.json")
            )

        assert client_cls.call_args.kwargs["project"] == "renoquote-dev"

    def test_bad_credentials(self):
        with patch(
            "renoquote.store.firestore.service_account.Credentials.from_service_account_file",
            side_effect=FileNotFoundError("/secrets/missing.json"),
        ):
            with pytest.raises(StoreInitializationError, match="missing.json"):
                FirestoreStore.from_config(StoreConfig(credentials_path="/secrets/missing.json"))

    @pytest.mark.asyncio
    async def test_list_documents(self):
        client = MagicMock()
        client.collection.return_value.stream.return_value = _AsyncStream(
            [_snapshot("a", {"name": "Remove"}), _snapshot("b", None)]
        )

        documents = await FirestoreStore(client).list_documents("tasks")

        client.collection.assert_called_with("tasks")
        assert [d.ref for d in documents] == [DocumentRef("tasks", "a"), DocumentRef("tasks", "b")]
        assert documents[1].data == {}

    def test_generated_and_fixed_ids(self):
        client = MagicMock()
        collection = client.collection.return_value
        collection.document.return_value.id = "auto-123"
        store = FirestoreStore(client)

        assert store.document("tasks") == DocumentRef("tasks", "auto-123")
        collection.document.assert_called_with()

        store.document("areas", "area-1")
        collection.document.assert_called_with("area-1")

    @pytest.mark.asyncio
    async def test_batch_forwards_writes(self):
        client = MagicMock()
        native_batch = client.batch.return_value
        native_batch.commit = MagicMock(return_value=_done())
        store = FirestoreStore(client)

        batch = store.batch()
        batch.set(DocumentRef("tasks", "a"), {"name": "Remove"})
        batch.delete(DocumentRef("tasks", "b"))
        await batch.commit()

        assert len(batch) == 2
        native_batch.set.assert_called_once()
        native_batch.delete.assert_called_once()
        native_batch.commit.assert_called_once()


async def _done():
    return []
