"""Moving catalogs between the document store and memory.

Each entity type lives in its own collection (``areas``, ``categories``,
``tasks``, ``materials``, ``materialOptions``) keyed by entity id. Field
names follow the original definition keys, e.g. a category document holds
``name``, ``areaId`` and ``tasks``.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.exceptions import ConfigurationError
from renoquote.models import (
    Area,
    CatalogDefinition,
    CatalogModel,
    Category,
    EntityType,
    Material,
    MaterialOption,
    TaskRecord,
)
from renoquote.pipeline.types import CatalogSeedRecord
from renoquote.store.base import DocumentStore

logger = logging.getLogger(__name__)

# Hierarchy order: parents are written before the children that name them
CATALOG_COLLECTIONS: tuple[EntityType, ...] = (
    EntityType.AREA,
    EntityType.CATEGORY,
    EntityType.TASK,
    EntityType.MATERIAL,
    EntityType.MATERIAL_OPTION,
)

_RECORD_TYPES: dict[EntityType, type[CatalogModel]] = {
    EntityType.AREA: Area,
    EntityType.CATEGORY: Category,
    EntityType.TASK: TaskRecord,
    EntityType.MATERIAL: Material,
    EntityType.MATERIAL_OPTION: MaterialOption,
}

_DEFINITION_KEYS: dict[EntityType, str] = {
    EntityType.AREA: "areas",
    EntityType.CATEGORY: "categories",
    EntityType.TASK: "tasks",
    EntityType.MATERIAL: "materials",
    EntityType.MATERIAL_OPTION: "material_options",
}

# Written by the seeding conventions, not part of the entity
_BOOKKEEPING_FIELDS = {"name_lowercase", "createdAt", "updatedAt"}


async def fetch_definition(store: DocumentStore) -> CatalogDefinition:
    """Read all five catalog collections into an unvalidated definition.

    The document id is the entity id. Pass the result to ``validate``.

    Raises:
        ConfigurationError: If a document does not have the entity's shape
    """
    sections: dict[str, list[CatalogModel]] = {}
    for entity_type in CATALOG_COLLECTIONS:
        record_type = _RECORD_TYPES[entity_type]
        id_alias = record_type.model_fields["id"].alias
        documents = await store.list_documents(entity_type.value)

        records = []
        for document in documents:
            data = {
                key: value
                for key, value in document.data.items()
                if key not in _BOOKKEEPING_FIELDS and key not in ("id", id_alias)
            }
            try:
                records.append(record_type.model_validate({**data, "id": document.id}))
            except ValidationError as e:
                raise ConfigurationError(
                    f"Malformed {entity_type.label} document '{document.ref.path}': {e}"
                ) from e
        sections[_DEFINITION_KEYS[entity_type]] = records
        logger.info(f"Fetched {len(records)} document(s) from '{entity_type.value}'")

    return CatalogDefinition(**sections)


def _entity_fields(record: CatalogModel) -> dict[str, Any]:
    return record.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)


def catalog_documents(catalog: ValidatedCatalog) -> dict[EntityType, list[CatalogSeedRecord]]:
    """Seed records for every catalog collection, keeping entity ids."""
    definition = catalog.to_definition()
    return {
        entity_type: [
            CatalogSeedRecord(entity_id=record.id, fields=_entity_fields(record))
            for record in getattr(definition, _DEFINITION_KEYS[entity_type])
        ]
        for entity_type in CATALOG_COLLECTIONS
    }
