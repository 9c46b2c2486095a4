"""Document construction conventions shared by every seeded collection.

Each seeded document gets a lowercase copy of its name for case-insensitive
prefix search, and ``createdAt``/``updatedAt`` set to the store's server
timestamp sentinel. Timestamps are never computed on the caller's clock.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from renoquote.pipeline.types import SeedRecord


def lowercase_index(name: str) -> str:
    """Case-normalized search key for ``name``."""
    return name.lower()


def build_document(record: SeedRecord, timestamp: Any) -> dict[str, Any]:
    """Build the stored payload for one record.

    Args:
        record: Record to seed; its fields must include ``name``
        timestamp: The store's server timestamp sentinel

    Returns:
        Field dict ready for ``WriteBatch.set``
    """
    fields = record.document_fields()
    name = fields.pop("name")
    document: dict[str, Any] = {"name": name, "name_lowercase": lowercase_index(name)}
    document.update({key: to_store_value(value) for key, value in fields.items()})
    document["createdAt"] = timestamp
    document["updatedAt"] = timestamp
    return document


def to_store_value(value: Any) -> Any:
    """Convert Python values to types a document store accepts."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # Stores hold IEEE doubles; cents survive the round trip
        return float(value)
    if isinstance(value, (list, tuple)):
        return [to_store_value(item) for item in value]
    if isinstance(value, dict):
        return {key: to_store_value(item) for key, item in value.items()}
    return value
