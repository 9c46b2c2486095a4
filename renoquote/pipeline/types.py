"""Type definitions for reseed operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ReseedPhase(str, Enum):
    """State of a reseed run.

    IDLE → DELETING → INSERTING → DONE, with FAILED reachable from
    DELETING or INSERTING.
    """

    IDLE = "idle"
    DELETING = "deleting"
    INSERTING = "inserting"
    DONE = "done"
    FAILED = "failed"


class SeedRecord(ABC):
    """Anything the pipeline can turn into one inserted document."""

    @property
    def document_id(self) -> Optional[str]:
        """Fixed document id, or None to let the store generate one."""
        return None

    @abstractmethod
    def document_fields(self) -> dict[str, Any]:
        """Payload fields before the index field and timestamps are added.

        Must include ``name``.
        """


class SeedTaskRecord(BaseModel, SeedRecord):
    """Input for a global task document: the flat, denormalized seed shape.

    Not a catalog ``Task``: it has no category, materials or pricing.
    """

    name: str
    default_unit: str = Field(default="item", alias="defaultUnit")
    description: str = ""

    class Config:
        frozen = True
        populate_by_name = True

    def document_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "defaultUnit": self.default_unit,
        }


@dataclass(frozen=True)
class CatalogSeedRecord(SeedRecord):
    """A catalog entity written under its own id."""

    entity_id: str
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def document_id(self) -> Optional[str]:
        return self.entity_id

    def document_fields(self) -> dict[str, Any]:
        return dict(self.fields)


@dataclass
class SeedReport:
    """Counts for one reseed run, complete or partial."""

    collection: str
    deleted: int = 0
    inserted: int = 0
    delete_batches: int = 0
    insert_batches: int = 0

    @property
    def total_operations(self) -> int:
        return self.deleted + self.inserted
