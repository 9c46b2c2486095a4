"""Validated catalog snapshot with id-indexed lookup."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Union

from renoquote.exceptions import EntityNotFoundError
from renoquote.models import (
    Area,
    CatalogDefinition,
    Category,
    EntityType,
    Material,
    MaterialOption,
    Task,
)

Entity = Union[Area, Category, Task, Material, MaterialOption]


def _index(entities: Iterable[Entity]) -> Mapping[str, Entity]:
    return MappingProxyType({entity.id: entity for entity in entities})


@dataclass(frozen=True)
class ValidatedCatalog:
    """Immutable catalog that passed every referential and pricing check.

    Only ``renoquote.catalog.validation.validate`` builds these. Mappings keep
    definition order and are read-only.
    """

    areas: Mapping[str, Area]
    categories: Mapping[str, Category]
    tasks: Mapping[str, Task]
    materials: Mapping[str, Material]
    material_options: Mapping[str, MaterialOption]

    @classmethod
    def from_entities(
        cls,
        areas: Iterable[Area],
        categories: Iterable[Category],
        tasks: Iterable[Task],
        materials: Iterable[Material],
        material_options: Iterable[MaterialOption],
    ) -> ValidatedCatalog:
        return cls(
            areas=_index(areas),
            categories=_index(categories),
            tasks=_index(tasks),
            materials=_index(materials),
            material_options=_index(material_options),
        )

    def index_for(self, entity_type: EntityType | str) -> Mapping[str, Entity]:
        entity_type = EntityType(entity_type)
        return {
            EntityType.AREA: self.areas,
            EntityType.CATEGORY: self.categories,
            EntityType.TASK: self.tasks,
            EntityType.MATERIAL: self.materials,
            EntityType.MATERIAL_OPTION: self.material_options,
        }[entity_type]

    def lookup(self, entity_type: EntityType | str, entity_id: str) -> Entity:
        """Return the entity with ``entity_id``.

        Raises:
            EntityNotFoundError: If no entity of that type has the id
        """
        entity_type = EntityType(entity_type)
        try:
            return self.index_for(entity_type)[entity_id]
        except KeyError:
            raise EntityNotFoundError(entity_type.label, entity_id) from None

    def get(self, entity_type: EntityType | str, entity_id: str) -> Entity | None:
        return self.index_for(entity_type).get(entity_id)

    def task(self, task_id: str) -> Task:
        return self.lookup(EntityType.TASK, task_id)

    def to_definition(self) -> CatalogDefinition:
        """Flatten back to a definition (round-trips through ``validate``)."""
        return CatalogDefinition(
            areas=tuple(self.areas.values()),
            categories=tuple(self.categories.values()),
            tasks=tuple(task.to_record() for task in self.tasks.values()),
            materials=tuple(self.materials.values()),
            material_options=tuple(self.material_options.values()),
        )

    def __len__(self) -> int:
        return sum(
            len(index)
            for index in (
                self.areas,
                self.categories,
                self.tasks,
                self.materials,
                self.material_options,
            )
        )


def lookup(catalog: ValidatedCatalog, entity_type: EntityType | str, entity_id: str) -> Entity:
    """Constant-time retrieval of a catalog entity by type and id."""
    return catalog.lookup(entity_type, entity_id)
