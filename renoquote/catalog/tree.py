"""Nested view of one area for presentation.

Purely derived from a validated catalog: every id resolves, so expansion
never fails past the area lookup.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.models import Area, Category, EntityType, Material, MaterialOption, Task


@dataclass(frozen=True)
class MaterialNode:
    material: Material
    options: tuple[MaterialOption, ...]


@dataclass(frozen=True)
class TaskNode:
    task: Task
    materials: tuple[MaterialNode, ...]


@dataclass(frozen=True)
class CategoryNode:
    category: Category
    tasks: tuple[TaskNode, ...]


@dataclass(frozen=True)
class AreaNode:
    area: Area
    categories: tuple[CategoryNode, ...]

    def walk(self) -> Iterator[tuple[EntityType, str]]:
        """Yield ``(entity_type, id)`` for every node, depth first."""
        yield EntityType.AREA, self.area.id
        for category_node in self.categories:
            yield EntityType.CATEGORY, category_node.category.id
            for task_node in category_node.tasks:
                yield EntityType.TASK, task_node.task.id
                for material_node in task_node.materials:
                    yield EntityType.MATERIAL, material_node.material.id
                    for option in material_node.options:
                        yield EntityType.MATERIAL_OPTION, option.id


def expand(catalog: ValidatedCatalog, area: Area | str) -> AreaNode:
    """Expand an area into its Category → Task → Material → Option tree.

    Args:
        catalog: Validated catalog
        area: Area entity or area id

    Raises:
        EntityNotFoundError: If the area id is unknown
    """
    if isinstance(area, str):
        area = catalog.lookup(EntityType.AREA, area)

    def material_node(material_id: str) -> MaterialNode:
        material = catalog.materials[material_id]
        return MaterialNode(
            material=material,
            options=tuple(catalog.material_options[oid] for oid in material.option_ids),
        )

    def task_node(task_id: str) -> TaskNode:
        task = catalog.tasks[task_id]
        return TaskNode(
            task=task,
            materials=tuple(material_node(mid) for mid in task.material_ids),
        )

    return AreaNode(
        area=area,
        categories=tuple(
            CategoryNode(
                category=catalog.categories[cid],
                tasks=tuple(task_node(tid) for tid in catalog.categories[cid].task_ids),
            )
            for cid in area.category_ids
        ),
    )
