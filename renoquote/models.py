"""RenoQuote Pydantic models for the pricing catalog.

Two layers live here:

* definition records (``TaskRecord``, ``CatalogDefinition``) mirror the
  static catalog definition as written, including the original camelCase
  keys, and may hold invalid data;
* catalog entities (``Area`` ... ``Task``) are what a validated snapshot
  exposes. A validated ``Task`` carries its pricing as a tagged variant, so
  a task with both or neither price field cannot exist past validation.

All models are frozen; a changed catalog is a new snapshot.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

# Raw amounts keep NaN/Infinity so validation can report them instead of
# failing the parse.
RawAmount = Annotated[Decimal, Field(allow_inf_nan=True)]

CENTS = Decimal("0.01")

# Upper bound (exclusive) for catalog prices and rates
MAX_PRICE = Decimal("1e12")


class EntityType(str, Enum):
    """Catalog entity types, valued by their store collection names."""

    AREA = "areas"
    CATEGORY = "categories"
    TASK = "tasks"
    MATERIAL = "materials"
    MATERIAL_OPTION = "materialOptions"

    @property
    def label(self) -> str:
        return _ENTITY_LABELS[self]


_ENTITY_LABELS = {
    EntityType.AREA: "Area",
    EntityType.CATEGORY: "Category",
    EntityType.TASK: "Task",
    EntityType.MATERIAL: "Material",
    EntityType.MATERIAL_OPTION: "MaterialOption",
}


class PricingMethod(str, Enum):
    """How a task's cost is computed."""

    FIXED = "fixed"
    METER_RATE = "meter_rate"
    LUMP_SUM = "lump_sum"  # no requirements beyond fixed; priced the same way


class CatalogModel(BaseModel):
    """Base for catalog models: immutable, accepts field names or original keys."""

    class Config:
        frozen = True
        populate_by_name = True


# ---------------------------------------------------------------------------
# Entities shared by the definition and the validated snapshot
# ---------------------------------------------------------------------------


class Area(CatalogModel):
    """A room or zone of the house, e.g. "Bathroom"."""

    id: str = Field(alias="areaId")
    name: str
    category_ids: tuple[str, ...] = Field(default=(), alias="categories")


class Category(CatalogModel):
    """A trade grouping inside an area, e.g. "Plumbing"."""

    id: str = Field(alias="categoryId")
    name: str
    area_id: str = Field(alias="areaId")
    task_ids: tuple[str, ...] = Field(default=(), alias="tasks")


class Material(CatalogModel):
    id: str = Field(alias="materialId")
    name: str
    option_ids: tuple[str, ...] = Field(default=(), alias="materialOptions")


class MaterialOption(CatalogModel):
    id: str = Field(alias="materialOptionId")
    name: str
    material_id: str = Field(alias="materialId")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskRecord(CatalogModel):
    """Task as written in the definition, with the untyped pricing fields."""

    id: str = Field(alias="taskId")
    name: str
    category_id: str = Field(alias="categoryId")
    material_ids: tuple[str, ...] = Field(default=(), alias="materials")
    pricing_method: PricingMethod = Field(alias="pricingMethod")
    fixed_price: RawAmount | None = None
    meter_rate: RawAmount | None = None


class FixedPricing(CatalogModel):
    method: Literal["fixed"] = "fixed"
    amount: Decimal


class LumpSumPricing(CatalogModel):
    method: Literal["lump_sum"] = "lump_sum"
    amount: Decimal


class MeterRatePricing(CatalogModel):
    method: Literal["meter_rate"] = "meter_rate"
    rate: Decimal  # per metre


Pricing = Annotated[
    Union[FixedPricing, LumpSumPricing, MeterRatePricing],
    Field(discriminator="method"),
]


class Task(CatalogModel):
    """Validated task. Exactly one pricing variant, matching its method."""

    id: str
    name: str
    category_id: str
    material_ids: tuple[str, ...] = ()
    pricing: Pricing

    @property
    def pricing_method(self) -> PricingMethod:
        return PricingMethod(self.pricing.method)

    def to_record(self) -> TaskRecord:
        """Flatten back to the definition shape."""
        pricing = self.pricing
        if isinstance(pricing, MeterRatePricing):
            fixed_price, meter_rate = None, pricing.rate
        else:
            fixed_price, meter_rate = pricing.amount, None
        return TaskRecord(
            id=self.id,
            name=self.name,
            category_id=self.category_id,
            material_ids=self.material_ids,
            pricing_method=self.pricing_method,
            fixed_price=fixed_price,
            meter_rate=meter_rate,
        )


# ---------------------------------------------------------------------------
# Whole definition
# ---------------------------------------------------------------------------


class CatalogDefinition(CatalogModel):
    """Unvalidated catalog: the five entity lists as supplied."""

    areas: tuple[Area, ...] = ()
    categories: tuple[Category, ...] = ()
    tasks: tuple[TaskRecord, ...] = ()
    materials: tuple[Material, ...] = ()
    material_options: tuple[MaterialOption, ...] = Field(
        default=(), alias="materialOptions"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "areas": [
                    {"areaId": "area-1", "name": "Bathroom", "categories": ["category-1"]}
                ],
                "categories": [
                    {
                        "categoryId": "category-1",
                        "name": "Plumbing",
                        "areaId": "area-1",
                        "tasks": ["task-1"],
                    }
                ],
                "tasks": [
                    {
                        "taskId": "task-1",
                        "name": "Supply and Install",
                        "categoryId": "category-1",
                        "materials": ["material-1"],
                        "pricingMethod": "fixed",
                        "fixed_price": 500,
                    }
                ],
                "materials": [
                    {"materialId": "material-1", "name": "Bath", "materialOptions": ["option-1"]}
                ],
                "materialOptions": [
                    {"materialOptionId": "option-1", "name": "Freestanding", "materialId": "material-1"}
                ],
            }
        }
