"""Referential and pricing validation for catalog definitions.

``validate`` never raises for bad catalog content. It runs four passes in a
fixed order and collects every violation, so a caller sees the complete error
set in one go:

1. id uniqueness per entity type
2. forward references (parent lists child ids that must exist)
3. backward references (child's declared parent must list it)
4. task pricing fields against ``pricingMethod``
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.exceptions import InvalidCatalogError
from renoquote.models import (
    CENTS,
    MAX_PRICE,
    CatalogDefinition,
    EntityType,
    FixedPricing,
    LumpSumPricing,
    MeterRatePricing,
    PricingMethod,
    Task,
    TaskRecord,
)

logger = logging.getLogger(__name__)


class ViolationCode(str, Enum):
    """Kinds of catalog violation."""

    DUPLICATE_ID = "duplicate_id"
    DANGLING_REFERENCE = "dangling_reference"
    MISSING_PARENT = "missing_parent"
    PARENT_MISMATCH = "parent_mismatch"
    ORPHANED_CHILD = "orphaned_child"
    PRICING_FIELD_MISSING = "pricing_field_missing"
    PRICING_FIELD_UNEXPECTED = "pricing_field_unexpected"
    PRICING_NOT_FINITE = "pricing_not_finite"
    PRICING_NEGATIVE = "pricing_negative"
    PRICING_TOO_LARGE = "pricing_too_large"
    PRICING_SUB_CENT = "pricing_sub_cent"


@dataclass(frozen=True)
class CatalogValidationError:
    """One structural, referential or pricing violation."""

    code: ViolationCode
    entity_type: EntityType
    entity_id: str
    message: str
    reference: str | None = None  # the offending id or field name


@dataclass
class CatalogValidationResult:
    """Outcome of ``validate``: a catalog, or every error found."""

    catalog: ValidatedCatalog | None = None
    errors: list[CatalogValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.catalog is not None and not self.errors

    def unwrap(self) -> ValidatedCatalog:
        """Return the catalog or raise with the full error list.

        Raises:
            InvalidCatalogError: If validation found any violation
        """
        if not self.ok:
            raise InvalidCatalogError(self.errors)
        return self.catalog

    def errors_for(self, entity_id: str) -> list[CatalogValidationError]:
        return [error for error in self.errors if error.entity_id == entity_id]


# (parent type, child type, attribute listing child ids, child attribute naming the parent)
_LINKS: tuple[tuple[EntityType, EntityType, str, str | None], ...] = (
    (EntityType.AREA, EntityType.CATEGORY, "category_ids", "area_id"),
    (EntityType.CATEGORY, EntityType.TASK, "task_ids", "category_id"),
    (EntityType.TASK, EntityType.MATERIAL, "material_ids", None),  # many-to-many
    (EntityType.MATERIAL, EntityType.MATERIAL_OPTION, "option_ids", "material_id"),
)


def validate(definition: CatalogDefinition) -> CatalogValidationResult:
    """Validate a catalog definition and build its snapshot.

    Args:
        definition: Parsed (but unchecked) catalog definition

    Returns:
        CatalogValidationResult with either the validated catalog or all errors
    """
    errors: list[CatalogValidationError] = []

    entities: dict[EntityType, Sequence] = {
        EntityType.AREA: definition.areas,
        EntityType.CATEGORY: definition.categories,
        EntityType.TASK: definition.tasks,
        EntityType.MATERIAL: definition.materials,
        EntityType.MATERIAL_OPTION: definition.material_options,
    }

    # 1. Uniqueness. Later duplicates are reported and left out of the index.
    indexes: dict[EntityType, dict] = {}
    for entity_type, records in entities.items():
        errors.extend(_check_unique(entity_type, records))
        index: dict = {}
        for record in records:
            index.setdefault(record.id, record)
        indexes[entity_type] = index

    # 2. Forward references
    for parent_type, child_type, list_attr, _ in _LINKS:
        errors.extend(
            _check_forward(parent_type, child_type, list_attr, indexes[parent_type], indexes[child_type])
        )

    # 3. Backward references
    for parent_type, child_type, list_attr, parent_attr in _LINKS:
        if parent_attr is None:
            continue
        errors.extend(
            _check_backward(
                parent_type,
                child_type,
                list_attr,
                parent_attr,
                indexes[parent_type],
                indexes[child_type],
            )
        )

    # 4. Pricing
    tasks: list[Task] = []
    for record in indexes[EntityType.TASK].values():
        pricing_errors = _check_pricing(record)
        errors.extend(pricing_errors)
        if not pricing_errors:
            tasks.append(_build_task(record))

    if errors:
        logger.debug(f"Catalog validation found {len(errors)} error(s)")
        return CatalogValidationResult(errors=errors)

    catalog = ValidatedCatalog.from_entities(
        areas=indexes[EntityType.AREA].values(),
        categories=indexes[EntityType.CATEGORY].values(),
        tasks=tasks,
        materials=indexes[EntityType.MATERIAL].values(),
        material_options=indexes[EntityType.MATERIAL_OPTION].values(),
    )
    logger.debug(f"Catalog validated: {len(catalog)} entities")
    return CatalogValidationResult(catalog=catalog)


def _check_unique(entity_type: EntityType, records: Iterable) -> list[CatalogValidationError]:
    counts = Counter(record.id for record in records)
    return [
        CatalogValidationError(
            code=ViolationCode.DUPLICATE_ID,
            entity_type=entity_type,
            entity_id=entity_id,
            message=f"{entity_type.label} id '{entity_id}' is used {count} times",
            reference=entity_id,
        )
        for entity_id, count in counts.items()
        if count > 1
    ]


def _check_forward(
    parent_type: EntityType,
    child_type: EntityType,
    list_attr: str,
    parents: Mapping,
    children: Mapping,
) -> list[CatalogValidationError]:
    errors = []
    for parent in parents.values():
        for child_id in getattr(parent, list_attr):
            if child_id not in children:
                errors.append(
                    CatalogValidationError(
                        code=ViolationCode.DANGLING_REFERENCE,
                        entity_type=parent_type,
                        entity_id=parent.id,
                        message=(
                            f"{parent_type.label} '{parent.id}' lists {child_type.label} "
                            f"'{child_id}', which does not exist"
                        ),
                        reference=child_id,
                    )
                )
    return errors


def _check_backward(
    parent_type: EntityType,
    child_type: EntityType,
    list_attr: str,
    parent_attr: str,
    parents: Mapping,
    children: Mapping,
) -> list[CatalogValidationError]:
    errors = []

    # Parent lists a child that names a different parent: cross-linked
    for parent in parents.values():
        for child_id in getattr(parent, list_attr):
            child = children.get(child_id)
            if child is None:
                continue  # reported as dangling
            declared = getattr(child, parent_attr)
            if declared != parent.id:
                errors.append(
                    CatalogValidationError(
                        code=ViolationCode.PARENT_MISMATCH,
                        entity_type=child_type,
                        entity_id=child.id,
                        message=(
                            f"{child_type.label} '{child.id}' is listed by {parent_type.label} "
                            f"'{parent.id}' but declares parent '{declared}'"
                        ),
                        reference=parent.id,
                    )
                )

    # Child names a parent that is missing, or that does not list it back
    for child in children.values():
        declared = getattr(child, parent_attr)
        parent = parents.get(declared)
        if parent is None:
            errors.append(
                CatalogValidationError(
                    code=ViolationCode.MISSING_PARENT,
                    entity_type=child_type,
                    entity_id=child.id,
                    message=(
                        f"{child_type.label} '{child.id}' declares {parent_type.label} "
                        f"'{declared}', which does not exist"
                    ),
                    reference=declared,
                )
            )
        elif child.id not in getattr(parent, list_attr):
            errors.append(
                CatalogValidationError(
                    code=ViolationCode.ORPHANED_CHILD,
                    entity_type=child_type,
                    entity_id=child.id,
                    message=(
                        f"{child_type.label} '{child.id}' declares {parent_type.label} "
                        f"'{declared}', which does not list it"
                    ),
                    reference=declared,
                )
            )
    return errors


def _expected_field(method: PricingMethod) -> str:
    return "meter_rate" if method == PricingMethod.METER_RATE else "fixed_price"


def _check_pricing(record: TaskRecord) -> list[CatalogValidationError]:
    errors = []
    expected = _expected_field(record.pricing_method)
    unexpected = "fixed_price" if expected == "meter_rate" else "meter_rate"

    def error(code: ViolationCode, message: str, field_name: str) -> CatalogValidationError:
        return CatalogValidationError(
            code=code,
            entity_type=EntityType.TASK,
            entity_id=record.id,
            message=f"Task '{record.id}' ({record.pricing_method.value}): {message}",
            reference=field_name,
        )

    if getattr(record, expected) is None:
        errors.append(
            error(ViolationCode.PRICING_FIELD_MISSING, f"{expected} is required", expected)
        )
    if getattr(record, unexpected) is not None:
        errors.append(
            error(ViolationCode.PRICING_FIELD_UNEXPECTED, f"{unexpected} must not be set", unexpected)
        )

    for field_name in ("fixed_price", "meter_rate"):
        value: Decimal | None = getattr(record, field_name)
        if value is None:
            continue
        if not value.is_finite():
            errors.append(
                error(ViolationCode.PRICING_NOT_FINITE, f"{field_name} is {value}", field_name)
            )
        elif value < 0:
            errors.append(
                error(ViolationCode.PRICING_NEGATIVE, f"{field_name} is negative ({value})", field_name)
            )
        elif value >= MAX_PRICE:
            errors.append(
                error(
                    ViolationCode.PRICING_TOO_LARGE,
                    f"{field_name} {value} is not below {MAX_PRICE:,f}",
                    field_name,
                )
            )
        elif field_name == "fixed_price" and value != value.quantize(CENTS):
            # Fixed amounts are charged as written
            errors.append(
                error(
                    ViolationCode.PRICING_SUB_CENT,
                    f"fixed_price {value} has fractions of a cent",
                    field_name,
                )
            )
    return errors


def _build_task(record: TaskRecord) -> Task:
    if record.pricing_method == PricingMethod.METER_RATE:
        pricing = MeterRatePricing(rate=record.meter_rate)
    elif record.pricing_method == PricingMethod.LUMP_SUM:
        pricing = LumpSumPricing(amount=record.fixed_price)
    else:
        pricing = FixedPricing(amount=record.fixed_price)
    return Task(
        id=record.id,
        name=record.name,
        category_id=record.category_id,
        material_ids=record.material_ids,
        pricing=pricing,
    )
