"""Quote totals: line totals, subtotal, tax and grand total."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, Field

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.exceptions import UnknownLineReference
from renoquote.models import EntityType, RawAmount, Task
from renoquote.pricing.engine import DEFAULT_CURRENCY, Money, price

logger = logging.getLogger(__name__)


class QuoteLine(BaseModel):
    """One requested piece of work."""

    task_id: str = Field(alias="taskId")
    quantity: RawAmount = Decimal(1)
    material_id: str | None = Field(default=None, alias="materialId")
    material_option_id: str | None = Field(default=None, alias="materialOptionId")

    class Config:
        frozen = True
        populate_by_name = True


class PricedLine(BaseModel):
    line: QuoteLine
    task_name: str
    line_total: Money

    class Config:
        frozen = True


class QuoteTotals(BaseModel):
    """Priced quote. ``total`` is ``subtotal + tax``."""

    lines: tuple[PricedLine, ...]
    subtotal: Money
    tax_rate: Decimal
    tax: Money
    total: Money

    class Config:
        frozen = True


def _check_references(catalog: ValidatedCatalog, task: Task, line: QuoteLine) -> None:
    if line.material_option_id is not None and line.material_id is None:
        raise UnknownLineReference(
            f"Line for task '{task.id}' names option '{line.material_option_id}' "
            "without a material"
        )
    if line.material_id is None:
        return

    if line.material_id not in task.material_ids:
        raise UnknownLineReference(
            f"Material '{line.material_id}' is not offered for task '{task.id}'"
        )
    if line.material_option_id is not None:
        material = catalog.lookup(EntityType.MATERIAL, line.material_id)
        if line.material_option_id not in material.option_ids:
            raise UnknownLineReference(
                f"Option '{line.material_option_id}' does not belong to "
                f"material '{line.material_id}'"
            )


def price_quote(
    catalog: ValidatedCatalog,
    lines: Iterable[QuoteLine],
    *,
    tax_rate: Decimal = Decimal("0.10"),
    currency: str = DEFAULT_CURRENCY,
) -> QuoteTotals:
    """Price every line and total the quote.

    Tax is computed once on the subtotal, not per line.

    Raises:
        EntityNotFoundError: A line names an unknown task
        UnknownLineReference: A material or option does not belong to the line's task
        InvalidQuantity: A meter-rate line has an invalid quantity
    """
    priced = []
    subtotal = Money.of(Decimal(0), currency)
    for line in lines:
        task = catalog.task(line.task_id)
        _check_references(catalog, task, line)
        line_total = price(task, line.quantity, currency=currency)
        priced.append(PricedLine(line=line, task_name=task.name, line_total=line_total))
        subtotal = subtotal + line_total

    tax = Money.of(subtotal.amount * tax_rate, currency)
    totals = QuoteTotals(
        lines=tuple(priced),
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax=tax,
        total=subtotal + tax,
    )
    logger.info(f"Priced quote: {len(priced)} line(s), total {totals.total}")
    return totals
