"""Task pricing.

``price`` is a pure function of a validated task and a quantity. Amounts are
``Decimal`` throughout and quantized to cents with ``ROUND_HALF_UP``.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation
from numbers import Number

from pydantic import BaseModel

from renoquote.exceptions import InvalidQuantity, PricingError
from renoquote.models import CENTS, MeterRatePricing, Task

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "AUD"


class Money(BaseModel):
    """Amount in a single currency, always held to the cent."""

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    class Config:
        frozen = True

    @classmethod
    def of(cls, amount: Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount=quantize(amount), currency=currency)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if other.currency != self.currency:
            raise ValueError(f"Cannot add {other.currency} to {self.currency}")
        return Money.of(self.amount + other.amount, self.currency)

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:,.2f}"


def quantize(amount: Decimal) -> Decimal:
    """Round ``amount`` half-up to cents.

    Raises:
        PricingError: If the amount has too many digits to hold to the cent
    """
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise PricingError(f"Amount {amount} is too large to price to the cent") from e


def to_quantity(task_id: str, quantity: object) -> Decimal:
    """Coerce ``quantity`` to a finite, non-negative Decimal.

    Floats go through ``str`` so 2.5 becomes Decimal("2.5"), not its binary
    expansion.

    Raises:
        InvalidQuantity: For bools, non-numbers, NaN, infinities and negatives
    """
    if isinstance(quantity, bool):
        raise InvalidQuantity(task_id, quantity)
    if isinstance(quantity, Decimal):
        value = quantity
    elif isinstance(quantity, (Number, str)):
        try:
            value = Decimal(str(quantity))
        except InvalidOperation:
            raise InvalidQuantity(task_id, quantity) from None
    else:
        raise InvalidQuantity(task_id, quantity)

    # NaN compares by raising, so check finiteness first
    if not value.is_finite() or value < 0:
        raise InvalidQuantity(task_id, quantity)
    return value


def price(task: Task, quantity: object = 1, *, currency: str = DEFAULT_CURRENCY) -> Money:
    """Price one task.

    Fixed and lump-sum tasks return their amount as written; ``quantity`` is
    accepted and ignored for them. Validation only admits whole-cent fixed
    amounts, so quantizing never changes them. Meter-rate tasks return
    ``rate * quantity`` rounded half-up to cents, where quantity is in linear
    metres.

    Args:
        task: Validated catalog task
        quantity: Metres for meter-rate tasks
        currency: ISO code stamped on the result

    Returns:
        Money quantized to cents

    Raises:
        InvalidQuantity: Meter-rate task with a negative, infinite or NaN quantity
        PricingError: The result is too large to hold to the cent
    """
    pricing = task.pricing
    if isinstance(pricing, MeterRatePricing):
        metres = to_quantity(task.id, quantity)
        try:
            subtotal = pricing.rate * metres
        except DecimalException as e:
            raise PricingError(f"Cannot price {task.id} for {quantity} metres: {e!r}") from e
        result = Money.of(subtotal, currency)
    else:
        result = Money.of(pricing.amount, currency)

    logger.debug(f"Priced {task.id} ({pricing.method}) x {quantity}: {result}")
    return result
