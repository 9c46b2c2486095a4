"""Pricing engine and quote totals."""

from renoquote.pricing.engine import CENTS, DEFAULT_CURRENCY, Money, price
from renoquote.pricing.quote import PricedLine, QuoteLine, QuoteTotals, price_quote

__all__ = [
    "CENTS",
    "DEFAULT_CURRENCY",
    "Money",
    "PricedLine",
    "QuoteLine",
    "QuoteTotals",
    "price",
    "price_quote",
]
