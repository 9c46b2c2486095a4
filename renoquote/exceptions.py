"""Exception hierarchy for RenoQuote.

Catalog validation problems are returned as data (see
``renoquote.catalog.validation``); the exceptions here cover the cases that
abort an operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from renoquote.catalog.validation import CatalogValidationError
    from renoquote.pipeline.types import ReseedPhase, SeedReport


class RenoQuoteError(Exception):
    """Base class for all RenoQuote errors."""


class ConfigurationError(RenoQuoteError):
    """Raised when settings or definition files cannot be loaded."""


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class InvalidCatalogError(RenoQuoteError):
    """Raised when a caller demands a catalog that failed validation."""

    def __init__(self, errors: list[CatalogValidationError]):
        self.errors = list(errors)
        summary = "; ".join(error.message for error in self.errors[:3])
        if len(self.errors) > 3:
            summary += f"; ... {len(self.errors) - 3} more"
        super().__init__(f"Catalog has {len(self.errors)} validation error(s): {summary}")


class EntityNotFoundError(RenoQuoteError, KeyError):
    """Raised by catalog lookups for an unknown id."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} '{entity_id}' not found")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


class PricingError(RenoQuoteError):
    """Raised when a task cannot be priced."""


class InvalidQuantity(PricingError):
    """Quantity is negative, infinite or not a number."""

    def __init__(self, task_id: str, quantity: object):
        self.task_id = task_id
        self.quantity = quantity
        super().__init__(
            f"Invalid quantity {quantity!r} for metered task '{task_id}': "
            "must be a finite number >= 0"
        )


class UnknownLineReference(PricingError):
    """A quote line references a material or option its task does not offer."""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class PipelineError(RenoQuoteError):
    """Base class for reseed pipeline failures."""


class StoreInitializationError(PipelineError):
    """The document store client could not be constructed. Nothing was written."""


class BatchError(PipelineError):
    """A batch of a run failed; earlier batches of the run remain committed."""

    action = "failed"

    def __init__(
        self,
        phase: ReseedPhase,
        batch_number: int,
        report: SeedReport,
        cause: BaseException,
    ):
        self.phase = phase
        self.batch_number = batch_number
        self.report = report
        self.cause = cause
        super().__init__(
            f"Batch {batch_number} {self.action} during {phase.value} of "
            f"'{report.collection}' after {report.deleted} deleted / "
            f"{report.inserted} inserted: {cause}"
        )


class BatchBuildError(BatchError):
    """A batch could not be assembled; it was never submitted."""

    action = "could not be built"


class BatchCommitError(BatchError):
    """A batch commit failed."""
