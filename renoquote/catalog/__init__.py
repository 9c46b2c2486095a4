"""Catalog model: validation, lookup and tree expansion."""

from renoquote.catalog.loader import load_catalog, read_definition
from renoquote.catalog.snapshot import ValidatedCatalog, lookup
from renoquote.catalog.tree import AreaNode, expand
from renoquote.catalog.validation import (
    CatalogValidationError,
    CatalogValidationResult,
    ViolationCode,
    validate,
)

__all__ = [
    "AreaNode",
    "CatalogValidationError",
    "CatalogValidationResult",
    "ValidatedCatalog",
    "ViolationCode",
    "expand",
    "load_catalog",
    "lookup",
    "read_definition",
    "validate",
]
