"""Loader for static catalog definitions.

Reads YAML (or JSON, which YAML parses) with the top-level keys ``areas``,
``categories``, ``tasks``, ``materials`` and ``materialOptions``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.catalog.validation import validate
from renoquote.config import DATA_DIR
from renoquote.exceptions import ConfigurationError
from renoquote.models import CatalogDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = DATA_DIR / "catalog.yaml"


def read_yaml(path: Path) -> dict:
    """Read a YAML mapping from ``path``.

    Raises:
        ConfigurationError: If the file is missing, unparseable or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return data


def read_definition(path: Path | None = None) -> CatalogDefinition:
    """Parse a catalog definition without checking references.

    Args:
        path: Definition file (defaults to the bundled sample catalog)

    Raises:
        ConfigurationError: If the file is unreadable or entries lack required fields
    """
    path = Path(path) if path else DEFAULT_CATALOG_PATH
    data = read_yaml(path)
    try:
        definition = CatalogDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Malformed catalog definition in {path}: {e}") from e

    logger.info(
        f"Read catalog definition from {path}: {len(definition.areas)} areas, "
        f"{len(definition.tasks)} tasks"
    )
    return definition


def load_catalog(path: Path | None = None) -> ValidatedCatalog:
    """Read and validate a catalog definition.

    Raises:
        ConfigurationError: If the file cannot be read
        InvalidCatalogError: If validation finds any violation
    """
    return validate(read_definition(path)).unwrap()
