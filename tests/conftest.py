"""Pytest configuration and fixtures for RenoQuote tests.

Provides a small catalog definition in the original camelCase format, its
validated snapshot, and an empty in-memory document store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from renoquote.catalog.validation import validate
from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.config import reset_config
from renoquote.models import CatalogDefinition
from renoquote.store.memory import InMemoryStore

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

_CONFIG_VARS = (
    "FIRESTORE_PROJECT_ID",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "FIRESTORE_EMULATOR_HOST",
    "SEED_COLLECTION",
    "BATCH_LIMIT",
    "DEFAULT_CURRENCY",
    "TAX_RATE",
    "CATALOG_PATH",
    "SEED_TASKS_PATH",
    "LOG_LEVEL",
    "JSON_LOGS",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from the developer's environment and .env file."""
    for name in _CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def catalog_data() -> dict[str, Any]:
    """Bathroom with plumbing and flooring, as written in a definition file."""
    return {
        "areas": [
            {"areaId": "area-1", "name": "Bathroom", "categories": ["category-1", "category-2"]},
        ],
        "categories": [
            {"categoryId": "category-1", "name": "Plumbing", "areaId": "area-1", "tasks": ["task-1"]},
            {
                "categoryId": "category-2",
                "name": "Flooring",
                "areaId": "area-1",
                "tasks": ["task-2", "task-3"],
            },
        ],
        "tasks": [
            {
                "taskId": "task-1",
                "name": "Supply and Install",
                "categoryId": "category-1",
                "materials": ["material-1"],
                "pricingMethod": "fixed",
                "fixed_price": 500,
            },
            {
                "taskId": "task-2",
                "name": "Install",
                "categoryId": "category-2",
                "materials": ["material-2"],
                "pricingMethod": "meter_rate",
                "meter_rate": 50,
            },
            {
                "taskId": "task-3",
                "name": "Lay Floor Protection",
                "categoryId": "category-2",
                "materials": [],
                "pricingMethod": "lump_sum",
                "fixed_price": "150.00",
            },
        ],
        "materials": [
            {"materialId": "material-1", "name": "Bath", "materialOptions": ["option-1", "option-2"]},
            {"materialId": "material-2", "name": "Floorboards", "materialOptions": ["option-3"]},
        ],
        "materialOptions": [
            {"materialOptionId": "option-1", "name": "Freestanding", "materialId": "material-1"},
            {"materialOptionId": "option-2", "name": "Spa", "materialId": "material-1"},
            {"materialOptionId": "option-3", "name": "Timber", "materialId": "material-2"},
        ],
    }


@pytest.fixture
def definition(catalog_data: dict[str, Any]) -> CatalogDefinition:
    return CatalogDefinition.model_validate(catalog_data)


@pytest.fixture
def catalog(definition: CatalogDefinition) -> ValidatedCatalog:
    return validate(definition).unwrap()


@pytest.fixture
def store() -> InMemoryStore:
    """Empty store whose commits are stamped with FIXED_NOW."""
    return InMemoryStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def now() -> datetime:
    """Commit time of the ``store`` fixture."""
    return FIXED_NOW
