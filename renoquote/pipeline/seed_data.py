"""Seed record files for the global tasks collection."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from renoquote.catalog.loader import read_yaml
from renoquote.config import DATA_DIR
from renoquote.exceptions import ConfigurationError
from renoquote.pipeline.types import SeedTaskRecord

logger = logging.getLogger(__name__)

DEFAULT_SEED_TASKS_PATH = DATA_DIR / "seed_tasks.yaml"


def load_seed_tasks(path: Path | None = None) -> list[SeedTaskRecord]:
    """Load seed task records from a YAML file with a ``tasks`` list.

    Missing ``description`` defaults to "" and missing ``defaultUnit`` to
    "item".

    Raises:
        ConfigurationError: If the file is unreadable or a record has no name
    """
    path = Path(path) if path else DEFAULT_SEED_TASKS_PATH
    data = read_yaml(path)

    if "tasks" not in data or not isinstance(data["tasks"], list):
        raise ConfigurationError(f"Invalid seed file {path}: missing 'tasks' list")

    records = []
    for position, entry in enumerate(data["tasks"], start=1):
        try:
            records.append(SeedTaskRecord.model_validate(entry))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid seed task #{position} in {path}: {e}") from e

    logger.info(f"Loaded {len(records)} seed tasks from {path}")
    return records
