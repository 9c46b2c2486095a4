"""RenoQuote configuration management.

Loads configuration from environment variables with sensible defaults.
Money defaults follow the Australian trade convention the catalog was built
for (AUD, 10% GST).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from renoquote.exceptions import ConfigurationError

# Load .env file if present
load_dotenv()

# Firestore rejects write batches above this size
MAX_BATCH_LIMIT = 500

DATA_DIR = Path(__file__).parent / "data"


@dataclass
class StoreConfig:
    """Document store connection and reseed settings."""

    project_id: str | None = None
    credentials_path: str | None = None  # service account JSON
    emulator_host: str | None = None
    seed_collection: str = "tasks"
    batch_limit: int = MAX_BATCH_LIMIT


@dataclass
class PricingConfig:
    """Currency and tax defaults for quotes."""

    currency: str = "AUD"
    tax_rate: Decimal = Decimal("0.10")  # GST


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    json_logs: bool = False
    catalog_path: Path = DATA_DIR / "catalog.yaml"
    seed_tasks_path: Path = DATA_DIR / "seed_tasks.yaml"

    store: StoreConfig = field(default_factory=StoreConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Every setting is optional. Firestore credentials fall back to
        application default credentials when GOOGLE_APPLICATION_CREDENTIALS
        is unset.

        Raises:
            ConfigurationError: If a numeric setting is malformed or out of range
        """
        batch_limit = _int_env("BATCH_LIMIT", MAX_BATCH_LIMIT)
        if not 1 <= batch_limit <= MAX_BATCH_LIMIT:
            raise ConfigurationError(
                f"BATCH_LIMIT must be between 1 and {MAX_BATCH_LIMIT}, got {batch_limit}"
            )

        tax_rate = _decimal_env("TAX_RATE", "0.10")
        if tax_rate < 0:
            raise ConfigurationError(f"TAX_RATE must be non-negative, got {tax_rate}")

        catalog_path = os.getenv("CATALOG_PATH")
        seed_tasks_path = os.getenv("SEED_TASKS_PATH")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            catalog_path=Path(catalog_path) if catalog_path else DATA_DIR / "catalog.yaml",
            seed_tasks_path=(
                Path(seed_tasks_path) if seed_tasks_path else DATA_DIR / "seed_tasks.yaml"
            ),
            store=StoreConfig(
                project_id=os.getenv("FIRESTORE_PROJECT_ID"),
                credentials_path=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
                emulator_host=os.getenv("FIRESTORE_EMULATOR_HOST"),
                seed_collection=os.getenv("SEED_COLLECTION", "tasks"),
                batch_limit=batch_limit,
            ),
            pricing=PricingConfig(
                currency=os.getenv("DEFAULT_CURRENCY", "AUD").upper(),
                tax_rate=tax_rate,
            ),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _decimal_env(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ConfigurationError(f"{name} must be a decimal number, got {raw!r}") from e
    if not value.is_finite():
        raise ConfigurationError(f"{name} must be finite, got {raw!r}")
    return value


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Raises:
        ConfigurationError: If environment values are malformed
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next ``get_config`` re-reads the environment."""
    global _config
    _config = None
