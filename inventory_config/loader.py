"""
Settings Loader (``inventory_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into the frozen
``InventorySettings`` dataclass.  Runtime callers go through
``inventory_config.get_active_config()``; this module is the explicit
loader used by that entry point and by tests.

Invariants enforced
-------------------
* Unknown top-level sections are rejected (typos never pass silently).
* Numeric settings are range-checked: thresholds and limits >= 1,
  retries >= 1, backoff >= 0.
* ``INVENTORY_DATABASE_URL`` in the environment overrides ``database.url``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or unknown settings  -> ``ValueError``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DATABASE_URL_ENV = "INVENTORY_DATABASE_URL"

_KNOWN_SECTIONS = frozenset(
    {"database", "inventory", "sales", "transactions", "logging"}
)


@dataclass(frozen=True)
class InventorySettings:
    """Runtime settings of the inventory engine."""

    database_url: str
    pool_size: int = 20
    max_overflow: int = 10
    reporting_currency: str = "HNL"
    low_stock_threshold: int = 10
    movement_history_limit: int = 500
    sale_number_prefix: str = "VTA-"
    transaction_retries: int = 3
    transaction_backoff_seconds: float = 0.05
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database.url is required")
        for name in (
            "pool_size",
            "low_stock_threshold",
            "movement_history_limit",
            "transaction_retries",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow must be >= 0, got {self.max_overflow}")
        if self.transaction_backoff_seconds < 0:
            raise ValueError("transaction_backoff_seconds must be >= 0")
        if len(self.reporting_currency) != 3:
            raise ValueError(
                f"reporting_currency must be a 3-letter code, got {self.reporting_currency!r}"
            )
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_settings(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> InventorySettings:
    """Build settings from a parsed YAML mapping plus environment overrides."""
    unknown = set(data) - _KNOWN_SECTIONS
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")

    environ = os.environ if environ is None else environ
    database = data.get("database", {}) or {}
    inventory = data.get("inventory", {}) or {}
    sales = data.get("sales", {}) or {}
    transactions = data.get("transactions", {}) or {}
    log_section = data.get("logging", {}) or {}

    return InventorySettings(
        database_url=environ.get(DATABASE_URL_ENV) or database.get("url", ""),
        pool_size=int(database.get("pool_size", 20)),
        max_overflow=int(database.get("max_overflow", 10)),
        reporting_currency=str(inventory.get("reporting_currency", "HNL")).upper(),
        low_stock_threshold=int(inventory.get("low_stock_threshold", 10)),
        movement_history_limit=int(inventory.get("movement_history_limit", 500)),
        sale_number_prefix=str(sales.get("sale_number_prefix", "VTA-")),
        transaction_retries=int(transactions.get("retries", 3)),
        transaction_backoff_seconds=float(transactions.get("backoff_seconds", 0.05)),
        log_level=str(log_section.get("level", "INFO")).upper(),
    )


def load_settings(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> InventorySettings:
    """Load and validate the settings file at ``path``."""
    return parse_settings(load_yaml_file(path), environ)
