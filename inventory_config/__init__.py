"""
inventory_config -- single public entrypoint for runtime settings.

``get_active_config()`` loads the settings once (from the file named by
``INVENTORY_CONFIG`` or the bundled ``defaults.yaml``) and caches them.
``load_settings(path)`` is the explicit loader for tests and tooling.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from inventory_config.loader import (
    DATABASE_URL_ENV,
    InventorySettings,
    load_settings,
    parse_settings,
)

_logger = logging.getLogger("inventory_kernel.config")

CONFIG_PATH_ENV = "INVENTORY_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_active: InventorySettings | None = None


def get_active_config(config_path: Path | None = None) -> InventorySettings:
    """
    Return the cached settings, loading them on first use.

    Passing ``config_path`` forces a reload from that file.
    """
    global _active
    if _active is not None and config_path is None:
        return _active

    path = config_path or Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    _active = load_settings(path)
    _logger.info(
        "inventory_config_loaded",
        extra={
            "config_path": str(path),
            "reporting_currency": _active.reporting_currency,
            "low_stock_threshold": _active.low_stock_threshold,
        },
    )
    return _active


def reset_active_config() -> None:
    """Drop the cached settings. FOR TESTING ONLY."""
    global _active
    _active = None


__all__ = [
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "DEFAULT_CONFIG_PATH",
    "InventorySettings",
    "get_active_config",
    "load_settings",
    "parse_settings",
    "reset_active_config",
]
