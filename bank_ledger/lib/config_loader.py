"""YAML configuration loader for the bank ledger.

Loads store, display and logging settings from YAML, merges them over the
built-in defaults and validates the result.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from bank_ledger.lib.logging_config import get_logger

logger = get_logger("config_loader")

DEFAULT_CONFIG: dict[str, Any] = {
    "store": {
        "db_path": "data/warehouse/ledger.duckdb",
    },
    "display": {
        "timezone": "UTC",
        "timestamp_format": "%Y-%m-%d %H:%M:%S %Z",
        "grouping_separator": " ",
        "decimal_separator": ".",
        "max_fraction_digits": 2,
    },
    "logging": {
        "level": "INFO",
    },
}

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_MAX_FRACTION_DIGITS = 10


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file. When None the
            built-in defaults are returned.

    Returns:
        Parsed configuration dictionary with defaults filled in.

    Raises:
        FileNotFoundError: If config file does not exist.
        ValueError: If config values are invalid.
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(config_path)
    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    with open(config_path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        msg = f"Config file must contain a mapping, got {type(loaded).__name__}"
        raise ValueError(msg)

    config = merge_config(DEFAULT_CONFIG, loaded)
    _validate_config(config)
    logger.info("Config loaded from %s", config_path)
    return config


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` on top of ``base`` without mutating either."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def _validate_config(config: dict[str, Any]) -> None:
    """Validate configuration values.

    Args:
        config: Configuration dictionary to validate.

    Raises:
        ValueError: If any config value is invalid.
    """
    db_path = config["store"].get("db_path")
    if not isinstance(db_path, str) or not db_path.strip():
        msg = f"store.db_path must be a non-empty string, got {db_path!r}"
        raise ValueError(msg)

    display = config["display"]

    tz_name = display.get("timezone")
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"Unknown display.timezone {tz_name!r}"
        raise ValueError(msg) from exc

    digits = display.get("max_fraction_digits")
    if (
        not isinstance(digits, int)
        or isinstance(digits, bool)
        or digits < 0
        or digits > _MAX_FRACTION_DIGITS
    ):
        msg = (
            f"display.max_fraction_digits must be between 0 and "
            f"{_MAX_FRACTION_DIGITS}, got {digits!r}"
        )
        raise ValueError(msg)

    for key in ("grouping_separator", "decimal_separator"):
        if not isinstance(display.get(key), str):
            msg = f"display.{key} must be a string, got {display.get(key)!r}"
            raise ValueError(msg)
    if display["grouping_separator"] == display["decimal_separator"]:
        msg = "display.grouping_separator and display.decimal_separator must differ"
        raise ValueError(msg)

    if not isinstance(display.get("timestamp_format"), str):
        msg = "display.timestamp_format must be a string"
        raise ValueError(msg)

    level = str(config["logging"].get("level", "")).upper()
    if level not in _VALID_LOG_LEVELS:
        msg = f"logging.level must be one of {sorted(_VALID_LOG_LEVELS)}, got {level!r}"
        raise ValueError(msg)
