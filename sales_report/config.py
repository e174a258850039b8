"""
config.py — Configuration loading.

Reads config.yaml and deep-merges it over the built-in defaults so every
module can rely on the full key set being present. Credentials are never
read from here; senders take them from the environment.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ["Electronics", "Clothing", "Food", "Books"]
DEFAULT_SEED = 42

DEFAULTS: dict[str, Any] = {
    "report": {
        "month": None,
        "year": None,
        "destination": "manager@example.com",
    },
    "data_source": {
        "kind": "synthetic",
        "seed": DEFAULT_SEED,
        "categories": DEFAULT_CATEGORIES,
        "csv_path": "data/raw/sales.csv",
    },
    "metrics": {
        "growth_seed": DEFAULT_SEED,
        "compare_previous_period": False,
    },
    "formatter": {
        "kind": "text",
    },
    "sender": {
        "kind": "email",
    },
    "distribution": {
        "email_subject": "[Sales] {title}",
        "slack_channel": "#sales-reports",
        "slack_username": "Sales Report Bot",
        "slack_icon_emoji": ":bar_chart:",
    },
    "paths": {
        "log_dir": "logs",
    },
    "scheduler": {
        "run_day": 1,
        "run_time": "06:00",
        "timezone": "Europe/London",
        "destination": "manager@example.com",
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge `override` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str = "config.yaml") -> dict[str, Any]:
    """Load configuration YAML merged over the defaults.

    Args:
        config_path: Path to configuration YAML. A missing file is not an
            error; the defaults are returned.

    Returns:
        Full configuration dictionary.

    Raises:
        ValueError: If the file does not contain a YAML mapping.
    """
    path = Path(config_path)
    if not path.exists():
        logger.debug("Config %s not found — using defaults", path)
        return copy.deepcopy(DEFAULTS)

    with open(path, "r") as fh:
        loaded = yaml.safe_load(fh) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(loaded).__name__}")
    return _merge(DEFAULTS, loaded)


def load_env(env_file: str = ".env") -> dict[str, str]:
    """Load environment variables, falling back to .env file parsing.

    Returns:
        Dict of environment variable name → value.
    """
    env = dict(os.environ)

    env_path = Path(env_file)
    if env_path.exists():
        with open(env_path, "r") as fh:
            for line in fh:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in env and val:
                        env[key] = val
    return env
