"""Configuration loader for display settings."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

# Configuration directory
CONFIG_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _read_config(config_path: Path) -> Dict[str, Any]:
    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a configuration file by name.

    Args:
        config_name: Name of the config file (without .json extension)

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> config = load_config('ledger')
        >>> config['labels']['unclassified']
        'Unclassified'
    """
    config_path = CONFIG_DIR / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    return _read_config(config_path)


def get_ledger_config() -> Dict[str, Any]:
    """Get the ledger configuration (labels, grid, register and report defaults)."""
    return load_config('ledger')


def get_config_value(*keys: str, default: Any = None, config_name: str = 'ledger') -> Any:
    """Get a nested configuration value by key path.

    Example:
        >>> get_config_value('grid', 'default_visible_months')
        3
    """
    try:
        value: Any = load_config(config_name)
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError, FileNotFoundError):
        return default


def label(name: str) -> str:
    """Display label for ``name`` with a title-cased fallback."""
    return get_config_value('labels', name, default=name.replace('_', ' ').title())
