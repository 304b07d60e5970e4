"""Configuration management for the budget dashboard.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from typing import Callable, Optional

# Base project root - assumes this file is in budget_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_DASHBOARD_DATA_DIR", _PROJECT_ROOT / "data"))
CLASSIFICATIONS_DIR = DATA_DIR / "classifications"
CACHE_PATH = DATA_DIR / "persistent_cache.json"

# Budget snapshot (YNAB4 Budget.yfull export) opened on start-up
DEFAULT_SNAPSHOT_PATH = os.getenv("BUDGET_DASHBOARD_SNAPSHOT", "")

# External budget-math callable as "package.module:function"
CALCULATOR_SPEC = os.getenv("BUDGET_DASHBOARD_CALCULATOR", "")

LOG_LEVEL = os.getenv("BUDGET_DASHBOARD_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, CLASSIFICATIONS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic root handler once; later calls only adjust the level."""
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)


def load_calculator(spec: Optional[str] = None) -> Optional[Callable]:
    """Import the external budget calculator named by ``spec``.

    Args:
        spec: ``"module:function"`` path; defaults to ``CALCULATOR_SPEC``.

    Returns:
        The callable, or ``None`` when no calculator is configured.

    Raises:
        ValueError: If the spec is malformed or does not name a callable.
        ImportError: If the module cannot be imported.
    """
    target = CALCULATOR_SPEC if spec is None else spec
    if not target:
        return None
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Calculator must look like 'module:function', got {target!r}")
    module = importlib.import_module(module_name)
    calculator = getattr(module, attr, None)
    if not callable(calculator):
        raise ValueError(f"{target!r} does not name a callable")
    return calculator
