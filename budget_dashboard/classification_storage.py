"""Persistence for report classifications, one JSON file per budget."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .common.file_operations import ensure_directory, safe_filename
from .config import CLASSIFICATIONS_DIR
from .models import Classification

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1


def default_config() -> Dict[str, Any]:
    return {
        'version': CONFIG_VERSION,
        'categoryClassifications': [],
        'payeeClassifications': [],
        'lastModified': None,
    }


class ClassificationStorage:
    """Load and save the classification config of each budget."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = directory or CLASSIFICATIONS_DIR

    def get_path(self, budget_name: str) -> Path:
        return self.directory / f"{safe_filename(budget_name, default='default')}.json"

    def load(self, budget_name: str) -> Dict[str, Any]:
        """Return the stored config, or the empty default when missing or corrupt."""
        target = self.get_path(budget_name)
        if not target.exists():
            return default_config()
        try:
            with target.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable classification file %s: %s", target, exc)
            return default_config()
        if not isinstance(data, dict):
            return default_config()

        config = default_config()
        config.update({key: value for key, value in data.items() if key in config})
        for key in ('categoryClassifications', 'payeeClassifications'):
            if not isinstance(config[key], list):
                config[key] = []
        return config

    def save(self, budget_name: str, config: Dict[str, Any]) -> Dict[str, Any]:
        """Write ``config`` and return it with ``lastModified`` stamped.

        Raises:
            ValueError: If the budget name is empty
            OSError: If the file cannot be written
        """
        if not budget_name or not budget_name.strip():
            raise ValueError("Budget name cannot be empty")

        payload = default_config()
        payload.update({key: value for key, value in (config or {}).items() if key in payload})
        payload['lastModified'] = datetime.now(timezone.utc).isoformat()

        target = self.get_path(budget_name)
        ensure_directory(target.parent)
        try:
            with target.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
        except OSError as exc:
            raise OSError(f"Failed to save classifications to {target}: {exc}") from exc
        return payload

    def load_classifications(self, budget_name: str) -> List[Classification]:
        entries = self.load(budget_name)['categoryClassifications']
        return [Classification.from_dict(entry) for entry in entries if isinstance(entry, dict)]

    def save_classifications(self, budget_name: str, classifications: Sequence[Classification]) -> Dict[str, Any]:
        config = self.load(budget_name)
        config['categoryClassifications'] = [item.to_dict() for item in classifications]
        return self.save(budget_name, config)

    def delete(self, budget_name: str) -> None:
        target = self.get_path(budget_name)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise OSError(f"Failed to delete classification file {target}: {exc}") from exc
