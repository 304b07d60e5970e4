"""Lightweight persistent cache for user-facing preferences and column layout."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

from .config import CACHE_PATH
from .settings.defaults import get_config_value

DEFAULT_CACHE: Dict[str, Any] = {
    'snapshot_path': '',
    'visible_months': 3,
    'show_only_active': False,
    'register_sort': 'desc',
    'columns': {'widths': {}, 'hidden': []},
}


@dataclass
class ColumnConfig:
    widths: Dict[str, int] = field(default_factory=dict)
    hidden: Set[str] = field(default_factory=set)

    @classmethod
    def from_dict(cls, data: Any) -> 'ColumnConfig':
        if not isinstance(data, dict):
            return cls.defaults()
        widths = {}
        for name, width in (data.get('widths') or {}).items():
            try:
                widths[str(name)] = int(width)
            except (TypeError, ValueError):
                continue
        hidden = data.get('hidden') or []
        if not isinstance(hidden, list):
            hidden = []
        return cls(widths=widths or cls.defaults().widths, hidden={str(name) for name in hidden})

    @classmethod
    def defaults(cls) -> 'ColumnConfig':
        return cls(widths=dict(get_config_value('columns', 'default_widths', default={}) or {}))

    def to_dict(self) -> Dict[str, Any]:
        return {'widths': dict(self.widths), 'hidden': sorted(self.hidden)}

    def visible(self, columns):
        return [column for column in columns if column not in self.hidden]

    def width_for(self, column: str) -> Optional[int]:
        width = self.widths.get(column)
        return width if width and width > 0 else None

    def updated(
        self,
        hidden: Optional[Iterable[str]] = None,
        widths: Optional[Dict[str, int]] = None,
    ) -> 'ColumnConfig':
        """Copy with ``hidden`` replaced and ``widths`` merged over the current ones."""
        merged = dict(self.widths)
        merged.update({name: int(width) for name, width in (widths or {}).items()})
        return ColumnConfig(
            widths=merged,
            hidden=set(self.hidden if hidden is None else hidden),
        )


def load_cache(path: Path | None = None) -> Dict[str, Any]:
    target = path or CACHE_PATH
    if not target.exists():
        return copy.deepcopy(DEFAULT_CACHE)
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError):
        return copy.deepcopy(DEFAULT_CACHE)
    if not isinstance(data, dict):
        return copy.deepcopy(DEFAULT_CACHE)
    merged = copy.deepcopy(DEFAULT_CACHE)
    merged.update({k: v for k, v in data.items() if k in DEFAULT_CACHE})
    return merged


def save_cache(cache: Dict[str, Any], path: Path | None = None) -> None:
    target = path or CACHE_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {k: v for k, v in cache.items() if k in DEFAULT_CACHE}
    with target.open('w', encoding='utf-8') as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)


def save_column_config(columns: ColumnConfig, path: Path | None = None) -> None:
    cache = load_cache(path)
    cache['columns'] = columns.to_dict()
    save_cache(cache, path)
