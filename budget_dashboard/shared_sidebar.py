"""Shared sidebar components for the multi-page dashboard.

Every page calls :func:`render_shared_sidebar` first. It picks the budget
snapshot, loads it once per path and hands back the objects the page needs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import streamlit as st

from .config import DEFAULT_SNAPSHOT_PATH, configure_logging, ensure_data_directories, load_calculator
from .monthly_aggregator import MonthlyAggregator
from .persistent_cache import ColumnConfig, load_cache, save_cache, save_column_config
from .snapshot import BudgetSnapshot, load_budget_snapshot

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner="Loading budget...")
def _load_snapshot(path: str, modified: float) -> BudgetSnapshot:
    # ``modified`` only keys the cache so an updated file is re-read
    return load_budget_snapshot(path)


def _get_persistent_cache() -> Dict[str, Any]:
    if 'persistent_cache' not in st.session_state:
        st.session_state.persistent_cache = load_cache()
    return st.session_state.persistent_cache


def update_cache(**values: Any) -> None:
    """Persist changed preferences; unchanged values skip the write."""
    cache = _get_persistent_cache()
    changed = {key: value for key, value in values.items() if cache.get(key) != value}
    if not changed:
        return
    cache.update(changed)
    save_cache(cache)


def get_column_config() -> ColumnConfig:
    return ColumnConfig.from_dict(_get_persistent_cache().get('columns'))


def save_columns(columns: ColumnConfig) -> None:
    """Write the column layout to disk and keep the session copy in step."""
    save_column_config(columns)
    _get_persistent_cache()['columns'] = columns.to_dict()


def render_column_settings(columns: List[str], key: str) -> ColumnConfig:
    """Expander for hiding columns and setting their widths in pixels.

    Changes are saved straight away and shared by every table that uses
    the same column names.
    """
    config = get_column_config()
    with st.expander("⚙️ Columns"):
        hidden = st.multiselect(
            "Hidden columns",
            columns,
            default=[column for column in columns if column in config.hidden],
            key=f"{key}_hidden",
        )
        widths: Dict[str, int] = {}
        shown = [column for column in columns if column not in hidden]
        width_cols = st.columns(min(len(shown), 4) or 1)
        for index, column in enumerate(shown):
            with width_cols[index % len(width_cols)]:
                value = int(st.number_input(
                    f"{column} width",
                    min_value=0,
                    max_value=800,
                    step=10,
                    value=config.width_for(column) or 0,
                    key=f"{key}_width_{column}",
                    help="0 lets Streamlit size the column",
                ))
            if value != (config.width_for(column) or 0):
                widths[column] = value

    # hidden columns of other tables are kept
    others = {column for column in config.hidden if column not in columns}
    new_config = config.updated(hidden=others | set(hidden), widths=widths)
    if new_config != config:
        save_columns(new_config)
    return new_config


def dataframe_column_config(
    config: ColumnConfig,
    shown: Iterable[str],
    money_columns: Iterable[str] = (),
    setting_name: Optional[Callable[[str], str]] = None,
) -> Dict[str, Any]:
    """``column_config`` mapping for ``st.dataframe`` with widths and currency formats.

    ``setting_name`` maps a displayed column to the name its width is
    stored under, so per-month columns can share one setting.
    """
    money = set(money_columns)
    settings: Dict[str, Any] = {}
    for column in shown:
        width = config.width_for(setting_name(column) if setting_name else column)
        if column in money:
            settings[column] = st.column_config.NumberColumn(column, format="$%.2f", width=width)
        elif width is not None:
            settings[column] = st.column_config.Column(column, width=width)
    return settings


def get_aggregator() -> MonthlyAggregator:
    """Session-wide aggregator so cached months survive page switches."""
    if 'aggregator' not in st.session_state:
        calculator = None
        try:
            calculator = load_calculator()
        except (ImportError, ValueError) as exc:
            st.sidebar.error(f"Budget calculator could not be loaded: {exc}")
            logger.error("Budget calculator could not be loaded: %s", exc)
        if calculator is None:
            st.sidebar.warning("No budget calculator configured; budget figures will show as zero.")
        st.session_state.aggregator = MonthlyAggregator(calculator)
    return st.session_state.aggregator


def render_shared_sidebar() -> Dict[str, Any]:
    """Render shared sidebar elements available on all pages.

    Returns:
        Dict with keys: 'snapshot' (or ``None``), 'cache', 'aggregator'
    """
    configure_logging()
    ensure_data_directories()
    cache = _get_persistent_cache()

    st.sidebar.subheader("📂 Budget")
    default_path = cache.get('snapshot_path') or DEFAULT_SNAPSHOT_PATH
    path_text = st.sidebar.text_input(
        "Budget file",
        value=default_path,
        help="Path to a YNAB4 Budget.yfull export or a .ynab4 budget folder",
    ).strip()

    snapshot: Optional[BudgetSnapshot] = None
    if path_text:
        target = Path(path_text).expanduser()
        if not target.exists():
            st.sidebar.error(f"Not found: {target}")
        else:
            try:
                snapshot = _load_snapshot(str(target), target.stat().st_mtime)
            except ValueError as exc:
                st.sidebar.error(str(exc))
            else:
                update_cache(snapshot_path=path_text)
                st.sidebar.caption(
                    f"**{snapshot.name}** · {len(snapshot.transactions):,} transactions · "
                    f"{len(snapshot.accounts)} accounts"
                )

    return {
        'snapshot': snapshot,
        'cache': cache,
        'aggregator': get_aggregator(),
    }
