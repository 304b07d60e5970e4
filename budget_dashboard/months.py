"""Month key arithmetic for the budget grid.

Month keys are always ``YYYY-MM``. They are derived with integer month
arithmetic so that the result never depends on the local timezone or on
how a date library handles day overflow (e.g. January 31st + 1 month).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class MonthSlot:
    month: int  # 0-11
    year: int
    key: str


def month_key(month: int, year: int) -> str:
    """Format a zero-based month index and year as ``YYYY-MM``.

    Example:
        >>> month_key(0, 2025)
        '2025-01'
    """
    year_shift, month = divmod(month, 12)
    return f"{year + year_shift:04d}-{month + 1:02d}"


def parse_month_key(key: str) -> Tuple[int, int]:
    """Return ``(month_index, year)`` for a ``YYYY-MM`` key."""
    year_text, month_text = key[:7].split('-')
    return int(month_text) - 1, int(year_text)


def shift_month(key: str, offset: int) -> str:
    """Move a month key by ``offset`` months (negative goes back).

    Example:
        >>> shift_month('2025-01', -1)
        '2024-12'
    """
    month, year = parse_month_key(key)
    return month_key(month + offset, year)


def months_between(start_key: str, end_key: str) -> List[str]:
    """Inclusive list of month keys from ``start_key`` to ``end_key``."""
    start_month, start_year = parse_month_key(start_key)
    end_month, end_year = parse_month_key(end_key)
    count = (end_year - start_year) * 12 + (end_month - start_month) + 1
    return [month_key(start_month + offset, start_year) for offset in range(max(count, 0))]


def resolve_month_range(
    center_month: int,
    center_year: int,
    visible_months: int,
    single_month_override: Optional[str] = None,
) -> List[MonthSlot]:
    """Resolve the ordered list of months shown by the budget grid.

    The window starts one month before the center month so that the
    center sits in the second column. With ``visible_months == 1`` the
    window is just the center month. An active selection collapses the
    window to the selected month.

    Args:
        center_month: Zero-based month index (0 = January).
        center_year: Four digit year of the center month.
        visible_months: Number of columns to produce.
        single_month_override: ``YYYY-MM`` key that replaces the window.

    Returns:
        List of :class:`MonthSlot` with exactly ``visible_months`` entries,
        or a single entry when an override is given.

    Example:
        >>> [slot.key for slot in resolve_month_range(11, 2024, 4)]
        ['2024-11', '2024-12', '2025-01', '2025-02']
    """
    if single_month_override:
        month, year = parse_month_key(single_month_override)
        return [MonthSlot(month=month, year=year, key=month_key(month, year))]

    count = max(int(visible_months), 1)
    lead = 1 if count > 1 else 0
    slots: List[MonthSlot] = []
    for offset in range(count):
        year_shift, month = divmod(center_month - lead + offset, 12)
        year = center_year + year_shift
        slots.append(MonthSlot(month=month, year=year, key=month_key(month, year)))
    return slots


def resolve_month_keys(
    center_month: int,
    center_year: int,
    visible_months: int,
    single_month_override: Optional[str] = None,
) -> List[str]:
    return [
        slot.key
        for slot in resolve_month_range(center_month, center_year, visible_months, single_month_override)
    ]
