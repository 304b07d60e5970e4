"""Formatting utilities for currency and month display."""

from __future__ import annotations

import calendar
from typing import Union

from ..months import parse_month_key


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX delimiter, which turns the
    text between two amounts into italics.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount, keeping the minus sign in front of the symbol.

    Example:
        >>> format_currency(-1234.5)
        '-$1,234.50'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 and round(abs(amount), 2) != 0 else ""
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def format_month_label(key: str) -> str:
    """``'2024-06'`` -> ``'Jun 2024'``."""
    month, year = parse_month_key(key)
    return f"{calendar.month_abbr[month + 1]} {year}"
