"""Formatting and file helpers shared by the pages and storage modules."""

from .formatting import escape_dollar_for_markdown, format_currency, format_month_label
from .file_operations import ensure_directory, safe_filename

__all__ = [
    'ensure_directory',
    'escape_dollar_for_markdown',
    'format_currency',
    'format_month_label',
    'safe_filename',
]
