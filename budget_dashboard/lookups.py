"""Name lookups used when turning ids into display text.

Unknown or missing ids resolve to the caller's fallback; none of these
helpers raise.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .models import Account, Category, MasterCategory
from .settings.defaults import get_config_value


def get_account_name(
    account_id: Optional[str],
    accounts: Iterable[Account],
    fallback: str = '',
) -> str:
    if not account_id:
        return fallback
    account = next((a for a in accounts if a.entity_id == account_id), None)
    return account.name if account and account.name else fallback


def get_category_full_name(
    category_id: Optional[str],
    categories: Iterable[Category],
    master_categories: Iterable[MasterCategory],
    fallback: str = '',
) -> str:
    """Return ``"Master: Category"``, or the bare name when the master is unknown.

    Example:
        >>> get_category_full_name('Category/A', cats, masters)
        'Housing: Rent'
    """
    if not category_id:
        return fallback
    category = next((c for c in categories if c.entity_id == category_id), None)
    if category is None:
        return fallback
    master = next((m for m in master_categories if m.entity_id == category.master_category_id), None)
    if master is not None:
        return f"{master.name}: {category.name}"
    return category.name


def get_account_type(account_id: Optional[str], accounts: Iterable[Account]) -> str:
    """Classify an account as checking/savings/credit/cash/investment/other."""
    if not account_id:
        return 'other'
    account = next((a for a in accounts if a.entity_id == account_id), None)
    if account is None:
        return 'other'

    kind = (account.type or '').lower()
    if 'checking' in kind:
        return 'checking'
    if 'savings' in kind:
        return 'savings'
    if 'credit' in kind:
        return 'credit'
    if 'cash' in kind:
        return 'cash'
    if 'invest' in kind:
        return 'investment'
    return 'other'


def get_transfer_label(account_id: Optional[str], accounts: Iterable[Account]) -> str:
    kind = get_account_type(account_id, accounts)
    labels = get_config_value('transfer_labels', default={}) or {}
    return labels.get(kind) or labels.get('other') or 'Transfer'


def get_transfer_description(account_id: Optional[str], accounts: Iterable[Account]) -> str:
    """``"<type label>: <account name>"`` for the far side of a transfer; ``''`` when there is none."""
    if not account_id:
        return ''
    accounts = list(accounts)
    name = get_account_name(account_id, accounts, fallback=account_id)
    return f"{get_transfer_label(account_id, accounts)}: {name}"
