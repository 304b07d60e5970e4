"""Account register with running balances.

Balances are computed once over a fixed chronological order and then
attached to rows in whatever order the user wants to read them. On a day
with both deposits and withdrawals, deposits come first so the register
never shows a dip below zero that did not really happen.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .models import Account, Transaction
from .lookups import get_account_name, get_transfer_description
from .transfer_utils import is_internal_transfer, on_budget_account_ids, transfer_counterpart

SORT_ASC = 'asc'
SORT_DESC = 'desc'

REGISTER_COLUMNS = [
    'Transaction ID',
    'Date',
    'Payee',
    'Account',
    'Transfer',
    'Memo',
    'Cleared',
    'Flag',
    'Amount',
    'Running Balance',
]


def _chronological_key(transaction: Transaction):
    # inflows sort before outflows on the same day
    return (transaction.date, 0 if transaction.amount >= 0 else 1)


def ascending_order(transactions: Optional[Iterable[Transaction]]) -> List[Transaction]:
    return sorted(transactions or [], key=_chronological_key)


def display_order(
    transactions: Optional[Iterable[Transaction]],
    sort_direction: str = SORT_DESC,
) -> List[Transaction]:
    """Order rows for display.

    ``asc`` uses the chronological order. ``desc`` reverses both the date
    and the same-day tie-break, so outflows precede inflows when newest is
    on top.
    """
    if sort_direction == SORT_ASC:
        return ascending_order(transactions)
    return sorted(transactions or [], key=_chronological_key, reverse=True)


def running_balance_map(transactions: Optional[Iterable[Transaction]]) -> Dict[str, float]:
    """Prefix sums over the chronological order, keyed by transaction id.

    Example:
        >>> running_balance_map([deposit_100, withdrawal_40])  # same day
        {'t1': 100.0, 't2': 60.0}
    """
    ordered = ascending_order(transactions)
    if not ordered:
        return {}
    balances = np.cumsum([tx.amount for tx in ordered])
    return {tx.id: float(balance) for tx, balance in zip(ordered, balances)}


def compute_register(
    transactions: Optional[Iterable[Transaction]],
    account_id: Optional[str] = None,
    sort_direction: str = SORT_DESC,
    accounts: Optional[Sequence[Account]] = None,
    hide_internal_transfers: bool = False,
) -> pd.DataFrame:
    """Build the register frame for one account or for all accounts.

    Args:
        transactions: Transactions to show; tombstoned ones are skipped.
        account_id: Account to filter on. ``None`` means all accounts, in
            which case running balances are meaningless and reported as 0.
        sort_direction: ``'asc'`` or ``'desc'``.
        accounts: Optional account list used to resolve display names.
        hide_internal_transfers: Leave out transfers between two on-budget
            accounts. Balances still include them.

    Returns:
        DataFrame with :data:`REGISTER_COLUMNS`.
    """
    visible = [tx for tx in transactions or [] if not tx.is_tombstone]
    if account_id is not None:
        visible = [tx for tx in visible if tx.account_id == account_id]

    balances = running_balance_map(visible) if account_id is not None else {}
    if hide_internal_transfers:
        budget_ids = on_budget_account_ids(accounts)
        visible = [tx for tx in visible if not is_internal_transfer(tx, budget_ids)]

    rows = []
    for tx in display_order(visible, sort_direction):
        account_name = tx.account_name
        if not account_name and accounts:
            account_name = get_account_name(tx.account_id, accounts, fallback=tx.account_id)
        rows.append({
            'Transaction ID': tx.id,
            'Date': tx.date,
            'Payee': tx.payee,
            'Account': account_name or tx.account_id,
            'Transfer': get_transfer_description(transfer_counterpart(tx), accounts or []),
            'Memo': tx.memo,
            'Cleared': tx.cleared,
            'Flag': tx.flag,
            'Amount': tx.amount,
            'Running Balance': balances.get(tx.id, 0.0),
        })
    return pd.DataFrame(rows, columns=REGISTER_COLUMNS)


def final_balance(transactions: Optional[Iterable[Transaction]], account_id: str) -> float:
    """Balance after the last transaction of ``account_id``."""
    mine = [tx for tx in transactions or [] if tx.account_id == account_id and not tx.is_tombstone]
    balances = running_balance_map(mine)
    if not balances:
        return 0.0
    return balances[ascending_order(mine)[-1].id]
