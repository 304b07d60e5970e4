"""Resolve a grid selection into the transactions behind it."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .category_structure import MasterCategoryGroup, category_name_map, subcategory_ids
from .income import IncomeLine, income_lines
from .lookups import get_account_name, get_transfer_description
from .models import (
    INCOME_MASTER_ID,
    INCOME_SUBCATEGORY_PREFIX,
    SELECTION_MASTER,
    Account,
    Selection,
    Transaction,
)

SELECTION_COLUMNS = [
    'Date',
    'Amount',
    'Payee',
    'Account',
    'Memo',
    'Flag',
    'Is Split',
    'Category',
    'Transfer Account',
]


def income_selection_rows(
    selection: Selection,
    transactions: Iterable[Transaction],
) -> List[IncomeLine]:
    """Income lines for the selected month, optionally one payee only.

    Uses the same line rules as the grid's income rows, so split income
    lines appear here with their own amounts.
    """
    wanted_payee = None
    if selection.id != INCOME_MASTER_ID:
        wanted_payee = selection.id[len(INCOME_SUBCATEGORY_PREFIX):]
    return [
        entry for entry in income_lines(transactions)
        if entry.transaction.date.startswith(selection.month_key)
        and (wanted_payee is None or entry.payee_key == wanted_payee)
    ]


def resolve_selection(
    selection: Optional[Selection],
    transactions: Optional[Iterable[Transaction]],
    structure: Optional[Sequence[MasterCategoryGroup]] = None,
    accounts: Optional[Sequence[Account]] = None,
) -> pd.DataFrame:
    """Rows for the side panel, newest first.

    Master selections expand to every sub-category of that master and
    label each row with its sub-category name; direct category selections
    leave the ``Category`` column empty. Matching split lines become their
    own rows. Unknown ids produce an empty frame.
    """
    if selection is None:
        return pd.DataFrame(columns=SELECTION_COLUMNS)

    tx_list = [tx for tx in transactions or [] if not tx.is_tombstone]
    rows: List[Dict[str, Any]] = []

    if selection.is_income:
        for entry in income_selection_rows(selection, tx_list):
            rows.append(_row(entry.transaction, entry.amount, entry.memo, None, None, accounts, entry.is_split))
        return _frame(rows)

    groups = structure or []
    is_master = selection.type == SELECTION_MASTER
    if is_master:
        wanted = subcategory_ids(groups, selection.id)
    else:
        wanted = {selection.id}
    if not wanted:
        return _frame(rows)
    names = category_name_map(groups) if is_master else {}

    for tx in tx_list:
        if not tx.date.startswith(selection.month_key):
            continue
        if tx.sub_transactions:
            for line in tx.sub_transactions:
                if line.category_id not in wanted:
                    continue
                rows.append(
                    _row(
                        tx,
                        line.amount,
                        line.memo or tx.memo,
                        names.get(line.category_id) if is_master else None,
                        line.transfer_account_id or tx.transfer_account_id,
                        accounts,
                        is_split=True,
                    )
                )
        elif tx.category_id in wanted:
            rows.append(
                _row(
                    tx,
                    tx.amount,
                    tx.memo,
                    names.get(tx.category_id) if is_master else None,
                    tx.transfer_account_id,
                    accounts,
                )
            )
    return _frame(rows)


def _row(
    tx: Transaction,
    amount: float,
    memo: str,
    category_name: Optional[str],
    transfer_account_id: Optional[str],
    accounts: Optional[Sequence[Account]],
    is_split: bool = False,
) -> Dict[str, Any]:
    account_name = tx.account_name
    if not account_name and accounts:
        account_name = get_account_name(tx.account_id, accounts, fallback=tx.account_id)
    return {
        'Date': tx.date,
        'Amount': amount,
        'Payee': tx.payee,
        'Account': account_name or tx.account_id,
        'Memo': memo,
        'Flag': tx.flag,
        'Is Split': is_split,
        'Category': category_name,
        'Transfer Account': get_transfer_description(transfer_account_id, accounts or []) or None,
    }


def _frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    ordered = sorted(rows, key=lambda row: row['Date'], reverse=True)
    return pd.DataFrame(ordered, columns=SELECTION_COLUMNS)
