"""Utility helpers for identifying transfer transactions across accounts."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Set

import pandas as pd

from .models import TRANSFER_PAYEE_PREFIX, Account, SplitLine, Transaction


def is_transfer(transaction: Transaction) -> bool:
    """Return True when ``transaction`` moves money to another account.

    A transfer either names its counterpart account or uses one of the
    reserved ``Payee/Transfer:<account>`` payees YNAB4 creates per account.
    """
    if transaction.transfer_account_id:
        return True
    return _is_transfer_payee(transaction.payee_id)


def is_transfer_line(line: SplitLine, parent: Optional[Transaction] = None) -> bool:
    """Split-line version of :func:`is_transfer`.

    Fields the line leaves empty are taken from ``parent``, the same way
    :func:`~budget_dashboard.classifier.transaction_lines` fills them in.
    """
    if line.transfer_account_id or (parent is not None and parent.transfer_account_id):
        return True
    payee_id = line.payee_id or (parent.payee_id if parent is not None else None)
    return _is_transfer_payee(payee_id)


def on_budget_account_ids(accounts: Optional[Sequence[Account]]) -> Set[str]:
    return {acc.entity_id for acc in accounts or [] if acc.on_budget and not acc.is_tombstone}


def is_internal_transfer(transaction: Transaction, budget_account_ids: Iterable[str]) -> bool:
    """True for a transfer whose both legs sit in on-budget accounts."""
    if not is_transfer(transaction):
        return False
    ids = set(budget_account_ids)
    return transaction.account_id in ids and transfer_counterpart(transaction) in ids


def transfer_counterpart(transaction: Transaction) -> Optional[str]:
    """Account on the other side of a transfer, or ``None`` for regular transactions."""
    if transaction.transfer_account_id:
        return transaction.transfer_account_id
    if _is_transfer_payee(transaction.payee_id):
        return transaction.payee_id[len(TRANSFER_PAYEE_PREFIX):]
    return None


def transfer_mask(df: pd.DataFrame) -> pd.Series:
    """Vectorised :func:`is_transfer` over a frame of transaction lines."""
    if df.empty:
        return pd.Series(False, index=df.index, dtype=bool)
    account_series = df.get('transfer_account_id', pd.Series(None, index=df.index))
    payee_series = df.get('payee_id', pd.Series(None, index=df.index))
    has_account = account_series.fillna('').astype(str).str.len() > 0
    transfer_payee = payee_series.fillna('').astype(str).str.startswith(TRANSFER_PAYEE_PREFIX)
    return has_account | transfer_payee


def _is_transfer_payee(payee_id: Optional[str]) -> bool:
    return bool(payee_id) and payee_id.startswith(TRANSFER_PAYEE_PREFIX)
