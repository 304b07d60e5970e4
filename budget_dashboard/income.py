"""Income pseudo-categories grouped by payee.

YNAB4 files every inflow to one of two system categories (immediate and
deferred income), so the category tree has nothing useful to say about
where money came from. The grid instead shows one synthetic row per payee
under a synthetic "Income" master category. These rows are display-only
and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .models import (
    INCOME_CATEGORY_IDS,
    INCOME_MASTER_ID,
    INCOME_SUBCATEGORY_PREFIX,
    Transaction,
    is_income_category,
    is_near_zero,
    payee_key,
)
from .settings.defaults import label
from .transfer_utils import is_transfer, is_transfer_line

INCOME_LABEL = label('income')


@dataclass
class IncomeSubCategory:
    id: str
    payee_key: str
    name: str
    total: float = 0.0
    by_month: Dict[str, float] = field(default_factory=dict)
    visible_total: float = 0.0
    visible_by_month: Dict[str, float] = field(default_factory=dict)
    is_income: bool = True


@dataclass
class IncomeMasterCategory:
    id: str = INCOME_MASTER_ID
    name: str = INCOME_LABEL
    categories: List[IncomeSubCategory] = field(default_factory=list)
    is_income: bool = True

    @property
    def visible_total(self) -> float:
        return float(sum(sub.visible_total for sub in self.categories))

    def month_total(self, month_key: str) -> float:
        return float(sum(sub.by_month.get(month_key, 0.0) for sub in self.categories))


@dataclass
class IncomeLine:
    """One positive income amount: a whole transaction or one split line."""

    transaction: Transaction
    amount: float
    payee_key: str
    payee_name: str
    memo: str = ''
    is_split: bool = False


def income_lines(transactions: Optional[Iterable[Transaction]]) -> List[IncomeLine]:
    """Positive, non-transfer amounts filed to one of the system income categories.

    Split transactions are read line by line with each line's own sign and
    category, so a paycheck split into income and withholding contributes
    its income line only.
    """
    found: List[IncomeLine] = []
    for tx in transactions or []:
        if tx.is_tombstone:
            continue
        name = tx.payee or tx.payee_id or label('unknown_payee')
        if not tx.sub_transactions:
            if is_income_category(tx.category_id) and tx.amount > 0 and not is_transfer(tx):
                found.append(IncomeLine(tx, tx.amount, payee_key(tx), name, tx.memo))
            continue
        for line in tx.sub_transactions:
            if line.is_tombstone or is_transfer_line(line, tx):
                continue
            if is_income_category(line.category_id) and line.amount > 0:
                found.append(
                    IncomeLine(tx, line.amount, payee_key(tx, line), name, line.memo or tx.memo, is_split=True)
                )
    return found


def income_frame(transactions: Optional[Iterable[Transaction]]) -> pd.DataFrame:
    rows = [
        {
            'payee_key': entry.payee_key,
            'payee': entry.payee_name,
            'month': entry.transaction.month_key,
            'amount': entry.amount,
        }
        for entry in income_lines(transactions)
    ]
    return pd.DataFrame(rows, columns=['payee_key', 'payee', 'month', 'amount'])


def synthesize_income(
    transactions: Optional[Iterable[Transaction]],
    month_keys: Sequence[str],
) -> IncomeMasterCategory:
    """Build the synthetic income master category for the visible months.

    Payees with no activity in any visible month are dropped. Each kept
    payee carries its all-time ``total``/``by_month`` and the
    visible-range ``visible_total``/``visible_by_month`` used for display.
    Payees are ordered by descending visible total.
    """
    master = IncomeMasterCategory()
    df = income_frame(transactions)
    if df.empty:
        return master

    visible = set(month_keys)
    monthly = df.groupby(['payee_key', 'month'], sort=False)['amount'].sum()
    names = df.groupby('payee_key', sort=False)['payee'].first()

    subs: List[IncomeSubCategory] = []
    for key, name in names.items():
        by_month = {month: float(amount) for month, amount in monthly.loc[key].items()}
        visible_by_month = {month: amount for month, amount in by_month.items() if month in visible}
        if all(is_near_zero(amount) for amount in visible_by_month.values()):
            continue
        subs.append(
            IncomeSubCategory(
                id=f"{INCOME_SUBCATEGORY_PREFIX}{key}",
                payee_key=key,
                name=name,
                total=float(sum(by_month.values())),
                by_month=by_month,
                visible_total=float(sum(visible_by_month.values())),
                visible_by_month=visible_by_month,
            )
        )

    master.categories = sorted(subs, key=lambda sub: sub.visible_total, reverse=True)
    return master


def income_month_values(
    income: IncomeMasterCategory,
    category_id: str,
    month_key: str,
) -> Dict[str, float]:
    """Grid cell values for an income row.

    Income rows only ever show activity; budgeted and available are zero.
    The synthetic master id and the two system income ids resolve to the
    month total across payees, a payee id to that payee's amount.
    """
    activity = 0.0
    if category_id == INCOME_MASTER_ID or category_id in INCOME_CATEGORY_IDS:
        activity = income.month_total(month_key)
    elif category_id.startswith(INCOME_SUBCATEGORY_PREFIX):
        for sub in income.categories:
            if sub.id == category_id:
                activity = sub.by_month.get(month_key, 0.0)
                break
    return {'budgeted': 0.0, 'activity': float(activity), 'available': 0.0}
