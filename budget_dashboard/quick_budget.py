"""QuickBudget fill suggestions.

This module computes the values YNAB4 offers in its QuickBudget menu for a
category and month: last month's budget or spending, averages over recent
months, the amount needed to cover an overspent balance, the category goal
and zero. Nothing here writes budgets; callers decide what to apply.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .models import Category, MonthlyBudgetRecord, Transaction
from .months import parse_month_key, shift_month
from .settings.defaults import get_config_value
from .transfer_utils import is_transfer, is_transfer_line

BUDGETED_LAST_MONTH = 'budgeted_last_month'
SPENT_LAST_MONTH = 'spent_last_month'
AVERAGE_SPENT = 'average_spent'
AVERAGE_BUDGETED = 'average_budgeted'
UNDERFUNDED = 'underfunded'
GOAL_AMOUNT = 'goal_amount'
ZERO = 'zero'

QUICK_BUDGET_OPTIONS = (
    BUDGETED_LAST_MONTH,
    SPENT_LAST_MONTH,
    AVERAGE_SPENT,
    AVERAGE_BUDGETED,
    UNDERFUNDED,
    GOAL_AMOUNT,
    ZERO,
)

QUICK_BUDGET_LABELS = {
    BUDGETED_LAST_MONTH: 'Budgeted last month',
    SPENT_LAST_MONTH: 'Spent last month',
    AVERAGE_SPENT: 'Average spent',
    AVERAGE_BUDGETED: 'Average budgeted',
    UNDERFUNDED: 'Underfunded',
    GOAL_AMOUNT: 'Goal amount',
    ZERO: 'Zero',
}

BATCH_COLUMNS = ['category_id', 'category_name', 'previous_value', 'new_value', 'option']


def previous_months(month: str, count: int) -> List[str]:
    """The ``count`` month keys before ``month``, most recent first."""
    return [shift_month(month, -offset) for offset in range(1, count + 1)]


class QuickBudget:
    """Budget fill calculator over one budget snapshot.

    Example:
        >>> qb = QuickBudget(transactions, monthly_budgets, categories)
        >>> qb.fill('Category/A', AVERAGE_SPENT, '2024-06')
        55.0
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        monthly_budgets: Optional[Iterable[MonthlyBudgetRecord]] = None,
        categories: Optional[Iterable[Category]] = None,
        average_months: Optional[int] = None,
    ):
        self.transactions = list(transactions or [])
        self.monthly_budgets = list(monthly_budgets or [])
        self.categories = {category.entity_id: category for category in categories or []}
        self.average_months = average_months or get_config_value('quick_budget', 'average_months', default=3)

    # -- raw figures -------------------------------------------------------

    def spent_in_month(self, category_id: str, month: str) -> float:
        """Absolute non-transfer outflows filed to ``category_id`` in ``month``."""
        total = 0.0
        for tx in self.transactions:
            if tx.is_tombstone or not tx.date.startswith(month):
                continue
            if tx.sub_transactions:
                for line in tx.sub_transactions:
                    if line.category_id == category_id and line.amount < 0 and not is_transfer_line(line, tx):
                        total += abs(line.amount)
            elif tx.category_id == category_id and tx.amount < 0 and not is_transfer(tx):
                total += abs(tx.amount)
        return round(total, 2)

    def budgeted_in_month(self, category_id: str, month: str) -> float:
        for record in self.monthly_budgets:
            if record.month != month:
                continue
            for entry in record.sub_category_budgets:
                if entry.category_id == category_id and not entry.is_tombstone:
                    return entry.budgeted
        return 0.0

    def category_balance(self, category_id: str, month: str) -> float:
        """Budgeted minus spent for the month alone; no carryover."""
        return self.budgeted_in_month(category_id, month) - self.spent_in_month(category_id, month)

    # -- fills -------------------------------------------------------------

    def budgeted_last_month(self, category_id: str, month: str) -> float:
        return self.budgeted_in_month(category_id, shift_month(month, -1))

    def spent_last_month(self, category_id: str, month: str) -> float:
        return self.spent_in_month(category_id, shift_month(month, -1))

    def average_spent(self, category_id: str, month: str, months: Optional[int] = None) -> float:
        values = [self.spent_in_month(category_id, key) for key in previous_months(month, months or self.average_months)]
        return _positive_average(values)

    def average_budgeted(self, category_id: str, month: str, months: Optional[int] = None) -> float:
        values = [self.budgeted_in_month(category_id, key) for key in previous_months(month, months or self.average_months)]
        return _positive_average(values)

    def underfunded(self, category_id: str, month: str) -> float:
        balance = self.category_balance(category_id, month)
        return round(abs(balance), 2) if balance < 0 else 0.0

    def goal_amount(self, category_id: str, month: str) -> float:
        """Amount to budget toward the category goal.

        Supported goal types are ``targetBalance`` (reach a balance),
        ``targetBalanceByDate`` (spread the remainder over the months left,
        at least one) and ``monthlyFunding`` (a fixed monthly amount).
        """
        category = self.categories.get(category_id)
        goal = category.goal if category else None
        if not goal:
            return 0.0

        goal_type = goal.get('type')
        balance = self.category_balance(category_id, month)
        target = float(goal.get('targetBalance') or 0)

        if goal_type == 'targetBalance':
            return round(max(0.0, target - balance), 2)
        if goal_type == 'targetBalanceByDate':
            target_date = str(goal.get('targetDate') or '')
            if len(target_date) < 7:
                return 0.0
            target_month, target_year = parse_month_key(target_date)
            current_month, current_year = parse_month_key(month)
            remaining = max(1, (target_year - current_year) * 12 + (target_month - current_month))
            per_month = (target - balance) / remaining
            return max(0.0, math.ceil(per_month * 100) / 100)
        if goal_type == 'monthlyFunding':
            return float(goal.get('monthlyFunding') or 0)
        return 0.0

    def fill(self, category_id: str, option: str, month: str, average_months: Optional[int] = None) -> float:
        if option == BUDGETED_LAST_MONTH:
            return self.budgeted_last_month(category_id, month)
        if option == SPENT_LAST_MONTH:
            return self.spent_last_month(category_id, month)
        if option == AVERAGE_SPENT:
            return self.average_spent(category_id, month, average_months)
        if option == AVERAGE_BUDGETED:
            return self.average_budgeted(category_id, month, average_months)
        if option == UNDERFUNDED:
            return self.underfunded(category_id, month)
        if option == GOAL_AMOUNT:
            return self.goal_amount(category_id, month)
        return 0.0

    # -- batch -------------------------------------------------------------

    def apply_batch(
        self,
        category_ids: Sequence[str],
        option: str,
        month: str,
        average_months: Optional[int] = None,
    ) -> pd.DataFrame:
        """Suggested values for several categories; unknown ids are skipped."""
        rows = []
        for category_id in category_ids:
            category = self.categories.get(category_id)
            if category is None:
                continue
            rows.append({
                'category_id': category_id,
                'category_name': category.name or 'Unknown',
                'previous_value': self.budgeted_in_month(category_id, month),
                'new_value': self.fill(category_id, option, month, average_months),
                'option': option,
            })
        return pd.DataFrame(rows, columns=BATCH_COLUMNS)

    def fill_all(self, option: str, month: str) -> pd.DataFrame:
        ids = [category_id for category_id, category in self.categories.items() if not category.is_tombstone]
        return self.apply_batch(ids, option, month)

    def preview(self, category_id: str, month: str, average_months: Optional[int] = None) -> Dict[str, float]:
        return {option: self.fill(category_id, option, month, average_months) for option in QUICK_BUDGET_OPTIONS}


def _positive_average(values: Iterable[float]) -> float:
    positive = [value for value in values if value > 0]
    if not positive:
        return 0.0
    return round(sum(positive) / len(positive), 2)
