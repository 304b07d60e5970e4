"""Per-month budget aggregation through the external budget calculator.

The budget math itself (carryover, overspending handling, available to
budget) belongs to an external calculator with the signature::

    calculator(month_key, transactions, monthly_budgets, categories,
               master_categories, accounts) -> MonthlyBudgetResult | dict

This module calls it once per visible month, isolates failures per month
and keeps the last results keyed by month until an input changes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import (
    Account,
    Category,
    CategoryResult,
    MasterCategory,
    MonthlyBudgetRecord,
    MonthlyBudgetResult,
    Transaction,
    is_near_zero,
)

logger = logging.getLogger(__name__)

BudgetCalculator = Callable[..., Any]

SUMMARY_KEYS = (
    'income',
    'deferred_income',
    'from_last_month',
    'last_month_overspent',
    'total_budgeted',
    'available_to_budget',
)


def account_refs(accounts: Optional[Iterable[Account]]) -> List[Dict[str, Any]]:
    """Reduce accounts to the fields the calculator needs."""
    return [
        {
            'entity_id': account.entity_id,
            'on_budget': account.on_budget,
            'is_tombstone': account.is_tombstone,
        }
        for account in accounts or []
    ]


def aggregate_months(
    month_keys: Sequence[str],
    calculator: Optional[BudgetCalculator],
    transactions: Optional[Iterable[Transaction]] = None,
    monthly_budgets: Optional[Iterable[MonthlyBudgetRecord]] = None,
    categories: Optional[Iterable[Category]] = None,
    master_categories: Optional[Iterable[MasterCategory]] = None,
    accounts: Optional[Iterable[Account]] = None,
) -> Dict[str, MonthlyBudgetResult]:
    """Run the calculator for every month and return a fresh result map.

    The full transaction list is passed for every month; the calculator
    needs history for carryover. A failure in one month yields a zero
    result for that month only.
    """
    tx_list = list(transactions or [])
    budget_list = list(monthly_budgets or [])
    category_list = [category for category in categories or [] if not category.is_tombstone]
    master_list = [master for master in master_categories or [] if not master.is_tombstone]
    refs = account_refs(accounts)

    results: Dict[str, MonthlyBudgetResult] = {}
    for key in month_keys:
        if calculator is None:
            logger.error("No budget calculator configured; %s shows zero totals", key)
            results[key] = MonthlyBudgetResult.zero(key)
            continue
        try:
            raw = calculator(key, tx_list, budget_list, category_list, master_list, refs)
            results[key] = coerce_result(raw, key)
        except Exception:
            logger.exception("Budget calculation failed for %s; using zero result", key)
            results[key] = MonthlyBudgetResult.zero(key)
    return results


def coerce_result(raw: Any, month_key: str) -> MonthlyBudgetResult:
    """Accept the calculator output as a dataclass, mapping or plain object."""
    if isinstance(raw, MonthlyBudgetResult):
        return raw
    if raw is None:
        raise ValueError(f"calculator returned nothing for {month_key}")
    if isinstance(raw, Mapping):
        return MonthlyBudgetResult.from_dict(raw, month=month_key)
    if hasattr(raw, '__dict__'):
        return MonthlyBudgetResult.from_dict(vars(raw), month=month_key)
    raise TypeError(f"Unsupported calculator result {type(raw).__name__} for {month_key}")


class MonthlyAggregator:
    """Keyed cache of monthly results, rebuilt whenever an input changes.

    Inputs are compared by identity, month keys by value. A rebuild
    produces a new dict that replaces the previous one in a single
    assignment, so a reader holding the old map never sees a partial one.
    """

    def __init__(self, calculator: Optional[BudgetCalculator] = None):
        self.calculator = calculator
        self._inputs: Optional[Tuple[Any, ...]] = None
        self._results: Dict[str, MonthlyBudgetResult] = {}
        self.passes = 0

    @property
    def results(self) -> Mapping[str, MonthlyBudgetResult]:
        return self._results

    def aggregate(
        self,
        month_keys: Sequence[str],
        transactions: Optional[Sequence[Transaction]] = None,
        monthly_budgets: Optional[Sequence[MonthlyBudgetRecord]] = None,
        categories: Optional[Sequence[Category]] = None,
        master_categories: Optional[Sequence[MasterCategory]] = None,
        accounts: Optional[Sequence[Account]] = None,
    ) -> Dict[str, MonthlyBudgetResult]:
        inputs = (transactions, monthly_budgets, categories, master_categories, accounts)
        keys = tuple(month_keys)
        if self._inputs is not None and self._same_inputs(keys, inputs):
            return self._results

        results = aggregate_months(keys, self.calculator, *inputs)
        self._results = results
        self._inputs = (keys,) + inputs
        self.passes += 1
        return results

    def _same_inputs(self, keys: Tuple[str, ...], inputs: Tuple[Any, ...]) -> bool:
        previous_keys, *previous = self._inputs
        if previous_keys != keys:
            return False
        return all(old is new for old, new in zip(previous, inputs))


def month_summary(
    aggregates: Optional[Mapping[str, MonthlyBudgetResult]],
    month_key: str,
) -> Dict[str, float]:
    """Header figures for one month, zero when it has not been aggregated."""
    result = (aggregates or {}).get(month_key)
    if result is None:
        return {key: 0.0 for key in SUMMARY_KEYS}
    return {key: float(getattr(result, key)) for key in SUMMARY_KEYS}


def check_available_to_budget(summary: Mapping[str, float], month_key: str = '') -> bool:
    """Compare the reported available-to-budget with its component figures.

    Diagnostic only: a mismatch beyond the currency tolerance is logged as
    a warning and reported through the return value, never raised.
    """
    expected = (
        summary.get('from_last_month', 0.0)
        + summary.get('last_month_overspent', 0.0)
        + summary.get('income', 0.0)
        + summary.get('deferred_income', 0.0)
        - summary.get('total_budgeted', 0.0)
    )
    reported = summary.get('available_to_budget', 0.0)
    if not is_near_zero(expected - reported):
        logger.warning(
            "Available to budget mismatch for %s: components give %.2f, calculator reports %.2f",
            month_key or 'current month', expected, reported,
        )
        return False
    return True


def category_month_values(
    aggregates: Optional[Mapping[str, MonthlyBudgetResult]],
    category_id: str,
    month_key: str,
) -> Dict[str, Any]:
    result = (aggregates or {}).get(month_key)
    found: Optional[CategoryResult] = result.category(category_id) if result else None
    if found is None:
        return {'budgeted': 0.0, 'activity': 0.0, 'available': 0.0, 'overspending_handling': None}
    return {
        'budgeted': found.budgeted,
        'activity': found.activity,
        'available': found.available,
        'overspending_handling': found.overspending_handling,
    }


def master_month_values(
    aggregates: Optional[Mapping[str, MonthlyBudgetResult]],
    master_category_id: str,
    month_key: str,
) -> Dict[str, float]:
    result = (aggregates or {}).get(month_key)
    found = result.master(master_category_id) if result else None
    if found is None:
        return {'budgeted': 0.0, 'activity': 0.0, 'available': 0.0}
    return {'budgeted': found.budgeted, 'activity': found.activity, 'available': found.available}
