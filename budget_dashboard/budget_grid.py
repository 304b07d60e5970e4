"""Budget grid view assembly.

Each call to :func:`build_grid_view` takes an immutable set of inputs and
returns a fresh :class:`GridView`. The Streamlit page re-runs it on every
interaction; the :class:`~budget_dashboard.monthly_aggregator.MonthlyAggregator`
keeps the expensive per-month calls from repeating while inputs stay the same.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Set

import pandas as pd

from .category_structure import (
    MasterCategoryGroup,
    build_category_structure,
    compute_active_category_ids,
)
from .income import IncomeMasterCategory, income_month_values, synthesize_income
from .models import (
    Account,
    Category,
    MasterCategory,
    MonthlyBudgetRecord,
    MonthlyBudgetResult,
    Selection,
    Transaction,
)
from .monthly_aggregator import (
    MonthlyAggregator,
    category_month_values,
    check_available_to_budget,
    master_month_values,
    month_summary,
)
from .months import resolve_month_keys
from .selection import resolve_selection


@dataclass(frozen=True)
class GridInputs:
    transactions: Sequence[Transaction] = ()
    monthly_budgets: Sequence[MonthlyBudgetRecord] = ()
    categories: Sequence[Category] = ()
    master_categories: Sequence[MasterCategory] = ()
    accounts: Sequence[Account] = ()
    center_month: int = 0
    center_year: int = 2000
    visible_months: int = 3
    show_only_active: bool = False
    selection: Optional[Selection] = None


@dataclass
class GridView:
    month_keys: List[str]
    aggregates: Mapping[str, MonthlyBudgetResult]
    structure: List[MasterCategoryGroup]
    full_structure: List[MasterCategoryGroup]
    active_ids: Set[str]
    income: IncomeMasterCategory
    summary: Dict[str, float]
    center_key: str
    summary_consistent: bool = True
    selection_rows: pd.DataFrame = field(default_factory=pd.DataFrame)


def build_grid_view(inputs: GridInputs, aggregator: MonthlyAggregator) -> GridView:
    """Derive everything the budget page renders from one input snapshot.

    An active selection narrows the month window to the selected month.
    The summary and consistency check are computed for the center month,
    which is the selected month while a selection is active.
    """
    override = inputs.selection.month_key if inputs.selection else None
    month_keys = resolve_month_keys(
        inputs.center_month, inputs.center_year, inputs.visible_months, override,
    )

    aggregates = aggregator.aggregate(
        month_keys,
        inputs.transactions,
        inputs.monthly_budgets,
        inputs.categories,
        inputs.master_categories,
        inputs.accounts,
    )

    active_ids = compute_active_category_ids(aggregates, month_keys)
    full_structure = build_category_structure(inputs.categories, inputs.master_categories)
    structure = build_category_structure(
        inputs.categories,
        inputs.master_categories,
        active_category_ids=active_ids,
        show_only_active=inputs.show_only_active,
    )
    income = synthesize_income(inputs.transactions, month_keys)

    center_key = override or resolve_month_keys(inputs.center_month, inputs.center_year, 1)[0]
    summary = month_summary(aggregates, center_key)
    consistent = check_available_to_budget(summary, center_key) if center_key in aggregates else True

    return GridView(
        month_keys=month_keys,
        aggregates=aggregates,
        structure=structure,
        full_structure=full_structure,
        active_ids=active_ids,
        income=income,
        summary=summary,
        center_key=center_key,
        summary_consistent=consistent,
        selection_rows=resolve_selection(
            inputs.selection, inputs.transactions, full_structure, inputs.accounts,
        ),
    )


def grid_frame(view: GridView, expanded: Optional[Set[str]] = None) -> pd.DataFrame:
    """Flatten the grid into one row per visible line.

    Income rows come first, then each master category followed by its
    sub-categories when the master is expanded (``None`` expands all).
    Columns are ``Id``, ``Kind``, ``Name`` and, per month,
    ``<month> Budgeted``/``Activity``/``Available``.
    """
    rows = []

    def add(row_id: str, kind: str, name: str, values_for) -> None:
        row = {'Id': row_id, 'Kind': kind, 'Name': name}
        for key in view.month_keys:
            values = values_for(key)
            row[f"{key} Budgeted"] = values['budgeted']
            row[f"{key} Activity"] = values['activity']
            row[f"{key} Available"] = values['available']
        rows.append(row)

    if view.income.categories:
        add(view.income.id, 'income_master', view.income.name,
            lambda key: income_month_values(view.income, view.income.id, key))
        if expanded is None or view.income.id in expanded:
            for sub in view.income.categories:
                add(sub.id, 'income', sub.name,
                    lambda key, sub_id=sub.id: income_month_values(view.income, sub_id, key))

    for group in view.structure:
        add(group.entity_id, 'master', group.name,
            lambda key, master_id=group.entity_id: master_month_values(view.aggregates, master_id, key))
        if expanded is not None and group.entity_id not in expanded:
            continue
        for category in group.categories:
            add(category.entity_id, 'category', category.name,
                lambda key, category_id=category.entity_id: category_month_values(view.aggregates, category_id, key))

    columns = ['Id', 'Kind', 'Name'] + [
        f"{key} {figure}" for key in view.month_keys for figure in ('Budgeted', 'Activity', 'Available')
    ]
    return pd.DataFrame(rows, columns=columns)
