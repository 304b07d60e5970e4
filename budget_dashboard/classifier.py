"""Hierarchical expense and income reports.

Expenses roll up Category -> Master category -> Classification, where a
classification is a user-defined label grouping master categories
("Fixed costs", "Lifestyle", ...). Income is grouped by payee only. Every
level carries a total and a per-month breakdown so the same tree feeds the
on-screen table and the spreadsheet export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .models import (
    INCOME_CATEGORY_IDS,
    REPORT_EXCLUDED_MASTER_PREFIXES,
    UNCATEGORIZED_ID,
    UNKNOWN_PAYEE_KEY,
    Category,
    Classification,
    MasterCategory,
    Transaction,
    has_reserved_prefix,
)
from .months import months_between
from .settings.defaults import label
from .transfer_utils import transfer_mask

UNCLASSIFIED_ID = '__unclassified__'
EXPENSES_ID = '__expenses__'

LINE_COLUMNS = [
    'transaction_id', 'date', 'month', 'amount', 'category_id',
    'payee_id', 'payee', 'transfer_account_id', 'memo', 'is_split',
]


@dataclass
class ReportNode:
    id: str
    label: str
    total: float = 0.0
    by_month: Dict[str, float] = field(default_factory=dict)
    children: List['ReportNode'] = field(default_factory=list)


@dataclass
class ClassifiedReport:
    start: str
    end: str
    months: List[str] = field(default_factory=list)
    expenses: List[ReportNode] = field(default_factory=list)
    income: List[ReportNode] = field(default_factory=list)
    expense_total: float = 0.0
    expense_by_month: Dict[str, float] = field(default_factory=dict)
    income_total: float = 0.0
    income_by_month: Dict[str, float] = field(default_factory=dict)
    net_total: float = 0.0
    net_by_month: Dict[str, float] = field(default_factory=dict)

    def category_nodes(self) -> List[ReportNode]:
        return [
            category
            for bucket in self.expenses
            for master in bucket.children
            for category in master.children
        ]


def transaction_lines(transactions: Optional[Iterable[Transaction]]) -> pd.DataFrame:
    """One row per transaction, or one row per split line for split transactions.

    Split lines inherit the parent's date, payee and transfer account when
    they do not carry their own.
    """
    rows = []
    for tx in transactions or []:
        base = {
            'transaction_id': tx.id,
            'date': tx.date,
            'month': tx.month_key,
            'payee': tx.payee,
            'memo': tx.memo,
        }
        if tx.sub_transactions:
            for line in tx.sub_transactions:
                if line.is_tombstone:
                    continue
                rows.append({
                    **base,
                    'amount': line.amount,
                    'category_id': line.category_id,
                    'payee_id': line.payee_id or tx.payee_id,
                    'transfer_account_id': line.transfer_account_id or tx.transfer_account_id,
                    'memo': line.memo or tx.memo,
                    'is_split': True,
                })
        else:
            rows.append({
                **base,
                'amount': tx.amount,
                'category_id': tx.category_id,
                'payee_id': tx.payee_id,
                'transfer_account_id': tx.transfer_account_id,
                'is_split': False,
            })
    return pd.DataFrame(rows, columns=LINE_COLUMNS)


def build_classified_report(
    transactions: Optional[Iterable[Transaction]],
    categories: Optional[Iterable[Category]],
    master_categories: Optional[Iterable[MasterCategory]],
    start: str,
    end: str,
    classifications: Optional[Sequence[Classification]] = None,
) -> ClassifiedReport:
    """Build the Classification -> Master -> Category expense tree and payee income list.

    Args:
        transactions: All transactions; filtered here by date and type.
        categories: Sub-categories, used to find each category's master.
        master_categories: Master categories, used for names and exclusions.
        start: Inclusive ``YYYY-MM-DD`` lower bound.
        end: Inclusive ``YYYY-MM-DD`` upper bound.
        classifications: User-defined buckets; when empty, a single
            "Expenses" bucket holds everything.

    Returns:
        A :class:`ClassifiedReport`. Expense amounts are reported as
        positive spend; net is income minus expenses. Split lines are
        classified by their own sign and category, so one split can feed
        both income and expenses.
    """
    months = months_between(start[:7], end[:7]) if start and end else []
    report = ClassifiedReport(start=start, end=end, months=months)

    lines = transaction_lines(transactions)
    if not lines.empty:
        in_range = (lines['date'] >= start) & (lines['date'] <= end)
        lines = lines[in_range & ~transfer_mask(lines)]

    category_list = list(categories or [])
    master_list = list(master_categories or [])

    expense_lines = lines[lines['amount'] < 0].copy() if not lines.empty else lines
    masters = _expense_masters(expense_lines, category_list, master_list, months)
    report.expenses = _classify(masters, classifications or [], months)
    report.expense_by_month = _sum_months(report.expenses, months)
    report.expense_total = float(sum(node.total for node in report.expenses))

    income_lines = (
        lines[(lines['amount'] > 0) & lines['category_id'].isin(INCOME_CATEGORY_IDS)]
        if not lines.empty else lines
    )
    report.income = _income_payees(income_lines, months)
    report.income_by_month = _sum_months(report.income, months)
    report.income_total = float(sum(node.total for node in report.income))

    report.net_by_month = {
        month: report.income_by_month.get(month, 0.0) - report.expense_by_month.get(month, 0.0)
        for month in months
    }
    report.net_total = report.income_total - report.expense_total
    return report


def _expense_masters(
    expense_lines: pd.DataFrame,
    categories: List[Category],
    master_categories: List[MasterCategory],
    months: List[str],
) -> List[ReportNode]:
    if expense_lines.empty:
        return []

    category_master = {category.entity_id: category.master_category_id for category in categories}
    category_names = {category.entity_id: category.name for category in categories}
    master_names = {master.entity_id: master.name for master in master_categories}
    excluded = {
        master.entity_id
        for master in master_categories
        if has_reserved_prefix(master.name, REPORT_EXCLUDED_MASTER_PREFIXES)
    }

    working = expense_lines.copy()
    working['category_id'] = working['category_id'].fillna(UNCATEGORIZED_ID).replace('', UNCATEGORIZED_ID)
    masters_by_line = working['category_id'].map(category_master)
    working['master_id'] = masters_by_line.fillna(UNCATEGORIZED_ID).replace('', UNCATEGORIZED_ID)
    working = working[~working['master_id'].isin(excluded)].copy()
    working['spend'] = -working['amount']
    if working.empty:
        return []

    grouped = working.groupby(['master_id', 'category_id', 'month'])['spend'].sum()

    category_nodes: Dict[str, List[ReportNode]] = {}
    for (master_id, category_id), per_month in grouped.groupby(level=[0, 1]):
        by_month = {month: float(amount) for (_, _, month), amount in per_month.items()}
        category_nodes.setdefault(master_id, []).append(
            _node(category_id, _category_label(category_id, category_names), by_month, months)
        )

    nodes = []
    for master_id, children in category_nodes.items():
        children.sort(key=lambda node: (-node.total, node.label))
        master_label = master_names.get(master_id) or _fallback_label(master_id)
        nodes.append(_parent(master_id, master_label, children, months))
    nodes.sort(key=lambda node: (-node.total, node.label))
    return nodes


def _classify(
    masters: List[ReportNode],
    classifications: Sequence[Classification],
    months: List[str],
) -> List[ReportNode]:
    if not masters:
        return []
    if not classifications:
        return [_parent(EXPENSES_ID, label('expenses'), masters, months)]

    remaining = {node.id: node for node in masters}
    buckets: List[ReportNode] = []
    ordered = sorted(classifications, key=lambda item: item.sort_order)
    for position, classification in enumerate(ordered):
        members = [
            remaining.pop(master_id)
            for master_id in classification.master_category_ids
            if master_id in remaining
        ]
        if members:
            members.sort(key=lambda node: (-node.total, node.label))
            buckets.append(_parent(f"classification:{position}", classification.label, members, months))

    if remaining:
        leftovers = [node for node in masters if node.id in remaining]
        buckets.append(_parent(UNCLASSIFIED_ID, label('unclassified'), leftovers, months))
    return buckets


def _income_payees(income_lines: pd.DataFrame, months: List[str]) -> List[ReportNode]:
    if income_lines.empty:
        return []
    working = income_lines.copy()
    working['payee_key'] = (
        working['payee_id'].fillna('').astype(str)
        .where(lambda s: s != '', working['payee'].fillna('').astype(str))
        .replace('', UNKNOWN_PAYEE_KEY)
    )
    names = working.groupby('payee_key')['payee'].first()
    grouped = working.groupby(['payee_key', 'month'])['amount'].sum()

    nodes = []
    for key, per_month in grouped.groupby(level=0):
        by_month = {month: float(amount) for (_, month), amount in per_month.items()}
        name = names.get(key) or label('unknown_payee')
        nodes.append(_node(key, name, by_month, months))
    nodes.sort(key=lambda node: (-node.total, node.label))
    return nodes


def _node(node_id: str, node_label: str, by_month: Dict[str, float], months: List[str]) -> ReportNode:
    filled = {month: float(by_month.get(month, 0.0)) for month in months}
    return ReportNode(id=node_id, label=node_label, total=float(sum(by_month.values())), by_month=filled)


def _parent(node_id: str, node_label: str, children: List[ReportNode], months: List[str]) -> ReportNode:
    return ReportNode(
        id=node_id,
        label=node_label,
        total=float(sum(child.total for child in children)),
        by_month=_sum_months(children, months),
        children=children,
    )


def _sum_months(nodes: Iterable[ReportNode], months: List[str]) -> Dict[str, float]:
    totals = {month: 0.0 for month in months}
    for node in nodes:
        for month, amount in node.by_month.items():
            totals[month] = totals.get(month, 0.0) + amount
    return totals


def _category_label(category_id: str, names: Dict[str, str]) -> str:
    return names.get(category_id) or _fallback_label(category_id)


def _fallback_label(node_id: str) -> str:
    if node_id == UNCATEGORIZED_ID:
        return label('uncategorized')
    if node_id in INCOME_CATEGORY_IDS:
        return label('income')
    return node_id
