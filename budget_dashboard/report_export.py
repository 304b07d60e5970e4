"""Flatten a classified report into spreadsheet rows."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, List

import pandas as pd

from .classifier import ClassifiedReport, ReportNode
from .settings.defaults import label

HIERARCHY_COLUMNS = ['Classification', 'Master Category', 'Category']


def report_columns(report: ClassifiedReport) -> List[str]:
    return HIERARCHY_COLUMNS + list(report.months) + [label('total')]


def report_rows(report: ClassifiedReport) -> List[Dict[str, Any]]:
    """One row per tree node, hierarchy columns filled down to the node's level.

    Expense buckets come first, then the income section (one row for the
    income total and one per payee), then the expense total and net rows.
    """
    rows: List[Dict[str, Any]] = []

    def add(path: List[str], by_month: Dict[str, float], total: float) -> None:
        labels = (path + ['', '', ''])[:3]
        row: Dict[str, Any] = dict(zip(HIERARCHY_COLUMNS, labels))
        for month in report.months:
            row[month] = round(by_month.get(month, 0.0), 2)
        row[label('total')] = round(total, 2)
        rows.append(row)

    for bucket in report.expenses:
        add([bucket.label], bucket.by_month, bucket.total)
        for master in bucket.children:
            add([bucket.label, master.label], master.by_month, master.total)
            for category in master.children:
                add([bucket.label, master.label, category.label], category.by_month, category.total)

    if report.income:
        add([label('income')], report.income_by_month, report.income_total)
        for payee in report.income:
            add([label('income'), payee.label], payee.by_month, payee.total)

    add([f"{label('total')} {label('expenses')}"], report.expense_by_month, report.expense_total)
    add([label('net')], report.net_by_month, report.net_total)
    return rows


def report_frame(report: ClassifiedReport) -> pd.DataFrame:
    return pd.DataFrame(report_rows(report), columns=report_columns(report))


def report_csv(report: ClassifiedReport) -> str:
    return report_frame(report).to_csv(index=False)


def report_xlsx(report: ClassifiedReport, sheet_name: str = 'Report') -> bytes:
    """Render the report as an ``.xlsx`` workbook using the openpyxl engine."""
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        report_frame(report).to_excel(writer, index=False, sheet_name=sheet_name)
    return buffer.getvalue()


def flatten_nodes(nodes: List[ReportNode], depth: int = 0) -> List[Dict[str, Any]]:
    """Depth-annotated node list used by the collapsible on-screen table."""
    flat: List[Dict[str, Any]] = []
    for node in nodes:
        flat.append({'id': node.id, 'label': node.label, 'depth': depth, 'total': node.total, 'node': node})
        flat.extend(flatten_nodes(node.children, depth + 1))
    return flat
