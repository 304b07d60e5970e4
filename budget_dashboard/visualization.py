"""Plotly visualisation helpers for the reports page.

Each function takes a :class:`~budget_dashboard.classifier.ClassifiedReport`
and returns a `plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``. An empty report yields an empty figure titled
"No data to display" rather than an error.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .classifier import ClassifiedReport
from .common.formatting import format_month_label


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_income_expense_chart(report: ClassifiedReport, title: str | None = None) -> go.Figure:
    """Grouped monthly income and expense bars with a net line.

    Parameters
    ----------
    report : ClassifiedReport
        Output of :func:`~budget_dashboard.classifier.build_classified_report`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar + line chart over the report months.
    """
    if not report.months or (not report.expenses and not report.income):
        return _empty_figure()

    periods = [format_month_label(month) for month in report.months]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        name='Income',
        x=periods,
        y=[report.income_by_month.get(month, 0.0) for month in report.months],
        marker_color='#2ca02c',
    ))
    fig.add_trace(go.Bar(
        name='Expenses',
        x=periods,
        y=[report.expense_by_month.get(month, 0.0) for month in report.months],
        marker_color='#d62728',
    ))
    fig.add_trace(go.Scatter(
        name='Net',
        x=periods,
        y=[report.net_by_month.get(month, 0.0) for month in report.months],
        mode='lines+markers',
        line=dict(color='#1f77b4'),
    ))
    fig.update_layout(
        title=title or "Income vs Expenses",
        barmode='group',
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_classification_bar_chart(report: ClassifiedReport, title: str | None = None) -> go.Figure:
    """Total spend per classification bucket."""
    if not report.expenses:
        return _empty_figure()
    df = pd.DataFrame(
        [{'Classification': bucket.label, 'Total': bucket.total} for bucket in report.expenses]
    )
    fig = px.bar(df, x='Classification', y='Total')
    fig.update_layout(
        title=title or "Spending by classification",
        xaxis_title="Classification",
        yaxis_title="Total",
    )
    return fig
