"""Main entry point for the Streamlit multi-page app.

Pages in the pages/ directory automatically appear in the sidebar. This
page shows the current month's budget summary.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from budget_dashboard.budget_grid import GridInputs, build_grid_view
from budget_dashboard.common.formatting import format_currency, format_month_label
from budget_dashboard.shared_sidebar import render_shared_sidebar


def main():
    """Render the Home page."""
    st.set_page_config(page_title="Budget Dashboard", page_icon="💰", layout="wide")
    sidebar_data = render_shared_sidebar()
    snapshot = sidebar_data['snapshot']

    st.title("💰 Budget Dashboard")

    if snapshot is None:
        st.info("Point the sidebar at a YNAB4 budget to get started.")
        return

    today = date.today()
    view = build_grid_view(
        GridInputs(
            transactions=snapshot.transactions,
            monthly_budgets=snapshot.monthly_budgets,
            categories=snapshot.categories,
            master_categories=snapshot.master_categories,
            accounts=snapshot.accounts,
            center_month=today.month - 1,
            center_year=today.year,
            visible_months=1,
        ),
        sidebar_data['aggregator'],
    )
    summary = view.summary

    st.subheader(f"{snapshot.name} · {format_month_label(view.center_key)}")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Available to budget", format_currency(summary['available_to_budget']))
        st.metric("Income", format_currency(summary['income']))
    with col2:
        st.metric("Budgeted", format_currency(summary['total_budgeted']))
        st.metric("Deferred income", format_currency(summary['deferred_income']))
    with col3:
        st.metric("From last month", format_currency(summary['from_last_month']))
        st.metric("Overspent last month", format_currency(summary['last_month_overspent']))

    if not view.summary_consistent:
        st.warning("Available to budget does not match its components for this month. See the log for details.")

    if view.income.categories:
        st.markdown("#### Income this month")
        st.dataframe(
            [
                {'Payee': sub.name, 'Amount': format_currency(sub.by_month.get(view.center_key, 0.0))}
                for sub in view.income.categories
            ],
            use_container_width=True,
            hide_index=True,
        )


if __name__ == "__main__":
    main()
