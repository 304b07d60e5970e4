from io import BytesIO

import pandas as pd
import pytest

from budget_dashboard.classifier import build_classified_report
from budget_dashboard.models import IMMEDIATE_INCOME_ID, Category, MasterCategory, SplitLine, Transaction
from budget_dashboard.report_export import (
    flatten_nodes,
    report_columns,
    report_csv,
    report_frame,
    report_rows,
    report_xlsx,
)


def _report():
    transactions = [
        Transaction('t1', '2024-06-05', -50, 'Account/Checking', 'Category/A'),
        Transaction('t2', '2024-06-10', -30, 'Account/Checking', None,
                    sub_transactions=[SplitLine(-10, 'Category/A'), SplitLine(-20, 'Category/B')]),
        Transaction('t3', '2024-06-01', 1000, 'Account/Checking', IMMEDIATE_INCOME_ID,
                    payee_id='Payee/Acme', payee='Acme'),
    ]
    categories = [
        Category('Category/A', 'Groceries', 'Master/Home'),
        Category('Category/B', 'Utilities', 'Master/Home'),
    ]
    masters = [MasterCategory('Master/Home', 'Home')]
    return build_classified_report(transactions, categories, masters, '2024-06-01', '2024-06-30')


def test_rows_follow_the_tree():
    rows = report_rows(_report())

    labels = [(row['Classification'], row['Master Category'], row['Category']) for row in rows]
    assert labels == [
        ('Expenses', '', ''),
        ('Expenses', 'Home', ''),
        ('Expenses', 'Home', 'Groceries'),
        ('Expenses', 'Home', 'Utilities'),
        ('Income', '', ''),
        ('Income', 'Acme', ''),
        ('Total Expenses', '', ''),
        ('Net', '', ''),
    ]
    assert rows[2]['2024-06'] == 60
    assert rows[-1]['Total'] == 920


def test_frame_columns_and_csv():
    report = _report()
    frame = report_frame(report)

    assert list(frame.columns) == report_columns(report) == [
        'Classification', 'Master Category', 'Category', '2024-06', 'Total',
    ]
    csv_text = report_csv(report)
    assert csv_text.splitlines()[0] == 'Classification,Master Category,Category,2024-06,Total'
    assert 'Net,,,920.0,920.0' in csv_text


def test_xlsx_round_trip():
    payload = report_xlsx(_report())

    assert payload[:2] == b'PK'
    frame = pd.read_excel(BytesIO(payload), engine='openpyxl')
    assert frame['Total'].iloc[-1] == pytest.approx(920)


def test_flatten_nodes_depths():
    flat = flatten_nodes(_report().expenses)
    assert [entry['depth'] for entry in flat] == [0, 1, 2, 2]
