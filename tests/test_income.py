import pytest

from budget_dashboard.income import income_lines, income_month_values, synthesize_income
from budget_dashboard.models import (
    DEFERRED_INCOME_ID,
    IMMEDIATE_INCOME_ID,
    INCOME_MASTER_ID,
    SplitLine,
    Transaction,
)


def _tx(tx_id, date, amount, category_id=IMMEDIATE_INCOME_ID, payee_id=None, payee=''):
    return Transaction(
        id=tx_id, date=date, amount=amount, account_id='Account/Checking',
        category_id=category_id, payee_id=payee_id, payee=payee,
    )


def _transactions():
    return [
        _tx('t1', '2024-06-01', 3000, payee_id='Payee/Acme', payee='Acme'),
        _tx('t2', '2024-05-01', 3000, payee_id='Payee/Acme', payee='Acme'),
        _tx('t3', '2024-06-15', 500, category_id=DEFERRED_INCOME_ID, payee='Side Gig'),
        _tx('t4', '2024-01-10', 100, payee_id='Payee/Old', payee='Old Job'),
        _tx('t5', '2024-06-20', 40, payee=''),
        # refunds into income and regular spending are not income
        _tx('t6', '2024-06-02', -25, payee_id='Payee/Acme', payee='Acme'),
        _tx('t7', '2024-06-03', 75, category_id='Category/Groceries', payee='Store'),
    ]


def test_groups_income_by_payee_key():
    income = synthesize_income(_transactions(), ['2024-05', '2024-06'])

    assert income.id == INCOME_MASTER_ID
    keys = [sub.payee_key for sub in income.categories]
    assert keys == ['Payee/Acme', 'Side Gig', 'unknown']
    acme = income.categories[0]
    assert acme.id == 'income_Payee/Acme'
    assert acme.name == 'Acme'
    assert acme.visible_total == pytest.approx(6000)
    assert acme.by_month == {'2024-06': 3000, '2024-05': 3000}
    assert all(sub.is_income for sub in income.categories)


def test_payees_without_visible_activity_are_dropped():
    income = synthesize_income(_transactions(), ['2024-06'])

    assert 'Payee/Old' not in [sub.payee_key for sub in income.categories]
    acme = income.categories[0]
    # all-time total differs from the visible one
    assert acme.total == pytest.approx(6000)
    assert acme.visible_total == pytest.approx(3000)
    assert acme.visible_by_month == {'2024-06': 3000}


def test_sorted_by_visible_total_descending():
    txs = [
        _tx('a', '2024-06-01', 10, payee='Small'),
        _tx('b', '2024-06-01', 900, payee='Big'),
        _tx('c', '2024-06-01', 300, payee='Mid'),
    ]
    income = synthesize_income(txs, ['2024-06'])

    assert [sub.name for sub in income.categories] == ['Big', 'Mid', 'Small']


def test_empty_inputs_give_empty_master():
    income = synthesize_income(None, ['2024-06'])
    assert income.categories == []
    assert income.visible_total == 0


def test_month_value_lookup():
    income = synthesize_income(_transactions(), ['2024-05', '2024-06'])

    assert income_month_values(income, 'income_Payee/Acme', '2024-06') == {
        'budgeted': 0.0, 'activity': 3000.0, 'available': 0.0,
    }
    assert income_month_values(income, INCOME_MASTER_ID, '2024-06')['activity'] == pytest.approx(3540)
    assert income_month_values(income, IMMEDIATE_INCOME_ID, '2024-05')['activity'] == pytest.approx(3000)
    assert income_month_values(income, 'income_nobody', '2024-06')['activity'] == 0.0
    assert income_month_values(income, 'Category/Rent', '2024-06') == {
        'budgeted': 0.0, 'activity': 0.0, 'available': 0.0,
    }


def test_split_paycheck_counts_only_its_income_line():
    paycheck = Transaction(
        'pay', '2024-06-15', 900, 'Account/Checking', None, payee_id='Payee/Acme', payee='Acme',
        sub_transactions=[
            SplitLine(1000, IMMEDIATE_INCOME_ID, memo='gross'),
            SplitLine(-100, 'Category/Tax'),
        ],
    )

    income = synthesize_income([paycheck], ['2024-06'])
    lines = income_lines([paycheck])

    assert [sub.name for sub in income.categories] == ['Acme']
    assert income.month_total('2024-06') == pytest.approx(1000)
    assert [(line.amount, line.memo, line.is_split) for line in lines] == [(1000, 'gross', True)]


def test_split_transfer_lines_are_not_income():
    moved = Transaction(
        'mv', '2024-06-15', 300, 'Account/Checking', None, payee_id='Payee/Transfer:Account/Savings',
        sub_transactions=[SplitLine(300, IMMEDIATE_INCOME_ID)],
    )

    assert income_lines([moved]) == []
