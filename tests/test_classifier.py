import pytest

from budget_dashboard.classifier import (
    EXPENSES_ID,
    UNCLASSIFIED_ID,
    build_classified_report,
    transaction_lines,
)
from budget_dashboard.income import synthesize_income
from budget_dashboard.models import (
    IMMEDIATE_INCOME_ID,
    Category,
    Classification,
    MasterCategory,
    SplitLine,
    Transaction,
)


def _masters():
    return [
        MasterCategory('Master/Home', 'Home'),
        MasterCategory('Master/Fun', 'Fun'),
        MasterCategory('Master/PreYnab', 'Pre-YNAB Debt'),
    ]


def _categories():
    return [
        Category('Category/A', 'Groceries', 'Master/Home'),
        Category('Category/B', 'Utilities', 'Master/Home'),
        Category('Category/C', 'Movies', 'Master/Fun'),
        Category('Category/D', 'Old card', 'Master/PreYnab'),
    ]


def _scenario():
    return [
        Transaction('t1', '2024-06-05', -50, 'Account/Checking', 'Category/A', payee='Market'),
        Transaction(
            't2', '2024-06-10', -30, 'Account/Checking', None, payee='Mart',
            sub_transactions=[
                SplitLine(-10, 'Category/A', memo='food'),
                SplitLine(-20, 'Category/B'),
            ],
        ),
        Transaction('t3', '2024-06-01', 1000, 'Account/Checking', IMMEDIATE_INCOME_ID,
                    payee_id='Payee/Acme', payee='Acme'),
    ]


def _find(nodes, node_id):
    for node in nodes:
        if node.id == node_id:
            return node
        found = _find(node.children, node_id)
        if found is not None:
            return found
    return None


def test_june_scenario():
    report = build_classified_report(_scenario(), _categories(), _masters(), '2024-06-01', '2024-06-30')

    assert report.months == ['2024-06']
    assert _find(report.expenses, 'Category/A').total == pytest.approx(60)
    assert _find(report.expenses, 'Category/B').total == pytest.approx(20)
    assert [payee.label for payee in report.income] == ['Acme']
    assert report.income[0].total == pytest.approx(1000)
    assert report.expense_total == pytest.approx(80)
    assert report.net_total == pytest.approx(920)
    assert report.net_by_month == {'2024-06': pytest.approx(920)}


def test_split_lines_become_separate_lines():
    lines = transaction_lines(_scenario())

    split = lines[lines['transaction_id'] == 't2']
    assert list(split['amount']) == [-10, -20]
    assert list(split['category_id']) == ['Category/A', 'Category/B']
    assert list(split['memo']) == ['food', '']
    assert split['is_split'].all()


def test_fallback_bucket_without_classifications():
    report = build_classified_report(_scenario(), _categories(), _masters(), '2024-06-01', '2024-06-30')

    assert [bucket.id for bucket in report.expenses] == [EXPENSES_ID]
    assert report.expenses[0].label == 'Expenses'


def test_transfers_and_out_of_range_are_excluded():
    txs = _scenario() + [
        Transaction('x1', '2024-06-07', -500, 'Account/Checking', 'Category/A',
                    transfer_account_id='Account/Savings'),
        Transaction('x2', '2024-06-07', -70, 'Account/Checking', 'Category/A',
                    payee_id='Payee/Transfer:Account/Savings'),
        Transaction('x3', '2024-07-01', -99, 'Account/Checking', 'Category/A'),
        Transaction('x4', '2024-05-31', 2000, 'Account/Checking', IMMEDIATE_INCOME_ID, payee='Acme'),
        Transaction('x5', '2024-06-08', 400, 'Account/Savings', IMMEDIATE_INCOME_ID,
                    transfer_account_id='Account/Checking'),
    ]

    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-06-30')

    assert report.expense_total == pytest.approx(80)
    assert report.income_total == pytest.approx(1000)


def test_uncategorized_and_reserved_masters():
    txs = [
        Transaction('u1', '2024-06-02', -15, 'Account/Checking', None, payee='Kiosk'),
        Transaction('u2', '2024-06-02', -25, 'Account/Checking', 'Category/Unknown', payee='Kiosk'),
        Transaction('p1', '2024-06-03', -300, 'Account/Checking', 'Category/D', payee='Bank'),
    ]

    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-06-30')

    uncategorized = _find(report.expenses, 'uncategorized')
    assert uncategorized is not None
    assert uncategorized.total == pytest.approx(40)
    assert _find(report.expenses, 'Master/PreYnab') is None
    assert report.expense_total == pytest.approx(40)


def test_classification_partition_and_completeness():
    txs = _scenario() + [
        Transaction('m1', '2024-06-12', -45, 'Account/Checking', 'Category/C', payee='Cinema'),
        Transaction('m2', '2024-06-20', -5, 'Account/Checking', None, payee='Kiosk'),
    ]
    classifications = [
        Classification('Wants', sort_order=2, master_category_ids=['Master/Fun']),
        Classification('Needs', sort_order=1, master_category_ids=['Master/Home', 'Master/Missing']),
        Classification('Empty', sort_order=0, master_category_ids=['Master/PreYnab']),
    ]

    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-06-30', classifications)

    assert [bucket.label for bucket in report.expenses] == ['Needs', 'Wants', 'Unclassified']
    assert report.expenses[-1].id == UNCLASSIFIED_ID
    assert report.expenses[0].total == pytest.approx(80)
    assert report.expenses[1].total == pytest.approx(45)
    assert report.expenses[2].total == pytest.approx(5)

    category_sum = sum(node.total for node in report.category_nodes())
    bucket_sum = sum(bucket.total for bucket in report.expenses)
    assert bucket_sum == pytest.approx(category_sum)
    assert report.expense_total == pytest.approx(130)


def test_masters_and_categories_sorted_by_total():
    report = build_classified_report(_scenario(), _categories(), _masters(), '2024-06-01', '2024-06-30')

    home = _find(report.expenses, 'Master/Home')
    assert [child.label for child in home.children] == ['Groceries', 'Utilities']


def test_monthly_breakdown_spans_the_range():
    txs = _scenario() + [
        Transaction('j1', '2024-07-04', -12, 'Account/Checking', 'Category/C', payee='Fireworks'),
    ]

    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-07-31')

    assert report.months == ['2024-06', '2024-07']
    assert report.expense_by_month == {'2024-06': pytest.approx(80), '2024-07': pytest.approx(12)}
    assert report.income_by_month == {'2024-06': pytest.approx(1000), '2024-07': 0.0}
    assert report.net_by_month['2024-07'] == pytest.approx(-12)
    movies = _find(report.expenses, 'Category/C')
    assert movies.by_month == {'2024-06': 0.0, '2024-07': pytest.approx(12)}


def test_income_and_expenses_never_share_a_transaction():
    txs = _scenario() + [
        # a refund booked against income counts as spend, never as income
        Transaction('r1', '2024-06-11', -20, 'Account/Checking', IMMEDIATE_INCOME_ID, payee='Acme'),
    ]
    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-06-30')
    income = synthesize_income(txs, ['2024-06'])

    assert income.visible_total == pytest.approx(report.income_total)
    assert report.income_total == pytest.approx(1000)
    assert report.expense_total == pytest.approx(100)


def test_empty_inputs():
    report = build_classified_report(None, None, None, '2024-06-01', '2024-06-30')

    assert report.expenses == []
    assert report.income == []
    assert report.net_total == 0
    assert report.net_by_month == {'2024-06': 0.0}


def _paycheck():
    return Transaction(
        'pay', '2024-06-15', 900, 'Account/Checking', None, payee_id='Payee/Acme', payee='Acme',
        sub_transactions=[
            SplitLine(1000, IMMEDIATE_INCOME_ID),
            SplitLine(-100, 'Category/Tax'),
        ],
    )


def test_mixed_sign_split_feeds_income_and_expenses():
    categories = _categories() + [Category('Category/Tax', 'Tax', 'Master/Home')]

    report = build_classified_report([_paycheck()], categories, _masters(), '2024-06-01', '2024-06-30')
    income = synthesize_income([_paycheck()], ['2024-06'])

    assert report.income_total == pytest.approx(1000)
    assert report.expense_total == pytest.approx(100)
    assert _find(report.expenses, 'Category/Tax').total == pytest.approx(100)
    assert report.net_total == pytest.approx(900)
    assert income.visible_total == pytest.approx(report.income_total)


def test_duplicate_classification_labels_get_distinct_ids():
    txs = _scenario() + [
        Transaction('m1', '2024-06-12', -45, 'Account/Checking', 'Category/C', payee='Cinema'),
    ]
    classifications = [
        Classification('Spending', sort_order=1, master_category_ids=['Master/Home']),
        Classification('Spending', sort_order=2, master_category_ids=['Master/Fun']),
    ]

    report = build_classified_report(txs, _categories(), _masters(), '2024-06-01', '2024-06-30', classifications)

    assert [bucket.label for bucket in report.expenses] == ['Spending', 'Spending']
    assert len({bucket.id for bucket in report.expenses}) == 2


def test_category_with_blank_master_is_uncategorized():
    categories = _categories() + [Category('Category/Loose', 'Loose', '')]
    txs = [Transaction('l1', '2024-06-02', -12, 'Account/Checking', 'Category/Loose', payee='Kiosk')]

    report = build_classified_report(txs, categories, _masters(), '2024-06-01', '2024-06-30')

    uncategorized = _find(report.expenses, 'uncategorized')
    assert uncategorized is not None
    assert uncategorized.label == 'Uncategorized'
    assert _find(uncategorized.children, 'Category/Loose').total == pytest.approx(12)
