import logging
from types import SimpleNamespace

import pytest

from budget_dashboard.models import (
    Account,
    Category,
    MasterCategory,
    MonthlyBudgetResult,
    Transaction,
)
from budget_dashboard.monthly_aggregator import (
    MonthlyAggregator,
    aggregate_months,
    category_month_values,
    check_available_to_budget,
    coerce_result,
    master_month_values,
    month_summary,
)


class RecordingCalculator:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def __call__(self, month_key, transactions, monthly_budgets, categories, master_categories, accounts):
        self.calls.append((month_key, transactions, monthly_budgets, categories, master_categories, accounts))
        if month_key in self.fail_on:
            raise RuntimeError('boom')
        return {
            'income': 1000,
            'totalBudgeted': 400,
            'availableToBudget': 600,
            'masterCategories': [
                {
                    'masterCategoryId': 'Master/Bills',
                    'budgeted': 400,
                    'activity': -350,
                    'available': 50,
                    'categories': [
                        {'categoryId': 'Category/Rent', 'budgeted': 400, 'activity': -350, 'available': 50,
                         'overspendingHandling': 'Confined'},
                    ],
                }
            ],
        }


def _inputs():
    transactions = [Transaction('t1', '2024-06-01', -350, 'Account/A', 'Category/Rent')]
    categories = [
        Category('Category/Rent', 'Rent', 'Master/Bills'),
        Category('Category/Old', 'Old', 'Master/Bills', is_tombstone=True),
    ]
    masters = [
        MasterCategory('Master/Bills', 'Bills'),
        MasterCategory('Master/Gone', 'Gone', is_tombstone=True),
    ]
    accounts = [Account('Account/A', 'Checking', on_budget=True, type='Checking')]
    return transactions, [], categories, masters, accounts


def test_calls_calculator_per_month_with_filtered_inputs():
    calculator = RecordingCalculator()
    transactions, budgets, categories, masters, accounts = _inputs()

    results = aggregate_months(['2024-05', '2024-06'], calculator, transactions, budgets, categories, masters, accounts)

    assert list(results) == ['2024-05', '2024-06']
    assert [call[0] for call in calculator.calls] == ['2024-05', '2024-06']
    _, passed_tx, _, passed_categories, passed_masters, passed_accounts = calculator.calls[0]
    assert passed_tx == transactions
    assert [c.entity_id for c in passed_categories] == ['Category/Rent']
    assert [m.entity_id for m in passed_masters] == ['Master/Bills']
    assert passed_accounts == [{'entity_id': 'Account/A', 'on_budget': True, 'is_tombstone': False}]
    assert results['2024-06'].available_to_budget == 600
    assert results['2024-06'].category('Category/Rent').overspending_handling == 'Confined'


def test_failure_is_isolated_to_one_month(caplog):
    calculator = RecordingCalculator(fail_on={'2024-06'})

    with caplog.at_level(logging.ERROR, logger='budget_dashboard.monthly_aggregator'):
        results = aggregate_months(['2024-05', '2024-06', '2024-07'], calculator, *_inputs())

    assert results['2024-05'].income == 1000
    assert results['2024-07'].income == 1000
    failed = results['2024-06']
    assert failed.income == 0 and failed.available_to_budget == 0
    assert failed.master_categories == []
    assert '2024-06' in caplog.text


def test_missing_calculator_yields_zero_results(caplog):
    with caplog.at_level(logging.ERROR, logger='budget_dashboard.monthly_aggregator'):
        results = aggregate_months(['2024-06'], None, *_inputs())

    assert results['2024-06'] == MonthlyBudgetResult.zero('2024-06')
    assert 'No budget calculator' in caplog.text


def test_aggregator_caches_by_reference():
    calculator = RecordingCalculator()
    aggregator = MonthlyAggregator(calculator)
    transactions, budgets, categories, masters, accounts = _inputs()

    first = aggregator.aggregate(['2024-06'], transactions, budgets, categories, masters, accounts)
    second = aggregator.aggregate(['2024-06'], transactions, budgets, categories, masters, accounts)
    assert first is second
    assert aggregator.passes == 1

    # an equal but different list is a new input
    third = aggregator.aggregate(['2024-06'], list(transactions), budgets, categories, masters, accounts)
    assert third is not first
    assert aggregator.passes == 2

    aggregator.aggregate(['2024-06', '2024-07'], list(transactions), budgets, categories, masters, accounts)
    assert aggregator.passes == 3
    assert set(aggregator.results) == {'2024-06', '2024-07'}


def test_rebuild_replaces_the_whole_map():
    aggregator = MonthlyAggregator(RecordingCalculator())
    transactions, budgets, categories, masters, accounts = _inputs()

    old = aggregator.aggregate(['2024-05'], transactions, budgets, categories, masters, accounts)
    new = aggregator.aggregate(['2024-06'], transactions, budgets, categories, masters, accounts)

    assert list(old) == ['2024-05']
    assert list(new) == ['2024-06']


def test_coerce_result_accepts_objects():
    raw = SimpleNamespace(income=5, total_budgeted=2, available_to_budget=3, master_categories=[])
    result = coerce_result(raw, '2024-06')
    assert result.month == '2024-06'
    assert result.available_to_budget == 3

    with pytest.raises(ValueError):
        coerce_result(None, '2024-06')
    with pytest.raises(TypeError):
        coerce_result(42, '2024-06')


def test_summary_defaults_to_zero():
    summary = month_summary({}, '2024-06')
    assert summary == {
        'income': 0.0,
        'deferred_income': 0.0,
        'from_last_month': 0.0,
        'last_month_overspent': 0.0,
        'total_budgeted': 0.0,
        'available_to_budget': 0.0,
    }


def test_consistency_check_warns_without_raising(caplog):
    good = {'income': 1000, 'deferred_income': 0, 'from_last_month': 100,
            'last_month_overspent': -50, 'total_budgeted': 400, 'available_to_budget': 650}
    assert check_available_to_budget(good, '2024-06') is True

    bad = dict(good, available_to_budget=640)
    with caplog.at_level(logging.WARNING, logger='budget_dashboard.monthly_aggregator'):
        assert check_available_to_budget(bad, '2024-06') is False
    assert 'mismatch' in caplog.text

    within_tolerance = dict(good, available_to_budget=650.005)
    assert check_available_to_budget(within_tolerance) is True


def test_cell_lookups_default_to_zero():
    results = aggregate_months(['2024-06'], RecordingCalculator(), *_inputs())

    assert category_month_values(results, 'Category/Rent', '2024-06')['activity'] == -350
    assert category_month_values(results, 'Category/Nope', '2024-06')['available'] == 0.0
    assert master_month_values(results, 'Master/Bills', '2024-06')['available'] == 50
    assert master_month_values(results, 'Master/Bills', '2023-01') == {
        'budgeted': 0.0, 'activity': 0.0, 'available': 0.0,
    }
