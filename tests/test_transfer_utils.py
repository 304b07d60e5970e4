import pandas as pd

from budget_dashboard.models import Account, SplitLine, Transaction
from budget_dashboard.transfer_utils import (
    is_internal_transfer,
    is_transfer,
    is_transfer_line,
    on_budget_account_ids,
    transfer_counterpart,
    transfer_mask,
)


def _accounts():
    return [
        Account('Account/Checking', 'Checking', on_budget=True),
        Account('Account/Savings', 'Savings', on_budget=True),
        Account('Account/Mortgage', 'Mortgage', on_budget=False),
        Account('Account/Closed', 'Closed', on_budget=True, is_tombstone=True),
    ]


def test_transfer_detection():
    assert is_transfer(Transaction('t1', '2024-06-01', -10, 'Account/Checking', transfer_account_id='Account/Savings'))
    assert is_transfer(Transaction('t2', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Transfer:Account/Savings'))
    assert not is_transfer(Transaction('t3', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Store'))
    assert is_transfer_line(SplitLine(-5, transfer_account_id='Account/Savings'))
    assert not is_transfer_line(SplitLine(-5, 'Category/A'))


def test_internal_transfers_need_both_legs_on_budget():
    budget_ids = on_budget_account_ids(_accounts())

    assert budget_ids == {'Account/Checking', 'Account/Savings'}
    assert is_internal_transfer(
        Transaction('t1', '2024-06-01', -10, 'Account/Checking', transfer_account_id='Account/Savings'), budget_ids,
    )
    assert is_internal_transfer(
        Transaction('t2', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Transfer:Account/Savings'), budget_ids,
    )
    assert not is_internal_transfer(
        Transaction('t3', '2024-06-01', -10, 'Account/Checking', transfer_account_id='Account/Mortgage'), budget_ids,
    )
    assert not is_internal_transfer(Transaction('t4', '2024-06-01', -10, 'Account/Checking'), budget_ids)


def test_transfer_mask_over_frame():
    df = pd.DataFrame([
        {'transfer_account_id': 'Account/Savings', 'payee_id': None},
        {'transfer_account_id': None, 'payee_id': 'Payee/Transfer:Account/Savings'},
        {'transfer_account_id': None, 'payee_id': 'Payee/Store'},
        {'transfer_account_id': '', 'payee_id': None},
    ])

    assert list(transfer_mask(df)) == [True, True, False, False]
    assert transfer_mask(df.iloc[0:0]).empty


def test_split_line_falls_back_to_parent_transfer_fields():
    parent = Transaction('t1', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Transfer:Account/Savings')
    regular = Transaction('t2', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Store')

    assert is_transfer_line(SplitLine(-5, 'Category/A'), parent)
    assert not is_transfer_line(SplitLine(-5, 'Category/A'), regular)
    assert is_transfer_line(SplitLine(-5, payee_id='Payee/Transfer:Account/Savings'), regular)


def test_transfer_counterpart():
    assert transfer_counterpart(
        Transaction('t1', '2024-06-01', -10, 'Account/Checking', transfer_account_id='Account/Savings')
    ) == 'Account/Savings'
    assert transfer_counterpart(
        Transaction('t2', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Transfer:Account/Mortgage')
    ) == 'Account/Mortgage'
    assert transfer_counterpart(Transaction('t3', '2024-06-01', -10, 'Account/Checking', payee_id='Payee/Store')) is None
