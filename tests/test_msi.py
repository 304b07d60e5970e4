import pytest

from budget_dashboard.models import Transaction
from budget_dashboard.msi import (
    MSI_FLAG,
    MSIConfig,
    calculate_msi,
    generate_msi_transactions,
    installment_amounts,
    payment_date,
    validate_msi_config,
)


def _purchase(amount=-12000.0):
    return Transaction(
        't1', '2024-01-31', amount, 'Account/Visa', 'Category/Electronics',
        payee_id='Payee/Store', payee='Store', account_name='Visa',
    )


def test_twelve_month_plan():
    result = calculate_msi(MSIConfig(_purchase(), 12, '2024-01-31'))

    counter = result.counter_transaction
    assert counter.amount == pytest.approx(12000)
    assert counter.category_id == 'Category/Electronics'
    assert counter.flag == MSI_FLAG
    assert counter.payee == 'MSI: Store'
    assert result.monthly_amount == pytest.approx(1000)
    assert result.total_amount == pytest.approx(12000)
    assert result.scheduled.amount == pytest.approx(-1000)
    assert result.scheduled.frequency == 'Monthly'
    assert result.scheduled.memo == 'MSI 12 months - payment 1/12'
    assert len(result.payments) == 12


def test_counter_category_override():
    result = calculate_msi(MSIConfig(_purchase(), 3, '2024-02-15', counter_category_id='Category/MSI'))

    assert result.counter_transaction.category_id == 'Category/MSI'
    assert result.scheduled.category_id == 'Category/Electronics'


def test_rounding_goes_to_the_first_payment():
    assert installment_amounts(100, 3) == pytest.approx([33.34, 33.33, 33.33])

    payments = generate_msi_transactions(MSIConfig(_purchase(-100), 3, '2024-02-15'))

    assert [payment.amount for payment in payments] == pytest.approx([-33.34, -33.33, -33.33])
    assert sum(payment.amount for payment in payments) == pytest.approx(-100)


def test_payment_dates_clamp_to_month_end():
    payments = generate_msi_transactions(MSIConfig(_purchase(), 3, '2024-01-31'))

    assert [payment.date for payment in payments] == ['2024-01-31', '2024-02-29', '2024-03-31']
    assert payment_date('2024-11-30', 3) == '2025-02-28'
    assert [payment.memo for payment in payments][-1] == 'MSI 3 months - payment 3/3'
    assert {payment.account_id for payment in payments} == {'Account/Visa'}


def test_validation_messages():
    assert validate_msi_config(MSIConfig(_purchase(), 6, '2024-01-31')) == []

    errors = validate_msi_config(MSIConfig(_purchase(50), 5, ''))
    assert len(errors) == 3
    assert any('outflows' in error for error in errors)

    assert validate_msi_config(MSIConfig(_purchase(-2), 3, '2024-01-31')) == [
        'Amount is too small to split into monthly payments',
    ]
    assert validate_msi_config(MSIConfig(_purchase(), 3, '31/01/2024'))


def test_invalid_config_raises():
    with pytest.raises(ValueError, match='outflows'):
        calculate_msi(MSIConfig(_purchase(10), 3, '2024-01-31'))
    with pytest.raises(ValueError):
        generate_msi_transactions(MSIConfig(_purchase(), 4, '2024-01-31'))
