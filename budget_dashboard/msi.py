"""Interest-free installment (MSI, "meses sin intereses") planner.

A card purchase paid in N equal monthly installments is modelled as a
positive counter transaction that offsets the purchase in its category,
plus N scheduled payments. Payments are rounded to cents and the first one
absorbs the rounding difference so they add up to the purchase exactly.
Nothing here writes to the budget; callers get plain objects to review.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .models import Transaction
from .months import parse_month_key, shift_month

MSI_MONTH_OPTIONS = (3, 6, 9, 12, 18, 24)
MSI_FLAG = 'Orange'
MONTHLY = 'Monthly'

_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


@dataclass
class MSIConfig:
    transaction: Transaction
    months: int
    start_date: str
    counter_category_id: Optional[str] = None


@dataclass
class ScheduledPayment:
    """A monthly repeating payment; ``amount`` is the first installment."""

    date: str
    date_next: str
    amount: float
    account_id: str
    payee_id: Optional[str] = None
    category_id: Optional[str] = None
    memo: str = ''
    flag: str = MSI_FLAG
    frequency: str = MONTHLY


@dataclass
class MSIResult:
    counter_transaction: Transaction
    scheduled: ScheduledPayment
    monthly_amount: float
    total_amount: float
    payments: List[Transaction] = field(default_factory=list)


def validate_msi_config(config: MSIConfig) -> List[str]:
    """Problems that prevent planning; an empty list means the plan is valid."""
    errors = []
    amount = config.transaction.amount
    if amount >= 0:
        errors.append("MSI only applies to outflows (purchases)")
    if config.months not in MSI_MONTH_OPTIONS:
        options = ', '.join(str(months) for months in MSI_MONTH_OPTIONS)
        errors.append(f"MSI months must be one of {options}")
    if not config.start_date:
        errors.append("Start date is required")
    elif not _DATE.match(config.start_date):
        errors.append("Start date must look like YYYY-MM-DD")
    if config.months > 0 and abs(amount) < config.months:
        errors.append("Amount is too small to split into monthly payments")
    return errors


def installment_amounts(total: float, months: int) -> List[float]:
    """Split ``total`` into ``months`` cent-rounded amounts; the first takes the remainder.

    Example:
        >>> installment_amounts(100, 3)
        [33.34, 33.33, 33.33]
    """
    monthly = round(total / months, 2)
    first = round(total - monthly * (months - 1), 2)
    return [first] + [monthly] * (months - 1)


def payment_date(start_date: str, offset: int) -> str:
    """``start_date`` moved ``offset`` months ahead, clamped to the month's last day."""
    target = shift_month(start_date[:7], offset)
    month, year = parse_month_key(target)
    last_day = calendar.monthrange(year, month + 1)[1]
    day = min(int(start_date[8:10]), last_day)
    return f"{target}-{day:02d}"


def calculate_msi(config: MSIConfig) -> MSIResult:
    """Plan the counter transaction and monthly schedule for a purchase.

    Raises:
        ValueError: When :func:`validate_msi_config` reports problems.
    """
    errors = validate_msi_config(config)
    if errors:
        raise ValueError('; '.join(errors))

    purchase = config.transaction
    total = round(abs(purchase.amount), 2)
    amounts = installment_amounts(total, config.months)
    payee_name = purchase.payee or purchase.payee_id or 'purchase'

    counter = Transaction(
        id=f"{purchase.id}-msi-counter",
        date=purchase.date,
        amount=total,
        account_id=purchase.account_id,
        category_id=config.counter_category_id or purchase.category_id,
        payee=f"MSI: {payee_name}",
        memo=f"MSI {config.months} months - offsets {payee_name}",
        flag=MSI_FLAG,
        account_name=purchase.account_name,
    )
    scheduled = ScheduledPayment(
        date=config.start_date,
        date_next=config.start_date,
        amount=-amounts[0],
        account_id=purchase.account_id,
        payee_id=purchase.payee_id,
        category_id=purchase.category_id,
        memo=_payment_memo(1, config.months),
    )
    return MSIResult(
        counter_transaction=counter,
        scheduled=scheduled,
        monthly_amount=amounts[-1],
        total_amount=total,
        payments=generate_msi_transactions(config),
    )


def generate_msi_transactions(config: MSIConfig) -> List[Transaction]:
    """One uncleared, flagged payment per month instead of a schedule."""
    errors = validate_msi_config(config)
    if errors:
        raise ValueError('; '.join(errors))

    purchase = config.transaction
    amounts = installment_amounts(round(abs(purchase.amount), 2), config.months)
    return [
        Transaction(
            id=f"{purchase.id}-msi-{number}",
            date=payment_date(config.start_date, number - 1),
            amount=-amount,
            account_id=purchase.account_id,
            category_id=purchase.category_id,
            payee_id=purchase.payee_id,
            payee=purchase.payee,
            memo=_payment_memo(number, config.months),
            flag=MSI_FLAG,
            account_name=purchase.account_name,
        )
        for number, amount in enumerate(amounts, start=1)
    ]


def _payment_memo(number: int, months: int) -> str:
    return f"MSI {months} months - payment {number}/{months}"
