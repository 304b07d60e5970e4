"""Read-only loader for YNAB4 budget exports.

A ``Budget.yfull`` file is one JSON document holding every entity of a
budget. This module turns it into the model objects the rest of the
package works with. Writing back is not supported.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .models import (
    Account,
    Category,
    MasterCategory,
    MonthlyBudgetRecord,
    Payee,
    Transaction,
)

logger = logging.getLogger(__name__)


@dataclass
class BudgetSnapshot:
    name: str = 'Budget'
    path: Optional[Path] = None
    transactions: List[Transaction] = field(default_factory=list)
    accounts: List[Account] = field(default_factory=list)
    payees: List[Payee] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    master_categories: List[MasterCategory] = field(default_factory=list)
    monthly_budgets: List[MonthlyBudgetRecord] = field(default_factory=list)

    @property
    def month_keys(self) -> List[str]:
        """Sorted distinct months that have at least one transaction."""
        return sorted({tx.month_key for tx in self.transactions if tx.date})

    def open_accounts(self) -> List[Account]:
        return [account for account in self.accounts if not account.is_tombstone and not account.closed]


def clean_budget_name(raw_name: str) -> str:
    """Strip the ``.ynab4`` suffix and the ``~<id>`` tail YNAB4 appends.

    Example:
        >>> clean_budget_name('My Budget~1A2B3C.ynab4')
        'My Budget'
    """
    name = raw_name[:-len('.ynab4')] if raw_name.endswith('.ynab4') else raw_name
    tilde = name.rfind('~')
    if tilde > 0:
        return name[:tilde]
    return name or 'Budget'


def snapshot_from_dict(data: Mapping[str, Any], name: str = 'Budget', path: Optional[Path] = None) -> BudgetSnapshot:
    """Build a snapshot from an already-parsed export document.

    Tombstoned transactions are dropped; the others get their payee and
    account display names filled in and are ordered newest first.
    """
    accounts = [Account.from_dict(item) for item in data.get('accounts') or []]
    payees = [Payee.from_dict(item) for item in data.get('payees') or []]

    master_categories: List[MasterCategory] = []
    categories: List[Category] = []
    for raw_master in data.get('masterCategories') or []:
        master = MasterCategory.from_dict(raw_master)
        master_categories.append(master)
        for raw_category in raw_master.get('subCategories') or []:
            categories.append(Category.from_dict(raw_category, master_category_id=master.entity_id))

    monthly_budgets = [MonthlyBudgetRecord.from_dict(item) for item in data.get('monthlyBudgets') or []]

    payee_names: Dict[str, str] = {payee.entity_id: payee.name for payee in payees}
    account_names: Dict[str, str] = {account.entity_id: account.name for account in accounts}

    transactions = []
    for raw in data.get('transactions') or []:
        tx = Transaction.from_dict(raw)
        if tx.is_tombstone:
            continue
        transactions.append(
            replace(
                tx,
                payee=tx.payee or payee_names.get(tx.payee_id or '', ''),
                account_name=tx.account_name or account_names.get(tx.account_id, ''),
            )
        )
    transactions.sort(key=lambda tx: tx.date, reverse=True)

    return BudgetSnapshot(
        name=name,
        path=path,
        transactions=transactions,
        accounts=accounts,
        payees=payees,
        categories=categories,
        master_categories=master_categories,
        monthly_budgets=monthly_budgets,
    )


def load_budget_snapshot(path: Union[str, Path]) -> BudgetSnapshot:
    """Load a ``Budget.yfull`` export from disk.

    Args:
        path: The export file, or a ``.ynab4`` directory containing one.

    Returns:
        A populated :class:`BudgetSnapshot`.

    Raises:
        ValueError: If the file cannot be read or is not a budget export.
    """
    target = Path(path)
    if target.is_dir():
        candidates = sorted(target.rglob('Budget.yfull'))
        if not candidates:
            raise ValueError(f"No Budget.yfull found under {target}")
        budget_name = clean_budget_name(target.name)
        target = candidates[0]
    else:
        budget_name = _budget_name_for(target)

    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read budget snapshot {target}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"{target} is not a budget export (expected a JSON object)")

    snapshot = snapshot_from_dict(data, name=budget_name, path=target)
    logger.info(
        "Loaded budget %r from %s: %d transactions, %d categories, %d accounts",
        snapshot.name, target, len(snapshot.transactions), len(snapshot.categories), len(snapshot.accounts),
    )
    return snapshot


def _budget_name_for(file_path: Path) -> str:
    # Budget.yfull sits a few levels below "<name>~<id>.ynab4/"
    for parent in file_path.parents:
        if parent.name.endswith('.ynab4'):
            return clean_budget_name(parent.name)
    return clean_budget_name(file_path.stem)
