"""Domain objects shared by the budget grid, register and reports.

Every type that can arrive from outside (a snapshot file or the external
budget calculator) offers ``from_dict`` which accepts both snake_case keys
and the camelCase keys used by YNAB4 exports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

# Currency rounding tolerance for every comparison against zero
EPSILON = 0.01

IMMEDIATE_INCOME_ID = 'Category/__ImmediateIncome__'
DEFERRED_INCOME_ID = 'Category/__DeferredIncome__'
INCOME_CATEGORY_IDS = (IMMEDIATE_INCOME_ID, DEFERRED_INCOME_ID)

TRANSFER_PAYEE_PREFIX = 'Payee/Transfer:'
HIDDEN_MASTER_PREFIXES = ('Hidden', 'Internal')
REPORT_EXCLUDED_MASTER_PREFIXES = ('Hidden', 'Internal', 'Pre-YNAB')

INCOME_MASTER_ID = '__income__'
INCOME_SUBCATEGORY_PREFIX = 'income_'
UNKNOWN_PAYEE_KEY = 'unknown'
UNCATEGORIZED_ID = 'uncategorized'

SELECTION_CATEGORY = 'category'
SELECTION_MASTER = 'master'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def is_near_zero(value: float) -> bool:
    return abs(value) < EPSILON


# ---------------------------------------------------------------------------
# Raw entities
# ---------------------------------------------------------------------------


@dataclass
class SplitLine:
    amount: float
    category_id: Optional[str] = None
    memo: str = ''
    payee_id: Optional[str] = None
    transfer_account_id: Optional[str] = None
    is_tombstone: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SplitLine':
        return cls(
            amount=_as_float(data.get('amount')),
            category_id=_pick(data, 'category_id', 'categoryId'),
            memo=_pick(data, 'memo', default='') or '',
            payee_id=_pick(data, 'payee_id', 'payeeId'),
            transfer_account_id=_pick(data, 'transfer_account_id', 'transferAccountId', 'targetAccountId'),
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
        )


@dataclass
class Transaction:
    id: str
    date: str
    amount: float
    account_id: str = ''
    category_id: Optional[str] = None
    payee_id: Optional[str] = None
    payee: str = ''
    transfer_account_id: Optional[str] = None
    sub_transactions: List[SplitLine] = field(default_factory=list)
    cleared: str = 'Uncleared'
    flag: Optional[str] = None
    memo: str = ''
    account_name: str = ''
    is_tombstone: bool = False

    @property
    def month_key(self) -> str:
        return self.date[:7]

    @property
    def is_split(self) -> bool:
        return bool(self.sub_transactions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Transaction':
        subs = _pick(data, 'sub_transactions', 'subTransactions', 'splitTransactions', default=[]) or []
        return cls(
            id=str(_pick(data, 'id', 'entity_id', 'entityId', default='')),
            date=str(_pick(data, 'date', default=''))[:10],
            amount=_as_float(data.get('amount')),
            account_id=_pick(data, 'account_id', 'accountId', default='') or '',
            category_id=_pick(data, 'category_id', 'categoryId'),
            payee_id=_pick(data, 'payee_id', 'payeeId'),
            payee=_pick(data, 'payee', 'payeeName', default='') or '',
            transfer_account_id=_pick(data, 'transfer_account_id', 'transferAccountId', 'targetAccountId'),
            sub_transactions=[
                SplitLine.from_dict(sub)
                for sub in subs
                if isinstance(sub, Mapping) and not sub.get('isTombstone')
            ],
            cleared=_pick(data, 'cleared', default='Uncleared'),
            flag=_pick(data, 'flag', 'flagColor'),
            memo=_pick(data, 'memo', default='') or '',
            account_name=_pick(data, 'account_name', 'accountName', default='') or '',
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
        )


@dataclass
class Category:
    entity_id: str
    name: str
    master_category_id: str
    sortable_index: float = 0
    is_tombstone: bool = False
    hidden: bool = False
    note: Optional[str] = None
    goal: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], master_category_id: Optional[str] = None) -> 'Category':
        return cls(
            entity_id=str(_pick(data, 'entity_id', 'entityId', 'id', default='')),
            name=_pick(data, 'name', default='') or '',
            master_category_id=(
                master_category_id
                or _pick(data, 'master_category_id', 'masterCategoryId', 'categoryGroupId', default='')
            ),
            sortable_index=_pick(data, 'sortable_index', 'sortableIndex', default=0) or 0,
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
            hidden=bool(_pick(data, 'hidden', default=False)),
            note=_pick(data, 'note'),
            goal=_pick(data, 'goal', 'goalData'),
        )


@dataclass
class MasterCategory:
    entity_id: str
    name: str
    type: str = 'OUTFLOW'
    sortable_index: float = 0
    is_tombstone: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MasterCategory':
        return cls(
            entity_id=str(_pick(data, 'entity_id', 'entityId', 'id', default='')),
            name=_pick(data, 'name', default='') or '',
            type=_pick(data, 'type', default='OUTFLOW'),
            sortable_index=_pick(data, 'sortable_index', 'sortableIndex', default=0) or 0,
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
        )


@dataclass
class Account:
    entity_id: str
    name: str
    on_budget: bool = True
    is_tombstone: bool = False
    closed: bool = False
    hidden: bool = False
    type: str = ''

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Account':
        return cls(
            entity_id=str(_pick(data, 'entity_id', 'entityId', 'id', default='')),
            name=_pick(data, 'name', 'accountName', default='') or '',
            on_budget=bool(_pick(data, 'on_budget', 'onBudget', default=True)),
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
            closed=bool(_pick(data, 'closed', default=False)),
            hidden=bool(_pick(data, 'hidden', default=False)),
            type=_pick(data, 'type', 'accountType', default='') or '',
        )


@dataclass
class Payee:
    entity_id: str
    name: str
    is_tombstone: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Payee':
        return cls(
            entity_id=str(_pick(data, 'entity_id', 'entityId', 'id', default='')),
            name=_pick(data, 'name', default='') or '',
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
        )


@dataclass
class MonthlyCategoryBudget:
    category_id: str
    budgeted: float = 0.0
    overspending_handling: Optional[str] = None
    is_tombstone: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MonthlyCategoryBudget':
        return cls(
            category_id=_pick(data, 'category_id', 'categoryId', default='') or '',
            budgeted=_as_float(data.get('budgeted')),
            overspending_handling=_pick(data, 'overspending_handling', 'overspendingHandling'),
            is_tombstone=bool(_pick(data, 'is_tombstone', 'isTombstone', default=False)),
        )


@dataclass
class MonthlyBudgetRecord:
    month: str
    entity_id: str = ''
    sub_category_budgets: List[MonthlyCategoryBudget] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MonthlyBudgetRecord':
        raw_month = _pick(data, 'month', 'entity_id', 'entityId', default='') or ''
        # YNAB4 ids look like "MonthlyBudget/2024-06"
        month = raw_month.split('/')[-1][:7]
        entries = _pick(data, 'sub_category_budgets', 'monthlySubCategoryBudgets', default=[]) or []
        return cls(
            month=month,
            entity_id=_pick(data, 'entity_id', 'entityId', default='') or '',
            sub_category_budgets=[MonthlyCategoryBudget.from_dict(entry) for entry in entries],
        )


# ---------------------------------------------------------------------------
# External calculator results
# ---------------------------------------------------------------------------


@dataclass
class CategoryResult:
    category_id: str
    budgeted: float = 0.0
    activity: float = 0.0
    available: float = 0.0
    note: Optional[str] = None
    overspending_handling: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CategoryResult':
        return cls(
            category_id=_pick(data, 'category_id', 'categoryId', default='') or '',
            budgeted=_as_float(data.get('budgeted')),
            activity=_as_float(data.get('activity')),
            available=_as_float(_pick(data, 'available', 'balance')),
            note=_pick(data, 'note'),
            overspending_handling=_pick(data, 'overspending_handling', 'overspendingHandling'),
        )


@dataclass
class MasterCategoryResult:
    master_category_id: str
    budgeted: float = 0.0
    activity: float = 0.0
    available: float = 0.0
    categories: List[CategoryResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MasterCategoryResult':
        return cls(
            master_category_id=_pick(data, 'master_category_id', 'masterCategoryId', default='') or '',
            budgeted=_as_float(data.get('budgeted')),
            activity=_as_float(data.get('activity')),
            available=_as_float(data.get('available')),
            categories=[
                item if isinstance(item, CategoryResult) else CategoryResult.from_dict(item)
                for item in (data.get('categories') or [])
            ],
        )


@dataclass
class MonthlyBudgetResult:
    month: str
    income: float = 0.0
    deferred_income: float = 0.0
    from_last_month: float = 0.0
    last_month_overspent: float = 0.0
    total_budgeted: float = 0.0
    total_activity: float = 0.0
    total_carryover: float = 0.0
    available_to_budget: float = 0.0
    master_categories: List[MasterCategoryResult] = field(default_factory=list)

    @classmethod
    def zero(cls, month: str) -> 'MonthlyBudgetResult':
        return cls(month=month)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], month: Optional[str] = None) -> 'MonthlyBudgetResult':
        masters = _pick(data, 'master_categories', 'masterCategories', default=[]) or []
        return cls(
            month=month or _pick(data, 'month', default='') or '',
            income=_as_float(data.get('income')),
            deferred_income=_as_float(_pick(data, 'deferred_income', 'deferredIncome')),
            from_last_month=_as_float(_pick(data, 'from_last_month', 'fromLastMonth')),
            last_month_overspent=_as_float(_pick(data, 'last_month_overspent', 'lastMonthOverspent')),
            total_budgeted=_as_float(_pick(data, 'total_budgeted', 'totalBudgeted')),
            total_activity=_as_float(_pick(data, 'total_activity', 'totalActivity')),
            total_carryover=_as_float(_pick(data, 'total_carryover', 'totalCarryover')),
            available_to_budget=_as_float(_pick(data, 'available_to_budget', 'availableToBudget')),
            master_categories=[
                item if isinstance(item, MasterCategoryResult) else MasterCategoryResult.from_dict(item)
                for item in masters
            ],
        )

    def iter_categories(self):
        for master in self.master_categories:
            yield from master.categories

    def category(self, category_id: str) -> Optional[CategoryResult]:
        for result in self.iter_categories():
            if result.category_id == category_id:
                return result
        return None

    def master(self, master_category_id: str) -> Optional[MasterCategoryResult]:
        for result in self.master_categories:
            if result.master_category_id == master_category_id:
                return result
        return None


# ---------------------------------------------------------------------------
# UI state and report configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Selection:
    type: str
    id: str
    month_key: str
    name: str = ''

    @property
    def is_income(self) -> bool:
        return self.id == INCOME_MASTER_ID or self.id.startswith(INCOME_SUBCATEGORY_PREFIX)


@dataclass
class Classification:
    label: str
    sort_order: int = 0
    master_category_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Classification':
        ids = _pick(data, 'master_category_ids', 'masterCategoryIds', default=[]) or []
        return cls(
            label=_pick(data, 'label', default='') or '',
            sort_order=int(_pick(data, 'sort_order', 'sortOrder', default=0) or 0),
            master_category_ids=[str(value) for value in ids],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'sortOrder': self.sort_order,
            'masterCategoryIds': list(self.master_category_ids),
        }


def is_income_category(category_id: Optional[str]) -> bool:
    return category_id in INCOME_CATEGORY_IDS


def has_reserved_prefix(name: Optional[str], prefixes: Sequence[str]) -> bool:
    return bool(name) and any(name.startswith(prefix) for prefix in prefixes)


def payee_key(transaction: Transaction, line: Optional[SplitLine] = None) -> str:
    """Group key for a payee: id, then display name, then ``unknown``.

    A split line with its own payee overrides the parent transaction's.
    """
    line_payee = line.payee_id if line is not None else None
    return line_payee or transaction.payee_id or transaction.payee or UNKNOWN_PAYEE_KEY
