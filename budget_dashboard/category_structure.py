"""Hierarchical category structure for the budget grid.

Raw YNAB4 categories arrive flat. The grid needs them nested under their
master category, ordered the way the user arranged them, and optionally
narrowed to the categories that actually moved during the visible months.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .models import (
    HIDDEN_MASTER_PREFIXES,
    Category,
    MasterCategory,
    MonthlyBudgetResult,
    has_reserved_prefix,
    is_near_zero,
)


@dataclass
class MasterCategoryGroup:
    entity_id: str
    name: str
    sortable_index: float = 0
    type: str = 'OUTFLOW'
    categories: List[Category] = field(default_factory=list)

    @property
    def category_ids(self) -> List[str]:
        return [category.entity_id for category in self.categories]


def visible_master_categories(master_categories: Optional[Iterable[MasterCategory]]) -> List[MasterCategory]:
    """Drop tombstoned masters and the system groups YNAB4 keeps out of sight."""
    return [
        master
        for master in master_categories or []
        if not master.is_tombstone and not has_reserved_prefix(master.name, HIDDEN_MASTER_PREFIXES)
    ]


def build_category_structure(
    categories: Optional[Iterable[Category]],
    master_categories: Optional[Iterable[MasterCategory]],
    active_category_ids: Optional[Set[str]] = None,
    show_only_active: bool = False,
) -> List[MasterCategoryGroup]:
    """Nest sub-categories under their master categories.

    Args:
        categories: Raw sub-categories (may be ``None``).
        master_categories: Raw master categories (may be ``None``).
        active_category_ids: Ids considered active for the current view.
        show_only_active: When True, keep only active sub-categories and
            drop masters left without any.

    Returns:
        Master category groups sorted by ``sortable_index``; each group's
        categories are sorted the same way. Both sorts are stable.
    """
    masters = sorted(visible_master_categories(master_categories), key=_sort_index)
    by_master: Dict[str, List[Category]] = {master.entity_id: [] for master in masters}

    for category in categories or []:
        if category.is_tombstone:
            continue
        bucket = by_master.get(category.master_category_id)
        if bucket is not None:
            bucket.append(category)

    active = active_category_ids or set()
    groups: List[MasterCategoryGroup] = []
    for master in masters:
        children = sorted(by_master[master.entity_id], key=_sort_index)
        if show_only_active:
            children = [category for category in children if category.entity_id in active]
            if not children:
                continue
        groups.append(
            MasterCategoryGroup(
                entity_id=master.entity_id,
                name=master.name,
                sortable_index=master.sortable_index,
                type=master.type,
                categories=children,
            )
        )
    return groups


def compute_active_category_ids(
    aggregates: Optional[Mapping[str, MonthlyBudgetResult]],
    month_keys: Sequence[str],
) -> Set[str]:
    """Union of categories with any budgeted/activity/available in view.

    A category counts as active for the whole view when any of the three
    figures reaches :data:`~budget_dashboard.models.EPSILON` in magnitude in
    at least one visible month. Months missing from ``aggregates`` add
    nothing.
    """
    active: Set[str] = set()
    if not aggregates:
        return active
    for key in month_keys:
        result = aggregates.get(key)
        if result is None:
            continue
        for category in result.iter_categories():
            if not (
                is_near_zero(category.budgeted)
                and is_near_zero(category.activity)
                and is_near_zero(category.available)
            ):
                active.add(category.category_id)
    return active


def category_name_map(structure: Iterable[MasterCategoryGroup]) -> Dict[str, str]:
    return {
        category.entity_id: category.name
        for group in structure
        for category in group.categories
    }


def subcategory_ids(structure: Iterable[MasterCategoryGroup], master_id: str) -> Set[str]:
    for group in structure:
        if group.entity_id == master_id:
            return set(group.category_ids)
    return set()


def _sort_index(item) -> float:
    return item.sortable_index or 0
