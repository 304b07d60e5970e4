import pytest

from budget_dashboard.months import (
    month_key,
    months_between,
    parse_month_key,
    resolve_month_keys,
    resolve_month_range,
    shift_month,
)


def test_december_window_rolls_into_next_year():
    assert resolve_month_keys(11, 2024, 4) == ['2024-11', '2024-12', '2025-01', '2025-02']


def test_january_window_starts_in_previous_year():
    slots = resolve_month_range(0, 2025, 3)

    assert [slot.key for slot in slots] == ['2024-12', '2025-01', '2025-02']
    assert (slots[0].month, slots[0].year) == (11, 2024)
    assert (slots[1].month, slots[1].year) == (0, 2025)


@pytest.mark.parametrize('center', range(12))
@pytest.mark.parametrize('count', [1, 2, 5, 13, 25])
def test_window_is_consecutive_without_gaps(center, count):
    keys = resolve_month_keys(center, 2024, count)

    assert len(keys) == count
    assert len(set(keys)) == count
    for previous, current in zip(keys, keys[1:]):
        assert shift_month(previous, 1) == current


def test_center_month_is_second_column():
    keys = resolve_month_keys(5, 2024, 3)
    assert keys[1] == '2024-06'


def test_single_visible_month_is_the_center():
    assert resolve_month_keys(5, 2024, 1) == ['2024-06']


def test_selection_override_collapses_window():
    assert resolve_month_keys(5, 2024, 6, single_month_override='2023-02') == ['2023-02']


def test_month_key_helpers():
    assert month_key(-1, 2025) == '2024-12'
    assert month_key(12, 2024) == '2025-01'
    assert parse_month_key('2024-06-15') == (5, 2024)
    assert shift_month('2025-01', -13) == '2023-12'


def test_months_between_is_inclusive():
    assert months_between('2024-11', '2025-02') == ['2024-11', '2024-12', '2025-01', '2025-02']
    assert months_between('2024-06', '2024-06') == ['2024-06']
    assert months_between('2024-07', '2024-06') == []
