"""Tests for monthly aggregation.

Covers the balance and breakdown identities, order independence and the
sporadic-only daily view.
"""

from __future__ import annotations

import random

import pytest

from gemini_finance.aggregator import MonthlyAnalytics, SnapshotCache, aggregate_month
from gemini_finance.models import Category
from gemini_finance.store import TransactionStore

from conftest import expense, income


def _mixed_month():
    return [
        expense(50, "Alimentação", day=5),
        expense(30, "Transporte", day=5),
        expense(900, "Moradia", day=10, expense_type="FIXED"),
        expense(12.3, "Lazer", day=17),
        expense(45.9, "Alimentação", day=28),
        income(3000, day=1),
        income(150, "Investimentos", day=20),
        expense(999, "Lazer", month=2, day=1),
    ]


def test_january_scenario(january) -> None:
    snap = aggregate_month(january, 2025, 1)
    assert snap.total_income == 1200
    assert snap.total_expense == 80
    assert snap.balance == 1120
    assert snap.daily_expense_map[5] == 80
    assert snap.max_sporadic_day == 5
    assert [(s.category, s.amount) for s in snap.category_breakdown] == [
        (Category.FOOD, 50.0),
        (Category.TRANSPORT, 30.0),
    ]
    assert [s.percentage for s in snap.category_breakdown] == pytest.approx([62.5, 37.5])
    assert snap.top_category.category is Category.FOOD
    assert snap.transaction_count == 3


def test_fixed_only_month() -> None:
    snap = aggregate_month([expense(500, "Moradia", day=10, expense_type="FIXED")], 2025, 1)
    assert all(amount == 0 for amount in snap.daily_expense_map.values())
    assert snap.max_sporadic_day is None
    assert not any(p.is_max for p in snap.daily_points)
    assert snap.fixed_vs_sporadic.fixed == pytest.approx(100.0)
    assert snap.fixed_vs_sporadic.sporadic == pytest.approx(0.0)


def test_unknown_category_lands_in_outros() -> None:
    snap = aggregate_month([expense(20, "xyz"), expense(5, "Outros")], 2025, 1)
    assert len(snap.category_breakdown) == 1
    share = snap.category_breakdown[0]
    assert share.category is Category.OTHER
    assert share.amount == 25.0


def test_balance_and_breakdown_identities() -> None:
    snap = aggregate_month(_mixed_month(), 2025, 1)
    assert snap.total_income - snap.total_expense == pytest.approx(snap.balance)
    assert sum(s.amount for s in snap.category_breakdown) == pytest.approx(snap.total_expense)
    assert sum(s.percentage for s in snap.category_breakdown) == pytest.approx(100.0)
    amounts = [s.amount for s in snap.category_breakdown]
    assert amounts == sorted(amounts, reverse=True)
    # February's leisure expense is excluded
    assert snap.total_expense == pytest.approx(1038.2)


def test_daily_map_covers_every_day() -> None:
    snap = aggregate_month(_mixed_month(), 2025, 1)
    assert sorted(snap.daily_expense_map) == list(range(1, 32))
    assert snap.days_in_month == 31
    assert snap.daily_expense_map[10] == 0.0
    assert snap.max_sporadic_day == 5
    assert [p.day for p in snap.daily_points if p.is_max] == [5]


def test_shuffle_does_not_change_values() -> None:
    items = _mixed_month()
    expected = aggregate_month(items, 2025, 1)
    rng = random.Random(7)
    for _ in range(5):
        shuffled = items[:]
        rng.shuffle(shuffled)
        snap = aggregate_month(shuffled, 2025, 1)
        assert snap.total_income == pytest.approx(expected.total_income)
        assert snap.total_expense == pytest.approx(expected.total_expense)
        assert snap.daily_expense_map == pytest.approx(expected.daily_expense_map)
        assert snap.max_sporadic_day == expected.max_sporadic_day
        assert {s.category: s.amount for s in snap.category_breakdown} == pytest.approx(
            {s.category: s.amount for s in expected.category_breakdown}
        )
        assert {s.category: s.percentage for s in snap.category_breakdown} == pytest.approx(
            {s.category: s.percentage for s in expected.category_breakdown}
        )
        assert snap.fixed_vs_sporadic.fixed == pytest.approx(expected.fixed_vs_sporadic.fixed)
        assert snap.fixed_vs_sporadic.sporadic == pytest.approx(expected.fixed_vs_sporadic.sporadic)
        assert snap.balance == pytest.approx(expected.balance)
        assert [p.is_max for p in snap.daily_points] == [p.is_max for p in expected.daily_points]


def test_ties_keep_first_appearance() -> None:
    items = [expense(40, "Lazer"), expense(40, "Saúde"), expense(10, "Lazer"), expense(10, "Saúde")]
    snap = aggregate_month(items, 2025, 1)
    assert [s.category for s in snap.category_breakdown] == [Category.LEISURE, Category.HEALTH]
    snap = aggregate_month(list(reversed(items)), 2025, 1)
    assert [s.category for s in snap.category_breakdown] == [Category.HEALTH, Category.LEISURE]


def test_tied_peak_days() -> None:
    snap = aggregate_month([expense(20, day=12), expense(20, day=3)], 2025, 1)
    assert snap.max_sporadic_day == 3
    assert [p.day for p in snap.daily_points if p.is_max] == [3, 12]


def test_idempotent(january) -> None:
    assert aggregate_month(january, 2025, 1) == aggregate_month(january, 2025, 1)


def test_empty_month() -> None:
    snap = aggregate_month([], 2024, 2)
    assert snap.total_income == 0
    assert snap.total_expense == 0
    assert snap.balance == 0
    assert snap.days_in_month == 29
    assert set(snap.daily_expense_map.values()) == {0.0}
    assert snap.category_breakdown == []
    assert snap.max_sporadic_day is None
    assert snap.top_category is None
    assert not snap.has_expenses
    assert snap.fixed_vs_sporadic.fixed == 0.0
    assert snap.fixed_vs_sporadic.sporadic == 0.0


def test_income_only_month_has_zero_percentages() -> None:
    snap = aggregate_month([income(100)], 2025, 1)
    assert snap.category_breakdown == []
    assert snap.balance == 100


def test_daily_totals_include_fixed() -> None:
    analytics = MonthlyAnalytics([expense(500, day=10, expense_type="FIXED"), income(80, day=10)], 2025, 1)
    totals = analytics.daily_totals()
    assert totals.loc[10, "Expense"] == 500
    assert totals.loc[10, "Income"] == 80
    assert analytics.daily_sporadic_series()[10] == 0


def test_cache_invalidates_on_store_change(january) -> None:
    store = TransactionStore(january)
    cache = SnapshotCache(store)
    first = cache.get(2025, 1)
    assert cache.get(2025, 1) is first
    cache.get(2025, 2)
    assert len(cache) == 2

    store.add(expense(20, "Lazer", day=9))
    updated = cache.get(2025, 1)
    assert updated is not first
    assert updated.total_expense == 100
    assert len(cache) == 1
