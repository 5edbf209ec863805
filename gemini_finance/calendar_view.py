"""Daily spending heat for the month calendar.

Unlike the sporadic-only daily map in :mod:`aggregator`, the calendar
counts every expense (FIXED and SPORADIC) toward a day's heat. Income is a
separate per-day flag and never affects intensity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional

from .aggregator import MonthlyAnalytics
from .models import Transaction
from .period import first_weekday, in_month, to_local_datetime

MIN_BAR_PERCENT = 5.0


@dataclass(frozen=True)
class CalendarDay:
    day: int
    income: float
    expense: float
    intensity: float
    has_income: bool
    is_peak: bool
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def bar_percent(self) -> float:
        """Width of the expense bar; visible days never drop below 5%."""
        if self.expense <= 0:
            return 0.0
        return max(self.intensity * 100, MIN_BAR_PERCENT)


@dataclass(frozen=True)
class CalendarMonth:
    year: int
    month: int
    first_weekday: int
    max_expense: float
    days: List[CalendarDay]

    def day(self, number: int) -> CalendarDay:
        if not 1 <= number <= len(self.days):
            raise ValueError(f"Day {number} is outside {self.year}-{self.month:02d}")
        return self.days[number - 1]

    @property
    def peak_day(self) -> Optional[CalendarDay]:
        for entry in self.days:
            if entry.is_peak:
                return entry
        return None


def build_calendar(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    tz: Optional[tzinfo] = None,
) -> CalendarMonth:
    """Compute per-day income, expense and heat for a month.

    ``max_expense`` is floored at 1 so an expense-free month yields zero
    intensity everywhere instead of dividing by zero.
    """
    items = list(transactions)
    analytics = MonthlyAnalytics(items, year, month, tz)
    totals = analytics.daily_totals()

    highest = float(totals['Expense'].max()) if not totals.empty else 0.0
    max_expense = max(highest, 1.0)

    by_day: Dict[int, List[Transaction]] = {}
    for t in items:
        if in_month(t, analytics.year, analytics.month, tz):
            by_day.setdefault(to_local_datetime(t.date, tz).day, []).append(t)

    days = []
    for day, row in totals.iterrows():
        expense = float(row['Expense'])
        day_items = by_day.get(int(day), [])
        days.append(CalendarDay(
            day=int(day),
            income=float(row['Income']),
            expense=expense,
            intensity=min(expense / max_expense, 1.0),
            has_income=any(not t.is_expense for t in day_items),
            is_peak=expense > 0 and expense >= highest,
            transactions=day_items,
        ))

    return CalendarMonth(
        year=analytics.year,
        month=analytics.month,
        first_weekday=first_weekday(analytics.year, analytics.month),
        max_expense=max_expense,
        days=days,
    )
