"""Month-scoped aggregation of transactions.

``aggregate_month`` is a pure function of (transactions, year, month): it
reads nothing else, so it can be called after every store mutation or cached
with ``SnapshotCache``. Input order only matters for breaking ties between
categories with the same total.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .logging_setup import get_logger
from .models import Category, ExpenseType, Transaction, TransactionType
from .period import days_in_month, month_frame

logger = get_logger(__name__)

INCOME = TransactionType.INCOME.value
EXPENSE = TransactionType.EXPENSE.value
FIXED = ExpenseType.FIXED.value
SPORADIC = ExpenseType.SPORADIC.value


@dataclass(frozen=True)
class CategoryShare:
    category: Category
    amount: float
    percentage: float


@dataclass(frozen=True)
class ExpenseSplit:
    fixed: float
    sporadic: float


@dataclass(frozen=True)
class DailyPoint:
    day: int
    amount: float
    is_max: bool


@dataclass(frozen=True)
class MonthlySnapshot:
    """Derived metrics for one month."""

    year: int
    month: int
    days_in_month: int
    total_income: float
    total_expense: float
    balance: float
    daily_expense_map: Dict[int, float]
    max_sporadic_day: Optional[int]
    daily_points: List[DailyPoint]
    category_breakdown: List[CategoryShare]
    fixed_vs_sporadic: ExpenseSplit
    transaction_count: int = 0

    @property
    def top_category(self) -> Optional[CategoryShare]:
        return self.category_breakdown[0] if self.category_breakdown else None

    @property
    def has_expenses(self) -> bool:
        return self.total_expense > 0


def _percentage(part: float, total: float) -> float:
    return float(part / total * 100) if total > 0 else 0.0


class MonthlyAnalytics:
    """Calculations over the transactions of a single month."""

    def __init__(
        self,
        transactions: Iterable[Transaction],
        year: int,
        month: int,
        tz: Optional[tzinfo] = None,
    ):
        self.year = int(year)
        self.month = int(month)
        self.days_in_month = days_in_month(self.year, self.month)
        self.data = month_frame(transactions, self.year, self.month, tz)

    def _day_index(self) -> pd.RangeIndex:
        return pd.RangeIndex(1, self.days_in_month + 1, name='Day')

    def _expense_rows(self) -> pd.DataFrame:
        return self.data[self.data['Type'] == EXPENSE]

    def _income_rows(self) -> pd.DataFrame:
        return self.data[self.data['Type'] == INCOME]

    def calculate_totals(self) -> Dict[str, float]:
        income = float(self._income_rows()['Amount'].sum())
        expenses = float(self._expense_rows()['Amount'].sum())
        return {
            'income': income,
            'expenses': expenses,
            'balance': income - expenses,
        }

    def _sum_by_day(self, rows: pd.DataFrame) -> pd.Series:
        if rows.empty:
            return pd.Series(0.0, index=self._day_index(), name='Amount')
        sums = rows.groupby('Day')['Amount'].sum()
        sums.index = sums.index.astype(int)
        return sums.reindex(self._day_index(), fill_value=0.0).astype(float)

    def daily_sporadic_series(self) -> pd.Series:
        """SPORADIC expense per day, every day of the month present.

        FIXED expenses are left out so one-off spending spikes stand apart
        from recurring bills.
        """
        expenses = self._expense_rows()
        return self._sum_by_day(expenses[expenses['Expense Type'] == SPORADIC])

    def daily_totals(self) -> pd.DataFrame:
        """Income and all expenses (FIXED and SPORADIC) per day."""
        return pd.DataFrame({
            'Income': self._sum_by_day(self._income_rows()),
            'Expense': self._sum_by_day(self._expense_rows()),
        })

    def calculate_category_breakdown(self, total_expense: Optional[float] = None) -> List[CategoryShare]:
        """Expense totals per category, largest first.

        Categories with equal totals keep the order in which they first
        appear in the input.
        """
        expenses = self._expense_rows()
        if expenses.empty:
            return []
        if total_expense is None:
            total_expense = float(expenses['Amount'].sum())

        grouped = expenses.groupby('Category', sort=False).agg(
            Amount=('Amount', 'sum'),
            First_Seen=('Order', 'min'),
        )
        grouped = grouped.sort_values(['Amount', 'First_Seen'], ascending=[False, True])
        if total_expense > 0:
            grouped['Percentage'] = grouped['Amount'] / total_expense * 100
        else:
            grouped['Percentage'] = 0.0

        return [
            CategoryShare(
                category=Category.parse(name),
                amount=float(row['Amount']),
                percentage=float(row['Percentage']),
            )
            for name, row in grouped.iterrows()
        ]

    def calculate_expense_split(self, total_expense: Optional[float] = None) -> ExpenseSplit:
        expenses = self._expense_rows()
        if total_expense is None:
            total_expense = float(expenses['Amount'].sum())
        fixed = float(expenses.loc[expenses['Expense Type'] == FIXED, 'Amount'].sum())
        sporadic = float(expenses.loc[expenses['Expense Type'] == SPORADIC, 'Amount'].sum())
        return ExpenseSplit(
            fixed=_percentage(fixed, total_expense),
            sporadic=_percentage(sporadic, total_expense),
        )

    def snapshot(self) -> MonthlySnapshot:
        totals = self.calculate_totals()
        total_expense = totals['expenses']

        daily = self.daily_sporadic_series()
        peak = float(daily.max()) if not daily.empty else 0.0
        max_day = int(daily.idxmax()) if peak > 0 else None
        is_max = np.where(daily.to_numpy() == peak, peak > 0, False)
        points = [
            DailyPoint(day=int(day), amount=float(amount), is_max=bool(flag))
            for (day, amount), flag in zip(daily.items(), is_max)
        ]

        return MonthlySnapshot(
            year=self.year,
            month=self.month,
            days_in_month=self.days_in_month,
            total_income=totals['income'],
            total_expense=total_expense,
            balance=totals['balance'],
            daily_expense_map={int(day): float(amount) for day, amount in daily.items()},
            max_sporadic_day=max_day,
            daily_points=points,
            category_breakdown=self.calculate_category_breakdown(total_expense),
            fixed_vs_sporadic=self.calculate_expense_split(total_expense),
            transaction_count=len(self.data),
        )


def aggregate_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    tz: Optional[tzinfo] = None,
) -> MonthlySnapshot:
    """Compute the aggregate snapshot for ``month`` of ``year``."""
    return MonthlyAnalytics(transactions, year, month, tz).snapshot()


class SnapshotCache:
    """Memoizes snapshots per month until the store changes.

    Entries are keyed by ``(year, month)`` and dropped whenever
    ``store.version`` moves.
    """

    def __init__(self, store, tz: Optional[tzinfo] = None):
        self._store = store
        self._tz = tz
        self._version: Optional[int] = None
        self._entries: Dict[Tuple[int, int], MonthlySnapshot] = {}

    def get(self, year: int, month: int) -> MonthlySnapshot:
        if self._version != self._store.version:
            self._entries.clear()
            self._version = self._store.version
        key = (int(year), int(month))
        if key not in self._entries:
            logger.debug("Recomputing snapshot %04d-%02d at store v%d", key[0], key[1], self._version)
            self._entries[key] = aggregate_month(self._store.list_all(), key[0], key[1], self._tz)
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
