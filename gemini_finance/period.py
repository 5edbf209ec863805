"""Month bucketing for transactions.

Timestamps are interpreted in host local time unless a timezone is given,
so a transaction entered late on the last day of a month stays in that
month for the person who entered it.
"""

from __future__ import annotations

import calendar
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .models import Transaction

FRAME_COLUMNS = [
    'Id', 'Description', 'Amount', 'Type', 'Expense Type', 'Category',
    'Transaction Date', 'Year', 'Month', 'Day', 'Order',
]


def _check_month(month: int) -> None:
    if not 1 <= int(month) <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def to_local_datetime(timestamp_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to a calendar datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz)


def days_in_month(year: int, month: int) -> int:
    _check_month(month)
    return calendar.monthrange(year, month)[1]


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday = 0, for calendar grids."""
    _check_month(month)
    # calendar.weekday has Monday = 0
    return (calendar.weekday(year, month, 1) + 1) % 7


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months forward (or back when negative)."""
    _check_month(month)
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def in_month(transaction: Transaction, year: int, month: int, tz: Optional[tzinfo] = None) -> bool:
    moment = to_local_datetime(transaction.date, tz)
    return moment.year == year and moment.month == month


def filter_by_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    tz: Optional[tzinfo] = None,
) -> List[Transaction]:
    """Return the transactions dated within ``month`` of ``year``."""
    _check_month(month)
    return [t for t in transactions if in_month(t, year, month, tz)]


def transactions_to_frame(
    transactions: Iterable[Transaction],
    tz: Optional[tzinfo] = None,
) -> pd.DataFrame:
    """Build the DataFrame the analytics operate on.

    ``Order`` records the input position so ties can be broken by first
    appearance.
    """
    rows = []
    for order, t in enumerate(transactions):
        moment = to_local_datetime(t.date, tz)
        rows.append({
            'Id': t.id,
            'Description': t.description,
            'Amount': float(t.amount),
            'Type': t.type.value,
            'Expense Type': t.expense_type.value if t.expense_type is not None else '',
            'Category': t.category.value,
            'Transaction Date': moment.replace(tzinfo=None),
            'Year': moment.year,
            'Month': moment.month,
            'Day': moment.day,
            'Order': order,
        })
    if not rows:
        frame = pd.DataFrame(columns=FRAME_COLUMNS)
        frame['Amount'] = frame['Amount'].astype(float)
        return frame
    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    frame['Transaction Date'] = pd.to_datetime(frame['Transaction Date'])
    return frame


def month_frame(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    tz: Optional[tzinfo] = None,
) -> pd.DataFrame:
    """Frame restricted to one month, keeping the input order column."""
    _check_month(month)
    frame = transactions_to_frame(transactions, tz)
    if frame.empty:
        return frame
    return frame[(frame['Year'] == year) & (frame['Month'] == month)].copy()
