"""Shared helpers for the Gemini Finance tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from gemini_finance.models import Transaction


def ts(year: int, month: int, day: int, hour: int = 12) -> int:
    """Epoch milliseconds for a local wall-clock time."""
    return int(datetime(year, month, day, hour).timestamp() * 1000)


def expense(amount, category="Outros", day=5, expense_type="SPORADIC", month=1, year=2025, **kwargs) -> Transaction:
    return Transaction(
        description=kwargs.pop("description", "gasto"),
        amount=amount,
        type="EXPENSE",
        category=category,
        expense_type=expense_type,
        date=ts(year, month, day),
        **kwargs,
    )


def income(amount, category="Salário", day=1, month=1, year=2025, **kwargs) -> Transaction:
    return Transaction(
        description=kwargs.pop("description", "entrada"),
        amount=amount,
        type="INCOME",
        category=category,
        date=ts(year, month, day),
        **kwargs,
    )


@pytest.fixture
def january():
    """Lunch and a ride on the 5th plus salary on the 1st."""
    return [
        expense(50, "Alimentação", day=5, description="Almoço"),
        income(1200, day=1, description="Salário"),
        expense(30, "Transporte", day=5, description="Uber"),
    ]
