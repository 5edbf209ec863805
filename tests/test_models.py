"""Tests for gemini_finance.models normalization rules."""

from __future__ import annotations

import math
from datetime import datetime

from gemini_finance.aggregator import aggregate_month
from gemini_finance.models import (
    Category,
    ExpenseType,
    Transaction,
    TransactionType,
    coerce_amount,
    coerce_timestamp,
    now_ms,
    suggest_expense_type,
    transaction_from_dict,
    transaction_to_dict,
)


def test_category_parse_defaults_to_outros() -> None:
    assert Category.parse("Alimentação") is Category.FOOD
    assert Category.parse("  transporte ") is Category.TRANSPORT
    assert Category.parse("xyz") is Category.OTHER
    assert Category.parse(None) is Category.OTHER
    assert Category.parse(42) is Category.OTHER


def test_type_parsing() -> None:
    assert TransactionType.parse("income") is TransactionType.INCOME
    assert TransactionType.parse("EXPENSE") is TransactionType.EXPENSE
    assert TransactionType.parse("refund") is TransactionType.EXPENSE
    assert ExpenseType.parse("fixed") is ExpenseType.FIXED
    assert ExpenseType.parse(None) is ExpenseType.SPORADIC


def test_coerce_amount() -> None:
    assert coerce_amount(12.5) == 12.5
    assert coerce_amount(-40) == 40.0
    assert coerce_amount("1.234,56") == 1234.56
    assert coerce_amount("1,234.56") == 1234.56
    assert coerce_amount("12,5") == 12.5
    assert coerce_amount("abc") == 0.0
    assert coerce_amount(None) == 0.0
    assert coerce_amount(True) == 0.0
    assert coerce_amount(math.nan) == 0.0
    assert coerce_amount(math.inf) == 0.0


def test_transaction_normalizes_fields() -> None:
    t = Transaction(description="  ", amount="-15", type="EXPENSE", category="xyz", expense_type=None, date=1000)
    assert t.description == "Despesa sem nome"
    assert t.amount == 15.0
    assert t.category is Category.OTHER
    assert t.expense_type is ExpenseType.SPORADIC
    assert t.is_expense
    assert t.signed_amount == -15.0
    assert t.id


def test_income_has_no_expense_type() -> None:
    t = Transaction(description="Salário", amount=1000, type="INCOME", expense_type="FIXED")
    assert t.expense_type is None
    assert t.signed_amount == 1000.0


def test_suggest_expense_type() -> None:
    assert suggest_expense_type(Category.HOUSING) is ExpenseType.FIXED
    assert suggest_expense_type("Educação") is ExpenseType.FIXED
    assert suggest_expense_type("Lazer") is ExpenseType.SPORADIC


def test_dict_conversion_accepts_both_key_styles() -> None:
    raw = {"id": "a1", "description": "Aluguel", "amount": 900, "type": "EXPENSE",
           "category": "Moradia", "expense_type": "FIXED", "date": 1_700_000_000_000}
    t = transaction_from_dict(raw)
    assert t.expense_type is ExpenseType.FIXED
    payload = transaction_to_dict(t)
    assert payload["expenseType"] == "FIXED"
    assert payload["category"] == "Moradia"
    assert "expense_type" not in payload


def test_from_dict_fills_missing_date_and_id() -> None:
    t = transaction_from_dict({"description": "Pix", "amount": 10, "type": "INCOME"}, now=123)
    assert t.date == 123
    assert t.id
    assert "expenseType" not in transaction_to_dict(t)


def test_unrepresentable_dates_fall_back_to_now() -> None:
    before = now_ms()
    # 10 ** 14 ms is in the year 5138, beyond what pandas can hold
    for bad in (float("inf"), float("nan"), 10 ** 20, -(10 ** 20), 10 ** 14, "ontem", None, True):
        t = Transaction(description="x", amount=1, type="EXPENSE", date=bad)
        assert t.date >= before
    assert coerce_timestamp(1_736_000_000_000) == 1_736_000_000_000


def test_far_future_record_still_aggregates() -> None:
    t = transaction_from_dict({"description": "x", "amount": 5, "type": "EXPENSE", "date": 10 ** 20})
    assert aggregate_month([t], 2025, 1).total_expense == 0.0
    moment = datetime.fromtimestamp(t.date / 1000)
    assert aggregate_month([t], moment.year, moment.month).total_expense == 5.0
