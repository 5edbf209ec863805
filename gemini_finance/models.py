"""Domain types for transactions.

``TransactionType``, ``ExpenseType`` and ``Category`` are closed sets.
Anything coming from user input, persisted JSON or Gemini output passes
through the ``parse`` helpers so the analytics modules can rely on a
validated domain.
"""

from __future__ import annotations

import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import pandas as pd

DEFAULT_DESCRIPTION = 'Despesa sem nome'


class TransactionType(str, Enum):
    INCOME = 'INCOME'
    EXPENSE = 'EXPENSE'

    @classmethod
    def parse(cls, value: Any) -> 'TransactionType':
        """``INCOME`` (any case) is income; everything else is an expense."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() == cls.INCOME.value:
            return cls.INCOME
        return cls.EXPENSE


class ExpenseType(str, Enum):
    FIXED = 'FIXED'        # rent, internet, subscriptions
    SPORADIC = 'SPORADIC'  # dinner out, rides, shopping

    @classmethod
    def parse(cls, value: Any) -> 'ExpenseType':
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() == cls.FIXED.value:
            return cls.FIXED
        return cls.SPORADIC


class Category(str, Enum):
    FOOD = 'Alimentação'
    TRANSPORT = 'Transporte'
    HOUSING = 'Moradia'
    HEALTH = 'Saúde'
    LEISURE = 'Lazer'
    EDUCATION = 'Educação'
    SALARY = 'Salário'
    INVESTMENTS = 'Investimentos'
    OTHER = 'Outros'

    @classmethod
    def parse(cls, value: Any) -> 'Category':
        """Map a raw label onto the fixed set, defaulting to ``Outros``."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        try:
            return cls(value)
        except ValueError:
            pass
        folded = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == folded:
                return member
        return cls.OTHER


CATEGORIES = [member.value for member in Category]

# Hex equivalents of the 400 shades used for each category badge
CATEGORY_COLORS: Dict[Category, str] = {
    Category.FOOD: '#fb923c',
    Category.TRANSPORT: '#60a5fa',
    Category.HOUSING: '#fbbf24',
    Category.HEALTH: '#fb7185',
    Category.LEISURE: '#c084fc',
    Category.EDUCATION: '#facc15',
    Category.SALARY: '#34d399',
    Category.INVESTMENTS: '#22d3ee',
    Category.OTHER: '#94a3b8',
}

FIXED_BY_DEFAULT = {Category.HOUSING, Category.EDUCATION, Category.INVESTMENTS}


def coerce_amount(value: Any) -> float:
    """Return a non-negative float magnitude for ``value``.

    Numeric strings may use a comma as decimal separator. Anything that does
    not parse, plus NaN and infinities, becomes ``0.0``.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        text = value.strip().replace(' ', '')
        if ',' in text and '.' in text:
            # the right-most separator is the decimal one
            if text.rfind(',') > text.rfind('.'):
                text = text.replace('.', '').replace(',', '.')
            else:
                text = text.replace(',', '')
        else:
            text = text.replace(',', '.')
        value = text
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return abs(number)


def new_transaction_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


def coerce_timestamp(value: Any) -> int:
    """Return ``value`` as epoch milliseconds, or the current time.

    Values that cannot be turned into a calendar date on this host (text,
    NaN, infinities, years far out of range) fall back to now.
    """
    if isinstance(value, bool):
        return now_ms()
    try:
        date_ms = int(value)
        moment = pd.Timestamp(datetime.fromtimestamp(date_ms / 1000))
    except (TypeError, ValueError, OverflowError, OSError):
        return now_ms()
    # the analytics frame stores dates as datetime64[ns]
    if not pd.Timestamp.min < moment < pd.Timestamp.max:
        return now_ms()
    return date_ms


def suggest_expense_type(category: Any) -> ExpenseType:
    """Housing, education and investments are usually recurring."""
    if Category.parse(category) in FIXED_BY_DEFAULT:
        return ExpenseType.FIXED
    return ExpenseType.SPORADIC


@dataclass(frozen=True)
class Transaction:
    """A single income or expense record.

    Instances are normalized on construction: ``amount`` becomes a
    magnitude, ``category`` falls back to ``Outros`` and ``expense_type`` is
    ``None`` for income and defaults to ``SPORADIC`` for expenses.
    """

    description: str
    amount: float
    type: TransactionType
    category: Category = Category.OTHER
    expense_type: Optional[ExpenseType] = None
    date: int = field(default_factory=now_ms)
    id: str = field(default_factory=new_transaction_id)

    def __post_init__(self):
        tx_type = TransactionType.parse(self.type)
        object.__setattr__(self, 'type', tx_type)
        object.__setattr__(self, 'amount', coerce_amount(self.amount))
        object.__setattr__(self, 'category', Category.parse(self.category))
        description = self.description.strip() if isinstance(self.description, str) else ''
        object.__setattr__(self, 'description', description or DEFAULT_DESCRIPTION)
        if tx_type is TransactionType.INCOME:
            object.__setattr__(self, 'expense_type', None)
        else:
            object.__setattr__(self, 'expense_type', ExpenseType.parse(self.expense_type))
        object.__setattr__(self, 'date', coerce_timestamp(self.date))
        if not self.id:
            object.__setattr__(self, 'id', new_transaction_id())

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type is TransactionType.INCOME else -self.amount


def transaction_from_dict(raw: Mapping[str, Any], now: Optional[int] = None) -> Transaction:
    """Build a ``Transaction`` from an untyped mapping.

    Accepts the stored camelCase format as well as snake_case keys. Missing
    ids are generated and missing dates default to ``now`` (epoch ms).
    """
    expense_type = raw.get('expenseType', raw.get('expense_type'))
    date = raw.get('date')
    if date is None:
        date = now if now is not None else now_ms()
    return Transaction(
        description=raw.get('description') or DEFAULT_DESCRIPTION,
        amount=raw.get('amount'),
        type=raw.get('type'),
        category=raw.get('category'),
        expense_type=expense_type,
        date=date,
        id=str(raw.get('id') or new_transaction_id()),
    )


def transaction_to_dict(transaction: Transaction) -> Dict[str, Any]:
    """Serialize to the stored camelCase format."""
    payload: Dict[str, Any] = {
        'id': transaction.id,
        'description': transaction.description,
        'amount': transaction.amount,
        'type': transaction.type.value,
        'category': transaction.category.value,
        'date': transaction.date,
    }
    if transaction.expense_type is not None:
        payload['expenseType'] = transaction.expense_type.value
    return payload
