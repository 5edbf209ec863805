"""Text rendering of aggregated figures.

The same summary is shown in the dashboard and handed to the Gemini
advisor as context, so it is plain text with no markup. Currency and
number formatting follow a ``LocaleFormat``; ``pt-BR`` is the default.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, Iterable, List, Optional, Union

from . import config
from .aggregator import MonthlySnapshot
from .models import Transaction, TransactionType
from .period import to_local_datetime


@dataclass(frozen=True)
class LocaleFormat:
    name: str
    currency_symbol: str
    decimal_sep: str
    thousands_sep: str
    symbol_space: bool
    date_format: str
    month_names: List[str]
    labels: Dict[str, str] = field(default_factory=dict)


PT_BR = LocaleFormat(
    name='pt-BR',
    currency_symbol='R$',
    decimal_sep=',',
    thousands_sep='.',
    symbol_space=True,
    date_format='%d/%m/%Y',
    month_names=[
        'janeiro', 'fevereiro', 'março', 'abril', 'maio', 'junho',
        'julho', 'agosto', 'setembro', 'outubro', 'novembro', 'dezembro',
    ],
    labels={
        'title': 'Resumo de {period}',
        'month_of_year': '{month} de {year}',
        'balance': 'Saldo',
        'income': 'Receitas',
        'expense': 'Despesas',
        'top_category': 'Maior categoria',
        'peak_day': 'Dia de maior gasto esporádico',
        'day': 'dia {day}',
        'split': 'Gastos fixos: {fixed} | Esporádicos: {sporadic}',
        'categories': 'Gastos por categoria',
        'none': 'nenhuma',
        'no_transactions': 'Nenhuma transação neste mês.',
    },
)

EN_US = LocaleFormat(
    name='en-US',
    currency_symbol='$',
    decimal_sep='.',
    thousands_sep=',',
    symbol_space=False,
    date_format='%m/%d/%Y',
    month_names=[
        'January', 'February', 'March', 'April', 'May', 'June',
        'July', 'August', 'September', 'October', 'November', 'December',
    ],
    labels={
        'title': 'Summary for {period}',
        'month_of_year': '{month} {year}',
        'balance': 'Balance',
        'income': 'Income',
        'expense': 'Expenses',
        'top_category': 'Top category',
        'peak_day': 'Peak sporadic spending day',
        'day': 'day {day}',
        'split': 'Fixed: {fixed} | Sporadic: {sporadic}',
        'categories': 'Spending by category',
        'none': 'none',
        'no_transactions': 'No transactions this month.',
    },
)

LOCALES = {fmt.name.lower(): fmt for fmt in (PT_BR, EN_US)}


def get_locale(name: Optional[str] = None) -> LocaleFormat:
    """Look up a locale by name (``pt-BR``, ``en_US``...), falling back to pt-BR."""
    key = (name or config.LOCALE or PT_BR.name).replace('_', '-').lower()
    return LOCALES.get(key, PT_BR)


def format_number(value: float, locale: LocaleFormat = PT_BR, decimals: int = 2) -> str:
    text = f"{abs(value):,.{decimals}f}"
    # swap through a placeholder so the two separators don't collide
    text = text.replace(',', '\0').replace('.', locale.decimal_sep).replace('\0', locale.thousands_sep)
    return f"-{text}" if value < 0 else text


def format_currency(
    amount: Union[float, int],
    locale: LocaleFormat = PT_BR,
    include_symbol: bool = True,
) -> str:
    """Format a currency amount.

    Example:
        >>> format_currency(1234.5)
        'R$ 1.234,50'
        >>> format_currency(-1234.5, EN_US)
        '-$1,234.50'
    """
    number = format_number(abs(amount), locale)
    if include_symbol:
        spacer = ' ' if locale.symbol_space else ''
        number = f"{locale.currency_symbol}{spacer}{number}"
    return f"-{number}" if amount < 0 else number


def format_percentage(value: float, locale: LocaleFormat = PT_BR) -> str:
    return f"{format_number(value, locale, decimals=1)}%"


def format_signed_amount(transaction: Transaction, locale: LocaleFormat = PT_BR) -> str:
    """Amount with the sign carried by the transaction type."""
    sign = '+' if transaction.type is TransactionType.INCOME else '-'
    return f"{sign} {format_currency(transaction.amount, locale)}"


def month_label(year: int, month: int, locale: LocaleFormat = PT_BR) -> str:
    return locale.labels['month_of_year'].format(month=locale.month_names[month - 1], year=year)


def render_summary(snapshot: MonthlySnapshot, locale: Optional[LocaleFormat] = None) -> str:
    """Render a month's figures as a short text report.

    Always lists balance, income, expense and the top category; the peak
    sporadic spending day is listed only when one exists.
    """
    locale = locale or get_locale()
    labels = locale.labels

    def money(value: float) -> str:
        return format_currency(value, locale)

    lines = [
        labels['title'].format(period=month_label(snapshot.year, snapshot.month, locale)),
        f"{labels['balance']}: {money(snapshot.balance)}",
        f"{labels['income']}: {money(snapshot.total_income)}",
        f"{labels['expense']}: {money(snapshot.total_expense)}",
    ]

    top = snapshot.top_category
    if top is not None:
        lines.append(
            f"{labels['top_category']}: {top.category.value} "
            f"({money(top.amount)}, {format_percentage(top.percentage, locale)})"
        )
    else:
        lines.append(f"{labels['top_category']}: {labels['none']}")

    if snapshot.max_sporadic_day is not None:
        amount = snapshot.daily_expense_map[snapshot.max_sporadic_day]
        lines.append(
            f"{labels['peak_day']}: {labels['day'].format(day=snapshot.max_sporadic_day)} ({money(amount)})"
        )

    if snapshot.transaction_count == 0:
        lines.append(labels['no_transactions'])
        return "\n".join(lines)

    split = snapshot.fixed_vs_sporadic
    lines.append(labels['split'].format(
        fixed=format_percentage(split.fixed, locale),
        sporadic=format_percentage(split.sporadic, locale),
    ))
    if snapshot.category_breakdown:
        lines.append(f"{labels['categories']}:")
        for share in snapshot.category_breakdown:
            lines.append(
                f"- {share.category.value}: {money(share.amount)} ({format_percentage(share.percentage, locale)})"
            )
    return "\n".join(lines)


def serialize_for_advisor(
    transactions: Iterable[Transaction],
    locale: Optional[LocaleFormat] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """JSON array of the fields the advisor needs as context."""
    locale = locale or get_locale()
    payload = [
        {
            'desc': t.description,
            'amt': t.amount,
            'type': t.type.value,
            'cat': t.category.value,
            'date': to_local_datetime(t.date, tz).strftime(locale.date_format),
        }
        for t in transactions
    ]
    return json.dumps(payload, ensure_ascii=False)
