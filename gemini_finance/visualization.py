"""Plotly visualisation helpers for Gemini Finance.

Each function accepts one of the result objects produced by
:mod:`aggregator` or :mod:`calendar_view` and returns a
`plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``.  No function here computes metrics; they only lay out
values that were already aggregated.
"""

from __future__ import annotations

from typing import List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregator import MonthlySnapshot
from .calendar_view import CalendarMonth
from .models import CATEGORY_COLORS, Category

WEEKDAYS = ['Dom', 'Seg', 'Ter', 'Qua', 'Qui', 'Sex', 'Sáb']
PEAK_COLOR = '#f97316'
BAR_COLOR = '#475569'


def _empty_figure(title: str) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_daily_sporadic_chart(snapshot: MonthlySnapshot, title: str | None = None) -> go.Figure:
    """Bar chart of sporadic spending per day, peak days highlighted.

    Parameters
    ----------
    snapshot : MonthlySnapshot
        Aggregated month; ``daily_points`` supplies the bars.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart with one bar per calendar day.
    """
    if snapshot.max_sporadic_day is None:
        return _empty_figure("Sem gastos esporádicos neste mês.")
    df = pd.DataFrame(
        [(p.day, p.amount, p.is_max) for p in snapshot.daily_points],
        columns=["Dia", "Valor", "Pico"],
    )
    colors = [PEAK_COLOR if peak else BAR_COLOR for peak in df["Pico"]]
    fig = go.Figure(go.Bar(x=df["Dia"], y=df["Valor"], marker_color=colors))
    fig.update_layout(
        title=title or f"Gastos esporádicos por dia (pico: dia {snapshot.max_sporadic_day})",
        xaxis_title="Dia",
        yaxis_title="Valor",
        xaxis=dict(dtick=1),
    )
    return fig


def create_category_donut_chart(snapshot: MonthlySnapshot, title: str | None = None) -> go.Figure:
    """Donut chart of the category breakdown.

    Parameters
    ----------
    snapshot : MonthlySnapshot
        Aggregated month; ``category_breakdown`` supplies the slices.
    title : str, optional
        Chart title.
    """
    if not snapshot.category_breakdown:
        return _empty_figure("Sem despesas neste mês.")
    df = pd.DataFrame(
        [(s.category.value, s.amount, s.percentage) for s in snapshot.category_breakdown],
        columns=["Categoria", "Valor", "Percentual"],
    )
    color_map = {c.value: CATEGORY_COLORS[c] for c in Category}
    fig = px.pie(
        df,
        names="Categoria",
        values="Valor",
        hole=0.6,
        color="Categoria",
        color_discrete_map=color_map,
    )
    fig.update_traces(sort=False, textinfo="percent")
    fig.update_layout(title=title or "Despesas por categoria")
    return fig


def calendar_grid(month: CalendarMonth) -> List[List[Optional[float]]]:
    """Arrange day intensities into week rows, Sunday first.

    Cells before the 1st and after the last day are ``None``.
    """
    cells: List[Optional[float]] = [None] * month.first_weekday
    cells.extend(day.intensity for day in month.days)
    while len(cells) % 7:
        cells.append(None)
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def create_calendar_heatmap(month: CalendarMonth, title: str | None = None) -> go.Figure:
    """Heatmap of daily expense intensity laid out as a month calendar.

    Parameters
    ----------
    month : CalendarMonth
        Calendar produced by :func:`calendar_view.build_calendar`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Heatmap with the day number written in each cell; days with
        income are marked with a dot.
    """
    grid = calendar_grid(month)
    labels: List[List[str]] = []
    day_iter = iter(month.days)
    for row in grid:
        label_row = []
        for cell in row:
            if cell is None:
                label_row.append("")
                continue
            day = next(day_iter)
            label_row.append(f"{day.day} •" if day.has_income else str(day.day))
        labels.append(label_row)

    fig = go.Figure(go.Heatmap(
        z=grid,
        x=WEEKDAYS,
        text=labels,
        texttemplate="%{text}",
        colorscale=[[0.0, "#1f1f23"], [1.0, "#e11d48"]],
        zmin=0,
        zmax=1,
        showscale=False,
        hoverongaps=False,
        xgap=4,
        ygap=4,
    ))
    fig.update_yaxes(autorange="reversed", showticklabels=False)
    fig.update_layout(title=title or "Intensidade de gastos")
    return fig
