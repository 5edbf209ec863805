"""Streamlit app for Gemini Finance.

Tabs mirror the day-to-day flow: a month dashboard with manual and
AI-assisted entry, a spending calendar, the transaction list and the
advisor chat.  All figures come from :mod:`aggregator` and
:mod:`calendar_view`; this module only wires widgets to the store.

To run the app from the command line::

    streamlit run gemini_finance/dashboard.py
"""

from __future__ import annotations

import base64
import os
import sys
from datetime import date
from typing import Dict, List, Optional

import streamlit as st

# Conditional imports to support execution both as part of a package
# and directly via ``streamlit run gemini_finance/dashboard.py``.
if __package__:
    from . import config
    from . import visualization as viz
    from .advisor import GeminiAdvisor
    from .aggregator import SnapshotCache
    from .calendar_view import build_calendar
    from .exceptions import FinanceError
    from .logging_setup import configure_logging, get_logger, set_user_context
    from .models import CATEGORIES, ExpenseType, Transaction, TransactionType, suggest_expense_type
    from .period import shift_month, to_local_datetime
    from .report import LocaleFormat, format_currency, format_signed_amount, get_locale, month_label, render_summary
    from .storage import TransactionRepository, clear_session_user, load_session_user, save_session_user
    from .store import TransactionStore
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from gemini_finance import config  # type: ignore
    from gemini_finance import visualization as viz  # type: ignore
    from gemini_finance.advisor import GeminiAdvisor  # type: ignore
    from gemini_finance.aggregator import SnapshotCache  # type: ignore
    from gemini_finance.calendar_view import build_calendar  # type: ignore
    from gemini_finance.exceptions import FinanceError  # type: ignore
    from gemini_finance.logging_setup import configure_logging, get_logger, set_user_context  # type: ignore
    from gemini_finance.models import (  # type: ignore
        CATEGORIES, ExpenseType, Transaction, TransactionType, suggest_expense_type,
    )
    from gemini_finance.period import shift_month, to_local_datetime  # type: ignore
    from gemini_finance.report import (  # type: ignore
        LocaleFormat, format_currency, format_signed_amount, get_locale, month_label, render_summary,
    )
    from gemini_finance.storage import (  # type: ignore
        TransactionRepository, clear_session_user, load_session_user, save_session_user,
    )
    from gemini_finance.store import TransactionStore  # type: ignore

logger = get_logger("gemini_finance.dashboard")

RETRY_MESSAGE = "Algo deu errado. Tente novamente."
CHAT_ERROR_MESSAGE = "Desculpe, tive um problema ao analisar seus dados. Tente novamente."
WELCOME_MESSAGE = (
    "Olá! Sou seu consultor financeiro. Posso analisar seus gastos, sugerir cortes "
    "ou explicar conceitos de investimento. Como posso ajudar seu bolso hoje?"
)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------


def _login(username: str) -> None:
    name = save_session_user(username)
    _open_session(name)


def _open_session(username: str) -> None:
    repository = TransactionRepository(username)
    store = TransactionStore.from_repository(repository)
    today = date.today()
    st.session_state.update({
        'username': username,
        'store': store,
        'cache': SnapshotCache(store, config.get_timezone()),
        'year': today.year,
        'month': today.month,
        'messages': [{'role': 'model', 'text': WELCOME_MESSAGE}],
    })
    set_user_context(username)
    logger.info("Session opened with %d stored transactions", len(store))


def _logout() -> None:
    clear_session_user()
    set_user_context(None)
    for key in ('username', 'store', 'cache', 'messages'):
        st.session_state.pop(key, None)


def _get_advisor() -> Optional[GeminiAdvisor]:
    if 'advisor' not in st.session_state:
        try:
            st.session_state['advisor'] = GeminiAdvisor(locale=get_locale())
        except FinanceError as exc:
            logger.error("Advisor unavailable: %s", exc)
            st.session_state['advisor'] = None
    return st.session_state['advisor']


def _run_safely(action, *args, **kwargs):
    """Call a collaborator and surface failures as a generic retry message."""
    try:
        return action(*args, **kwargs)
    except FinanceError as exc:
        logger.error("%s failed: %s", getattr(action, '__name__', 'action'), exc)
        st.error(RETRY_MESSAGE)
        return None


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------


def render_login() -> None:
    st.title("Gemini Finance")
    st.caption("Seu nome ou apelido identifica seus dados neste computador.")
    with st.form("login"):
        username = st.text_input("Nome ou apelido", placeholder="Seu nome ou apelido")
        st.text_input("Senha", type="password", placeholder="••••••••")
        submitted = st.form_submit_button("Entrar")
    if submitted:
        if not username.strip():
            st.warning("Informe um nome ou apelido.")
            return
        _run_safely(_login, username)
        st.rerun()


def render_month_nav(locale: LocaleFormat, key: str) -> None:
    year, month = st.session_state['year'], st.session_state['month']
    prev_col, label_col, next_col = st.columns([1, 4, 1])
    if prev_col.button("◀", key=f"{key}-prev"):
        st.session_state['year'], st.session_state['month'] = shift_month(year, month, -1)
        st.rerun()
    label_col.subheader(month_label(year, month, locale).capitalize())
    if next_col.button("▶", key=f"{key}-next"):
        st.session_state['year'], st.session_state['month'] = shift_month(year, month, 1)
        st.rerun()


def render_entry_form(store: TransactionStore) -> None:
    st.subheader("Nova transação")
    description = st.text_input("Descrição", key="entry-description")
    amount = st.number_input("Valor", min_value=0.0, step=0.01, key="entry-amount")

    if st.button("✨ Categorizar com IA", disabled=not description):
        advisor = _get_advisor()
        if advisor is None:
            st.error(RETRY_MESSAGE)
        else:
            category = advisor.categorize(description, amount)
            st.session_state['entry-category'] = category.value
            st.session_state['entry-expense-type'] = suggest_expense_type(category).value

    tx_type = st.radio(
        "Tipo", [TransactionType.EXPENSE.value, TransactionType.INCOME.value],
        format_func=lambda v: "Despesa" if v == TransactionType.EXPENSE.value else "Receita",
        horizontal=True, key="entry-type",
    )
    expense_type = None
    if tx_type == TransactionType.EXPENSE.value:
        expense_type = st.radio(
            "Natureza", [ExpenseType.SPORADIC.value, ExpenseType.FIXED.value],
            format_func=lambda v: "Esporádico" if v == ExpenseType.SPORADIC.value else "Fixo",
            horizontal=True, key="entry-expense-type",
        )
    category = st.selectbox("Categoria", CATEGORIES, key="entry-category")

    if st.button("Adicionar", type="primary"):
        if not description or amount <= 0:
            st.warning("Preencha descrição e valor.")
            return
        transaction = Transaction(
            description=description,
            amount=amount,
            type=tx_type,
            category=category,
            expense_type=expense_type,
        )
        if _run_safely(store.add, transaction) is not None:
            st.success("Transação adicionada.")


def render_smart_entry(store: TransactionStore) -> None:
    with st.expander("🎙️ Entrada inteligente (texto ou voz)"):
        text = st.text_area("Descreva seus gastos", placeholder="Gastei 50 no mercado e 30 de Uber")
        audio = st.audio_input("Ou grave um áudio")
        if st.button("Processar"):
            advisor = _get_advisor()
            if advisor is None:
                st.error(RETRY_MESSAGE)
                return
            audio_b64 = base64.b64encode(audio.getvalue()).decode("ascii") if audio is not None else None
            found = _run_safely(advisor.extract_transactions, text, audio_b64)
            if found is None:
                return
            if not found:
                st.warning("Não consegui identificar nenhuma transação válida.")
                return
            if _run_safely(store.add_many, found) is not None:
                st.success(f"{len(found)} transação(ões) adicionada(s).")


def render_dashboard_tab(store: TransactionStore, cache: SnapshotCache, locale: LocaleFormat) -> None:
    render_month_nav(locale, "dashboard")
    snapshot = cache.get(st.session_state['year'], st.session_state['month'])

    col1, col2, col3 = st.columns(3)
    col1.metric("Saldo", format_currency(snapshot.balance, locale))
    col2.metric("Receitas", format_currency(snapshot.total_income, locale))
    col3.metric("Despesas", format_currency(snapshot.total_expense, locale))

    form_col, chart_col = st.columns([1, 2])
    with form_col:
        render_entry_form(store)
        render_smart_entry(store)
    with chart_col:
        st.plotly_chart(viz.create_daily_sporadic_chart(snapshot), use_container_width=True)
        st.plotly_chart(viz.create_category_donut_chart(snapshot), use_container_width=True)
        split = snapshot.fixed_vs_sporadic
        st.caption(f"Fixos {split.fixed:.1f}% · Esporádicos {split.sporadic:.1f}%")
        with st.expander("Resumo em texto"):
            st.text(render_summary(snapshot, locale))


def render_calendar_tab(store: TransactionStore, locale: LocaleFormat) -> None:
    render_month_nav(locale, "calendar")
    month = build_calendar(
        store.list_all(), st.session_state['year'], st.session_state['month'], config.get_timezone(),
    )
    grid_col, detail_col = st.columns([3, 1])
    with grid_col:
        st.plotly_chart(viz.create_calendar_heatmap(month), use_container_width=True)
    with detail_col:
        selected = st.selectbox("Dia", [d.day for d in month.days], index=None, placeholder="Selecione um dia")
        if selected is None:
            st.caption("Clique no calendário para ver os gastos.")
            return
        day = month.day(selected)
        st.markdown(f"**Detalhes do Dia {day.day}** · {len(day.transactions)} transações")
        st.write(f"Total Entrada: + {format_currency(day.income, locale)}")
        st.write(f"Total Saída: - {format_currency(day.expense, locale)}")
        for t in day.transactions:
            st.write(f"{t.description} ({t.category.value}) {format_signed_amount(t, locale)}")
        if day.is_peak:
            st.warning("Este é o dia com maior gasto no mês.")


def render_transactions_tab(store: TransactionStore, locale: LocaleFormat) -> None:
    transactions = sorted(store.list_all(), key=lambda t: t.date, reverse=True)
    if not transactions:
        st.info("Nenhuma transação registrada ainda.")
    tz = config.get_timezone()
    for t in transactions:
        info_col, amount_col, action_col = st.columns([4, 2, 1])
        badge = ""
        if t.expense_type is not None:
            badge = " · Fixo" if t.expense_type is ExpenseType.FIXED else " · Esporádico"
        when = to_local_datetime(t.date, tz).strftime(locale.date_format)
        info_col.write(f"**{t.description}**  \n{t.category.value}{badge} · {when}")
        amount_col.write(format_signed_amount(t, locale))
        if action_col.button("🗑️", key=f"delete-{t.id}", help="Excluir"):
            _run_safely(store.remove, t.id)
            st.rerun()

    with st.expander("Zona de perigo"):
        confirm = st.checkbox("Entendo que isso apagará todas as transações permanentemente.")
        if st.button("Apagar todos os dados", disabled=not confirm):
            _run_safely(store.clear)
            st.rerun()


def render_advisor_tab(store: TransactionStore, cache: SnapshotCache, locale: LocaleFormat) -> None:
    messages: List[Dict[str, str]] = st.session_state['messages']
    for message in messages:
        with st.chat_message("assistant" if message['role'] == 'model' else "user"):
            st.markdown(message['text'])

    advisor = _get_advisor()
    if st.button("📊 Gerar relatório de saúde financeira", disabled=advisor is None):
        messages.append({'role': 'model', 'text': advisor.health_check(store.list_all())})
        st.rerun()

    general = st.toggle("Assistente geral (sem usar seus dados financeiros)", key="general-chat")
    prompt = st.chat_input("Pergunte qualquer coisa" if general else "Pergunte sobre suas finanças")
    if prompt:
        history = list(messages)
        messages.append({'role': 'user', 'text': prompt})
        reply = CHAT_ERROR_MESSAGE
        if advisor is not None:
            try:
                if general:
                    reply = advisor.general_chat(prompt, history)
                else:
                    snapshot = cache.get(st.session_state['year'], st.session_state['month'])
                    reply = advisor.chat(prompt, history, store.list_all(), render_summary(snapshot, locale))
            except FinanceError as exc:
                logger.error("Chat failed: %s", exc)
        messages.append({'role': 'model', 'text': reply})
        st.rerun()

    with st.expander("🖼️ Imagens"):
        render_image_tools(advisor)


def render_image_tools(advisor: Optional[GeminiAdvisor]) -> None:
    image_prompt = st.text_input("Descreva uma imagem para gerar", key="image-prompt")
    if st.button("Gerar imagem", disabled=advisor is None or not image_prompt):
        data_url = _run_safely(advisor.generate_image, image_prompt)
        if data_url:
            st.image(data_url)
        elif data_url is None:
            st.warning("Nenhuma imagem foi gerada.")

    upload = st.file_uploader("Ou envie uma imagem para análise", type=["png", "jpg", "jpeg", "webp"])
    question = st.text_input("O que você quer saber sobre a imagem?", value="Descreva esta imagem.")
    if upload is not None and st.button("Analisar imagem", disabled=advisor is None):
        encoded = base64.b64encode(upload.getvalue()).decode("ascii")
        answer = _run_safely(advisor.analyze_image, f"data:{upload.type};base64,{encoded}", question)
        if answer:
            st.markdown(answer)


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Gemini Finance", layout="wide", initial_sidebar_state="expanded")
    config.ensure_data_directories()
    configure_logging()
    locale = get_locale()

    if 'username' not in st.session_state:
        remembered = load_session_user()
        if remembered:
            _open_session(remembered)
        else:
            render_login()
            return

    store: TransactionStore = st.session_state['store']
    cache: SnapshotCache = st.session_state['cache']

    st.sidebar.title("Gemini Finance")
    st.sidebar.write(f"👤 {st.session_state['username']}")
    st.sidebar.caption(f"{len(store)} transações")
    if st.sidebar.button("Sair"):
        _logout()
        st.rerun()

    dashboard_tab, calendar_tab, list_tab, advisor_tab = st.tabs(
        ["Dashboard", "Calendário", "Transações", "Consultor IA"]
    )
    with dashboard_tab:
        render_dashboard_tab(store, cache, locale)
    with calendar_tab:
        render_calendar_tab(store, locale)
    with list_tab:
        render_transactions_tab(store, locale)
    with advisor_tab:
        render_advisor_tab(store, cache, locale)


if __name__ == "__main__":  # pragma: no cover
    main()
