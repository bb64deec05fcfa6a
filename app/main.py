import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date
from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from budgetflow.accounts import account_balances, net_worth
from budgetflow.aggregation import (
    budget_vs_actual,
    cash_flow,
    category_breakdown,
    goal_progress,
    monthly_rollup,
    recent_transactions,
    top_categories,
)
from budgetflow.budgets import budget_for_category, budget_groups
from budgetflow.categories import categories_for_type
from budgetflow.config import configure_logging, get_settings
from budgetflow.constants import currency_for
from budgetflow.domain import (
    Account,
    AccountType,
    Recurrence,
    RecurrenceFrequency,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from budgetflow.events import STATE_CHANGED
from budgetflow.functional import pipe
from budgetflow.periods import next_period
from budgetflow.persistence import (
    JsonSnapshotStore,
    autosave_handler,
    backup_filename,
    default_snapshot,
    save_snapshot_async,
)
from budgetflow.rollover import RolloverMode
from budgetflow.store import BudgetStore

settings = get_settings()
configure_logging(settings.log_level)

st.set_page_config(page_title="Budgetflow", layout="wide")


@st.cache_resource
def autosave_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="autosave")


def load_store() -> BudgetStore:
    snapshots = JsonSnapshotStore(settings.snapshot_path)
    fallback = default_snapshot(settings.base_currency)
    if not settings.snapshot_path.exists() and settings.seed_file and settings.seed_file.exists():
        fallback = JsonSnapshotStore(settings.seed_file).load(fallback)
    store = BudgetStore(snapshots.load(fallback))
    if settings.autosave:
        store.bus.subscribe(STATE_CHANGED, autosave_handler(snapshots, autosave_executor()))
    return store


if "store" not in st.session_state:
    st.session_state.store = load_store()
if "notices" not in st.session_state:
    st.session_state.notices = []

store: BudgetStore = st.session_state.store
snap = store.snapshot
symbol = currency_for(snap.settings.base_currency).symbol


def money(value: float) -> str:
    return f"{value:,.2f} {symbol}"


def as_date(value: str, default: Optional[date] = None) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return default or date.fromisoformat(start)


def tx_to_df(tx_list) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "date": t.date,
            "name": t.name,
            "type": t.type.value,
            "category": t.category,
            "planned": t.planned_amount,
            "actual": t.actual_amount,
            "account": t.account_id or "-",
        }
        for t in tx_list
    ]
    df = pd.DataFrame(rows, columns=["id", "date", "name", "type", "category", "planned", "actual", "account"])
    if not df.empty:
        df = df.sort_values("date", ascending=False)
    return df


# --- sidebar: period ---

start, end = store.period
st.sidebar.markdown("### 📅 Period")
st.sidebar.caption(f"{start} → {end}")
prev_col, next_col = st.sidebar.columns(2)
if prev_col.button("◀ Prev", key="btn_prev_month"):
    store.navigate_month("prev")
    st.rerun()
if next_col.button("Next ▶", key="btn_next_month"):
    store.navigate_month("next")
    st.rerun()

with st.sidebar.expander("🆕 Start new period"):
    default_start, default_end = next_period(start)
    with st.form("new_period_form"):
        np_start = st.text_input("Start", value=default_start)
        np_end = st.text_input("End", value=default_end)
        np_mode = st.radio(
            "Mode",
            [RolloverMode.ROLLOVER.value, RolloverMode.BLANK.value],
            format_func=lambda m: "Roll over budgets" if m == RolloverMode.ROLLOVER.value else "Start blank",
        )
        if st.form_submit_button("Start"):
            outcome = store.start_new_period(np_start, np_end, RolloverMode(np_mode))
            if outcome.is_left():
                st.session_state.notices.append(outcome.get_error())
            else:
                result = outcome.get_or_else(None)
                st.session_state.notices.append(
                    f"New period {np_start}..{np_end}: {len(result.created)} rolled, {len(result.removed)} cleared"
                )
            st.rerun()

if store.can_undo and st.sidebar.button("↩ Undo", key="btn_undo"):
    store.undo()
    st.rerun()

for notice in st.session_state.notices:
    st.toast(notice)
st.session_state.notices = []

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "💰 Budget", "🎯 Goals", "💳 Accounts", "📑 Monthly Summary", "💾 Backup"],
)

snap = store.snapshot
period_tx = store.period_transactions()
summary = store.summary()

if menu == "🏠 Overview":
    insights = store.insights()
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Income", money(summary.total_income))
    with k2:
        st.metric("Expenses", money(summary.total_expenses))
    with k3:
        st.metric("Savings", money(summary.total_savings))
    with k4:
        st.metric("Balance", money(summary.balance))

    d1, d2, d3 = st.columns(3)
    d1.metric("Days left", insights.days_left)
    d2.metric("Daily budget", money(insights.daily_budget))
    d3.metric("Weekly budget", money(insights.weekly_budget))

    flow = cash_flow(summary)
    fig_flow = go.Figure()
    for label, pct in (("Expenses", flow.expenses_pct), ("Savings", flow.savings_pct), ("Income", flow.income_pct)):
        fig_flow.add_trace(go.Bar(y=["Cash flow"], x=[pct], name=label, orientation="h"))
    fig_flow.update_layout(barmode="stack", template="plotly_dark", height=180, margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_flow, use_container_width=True)

    shares = category_breakdown(period_tx)
    if shares:
        fig_cat = px.pie(
            names=[s.name for s in shares],
            values=[s.value for s in shares],
            title="Spending by category",
            template="plotly_dark",
            hole=0.5,
        )
        st.plotly_chart(fig_cat, use_container_width=True)

    top = list(top_categories(budget_vs_actual(period_tx), 5))
    if top:
        fig_top = go.Figure()
        fig_top.add_trace(go.Bar(x=[r.name for r in top], y=[r.planned for r in top], name="Planned"))
        fig_top.add_trace(go.Bar(x=[r.name for r in top], y=[r.actual for r in top], name="Actual"))
        fig_top.update_layout(barmode="group", template="plotly_dark", title="Top categories")
        st.plotly_chart(fig_top, use_container_width=True)

    st.subheader("🕒 Recent transactions")
    st.dataframe(pipe(period_tx, recent_transactions, tx_to_df), use_container_width=True, hide_index=True)

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    account_names = {a.name: a.id for a in snap.accounts}
    account_labels = {v: k for k, v in account_names.items()}

    def transaction_form(key: str, existing: Optional[Transaction] = None) -> None:
        base = existing or Transaction("", "", 0.0, 0.0, TransactionType.EXPENSE, "", start)
        types = [t.value for t in TransactionType]
        frequencies = ["-"] + [f.value for f in RecurrenceFrequency]
        with st.form(key, clear_on_submit=existing is None):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Name", value=base.name)
                t_type = st.selectbox("Type", types, index=types.index(base.type.value))
                cats = [c.name for c in (categories_for_type(snap.categories, TransactionType(t_type)) or snap.categories)]
                if base.category and base.category not in cats:
                    cats.append(base.category)
                category = st.selectbox("Category", cats, index=cats.index(base.category) if base.category in cats else 0)
                sub_category = st.text_input("Subcategory", value=base.sub_category or "")
                tx_date = st.date_input("Date", value=as_date(base.date))
                note = st.text_input("Note", value=base.note or "")
            with col2:
                planned = st.number_input("Planned", min_value=0.0, step=10.0, value=float(base.planned_amount))
                actual = st.number_input("Actual", min_value=0.0, step=10.0, value=float(base.actual_amount))
                accounts = list(account_names)
                current = account_labels.get(base.account_id)
                account = st.selectbox("Account", accounts, index=accounts.index(current) if current else 0)
                targets = ["-"] + accounts
                to_current = account_labels.get(base.to_account_id, "-")
                to_account = st.selectbox("Transfer to", targets, index=targets.index(to_current))
                freq = st.selectbox(
                    "Repeats",
                    frequencies,
                    index=frequencies.index(base.recurrence.frequency.value) if base.recurrence else 0,
                )
                next_date = st.date_input(
                    "Next date",
                    value=as_date(base.recurrence.next_date, tx_date) if base.recurrence else tx_date,
                )
            if st.form_submit_button("Save"):
                if not name.strip():
                    st.warning("Name is required.")
                    return
                recurrence = None if freq == "-" else Recurrence(RecurrenceFrequency(freq), next_date.isoformat())
                alerts = store.save_transaction(replace(
                    base,
                    name=name.strip(),
                    planned_amount=planned,
                    actual_amount=actual,
                    type=TransactionType(t_type),
                    category=category,
                    date=tx_date.isoformat(),
                    sub_category=sub_category.strip() or None,
                    note=note.strip() or None,
                    recurrence=recurrence,
                    account_id=account_names.get(account),
                    to_account_id=account_names.get(to_account),
                ))
                st.session_state.notices.extend(alerts)
                st.session_state.notices.append(f"Saved {name.strip()}")
                st.rerun()

    with st.expander("➕ Add Transaction", expanded=not period_tx):
        transaction_form("tx_form")

    df = tx_to_df(period_tx)
    st.dataframe(df, use_container_width=True, hide_index=True)

    if not df.empty:
        st.subheader("✏️ Edit Transaction")
        labels = {t.id: f"{t.date} · {t.name} · {money(t.actual_amount)}" for t in period_tx}
        edit_id = st.selectbox("Transaction", list(labels), format_func=labels.get, key="edit_tx_id")
        editing = store.find_transaction(edit_id).get_or_else(None)
        if editing is not None:
            transaction_form(f"tx_edit_{editing.id}", editing)

    to_delete = st.multiselect("Select transactions to delete", df["id"].tolist() if not df.empty else [])
    if to_delete and st.button("🗑 Delete selected", key="btn_delete_tx"):
        store.delete_transactions(to_delete)
        st.session_state.notices.append(f"Deleted {len(to_delete)} transaction(s)")
        st.rerun()

    if not df.empty:
        st.download_button("⬇ Download CSV", df.to_csv(index=False).encode("utf-8"), file_name="transactions.csv")

elif menu == "💰 Budget":
    st.title("💰 Budget")
    overview = budget_groups(period_tx, snap.categories)
    b1, b2 = st.columns(2)
    b1.metric("Planned", money(overview.total_planned))
    b2.metric("Spent", money(overview.total_actual))

    for group in overview.groups:
        st.subheader(f"{group.title}: {money(group.total_actual)} of {money(group.total_planned)}")
        rows = [
            {"category": line.name, "planned": line.planned, "actual": line.actual,
             "left": line.planned - line.actual}
            for line in group.lines
        ]
        st.dataframe(pd.DataFrame(rows, columns=["category", "planned", "actual", "left"]),
                     use_container_width=True, hide_index=True)

    st.subheader("✏️ Set budget")
    names = [line.name for g in overview.groups for line in g.lines]
    chosen = st.selectbox("Category", names) if names else None
    if chosen:
        draft = budget_for_category(period_tx, chosen, start, end)
        with st.form("budget_form"):
            new_name = st.text_input("Category name", value=draft.name)
            amount = st.text_input("Amount", value=f"{draft.current_amount:.2f}")
            types = [TransactionType.EXPENSE, TransactionType.FIXED_EXPENSE, TransactionType.SAVING]
            b_type = st.selectbox("Type", [t.value for t in types],
                                  index=types.index(draft.type) if draft.type in types else 0)
            save_col, remove_col = st.columns(2)
            save = save_col.form_submit_button("Save budget")
            remove = remove_col.form_submit_button("Remove budget")
        if save:
            notice = store.set_budget(chosen, new_name, amount, TransactionType(b_type))
            if notice:
                st.warning(notice)
            else:
                st.rerun()
        if remove:
            store.remove_budget(chosen)
            st.rerun()

elif menu == "🎯 Goals":
    st.title("🎯 Savings Goals")
    for goal in snap.goals:
        progress = goal_progress(goal, snap.transactions)
        st.markdown(f"**{goal.name}** · {money(progress.total_saved)}")
        if progress.has_target:
            st.progress(progress.percentage / 100, text=f"{progress.percentage:.0f}% · {money(progress.remaining)} to go")
        if st.button("Delete", key=f"btn_goal_{goal.id}"):
            store.delete_goal(goal.id)
            st.rerun()

    with st.form("goal_form", clear_on_submit=True):
        g_name = st.text_input("Goal name")
        g_target = st.number_input("Target (0 = open-ended)", min_value=0.0, step=100.0)
        g_initial = st.number_input("Already saved", min_value=0.0, step=100.0)
        g_category = st.selectbox("Category", [c.name for c in categories_for_type(snap.categories, TransactionType.SAVING)])
        if st.form_submit_button("Add goal") and g_name.strip():
            store.save_goal(SavingsGoal("", g_name.strip(), g_target, g_initial, g_category, "#10b981"))
            st.rerun()

elif menu == "💳 Accounts":
    st.title("💳 Accounts")
    balances = account_balances(snap.accounts, snap.transactions)
    st.metric("Net worth", money(net_worth(snap.accounts, snap.transactions)))

    fig_bal = px.bar(
        x=[a.name for a in snap.accounts],
        y=[balances[a.id] for a in snap.accounts],
        labels={"x": "Account", "y": f"Balance ({symbol})"},
        title="Account Balances",
        template="plotly_dark",
    )
    st.plotly_chart(fig_bal, use_container_width=True)

    for a in snap.accounts:
        c1, c2, c3 = st.columns([3, 1, 1])
        c1.markdown(f"**{a.name}** {'⭐' if a.is_default else ''} · {money(balances[a.id])}")
        if not a.is_default and c2.button("Make default", key=f"btn_default_{a.id}"):
            store.set_default_account(a.id)
            st.rerun()
        if c3.button("Delete", key=f"btn_acc_{a.id}"):
            notice = store.delete_account(a.id)
            if notice:
                st.session_state.notices.append(notice)
            st.rerun()

    with st.form("account_form", clear_on_submit=True):
        a_name = st.text_input("Account name")
        a_type = st.selectbox("Type", [t.value for t in AccountType])
        a_balance = st.number_input("Opening balance", step=100.0)
        if st.form_submit_button("Add account") and a_name.strip():
            store.add_account(Account("", a_name.strip(), AccountType(a_type), a_balance,
                                      snap.settings.base_currency, "#6366F1"))
            st.rerun()

elif menu == "📑 Monthly Summary":
    st.title("📑 Monthly Summary")
    months = monthly_rollup(snap.transactions)
    if months:
        df_m = pd.DataFrame(
            [{"month": m.month, "income": m.income, "expenses": m.expenses,
              "savings": m.savings, "net": m.net} for m in months]
        )
        fig_m = go.Figure()
        for col in ("income", "expenses", "savings"):
            fig_m.add_trace(go.Bar(x=df_m["month"], y=df_m[col], name=col.title()))
        fig_m.add_trace(go.Scatter(x=df_m["month"], y=df_m["net"], mode="lines+markers", name="Net"))
        fig_m.update_layout(template="plotly_dark", barmode="group")
        st.plotly_chart(fig_m, use_container_width=True)
        st.dataframe(df_m, use_container_width=True, hide_index=True)
    else:
        st.info("No transactions yet.")

elif menu == "💾 Backup":
    st.title("💾 Backup")
    st.download_button(
        "⬇ Export backup",
        store.export_json().encode("utf-8"),
        file_name=backup_filename(),
        mime="application/json",
    )
    if st.button("💾 Save now", key="btn_save_now"):
        path = asyncio.run(save_snapshot_async(JsonSnapshotStore(settings.snapshot_path), store.snapshot))
        st.success(f"Saved to {path}")

    uploaded = st.file_uploader("Restore from backup", type=["json"])
    if uploaded is not None and st.button("Restore", key="btn_restore"):
        notice = store.import_backup(uploaded.getvalue())
        if notice:
            st.error(notice)
        else:
            st.session_state.notices.append("Backup restored")
            st.rerun()
