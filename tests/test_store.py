import json
from dataclasses import replace
from itertools import count

from budgetflow.accounts import account_balances
from budgetflow.aggregation import goal_progress
from budgetflow.constants import DEFAULT_CATEGORIES
from budgetflow.domain import (
    Account,
    AccountType,
    Category,
    PeriodSettings,
    Recurrence,
    RecurrenceFrequency,
    SavingsGoal,
    Snapshot,
    Transaction,
    TransactionType,
)
from budgetflow.events import PERIOD_CHANGED, STATE_CHANGED
from budgetflow.persistence import JsonSnapshotStore, autosave_handler
from budgetflow.rollover import RolloverMode
from budgetflow.store import BudgetStore


def make_acc(id, is_default=False):
    return Account(id, id.title(), AccountType.CHECKING, 100.0, "EUR", "#000", is_default)


def make_tx(id, t_type, actual, category, date="2024-03-10", planned=0.0, account_id="main"):
    return Transaction(id=id, name=id, planned_amount=planned, actual_amount=actual, type=t_type,
                       category=category, date=date, account_id=account_id)


def make_store(transactions=(), accounts=None, goals=()):
    snapshot = Snapshot(
        transactions=tuple(transactions),
        goals=tuple(goals),
        settings=PeriodSettings("2024-03-01", "2024-03-31"),
        accounts=accounts if accounts is not None else (make_acc("main", True), make_acc("cash")),
        categories=DEFAULT_CATEGORIES,
    )
    counter = count(1)
    return BudgetStore(snapshot, id_factory=lambda prefix: f"{prefix}-{next(counter)}")


LEDGER = (
    make_tx("pay", TransactionType.INCOME, 3000, "Salary", "2024-03-01"),
    make_tx("rent", TransactionType.FIXED_EXPENSE, 1200, "Housing", "2024-03-01", planned=1200),
    make_tx("food", TransactionType.EXPENSE, 300, "Groceries", "2024-03-15", planned=350),
    make_tx("feb", TransactionType.EXPENSE, 80, "Groceries", "2024-02-20"),
)


def test_store_normalizes_accounts_and_backfills():
    store = make_store(
        [make_tx("loose", TransactionType.EXPENSE, 5, "Other", account_id=None)],
        accounts=(make_acc("x"), make_acc("y")),
    )
    assert [a.is_default for a in store.snapshot.accounts] == [True, False]
    assert store.transactions[0].account_id == "x"


def test_summary_uses_active_period():
    store = make_store(LEDGER)
    assert store.summary().total_expenses == 1500
    assert store.summary().balance == 1500
    assert len(store.period_transactions()) == 3


def test_save_transaction_assigns_id_and_publishes():
    store = make_store(LEDGER)
    seen = []
    store.bus.subscribe(STATE_CHANGED, lambda event, payload: seen.append(payload["snapshot"]) or {})

    alerts = store.save_transaction(make_tx("", TransactionType.INCOME, 50, "Gifts & Refunds", account_id=None))
    added = store.transactions[-1]
    assert added.id == "tx-1"
    assert added.account_id == "main"
    assert alerts == ()
    assert seen == [store.snapshot]


def test_save_transaction_updates_in_place():
    store = make_store(LEDGER)
    store.save_transaction(make_tx("food", TransactionType.EXPENSE, 320, "Groceries", "2024-03-15", planned=350))
    assert len(store.transactions) == len(LEDGER)
    assert store.transactions[2].actual_amount == 320


def test_rolled_over_item_can_be_edited_with_recurrence():
    saving = replace(make_tx("gym", TransactionType.SAVING, 0, "General Savings", "2024-03-05"),
                     recurrence=Recurrence(RecurrenceFrequency.MONTHLY, "2024-04-05"))
    goal = SavingsGoal("g1", "Trip", 1000, 0, "General Savings", "#fff", sub_category="Travel")
    store = make_store(LEDGER + (saving,), goals=(goal,))
    assert store.find_transaction("missing").is_none()

    store.start_new_period("2024-04-01", "2024-04-30", RolloverMode.ROLLOVER)
    rolled = next(t for t in store.period_transactions() if t.name == "gym")
    assert rolled.actual_amount == 0
    assert rolled.recurrence == saving.recurrence

    edited = replace(store.find_transaction(rolled.id).get_or_else(None), actual_amount=150, sub_category="Travel")
    store.save_transaction(edited)
    assert store.find_transaction(rolled.id).get_or_else(None).actual_amount == 150
    assert len(store.period_transactions()) == 3
    assert goal_progress(goal, store.transactions).total_saved == 150


def test_expense_over_budget_raises_alert():
    store = make_store(LEDGER)
    alerts = store.save_transaction(make_tx("snack", TransactionType.EXPENSE, 100, "Groceries", "2024-03-20"))
    assert alerts == ("Over budget in Groceries: 400.00 of 350.00 spent",)


def test_delete_and_undo():
    store = make_store(LEDGER)
    before = store.snapshot
    store.delete_transactions(["rent", "food"])
    assert [t.id for t in store.transactions] == ["pay", "feb"]
    assert store.can_undo
    assert store.undo()
    assert store.snapshot == before
    assert not store.can_undo
    assert not store.undo()


def test_later_mutation_discards_undo():
    store = make_store(LEDGER)
    store.delete_transaction("rent")
    store.save_transaction(make_tx("new", TransactionType.EXPENSE, 1, "Other"))
    assert not store.can_undo


def test_delete_unknown_is_a_no_op():
    store = make_store(LEDGER)
    store.delete_transaction("missing")
    assert not store.can_undo
    assert store.transactions == LEDGER


def test_set_budget_validation_and_undo():
    store = make_store(LEDGER)
    assert store.set_budget(None, "  ", 100) == "Category name is required."
    assert store.transactions == LEDGER

    assert store.set_budget(None, "Pets", "45") is None
    placeholder = store.transactions[-1]
    assert placeholder.id == "budget-1"
    assert placeholder.planned_amount == 45
    assert placeholder.account_id == "main"
    assert store.undo()
    assert store.transactions == LEDGER


def test_remove_budget():
    store = make_store(LEDGER)
    store.set_budget(None, "Pets", 45)
    store.remove_budget("Pets")
    assert store.transactions == LEDGER
    store.remove_budget("Groceries")
    food = next(t for t in store.transactions if t.id == "food")
    assert food.planned_amount == 0


def test_navigate_month_keeps_balances():
    store = make_store(LEDGER)
    periods = []
    store.bus.subscribe(PERIOD_CHANGED, lambda event, payload: periods.append(payload) or {})
    balances = account_balances(store.snapshot.accounts, store.transactions)

    assert store.navigate_month("prev") == ("2024-02-01", "2024-02-29")
    assert store.period == ("2024-02-01", "2024-02-29")
    assert [t.id for t in store.period_transactions()] == ["feb"]
    assert account_balances(store.snapshot.accounts, store.transactions) == balances
    assert periods == [{"start": "2024-02-01", "end": "2024-02-29"}]


def test_set_period_rejects_inverted_range():
    store = make_store(LEDGER)
    assert store.set_period("2024-03-31", "2024-03-01") == "Start date must be before end date."
    assert store.period == ("2024-03-01", "2024-03-31")
    assert store.set_period("2024-03-10", "2024-03-20") is None
    assert store.period == ("2024-03-10", "2024-03-20")


def test_start_new_period_rollover():
    store = make_store(LEDGER)
    outcome = store.start_new_period("2024-04-01", "2024-04-30", RolloverMode.ROLLOVER)
    result = outcome.get_or_else(None)
    assert [t.name for t in result.created] == ["rent", "food"]
    assert store.period == ("2024-04-01", "2024-04-30")
    assert {t.date for t in store.period_transactions()} == {"2024-04-01", "2024-04-15"}
    assert store.transactions[: len(LEDGER)] == LEDGER

    assert store.start_new_period("2024-05-01", "bad", RolloverMode.BLANK).is_left()


def test_delete_default_account_returns_notice():
    store = make_store(LEDGER)
    assert store.delete_account("main") == "Cannot delete the default account."
    assert len(store.snapshot.accounts) == 2
    assert store.delete_account("cash") is None
    assert [a.id for a in store.snapshot.accounts] == ["main"]


def test_categories_through_store():
    store = make_store()
    store.save_category(Category("", "Hobbies", "Palette", (TransactionType.EXPENSE,)))
    added = store.snapshot.categories[-1]
    assert added.id == "cat-1"
    assert added.is_custom
    assert store.delete_category("Groceries") == "Built-in categories cannot be deleted."
    assert store.delete_category("cat-1") is None
    assert store.snapshot.categories == DEFAULT_CATEGORIES


def test_goal_delete_is_undoable():
    goal = SavingsGoal("g1", "Bike", 900, 0, "General Savings", "#000")
    store = make_store(goals=[goal])
    store.delete_goal("g1")
    assert store.snapshot.goals == ()
    store.undo()
    assert store.snapshot.goals == (goal,)


def test_import_backup():
    store = make_store(LEDGER)
    assert store.import_backup("not json at all") is not None
    assert store.transactions == LEDGER

    backup = {"items": [make_tx("only", TransactionType.EXPENSE, 9, "Other", account_id=None).to_dict()]}
    assert store.import_backup(json.dumps(backup)) is None
    assert [t.id for t in store.transactions] == ["only"]
    assert store.transactions[0].account_id == "main"
    assert json.loads(store.export_json())["items"][0]["id"] == "only"


def test_autosave_writes_every_change(tmp_path):
    store = make_store(LEDGER)
    snapshots = JsonSnapshotStore(tmp_path / "data.json")
    store.bus.subscribe(STATE_CHANGED, autosave_handler(snapshots))
    store.delete_transaction("feb")
    assert snapshots.load(store.snapshot) == store.snapshot
    assert [t.id for t in snapshots.load(make_store().snapshot).transactions] == ["pay", "rent", "food"]
