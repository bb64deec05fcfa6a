import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional, Union

from budgetflow import accounts as acc
from budgetflow import budgets, categories, goals, rollover
from budgetflow.aggregation import SpendingInsights, Summary, spending_insights, summarize
from budgetflow.domain import (
    EXPENSE_TYPES,
    Account,
    Category,
    SavingsGoal,
    Snapshot,
    Transaction,
    TransactionType,
    new_id,
)
from budgetflow.events import BUDGET_ALERT, PERIOD_CHANGED, STATE_CHANGED, EventBus, check_budget_handler
from budgetflow.functional import Either, Maybe, Right, first
from budgetflow.periods import Direction, by_category, filter_by_period, shift_month, validate_period
from budgetflow.persistence import export_json, parse_backup

logger = logging.getLogger(__name__)


def normalize_snapshot(snapshot: Snapshot) -> Snapshot:
    """One default account, and every transaction assigned to some account."""
    accounts = acc.normalize_default(tuple(snapshot.accounts))
    return replace(
        snapshot,
        transactions=acc.assign_default_account(tuple(snapshot.transactions), accounts),
        goals=tuple(snapshot.goals),
        accounts=accounts,
        categories=tuple(snapshot.categories),
    )


class BudgetStore:
    """Owns the current snapshot and applies the pure core functions to it.

    Each mutation reads ``self._snapshot`` once, builds the next snapshot and
    swaps it in with a single assignment before publishing STATE_CHANGED
    with the new snapshot as payload. Rejections come back as notice strings.
    """

    def __init__(self, snapshot: Snapshot, bus: Optional[EventBus] = None,
                 id_factory: Callable[[str], str] = new_id):
        self._snapshot = normalize_snapshot(snapshot)
        self._undo: Optional[Snapshot] = None
        self.id_factory = id_factory
        self.bus = bus or EventBus()
        self.bus.subscribe(BUDGET_ALERT, check_budget_handler)

    # --- read side ---

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._snapshot.transactions

    @property
    def period(self) -> tuple[str, str]:
        s = self._snapshot.settings
        return s.start_date, s.end_date

    @property
    def can_undo(self) -> bool:
        return self._undo is not None

    def period_transactions(self) -> tuple[Transaction, ...]:
        snap = self._snapshot
        return filter_by_period(snap.transactions, snap.settings.start_date, snap.settings.end_date)

    def find_transaction(self, tx_id: str) -> Maybe[Transaction]:
        return first(self._snapshot.transactions, lambda t: t.id == tx_id)

    def summary(self) -> Summary:
        return summarize(self.period_transactions())

    def insights(self, today: Optional[date] = None) -> SpendingInsights:
        return spending_insights(self.summary().balance, self._snapshot.settings.end_date, today)

    def export_json(self) -> str:
        return export_json(self._snapshot)

    # --- commit ---

    def _commit(self, previous: Snapshot, new: Snapshot, undoable: bool = False) -> None:
        self._undo = previous if undoable else None
        self._snapshot = new
        self.bus.publish(STATE_CHANGED, {"snapshot": new})

    def undo(self) -> bool:
        if self._undo is None:
            return False
        restored, self._undo = self._undo, None
        self._snapshot = restored
        self.bus.publish(STATE_CHANGED, {"snapshot": restored})
        return True

    # --- transactions ---

    def save_transaction(self, tx: Transaction) -> tuple[str, ...]:
        """Insert or update by id; returns budget alerts raised by the save."""
        snap = self._snapshot
        if not tx.id:
            tx = replace(tx, id=self.id_factory("tx"))
        if not tx.account_id:
            tx = replace(tx, account_id=acc.default_account_id(snap.accounts))

        if any(t.id == tx.id for t in snap.transactions):
            trans = tuple(tx if t.id == tx.id else t for t in snap.transactions)
        else:
            trans = snap.transactions + (tx,)
        self._commit(snap, replace(snap, transactions=trans))

        if tx.type not in EXPENSE_TYPES:
            return ()
        return self._budget_alerts(tx.category)

    def _budget_alerts(self, category: str) -> tuple[str, ...]:
        in_category = tuple(filter(by_category(category), self.period_transactions()))
        payload = {
            "category": category,
            "planned": sum(t.planned_amount for t in in_category),
            "actual": sum(t.actual_amount for t in in_category),
        }
        results = self.bus.publish(BUDGET_ALERT, payload)
        return tuple(r["alert"] for r in results if isinstance(r, dict) and r.get("alert"))

    def delete_transaction(self, tx_id: str) -> None:
        self.delete_transactions((tx_id,))

    def delete_transactions(self, tx_ids: Iterable[str]) -> None:
        snap = self._snapshot
        ids = set(tx_ids)
        trans = tuple(t for t in snap.transactions if t.id not in ids)
        if len(trans) == len(snap.transactions):
            return
        self._commit(snap, replace(snap, transactions=trans), undoable=True)

    # --- budgets ---

    def set_budget(self, old_category: Optional[str], new_category: str, amount,
                   t_type: TransactionType = TransactionType.EXPENSE) -> Optional[str]:
        checked = budgets.validate_budget_input(new_category, amount)
        if checked.is_left():
            return checked.get_error()

        name, value = checked.get_or_else(None)
        snap = self._snapshot
        start, end = snap.settings.start_date, snap.settings.end_date
        trans = budgets.set_budget(
            snap.transactions, old_category, name, value, t_type, start, end,
            accounts=snap.accounts, id_factory=self.id_factory,
        )
        self._commit(snap, replace(snap, transactions=trans), undoable=True)
        return None

    def remove_budget(self, category: str) -> None:
        snap = self._snapshot
        trans = budgets.remove_budget(snap.transactions, category, snap.settings.start_date, snap.settings.end_date)
        self._commit(snap, replace(snap, transactions=trans), undoable=True)

    # --- period ---

    def _change_period(self, snap: Snapshot, new: Snapshot) -> None:
        self._commit(snap, new)
        self.bus.publish(PERIOD_CHANGED, {"start": new.settings.start_date, "end": new.settings.end_date})

    def navigate_month(self, direction: Direction) -> tuple[str, str]:
        snap = self._snapshot
        start, end = shift_month(snap.settings.start_date, direction)
        self._change_period(snap, replace(snap, settings=replace(snap.settings, start_date=start, end_date=end)))
        return start, end

    def set_period(self, start: str, end: str) -> Optional[str]:
        checked = validate_period(start, end)
        if checked.is_left():
            return checked.get_error()
        snap = self._snapshot
        self._change_period(snap, replace(snap, settings=replace(snap.settings, start_date=start, end_date=end)))
        return None

    def start_new_period(self, start: str, end: str,
                         mode: rollover.RolloverMode) -> Either[str, rollover.RolloverResult]:
        checked = validate_period(start, end)
        if checked.is_left():
            return checked
        snap = self._snapshot
        result = rollover.start_new_period(snap.transactions, snap.settings, start, end, mode, self.id_factory)
        self._change_period(snap, replace(snap, transactions=result.transactions, settings=result.settings))
        return Right(result)

    # --- accounts ---

    def add_account(self, account: Account) -> None:
        snap = self._snapshot
        self._commit(snap, replace(snap, accounts=acc.add_account(snap.accounts, account)))

    def update_account(self, account: Account) -> None:
        snap = self._snapshot
        self._commit(snap, replace(snap, accounts=acc.update_account(snap.accounts, account)))

    def set_default_account(self, acc_id: str) -> None:
        snap = self._snapshot
        self._commit(snap, replace(snap, accounts=acc.set_default_account(snap.accounts, acc_id)))

    def delete_account(self, acc_id: str) -> Optional[str]:
        snap = self._snapshot
        outcome = acc.delete_account(snap.accounts, snap.transactions, acc_id)
        if outcome.is_left():
            return outcome.get_error()
        accounts, trans = outcome.get_or_else(None)
        self._commit(snap, replace(snap, accounts=accounts, transactions=trans))
        return None

    # --- categories and goals ---

    def save_category(self, category: Category) -> None:
        snap = self._snapshot
        if not category.id:
            category = replace(category, id=self.id_factory("cat"), is_custom=True)
        self._commit(snap, replace(snap, categories=categories.save_category(snap.categories, category)))

    def delete_category(self, cat_id: str) -> Optional[str]:
        snap = self._snapshot
        outcome = categories.delete_category(snap.categories, cat_id)
        if outcome.is_left():
            return outcome.get_error()
        self._commit(snap, replace(snap, categories=outcome.get_or_else(snap.categories)))
        return None

    def save_goal(self, goal: SavingsGoal) -> None:
        snap = self._snapshot
        self._commit(snap, replace(snap, goals=goals.save_goal(snap.goals, goal)))

    def delete_goal(self, goal_id: str) -> None:
        snap = self._snapshot
        self._commit(snap, replace(snap, goals=goals.delete_goal(snap.goals, goal_id)), undoable=True)

    # --- restore ---

    def restore(self, snapshot: Snapshot) -> None:
        snap = self._snapshot
        restored = normalize_snapshot(snapshot)
        logger.info(
            "Restored %d transactions, %d goals, %d accounts",
            len(restored.transactions), len(restored.goals), len(restored.accounts),
        )
        self._commit(snap, restored)

    def import_backup(self, content: Union[str, bytes, dict]) -> Optional[str]:
        parsed = parse_backup(content, self._snapshot)
        if parsed.is_left():
            logger.warning("Rejected backup: %s", parsed.get_error())
            return parsed.get_error()
        self.restore(parsed.get_or_else(None))
        return None
