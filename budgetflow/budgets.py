"""Per-period budget allocation on top of the ledger.

A category's budget for a period lives on one of its in-period
transactions (the budget holder): the first one, in ledger order, that
already carries a planned amount or has nothing spent yet. When none
qualifies a zero-spend placeholder is created at the period start.
"""
import math
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Optional

from budgetflow.accounts import default_account_id
from budgetflow.categories import category_icon, is_income_only, resolve_category
from budgetflow.domain import Account, Category, Transaction, TransactionType, new_id
from budgetflow.functional import Either, Left, Right
from budgetflow.periods import by_category, by_period, filter_by_period


@dataclass(frozen=True)
class BudgetDraft:
    name: str
    current_amount: float
    type: TransactionType


@dataclass(frozen=True)
class BudgetLine:
    name: str
    planned: float
    actual: float
    type: TransactionType
    icon: str


@dataclass(frozen=True)
class BudgetGroup:
    id: str
    title: str
    lines: tuple[BudgetLine, ...]
    total_planned: float
    total_actual: float


@dataclass(frozen=True)
class BudgetOverview:
    groups: tuple[BudgetGroup, ...]
    total_planned: float
    total_actual: float


GROUPS = (
    ("fixed", "Fixed Expenses", TransactionType.FIXED_EXPENSE),
    ("variable", "Variable Spending", TransactionType.EXPENSE),
    ("savings", "Savings & Investments", TransactionType.SAVING),
)

_NOT_BUDGETED = (TransactionType.INCOME, TransactionType.TRANSFER)


def _line_order(line: BudgetLine):
    # budgeted first, then categories with spending, then by spend
    return line.planned <= 0, line.actual <= 0, -line.actual


def set_budget(
    trans: Iterable[Transaction],
    old_category: Optional[str],
    new_category: str,
    amount: float,
    t_type: TransactionType,
    start: str,
    end: str,
    accounts: Iterable[Account] = (),
    id_factory: Callable[[str], str] = new_id,
) -> tuple[Transaction, ...]:
    in_period = by_period(start, end)
    updated = tuple(trans)

    if old_category and old_category != new_category:
        updated = tuple(
            replace(t, category=new_category) if in_period(t) and t.category == old_category else t
            for t in updated
        )

    holder_set = False
    result: list[Transaction] = []
    for t in updated:
        if in_period(t) and t.category == new_category:
            if not holder_set and (t.planned_amount > 0 or t.actual_amount == 0):
                holder_set = True
                t = replace(t, planned_amount=amount, type=t_type)
            elif t.planned_amount > 0:
                t = replace(t, planned_amount=0.0, type=t_type)
            else:
                t = replace(t, type=t_type)
        result.append(t)

    if not holder_set:
        result.append(Transaction(
            id=id_factory("budget"),
            name=f"{new_category} Budget",
            planned_amount=amount,
            actual_amount=0.0,
            type=t_type,
            category=new_category,
            date=start,
            account_id=default_account_id(accounts),
        ))
    return tuple(result)


def remove_budget(trans: Iterable[Transaction], category: str, start: str, end: str) -> tuple[Transaction, ...]:
    in_period = by_period(start, end)

    def targeted(t: Transaction) -> bool:
        return in_period(t) and t.category == category

    return tuple(
        replace(t, planned_amount=0.0) if targeted(t) else t
        for t in trans
        if not (targeted(t) and t.actual_amount == 0)
    )


def budget_for_category(trans: Iterable[Transaction], category: str, start: str, end: str) -> BudgetDraft:
    items = tuple(filter(by_category(category), filter_by_period(trans, start, end)))
    holder = next((t for t in items if t.planned_amount > 0), None)
    if holder is not None:
        t_type = holder.type
    else:
        t_type = items[0].type if items else TransactionType.EXPENSE
    return BudgetDraft(category, sum(t.planned_amount for t in items), t_type)


def budget_groups(trans: Iterable[Transaction], cats: Iterable[Category]) -> BudgetOverview:
    trans = tuple(t for t in trans if t.type not in _NOT_BUDGETED)
    cats = tuple(cats)

    names: dict[str, None] = {}
    for t in trans:
        names.setdefault(t.category)
    for c in cats:
        if not is_income_only(c):
            names.setdefault(c.name)

    stats = {name: [0.0, 0.0, TransactionType.EXPENSE] for name in names}
    for t in trans:
        s = stats[t.category]
        s[0] += t.planned_amount
        s[1] += t.actual_amount
        if t.type != TransactionType.EXPENSE:
            s[2] = t.type

    buckets: dict[TransactionType, list[BudgetLine]] = {g[2]: [] for g in GROUPS}
    for name, (planned, actual, t_type) in stats.items():
        if t_type == TransactionType.EXPENSE:
            types = resolve_category(cats, name).map(lambda c: c.types).get_or_else(())
            if TransactionType.FIXED_EXPENSE in types:
                t_type = TransactionType.FIXED_EXPENSE
            elif TransactionType.SAVING in types:
                t_type = TransactionType.SAVING
        buckets[t_type].append(BudgetLine(name, planned, actual, t_type, category_icon(cats, name)))

    groups = tuple(
        BudgetGroup(
            id=gid,
            title=title,
            lines=tuple(sorted(buckets[t_type], key=_line_order)),
            total_planned=sum(line.planned for line in buckets[t_type]),
            total_actual=sum(line.actual for line in buckets[t_type]),
        )
        for gid, title, t_type in GROUPS
    )
    return BudgetOverview(
        groups=groups,
        total_planned=sum(g.total_planned for g in groups),
        total_actual=sum(g.total_actual for g in groups),
    )


def _check_name(name: str) -> Either[str, str]:
    name = (name or "").strip()
    return Right(name) if name else Left("Category name is required.")


def _check_amount(amount) -> Either[str, float]:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return Left(f"Budget amount must be a number, got {amount!r}.")
    if math.isnan(value) or value < 0:
        return Left("Budget amount must be zero or more.")
    return Right(value)


def validate_budget_input(name: str, amount) -> Either[str, tuple[str, float]]:
    return _check_name(name).bind(lambda n: _check_amount(amount).map(lambda v: (n, v)))
