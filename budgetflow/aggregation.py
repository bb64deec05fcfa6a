import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from itertools import islice
from typing import Iterable, Iterator, Optional

from budgetflow.constants import OTHER_CATEGORY
from budgetflow.domain import EXPENSE_TYPES, SavingsGoal, Transaction, TransactionType
from budgetflow.periods import parse_ymd


@dataclass(frozen=True)
class Summary:
    total_income: float
    total_expenses: float   # EXPENSE + FIXED_EXPENSE
    total_savings: float
    variable_expenses: float  # EXPENSE only, included in total_expenses
    balance: float


@dataclass(frozen=True)
class SpendingInsights:
    days_left: int
    daily_budget: float
    weekly_budget: float


@dataclass(frozen=True)
class CategoryShare:
    name: str
    value: float
    percent: float


@dataclass(frozen=True)
class BudgetRow:
    name: str
    planned: float
    actual: float


@dataclass(frozen=True)
class MonthlyAggregate:
    month: str  # YYYY-MM
    income: float
    expenses: float
    savings: float
    net: float
    category_breakdown: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GoalProgress:
    total_saved: float
    percentage: float
    remaining: float
    has_target: bool


@dataclass(frozen=True)
class CashFlow:
    income_pct: float
    expenses_pct: float
    savings_pct: float
    net: float


def _actual_of(trans: Iterable[Transaction], *types: TransactionType) -> float:
    return sum(t.actual_amount for t in trans if t.type in types)


def summarize(trans: Iterable[Transaction]) -> Summary:
    trans = tuple(trans)
    income = _actual_of(trans, TransactionType.INCOME)
    savings = _actual_of(trans, TransactionType.SAVING)
    fixed = _actual_of(trans, TransactionType.FIXED_EXPENSE)
    variable = _actual_of(trans, TransactionType.EXPENSE)
    expenses = fixed + variable
    return Summary(
        total_income=income,
        total_expenses=expenses,
        total_savings=savings,
        variable_expenses=variable,
        balance=income - (expenses + savings),
    )


def spending_insights(balance: float, period_end: str, today: Optional[date] = None) -> SpendingInsights:
    """Daily and weekly allowance for what is left of the period.

    Days are counted from the start of ``today`` to the end of
    ``period_end``, rounded up, and never less than one.
    """
    today = today or date.today()
    y, m, d = parse_ymd(period_end)
    end = datetime(y, m, d) + timedelta(days=1) - timedelta(milliseconds=1)
    start = datetime(today.year, today.month, today.day)
    days_left = max(1, math.ceil((end - start) / timedelta(days=1)))
    daily = balance / days_left if balance > 0 else 0.0
    return SpendingInsights(days_left=days_left, daily_budget=daily, weekly_budget=daily * 7)


def category_breakdown(trans: Iterable[Transaction]) -> tuple[CategoryShare, ...]:
    totals: dict[str, float] = defaultdict(float)
    for t in trans:
        if t.type in EXPENSE_TYPES:
            totals[t.category or OTHER_CATEGORY] += t.actual_amount

    ordered = sorted(((k, v) for k, v in totals.items() if v > 0), key=lambda kv: kv[1], reverse=True)
    total = sum(v for _, v in ordered)
    return tuple(
        CategoryShare(name, value, (value / total) * 100 if total > 0 else 0.0)
        for name, value in ordered
    )


def budget_vs_actual(trans: Iterable[Transaction]) -> tuple[BudgetRow, ...]:
    planned: dict[str, float] = defaultdict(float)
    actual: dict[str, float] = defaultdict(float)
    for t in trans:
        if t.type in EXPENSE_TYPES:
            key = t.category or OTHER_CATEGORY
            planned[key] += t.planned_amount
            actual[key] += t.actual_amount

    rows = (BudgetRow(name, planned[name], actual[name]) for name in planned)
    return tuple(sorted(rows, key=lambda r: r.actual, reverse=True))


def top_categories(rows: Iterable[BudgetRow], k: int) -> Iterator[BudgetRow]:
    yield from islice(rows, max(0, k))


def monthly_rollup(trans: Iterable[Transaction]) -> tuple[MonthlyAggregate, ...]:
    buckets: dict[str, dict] = {}
    for t in trans:
        if t.type == TransactionType.TRANSFER:
            continue
        if not isinstance(t.date, str) or len(t.date) < 7:
            continue
        b = buckets.setdefault(
            t.date[:7], {"income": 0.0, "expenses": 0.0, "savings": 0.0, "cats": defaultdict(float)}
        )
        if t.type == TransactionType.INCOME:
            b["income"] += t.actual_amount
        elif t.type == TransactionType.SAVING:
            b["savings"] += t.actual_amount
        else:
            b["expenses"] += t.actual_amount
            b["cats"][t.category or OTHER_CATEGORY] += t.actual_amount

    return tuple(
        MonthlyAggregate(
            month=month,
            income=b["income"],
            expenses=b["expenses"],
            savings=b["savings"],
            net=b["income"] - (b["expenses"] + b["savings"]),
            category_breakdown=dict(b["cats"]),
        )
        for month, b in sorted(buckets.items(), reverse=True)
    )


def recent_transactions(trans: Iterable[Transaction], limit: int = 5) -> tuple[Transaction, ...]:
    return tuple(sorted(trans, key=lambda t: t.date, reverse=True)[: max(0, limit)])


def goal_progress(goal: SavingsGoal, trans: Iterable[Transaction]) -> GoalProgress:
    saved = goal.initial_amount + sum(
        t.actual_amount
        for t in trans
        if t.type == TransactionType.SAVING
        and t.category == goal.category
        and (not goal.sub_category or t.sub_category == goal.sub_category)
    )
    has_target = goal.target_amount > 0
    return GoalProgress(
        total_saved=saved,
        percentage=min(saved / goal.target_amount * 100, 100.0) if has_target else 0.0,
        remaining=max(goal.target_amount - saved, 0.0) if has_target else 0.0,
        has_target=has_target,
    )


def cash_flow(summary: Summary) -> CashFlow:
    outflow = summary.total_expenses + summary.total_savings
    base = max(summary.total_income, outflow) or 1
    return CashFlow(
        income_pct=summary.total_income / base * 100,
        expenses_pct=summary.total_expenses / base * 100,
        savings_pct=summary.total_savings / base * 100,
        net=summary.balance,
    )
