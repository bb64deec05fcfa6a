"""Period filter and calendar-month navigation.

Dates are ``YYYY-MM-DD`` strings throughout. Range checks compare the
strings directly, which orders them like calendar dates and never goes
through a timezone. Month arithmetic works on explicit year/month/day
integers.
"""
import calendar
from datetime import date
from typing import Callable, Iterable, Iterator, Literal, Optional

from budgetflow.domain import Transaction
from budgetflow.functional import Either, Left, Right

Direction = Literal["prev", "next"]


def parse_ymd(value: str) -> tuple[int, int, int]:
    parts = str(value).split("-")
    if len(parts) != 3:
        raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
    y, m, d = (int(p) for p in parts)
    if not 1 <= m <= 12 or not 1 <= d <= days_in_month(y, m):
        raise ValueError(f"not a calendar date: {value!r}")
    return y, m, d


def format_ymd(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[str, str]:
    return format_ymd(year, month, 1), format_ymd(year, month, days_in_month(year, month))


def current_month(today: Optional[date] = None) -> tuple[str, str]:
    today = today or date.today()
    return month_bounds(today.year, today.month)


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    y, m0 = divmod(year * 12 + (month - 1) + delta, 12)
    return y, m0 + 1


def shift_month(current_start: str, direction: Direction) -> tuple[str, str]:
    """Whole calendar month before or after the one containing ``current_start``."""
    y, m, _ = parse_ymd(current_start)
    y, m = add_months(y, m, 1 if direction == "next" else -1)
    return month_bounds(y, m)


def next_period(current_start: str) -> tuple[str, str]:
    return shift_month(current_start, "next")


def shift_into_month(original: str, target_start: str) -> str:
    """Keep the day-of-month of ``original`` inside the month of ``target_start``.

    Days past the end of the target month clamp to its last day, so the 31st
    lands on the 30th, 29th or 28th instead of spilling into the next month.
    """
    _, _, day = parse_ymd(original)
    y, m, _ = parse_ymd(target_start)
    return format_ymd(y, m, min(day, days_in_month(y, m)))


def in_period(value: str, start: str, end: str) -> bool:
    return start <= value <= end


def by_period(start: str, end: str):
    def _filter(t: Transaction) -> bool:
        return in_period(t.date, start, end)

    return _filter


def by_category(name: str):
    def _filter(t: Transaction) -> bool:
        return t.category == name

    return _filter


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def filter_by_period(trans: Iterable[Transaction], start: str, end: str) -> tuple[Transaction, ...]:
    return tuple(iter_transactions(trans, by_period(start, end)))


def validate_period(start: str, end: str) -> Either[str, tuple[str, str]]:
    try:
        parse_ymd(start)
        parse_ymd(end)
    except ValueError:
        return Left("Dates must be valid YYYY-MM-DD values.")
    if start > end:
        return Left("Start date must be before end date.")
    return Right((start, end))
