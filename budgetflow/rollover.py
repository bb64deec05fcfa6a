"""New-period transition: blank start or template rollover."""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable

from budgetflow.domain import PeriodSettings, Transaction, new_id
from budgetflow.periods import by_period, filter_by_period, shift_into_month

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01


class RolloverMode(str, Enum):
    BLANK = "blank"
    ROLLOVER = "rollover"


@dataclass(frozen=True)
class RolloverResult:
    transactions: tuple[Transaction, ...]
    settings: PeriodSettings
    created: tuple[Transaction, ...] = ()
    removed: tuple[Transaction, ...] = ()
    fallbacks: tuple[str, ...] = ()  # template ids dated at the period start after a date error


def is_template(t: Transaction) -> bool:
    return t.planned_amount > 0 or t.recurrence is not None


def select_templates(trans: Iterable[Transaction], start: str, end: str) -> tuple[Transaction, ...]:
    return tuple(t for t in filter_by_period(trans, start, end) if is_template(t))


def is_duplicate(template: Transaction, existing: Iterable[Transaction]) -> bool:
    # name + category + planned amount only; two distinct templates sharing all three merge
    return any(
        ex.name == template.name
        and ex.category == template.category
        and abs(ex.planned_amount - template.planned_amount) < AMOUNT_TOLERANCE
        for ex in existing
    )


def blank_period(trans: tuple[Transaction, ...], new_start: str, new_end: str):
    in_target = by_period(new_start, new_end)
    kept = tuple(t for t in trans if not in_target(t))
    removed = tuple(t for t in trans if in_target(t))
    return kept, removed


def roll_templates(
    trans: tuple[Transaction, ...],
    settings: PeriodSettings,
    new_start: str,
    new_end: str,
    id_factory: Callable[[str], str] = new_id,
):
    templates = select_templates(trans, settings.start_date, settings.end_date)
    existing = filter_by_period(trans, new_start, new_end)

    created: list[Transaction] = []
    fallbacks: list[str] = []
    for template in templates:
        try:
            shifted = shift_into_month(template.date, new_start)
        except (ValueError, TypeError) as e:
            logger.warning("Could not shift %s (%r): %s; using %s", template.id, template.date, e, new_start)
            shifted = new_start
            fallbacks.append(template.id)

        if is_duplicate(template, existing):
            logger.debug("Skipping %r, already present in %s..%s", template.name, new_start, new_end)
            continue

        created.append(replace(template, id=id_factory("auto"), date=shifted, actual_amount=0.0))

    return trans + tuple(created), tuple(created), tuple(fallbacks)


def start_new_period(
    transactions: Iterable[Transaction],
    settings: PeriodSettings,
    new_start: str,
    new_end: str,
    mode: RolloverMode,
    id_factory: Callable[[str], str] = new_id,
) -> RolloverResult:
    if new_start > new_end:
        raise ValueError(f"period start {new_start} is after end {new_end}")

    trans = tuple(transactions)
    new_settings = replace(settings, start_date=new_start, end_date=new_end)

    if RolloverMode(mode) == RolloverMode.BLANK:
        kept, removed = blank_period(trans, new_start, new_end)
        logger.info("Blank period %s..%s, cleared %d entries", new_start, new_end, len(removed))
        return RolloverResult(kept, new_settings, removed=removed)

    updated, created, fallbacks = roll_templates(trans, settings, new_start, new_end, id_factory)
    logger.info("Rolled %d templates into %s..%s", len(created), new_start, new_end)
    return RolloverResult(updated, new_settings, created=created, fallbacks=fallbacks)
