from itertools import count

import pytest

from budgetflow.domain import PeriodSettings, Recurrence, RecurrenceFrequency, Transaction, TransactionType
from budgetflow.periods import filter_by_period
from budgetflow.rollover import (
    RolloverMode,
    is_duplicate,
    is_template,
    select_templates,
    start_new_period,
)


def make_tx(id, name, date, planned=0.0, actual=0.0, t_type=TransactionType.EXPENSE,
            category="Housing", recurrence=None):
    return Transaction(id=id, name=name, planned_amount=planned, actual_amount=actual, type=t_type,
                       category=category, date=date, recurrence=recurrence, account_id="acc-1")


def ids():
    counter = count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


MARCH = PeriodSettings("2024-03-01", "2024-03-31")
RENT = make_tx("rent", "Rent", "2024-03-01", planned=1200, actual=1200, t_type=TransactionType.FIXED_EXPENSE)
COFFEE = make_tx("coffee", "Coffee", "2024-03-12", actual=4.5, category="Coffee & Drinks")
GYM = make_tx("gym", "Gym", "2024-03-31", actual=30, category="Health & Wellness",
              recurrence=Recurrence(RecurrenceFrequency.MONTHLY, "2024-04-30"))
OLD = make_tx("old", "Rent", "2024-02-01", planned=1200, actual=1200)


def test_template_selection():
    assert is_template(RENT)
    assert is_template(GYM)
    assert not is_template(COFFEE)
    assert select_templates((OLD, RENT, COFFEE, GYM), "2024-03-01", "2024-03-31") == (RENT, GYM)


def test_duplicate_uses_tolerance():
    near = make_tx("x", "Rent", "2024-04-01", planned=1200.004)
    far = make_tx("y", "Rent", "2024-04-01", planned=1200.02)
    other_cat = make_tx("z", "Rent", "2024-04-01", planned=1200, category="Other")
    assert is_duplicate(RENT, (near,))
    assert not is_duplicate(RENT, (far,))
    assert not is_duplicate(RENT, (other_cat,))


def test_rollover_scenario_rent_into_april():
    ledger = (RENT, COFFEE)
    result = start_new_period(ledger, MARCH, "2024-04-01", "2024-04-30", RolloverMode.ROLLOVER, ids())

    april = filter_by_period(result.transactions, "2024-04-01", "2024-04-30")
    assert len(april) == 1
    rolled = april[0]
    assert rolled.name == "Rent"
    assert rolled.category == "Housing"
    assert rolled.planned_amount == 1200
    assert rolled.actual_amount == 0
    assert rolled.date == "2024-04-01"
    assert rolled.type == TransactionType.FIXED_EXPENSE
    assert rolled.account_id == "acc-1"
    assert rolled.id == "auto-1"
    assert result.transactions[:2] == ledger
    assert result.settings == PeriodSettings("2024-04-01", "2024-04-30")
    assert result.created == (rolled,)


def test_rollover_clamps_day_into_february():
    jan = PeriodSettings("2024-01-01", "2024-01-31")
    end_of_month = make_tx("loan", "Loan", "2024-01-31", planned=300)
    leap = start_new_period((end_of_month,), jan, "2024-02-01", "2024-02-29", RolloverMode.ROLLOVER, ids())
    assert leap.created[0].date == "2024-02-29"

    jan23 = PeriodSettings("2023-01-01", "2023-01-31")
    plain = make_tx("loan", "Loan", "2023-01-31", planned=300)
    result = start_new_period((plain,), jan23, "2023-02-01", "2023-02-28", RolloverMode.ROLLOVER, ids())
    assert result.created[0].date == "2023-02-28"


def test_rollover_keeps_recurrence_and_clamps_31st():
    result = start_new_period((GYM,), MARCH, "2024-04-01", "2024-04-30", RolloverMode.ROLLOVER, ids())
    assert result.created[0].date == "2024-04-30"
    assert result.created[0].recurrence == GYM.recurrence


def test_rollover_twice_creates_no_duplicates():
    first = start_new_period((RENT, GYM), MARCH, "2024-04-01", "2024-04-30", RolloverMode.ROLLOVER, ids())
    second = start_new_period(first.transactions, MARCH, "2024-04-01", "2024-04-30", RolloverMode.ROLLOVER, ids())
    assert second.created == ()
    assert second.transactions == first.transactions


def test_rollover_falls_back_to_period_start_on_bad_date():
    broken = make_tx("broken", "Insurance", "2024-03-1x", planned=50, category="Insurance")
    result = start_new_period((RENT, broken), MARCH, "2024-04-01", "2024-04-30", RolloverMode.ROLLOVER, ids())
    dates = {t.name: t.date for t in result.created}
    assert dates == {"Rent": "2024-04-01", "Insurance": "2024-04-01"}
    assert result.fallbacks == ("broken",)


def test_blank_clears_only_target_range():
    stray = make_tx("stray", "Early bill", "2024-04-03", actual=20)
    ledger = (OLD, RENT, COFFEE, stray)
    result = start_new_period(ledger, MARCH, "2024-04-01", "2024-04-30", RolloverMode.BLANK)
    assert result.transactions == (OLD, RENT, COFFEE)
    assert result.removed == (stray,)
    assert result.created == ()
    assert result.settings.start_date == "2024-04-01"


@pytest.mark.parametrize("mode", [RolloverMode.BLANK, RolloverMode.ROLLOVER])
def test_history_before_new_period_survives(mode):
    ledger = (OLD, RENT, COFFEE, GYM)
    result = start_new_period(ledger, MARCH, "2024-04-01", "2024-04-30", mode, ids())
    before = [t for t in ledger if t.date < "2024-04-01"]
    for t in before:
        assert t in result.transactions


def test_start_after_end_raises():
    with pytest.raises(ValueError):
        start_new_period((RENT,), MARCH, "2024-05-01", "2024-04-30", RolloverMode.ROLLOVER)
