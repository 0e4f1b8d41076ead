"""Unit tests for balance projection"""

from datetime import date
from decimal import Decimal

import pytest

from engine.exceptions import ValidationError
from engine.projector import index_overrides, project, summarize
from models.account import Account
from models.forecast import Event

JAN = date(2024, 1, 1)


def event(d, amount, type_="expense", account_id=1, destination=None, description="", confirmed=False):
    return Event(
        date=d,
        amount=Decimal(str(amount)),
        type=type_,
        description=description or type_,
        category="",
        account_id=account_id,
        destination_account_id=destination,
        is_confirmed=confirmed,
    )


def test_expense_then_income_scenario(checking):
    """Start 1000, -200 on day 10, +50 on day 20"""
    events = [
        event(date(2024, 1, 10), 200, "expense"),
        event(date(2024, 1, 20), 50, "income"),
    ]
    result = project([checking], events, [], 1, start=JAN, seed_balance=Decimal("1000"))
    jan = result[0].for_account(1)

    assert jan.starting == Decimal("1000")
    assert jan.ending == Decimal("850")
    assert jan.min == Decimal("800")
    assert jan.max == Decimal("1000")
    assert jan.daily_balances[0] == Decimal("1000")
    assert jan.balance_on(10) == Decimal("800")
    assert jan.balance_on(19) == Decimal("800")
    assert jan.balance_on(20) == Decimal("850")


def test_month_days_cover_calendar_month(checking):
    result = project([checking], [], [], 2, start=date(2024, 2, 14))
    feb, mar = (m.for_account(1) for m in result)

    assert [m.month for m in result] == ["2024-02", "2024-03"]
    assert len(feb.daily_balances) == len(feb.month_days) == 29
    assert feb.month_days[0] == "2024-02-01"
    assert feb.month_days[-1] == "2024-02-29"
    assert len(mar.month_days) == 31


def test_seed_balance_only_for_first_month(checking):
    result = project([checking], [], [], 3, start=JAN)
    assert [m.for_account(1).starting for m in result] == [Decimal("2000")] * 3


def test_balance_continuity(checking):
    """Each month starts where the previous one ended"""
    events = [event(date(2024, m, 5), 300) for m in (1, 2, 3)]
    result = project([checking], events, [], 3, start=JAN)
    months = [m.for_account(1) for m in result]

    assert months[0].ending == Decimal("1700")
    for prev, nxt in zip(months, months[1:]):
        assert nxt.starting == prev.ending
    assert months[2].ending == Decimal("1100")


def test_interest_added_to_starting_and_every_day(savings):
    """12% annual -> 1% of the previous ending, reflected in all daily entries"""
    events = [event(date(2024, 2, 10), 110, account_id=2)]
    result = project([savings], events, [], 2, start=JAN, seed_balance=Decimal("1000"))
    jan, feb = (m.for_account(2) for m in result)

    assert jan.interest == Decimal("0")
    assert feb.interest == Decimal("10")
    assert feb.starting == Decimal("1010")
    assert all(b == Decimal("1010") for b in feb.daily_balances[:9])
    assert all(b == Decimal("900") for b in feb.daily_balances[9:])
    assert feb.ledger_entries[0].kind == "interest"
    assert feb.ledger_entries[0].delta == Decimal("10")


def test_first_of_month_override_replaces_carry_and_interest(savings, override):
    overrides = [override(2, "2024-02-01", 5000)]
    result = project([savings], [], overrides, 3, start=JAN, seed_balance=Decimal("1000"))
    jan, feb, mar = (m.for_account(2) for m in result)

    assert feb.starting == Decimal("5000")
    assert feb.interest == Decimal("0")
    assert mar.interest == Decimal("50")
    assert mar.starting == Decimal("5050")


def test_mid_month_override_resets_that_day_only(checking, override):
    events = [
        event(date(2024, 1, 5), 100),
        event(date(2024, 1, 10), 300),
        event(date(2024, 1, 12), 50),
    ]
    overrides = [override(1, "2024-01-10", 5000)]
    jan = project([checking], events, overrides, 1, start=JAN)[0].for_account(1)

    assert jan.balance_on(9) == Decimal("1900")
    assert jan.balance_on(10) == Decimal("5000")
    assert jan.ending == Decimal("4950")

    row = next(e for e in jan.ledger_entries if e.kind == "override")
    assert row.date == date(2024, 1, 10)
    assert row.delta == Decimal("5000") - Decimal("1600")
    assert row.balance == Decimal("5000")


def test_override_wins_even_with_interest(savings, override):
    overrides = [override(2, "2024-02-15", 777)]
    result = project([savings], [], overrides, 2, start=JAN, seed_balance=Decimal("1000"))
    feb = result[1].for_account(2)

    assert feb.interest == Decimal("10")
    assert feb.balance_on(14) == Decimal("1010")
    assert feb.balance_on(15) == Decimal("777")
    assert feb.ending == Decimal("777")


def test_day_one_events_apply_before_day_one_override(checking, override):
    """An override is the balance at the end of its day"""
    events = [event(date(2024, 1, 1), 100)]
    overrides = [override(1, "2024-01-01", 500)]
    jan = project([checking], events, overrides, 1, start=JAN)[0].for_account(1)

    assert jan.starting == Decimal("500")
    assert jan.daily_balances[0] == Decimal("500")
    assert [e.kind for e in jan.ledger_entries] == ["expense", "override"]
    assert jan.ledger_entries[1].delta == Decimal("100")


def test_duplicate_overrides_first_wins(override):
    first = override(1, "2024-01-10", 500)
    second = override(1, "2024-01-10", 700)
    other = override(1, "2024-01-05", 100)

    index = index_overrides([first, other, second])

    assert index[(1, date(2024, 1, 10))] is first
    assert index[(1, date(2024, 1, 5))] is other


def test_invalid_override_date_raises(checking, override):
    with pytest.raises(ValidationError):
        project([checking], [], [override(1, "tomorrow", 1)], 1, start=JAN)


def test_transfer_conservation(checking):
    savings_account = Account(id=2, name="Savings")
    events = [event(date(2024, 1, 15), 250, "transfer", account_id=1, destination=2)]
    result = project([checking, savings_account], events, [], 1, start=JAN)
    src, dst = result[0].for_account(1), result[0].for_account(2)

    assert src.ending == Decimal("1750")
    assert dst.ending == Decimal("2250")
    src_delta = src.ledger_entries[0].delta
    dst_delta = dst.ledger_entries[0].delta
    assert src_delta + dst_delta == 0


def test_unrelated_and_unknown_accounts_are_ignored(checking):
    events = [
        event(date(2024, 1, 3), 999, account_id=404),
        event(date(2024, 1, 4), 999, "transfer", account_id=404, destination=405),
    ]
    jan = project([checking], events, [], 1, start=JAN)[0].for_account(1)

    assert jan.ending == Decimal("2000")
    assert jan.ledger_entries == []


def test_no_accounts_still_returns_every_month():
    result = project([], [], [], 3, start=JAN)

    assert [m.month for m in result] == ["2024-01", "2024-02", "2024-03"]
    assert all(m.accounts_data == [] for m in result)


def test_account_filter(checking, savings):
    result = project([checking, savings], [], [], 2, account_filter=lambda aid: aid == 2, start=JAN)
    assert all([a.account.id for a in m.accounts_data] == [2] for m in result)


def test_ledger_running_balance(checking):
    events = [
        event(date(2024, 1, 2), 100, "income", description="Pay", confirmed=True),
        event(date(2024, 1, 2), 30, "expense", description="Coffee"),
    ]
    jan = project([checking], events, [], 1, start=JAN)[0].for_account(1)

    assert [(e.description, e.delta, e.balance) for e in jan.ledger_entries] == [
        ("Pay", Decimal("100"), Decimal("2100")),
        ("Coffee", Decimal("-30"), Decimal("2070")),
    ]
    assert jan.ledger_entries[0].is_confirmed
    assert not jan.ledger_entries[1].is_confirmed


def test_negative_horizon_rejected(checking):
    with pytest.raises(ValidationError):
        project([checking], [], [], -1, start=JAN)


def test_summarize_tracks_lowest_month(checking, savings):
    events = [
        event(date(2024, 2, 10), 1500),
        event(date(2024, 3, 1), 2000, "income"),
    ]
    result = project([checking, savings], events, [], 3, start=JAN, seed_balance=Decimal("1000"))
    summary = summarize(result)

    assert summary[1].lowest == Decimal("-500")
    assert summary[1].lowest_month == "2024-02"
    assert summary[1].highest == Decimal("1500")
    assert summary[1].final == Decimal("1500")
    assert summary[2].total_interest == Decimal("10") + Decimal("10.10")
