"""Unit tests for occurrence/transaction reconciliation"""

from datetime import date
from decimal import Decimal

import pytest

from engine.exceptions import ValidationError
from engine.expander import expand
from engine.merge import materialized_keys, merge


def test_transaction_supersedes_occurrence(make_rule, make_transaction):
    """Exactly one event remains for a (rule, date) pair"""
    occurrences = expand([make_rule(id=5)], date(2024, 3, 31))
    tx = make_transaction(
        id=99, recurring_rule_id=5, date="2024-02-15",
        forecasted_date="2024-02-15", amount=Decimal("120"),
    )

    events = merge(occurrences, [tx])
    feb = [e for e in events if e.date == date(2024, 2, 15)]

    assert len(events) == 3
    assert len(feb) == 1
    assert feb[0].transaction_id == 99
    assert feb[0].amount == Decimal("120")
    assert feb[0].kind == "transaction"


def test_manual_transaction_does_not_suppress(make_rule, make_transaction):
    occurrences = expand([make_rule(id=5)], date(2024, 1, 31))
    tx = make_transaction(recurring_rule_id=None, date="2024-01-15")

    events = merge(occurrences, [tx])
    assert len(events) == 2


def test_key_uses_forecasted_date(make_rule, make_transaction):
    """A confirmation posted on another day still suppresses its occurrence"""
    occurrences = expand([make_rule(id=5)], date(2024, 2, 29))
    tx = make_transaction(recurring_rule_id=5, date="2024-02-16", forecasted_date="2024-02-15")

    events = merge(occurrences, [tx])

    assert [e.date for e in events] == [date(2024, 1, 15), date(2024, 2, 16)]


def test_key_is_a_tuple_not_a_joined_string(make_transaction):
    """Rule ids containing a dash stay distinct from their prefixes"""
    keys = materialized_keys([
        make_transaction(id=1, recurring_rule_id="1-2", date="2024-01-15"),
        make_transaction(id=2, recurring_rule_id="1", date="2024-01-15"),
    ])
    assert keys == {("1-2", date(2024, 1, 15)), ("1", date(2024, 1, 15))}


def test_confirmed_flag(make_transaction, make_rule):
    occurrences = expand([make_rule(id=5, start_date="2024-03-01")], date(2024, 3, 31))
    confirmed = make_transaction(id=1, date="2024-01-05", forecasted=False)
    pending = make_transaction(
        id=2, date="2024-01-06", forecasted=True, amount=None, forecasted_amount=Decimal("40"),
    )

    events = merge(occurrences, [confirmed, pending])

    assert [e.is_confirmed for e in events] == [True, False, False]
    assert events[1].amount == Decimal("40")
    assert events[2].kind == "occurrence"


def test_events_are_chronological(make_rule, make_transaction):
    occurrences = expand([make_rule(id=5, start_date="2024-01-10")], date(2024, 3, 31))
    txs = [
        make_transaction(id=1, date="2024-03-01"),
        make_transaction(id=2, date="2024-01-01"),
    ]
    dates = [e.date for e in merge(occurrences, txs)]
    assert dates == sorted(dates)


def test_same_day_ordering(make_rule, make_transaction):
    """Confirmed, then forecasted, then projected on the same day"""
    occurrences = expand([make_rule(id=5, start_date="2024-01-15")], date(2024, 1, 31))
    forecasted = make_transaction(id=1, date="2024-01-15", forecasted=True)
    confirmed = make_transaction(id=2, date="2024-01-15", forecasted=False)

    events = merge(occurrences, [forecasted, confirmed])
    assert [e.transaction_id for e in events] == [2, 1, None]


def test_invalid_transaction_date_raises(make_transaction):
    with pytest.raises(ValidationError) as excinfo:
        merge([], [make_transaction(id=8, date="15/01/2024")])
    assert excinfo.value.record_id == 8


def test_transaction_without_any_amount_raises(make_transaction):
    with pytest.raises(ValidationError):
        merge([], [make_transaction(amount=None, forecasted_amount=None)])
