"""Reconcile projected occurrences with stored transactions."""
from collections.abc import Iterable

from engine.exceptions import ValidationError
from models.forecast import Event, Occurrence
from models.transaction import Transaction
from utils.date_helpers import parse_date

# Same-day ordering: confirmed facts, then pending forecasts, then projections.
_CONFIRMED, _FORECASTED, _PROJECTED = 0, 1, 2


def _transaction_event(tx: Transaction) -> Event:
    d = parse_date(tx.date)
    if d is None:
        raise ValidationError(f"Transaction {tx.id}: invalid date {tx.date!r}.", tx.id)
    amount = tx.effective_amount
    if amount is None:
        raise ValidationError(f"Transaction {tx.id}: no amount or forecasted amount.", tx.id)
    return Event(
        date=d,
        amount=amount,
        type=tx.type,
        description=tx.description,
        category=tx.category,
        account_id=tx.account_id,
        destination_account_id=tx.destination_account_id,
        source_recurring_id=tx.recurring_rule_id,
        transaction_id=tx.id,
        is_confirmed=not tx.forecasted,
    )


def _occurrence_event(occ: Occurrence) -> Event:
    return Event(
        date=occ.date,
        amount=occ.amount,
        type=occ.type,
        description=occ.name,
        category=occ.category,
        account_id=occ.account_id,
        destination_account_id=occ.destination_account_id,
        source_recurring_id=occ.source_recurring_id,
        occurrence_id=occ.id,
    )


def materialized_keys(transactions: Iterable[Transaction]) -> set[tuple]:
    """(recurring_rule_id, forecasted date) of every transaction created from a rule."""
    keys = set()
    for tx in transactions:
        if tx.recurring_rule_id is None:
            continue
        raw = tx.forecasted_date or tx.date
        d = parse_date(raw)
        if d is None:
            raise ValidationError(f"Transaction {tx.id}: invalid date {raw!r}.", tx.id)
        keys.add((tx.recurring_rule_id, d))
    return keys


def merge(occurrences: Iterable[Occurrence], transactions: Iterable[Transaction]) -> list[Event]:
    """Drop occurrences already materialized as transactions and merge the rest.

    Returns one chronologically sorted event stream.
    """
    transactions = list(transactions)
    keys = materialized_keys(transactions)

    ranked: list[tuple[int, Event]] = []
    for tx in transactions:
        ranked.append((_FORECASTED if tx.forecasted else _CONFIRMED, _transaction_event(tx)))
    for occ in occurrences:
        if (occ.source_recurring_id, occ.date) in keys:
            continue
        ranked.append((_PROJECTED, _occurrence_event(occ)))

    ranked.sort(key=lambda pair: (pair[1].date, pair[0]))
    return [event for _, event in ranked]
