"""Recurrence expansion: recurring rules -> dated occurrences.

Daily, weekly and biweekly rules step a fixed number of days. Monthly and
yearly rules are anchored on the start date and clamp to the end of short
months, so a rule starting Jan 31 posts Feb 28/29, Mar 31, Apr 30, ...
Frequencies outside the known set step monthly.
"""
from collections.abc import Iterable, Iterator
from datetime import date, timedelta

from engine.exceptions import ValidationError
from models.forecast import Occurrence
from models.recurring_rule import RecurringRule
from utils.constants import DAY_INTERVALS, MONTH_INTERVALS, OCCURRENCE_ID_DATE_FORMAT
from utils.date_helpers import add_months, parse_date

SATURDAY = 5
SUNDAY = 6


def adjust_for_weekend(d: date, policy: str) -> date:
    if policy == "next_weekday":
        if d.weekday() == SATURDAY:
            return d + timedelta(days=2)
        if d.weekday() == SUNDAY:
            return d + timedelta(days=1)
    return d


def occurrence_id(rule_id, d: date) -> str:
    return f"{rule_id}-{d.strftime(OCCURRENCE_ID_DATE_FORMAT)}"


def _cursor_dates(start: date, frequency: str) -> Iterator[date]:
    """Unbounded schedule of raw (unadjusted) dates for a frequency."""
    if frequency in DAY_INTERVALS:
        step = timedelta(days=DAY_INTERVALS[frequency])
        current = start
        while True:
            yield current
            current += step
    months = MONTH_INTERVALS.get(frequency, 1)
    k = 0
    while True:
        yield add_months(start, k * months)
        k += 1


def _rule_dates(rule: RecurringRule) -> tuple[date, date | None]:
    start = parse_date(rule.start_date)
    if start is None:
        raise ValidationError(
            f"Recurring rule {rule.id}: invalid start date {rule.start_date!r}.", rule.id
        )
    end = None
    if rule.end_date:
        end = parse_date(rule.end_date)
        if end is None:
            raise ValidationError(
                f"Recurring rule {rule.id}: invalid end date {rule.end_date!r}.", rule.id
            )
    if rule.type == "transfer" and rule.destination_account_id is None:
        raise ValidationError(
            f"Recurring rule {rule.id}: transfer has no destination account.", rule.id
        )
    return start, end


def iter_occurrences(rule: RecurringRule, horizon_end: date) -> Iterator[Occurrence]:
    """Lazily yield the occurrences of one rule up to horizon_end (inclusive)."""
    start, end = _rule_dates(rule)
    last = min(end, horizon_end) if end else horizon_end

    for cursor in _cursor_dates(start, rule.frequency):
        if cursor > last:
            return
        posted = adjust_for_weekend(cursor, rule.weekend_policy)
        yield Occurrence(
            id=occurrence_id(rule.id, posted),
            date=posted,
            amount=rule.amount,
            type=rule.type,
            name=rule.name,
            category=rule.category,
            account_id=rule.account_id,
            destination_account_id=rule.destination_account_id,
            source_recurring_id=rule.id,
        )


def expand(rules: Iterable[RecurringRule], horizon_end) -> list[Occurrence]:
    """Expand every rule up to horizon_end, in rule iteration order.

    All rules are validated before any occurrence is produced, so a bad rule
    never yields a partial result.
    """
    end = parse_date(horizon_end)
    if end is None:
        raise ValidationError(f"Invalid horizon end {horizon_end!r}.")
    rules = list(rules)
    for rule in rules:
        _rule_dates(rule)

    occurrences: list[Occurrence] = []
    for rule in rules:
        occurrences.extend(iter_occurrences(rule, end))
    return occurrences
