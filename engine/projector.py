"""Balance projection over a horizon of calendar months.

For each account the months are folded in order, each month's ending
balance seeding the next month's starting balance:

* A balance override dated on the first of the month replaces the
  carried-forward balance and suppresses interest for that month.
* Otherwise the previous ending (or the seed balance for the first month)
  is carried forward, plus one month of simple interest when the account
  has a rate.
* Each day applies the signed sum of its events, then resets to the
  override dated that day, if any. Interest is part of the starting balance
  and therefore of every daily entry; override days always equal the
  override amount.
"""
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal

from engine.exceptions import ValidationError
from models.account import Account
from models.balance_override import BalanceOverride
from models.forecast import (
    AccountProjection, Event, HorizonSummary, LedgerEntry, MonthlyProjection,
)
from utils.constants import SEED_BALANCE
from utils.currency import to_decimal
from utils.date_helpers import days_in_month, format_date, format_month, month_starts, parse_date, today

ZERO = Decimal("0")


def index_overrides(overrides: Iterable[BalanceOverride]) -> dict[tuple, BalanceOverride]:
    """Map (account_id, date) -> override.

    Overrides are stable-sorted by date; for duplicates of one
    (account_id, date) the first one encountered wins.
    """
    parsed = []
    for ov in overrides:
        d = parse_date(ov.date)
        if d is None:
            raise ValidationError(
                f"Balance override for account {ov.account_id}: invalid date {ov.date!r}.",
                ov.id,
            )
        parsed.append((d, ov))
    parsed.sort(key=lambda pair: pair[0])

    index: dict[tuple, BalanceOverride] = {}
    for d, ov in parsed:
        index.setdefault((ov.account_id, d), ov)
    return index


def _events_by_day(events: Iterable[Event]) -> dict[date, list[Event]]:
    by_day: dict[date, list[Event]] = defaultdict(list)
    for event in sorted(events, key=lambda e: e.date):
        by_day[event.date].append(event)
    return by_day


def project_month(
    account: Account,
    month_start: date,
    events_by_day: dict[date, list[Event]],
    overrides: dict[tuple, BalanceOverride],
    previous_ending: Decimal | None,
    seed_balance: Decimal = SEED_BALANCE,
) -> AccountProjection:
    days = days_in_month(month_start.year, month_start.month)
    interest = ZERO

    opening_override = overrides.get((account.id, days[0]))
    if opening_override is not None:
        starting = to_decimal(opening_override.amount)
    elif previous_ending is None:
        starting = to_decimal(seed_balance)
    else:
        starting = previous_ending
        if account.monthly_rate:
            interest = previous_ending * account.monthly_rate
            starting += interest

    ledger: list[LedgerEntry] = []
    if interest:
        ledger.append(LedgerEntry(days[0], "Interest", interest, starting, "interest", True))

    balance = starting
    daily: list[Decimal] = []
    for day in days:
        for event in events_by_day.get(day, ()):
            if not event.touches(account.id):
                continue
            delta = event.delta_for(account.id)
            balance += delta
            ledger.append(
                LedgerEntry(day, event.description, delta, balance, event.type, event.is_confirmed)
            )
        override = overrides.get((account.id, day))
        if override is not None:
            amount = to_decimal(override.amount)
            ledger.append(
                LedgerEntry(day, "Balance override", amount - balance, amount, "override", True)
            )
            balance = amount
        daily.append(balance)

    return AccountProjection(
        account=account,
        month=format_month(month_start),
        starting=starting,
        ending=daily[-1],
        min=min(daily),
        max=max(daily),
        interest=interest,
        daily_balances=daily,
        month_days=[format_date(d) for d in days],
        ledger_entries=ledger,
    )


def project(
    accounts: Iterable[Account],
    events: Iterable[Event],
    overrides: Iterable[BalanceOverride],
    horizon_months: int,
    account_filter: Callable[[int], bool] | None = None,
    start=None,
    seed_balance: Decimal = SEED_BALANCE,
) -> list[MonthlyProjection]:
    """Project every (filtered) account over horizon_months months.

    Returns one MonthlyProjection per month, starting with the month that
    contains `start` (default: today). A month always appears, even when no
    account qualifies.
    """
    if horizon_months < 0:
        raise ValidationError(f"Horizon must be zero or more months, got {horizon_months}.")
    first = parse_date(start) if start is not None else today()
    if first is None:
        raise ValidationError(f"Invalid projection start {start!r}.")

    selected = [a for a in accounts if account_filter is None or account_filter(a.id)]
    by_day = _events_by_day(events)
    override_index = index_overrides(overrides)
    months = month_starts(first, horizon_months)

    results = [MonthlyProjection(month=format_month(m)) for m in months]
    for account in selected:
        previous: Decimal | None = None
        for result, month_start in zip(results, months):
            month = project_month(account, month_start, by_day, override_index, previous, seed_balance)
            result.accounts_data.append(month)
            previous = month.ending
    return results


def summarize(projections: Iterable[MonthlyProjection]) -> dict[int, HorizonSummary]:
    """Lowest/highest/final balance and total interest per account over the horizon."""
    summaries: dict[int, HorizonSummary] = {}
    for month in projections:
        for data in month.accounts_data:
            current = summaries.get(data.account.id)
            if current is None:
                summaries[data.account.id] = HorizonSummary(
                    account=data.account,
                    lowest=data.min,
                    lowest_month=data.month,
                    highest=data.max,
                    final=data.ending,
                    total_interest=data.interest,
                )
                continue
            if data.min < current.lowest:
                current.lowest = data.min
                current.lowest_month = data.month
            current.highest = max(current.highest, data.max)
            current.final = data.ending
            current.total_interest += data.interest
    return summaries
