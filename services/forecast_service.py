"""Read a consistent snapshot from storage and run expand -> merge -> project."""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from database.account_dao import AccountDAO
from database.balance_override_dao import BalanceOverrideDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from engine.exceptions import NotFoundError, ValidationError
from engine.expander import expand
from engine.merge import merge
from engine.projector import project, summarize
from models.account import Account
from models.balance_override import BalanceOverride
from models.forecast import Event, HorizonSummary, MonthlyProjection
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from utils.constants import DEFAULT_HORIZON_MONTHS, SEED_BALANCE
from utils.date_helpers import first_of_month, format_month, horizon_end, parse_date, today


@dataclass
class ForecastSnapshot:
    accounts: list[Account]
    rules: list[RecurringRule]
    transactions: list[Transaction]
    overrides: list[BalanceOverride]


class ForecastService:
    def __init__(
        self,
        account_dao: AccountDAO,
        recurring_dao: RecurringDAO,
        tx_dao: TransactionDAO,
        override_dao: BalanceOverrideDAO,
        seed_balance: Decimal = SEED_BALANCE,
    ):
        self._account_dao = account_dao
        self._recurring_dao = recurring_dao
        self._tx_dao = tx_dao
        self._override_dao = override_dao
        self._seed_balance = seed_balance

    def snapshot(self) -> ForecastSnapshot:
        """All four collections read in one transaction."""
        conn = self._tx_dao._db.get_connection()
        owns_tx = not conn.in_transaction
        if owns_tx:
            conn.execute("BEGIN")
        try:
            return ForecastSnapshot(
                accounts=self._account_dao.get_all(),
                rules=self._recurring_dao.get_active(),
                transactions=self._tx_dao.get_all(),
                overrides=self._override_dao.get_all(),
            )
        finally:
            if owns_tx:
                conn.rollback()

    def events(self, horizon_months: int, start: date | None = None,
               snapshot: ForecastSnapshot | None = None) -> list[Event]:
        snap = snapshot or self.snapshot()
        first = self._start(start)
        occurrences = expand(snap.rules, horizon_end(first, max(horizon_months, 1)))
        return merge(occurrences, snap.transactions)

    def build_projection(
        self,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
        account_id: int | None = None,
        start: date | None = None,
    ) -> list[MonthlyProjection]:
        snap = self.snapshot()
        if account_id is not None and not any(a.id == account_id for a in snap.accounts):
            raise NotFoundError(f"Account {account_id} does not exist.")
        first = self._start(start)
        events = self.events(horizon_months, first, snap)
        account_filter = None if account_id is None else (lambda aid: aid == account_id)
        return project(
            snap.accounts, events, snap.overrides, horizon_months,
            account_filter=account_filter, start=first, seed_balance=self._seed_balance,
        )

    def summary(
        self,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
        account_id: int | None = None,
        start: date | None = None,
    ) -> dict[int, HorizonSummary]:
        return summarize(self.build_projection(horizon_months, account_id, start))

    def upcoming(
        self,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
        account_id: int | None = None,
        start: date | None = None,
    ) -> list[dict]:
        """
        [{month:'YYYY-MM', events:[Event, ...]}] from the start month onward,
        confirmed transactions flagged via Event.is_confirmed.
        """
        first = first_of_month(self._start(start))
        last = horizon_end(first, max(horizon_months, 1))
        grouped: dict[str, list[Event]] = {}
        for event in self.events(horizon_months, first):
            if event.date < first or event.date > last:
                continue
            if account_id is not None and not event.touches(account_id):
                continue
            grouped.setdefault(format_month(event.date), []).append(event)
        return [{"month": month, "events": evts} for month, evts in grouped.items()]

    @staticmethod
    def _start(start) -> date:
        if start is None:
            return today()
        d = parse_date(start)
        if d is None:
            raise ValidationError(f"Invalid start date {start!r}.")
        return d
