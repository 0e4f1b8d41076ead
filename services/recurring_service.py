import logging
from datetime import date, timedelta

from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from engine.exceptions import NotFoundError, ValidationError
from engine.expander import iter_occurrences
from utils.constants import (
    FREQUENCIES, RECURRING_CATCHUP_DAYS, SCHEDULE_FIELDS, TRANSACTION_TYPES, WEEKEND_POLICIES,
)
from utils.currency import parse_amount
from utils.date_helpers import add_months, format_date, parse_date, today

logger = logging.getLogger(__name__)


class RecurringService:
    def __init__(self, recurring_dao: RecurringDAO, tx_dao: TransactionDAO):
        self._dao = recurring_dao
        self._tx_dao = tx_dao

    def get_all(self) -> list[RecurringRule]:
        return self._dao.get_all()

    def get_active(self) -> list[RecurringRule]:
        return self._dao.get_active()

    def get_by_id(self, rule_id: int) -> RecurringRule | None:
        return self._dao.get_by_id(rule_id)

    def create(
        self,
        name: str,
        type_: str,
        amount,
        account_id: int,
        frequency: str,
        start_date: str,
        end_date: str | None = None,
        destination_account_id: int | None = None,
        category: str = "",
        description: str = "",
        weekend_policy: str = "post_on_date",
    ) -> RecurringRule:
        amount, start_date, end_date = self._validate(
            name, type_, amount, account_id, frequency, start_date, end_date,
            destination_account_id, weekend_policy,
        )
        rule = self._dao.create(
            name=name.strip(), type_=type_, amount=amount, account_id=account_id,
            frequency=frequency, start_date=start_date, end_date=end_date,
            destination_account_id=destination_account_id if type_ == "transfer" else None,
            category=category, description=description, weekend_policy=weekend_policy,
        )
        logger.info("Created recurring rule %s (%s, %s)", rule.id, rule.name, rule.frequency)
        return rule

    def update(
        self,
        rule_id: int,
        name: str,
        type_: str,
        amount,
        account_id: int,
        frequency: str,
        start_date: str,
        end_date: str | None = None,
        destination_account_id: int | None = None,
        category: str = "",
        description: str = "",
        weekend_policy: str = "post_on_date",
        is_active: bool | None = None,
    ) -> RecurringRule:
        """Update a rule.

        When a field that affects the schedule changes, the rule's
        still-forecasted transactions are dropped so they are regenerated
        from the new definition. Confirmed transactions are kept. Edits to
        name, category or description leave existing forecasts alone.
        """
        current = self._dao.get_by_id(rule_id)
        if current is None:
            raise NotFoundError(f"Recurring rule {rule_id} does not exist.")
        amount, start_date, end_date = self._validate(
            name, type_, amount, account_id, frequency, start_date, end_date,
            destination_account_id, weekend_policy, rule_id=rule_id,
        )
        if type_ != "transfer":
            destination_account_id = None
        if is_active is None:
            is_active = current.is_active

        conn = self._dao._db.get_connection()
        try:
            updated = self._dao.update(
                rule_id=rule_id, name=name.strip(), type_=type_, amount=amount,
                account_id=account_id, frequency=frequency, start_date=start_date,
                end_date=end_date, destination_account_id=destination_account_id,
                category=category, description=description,
                weekend_policy=weekend_policy, is_active=is_active, commit=False,
            )
            if self.schedule_changed(current, updated):
                removed = self._tx_dao.delete_forecasted_for_rule(rule_id, commit=False)
                logger.info(
                    "Rule %s schedule changed; removed %d forecasted transaction(s)",
                    rule_id, removed,
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        return updated

    @staticmethod
    def schedule_changed(before: RecurringRule, after: RecurringRule) -> bool:
        return any(getattr(before, f) != getattr(after, f) for f in SCHEDULE_FIELDS)

    def set_active(self, rule_id: int, is_active: bool):
        self._dao.set_active(rule_id, is_active)

    def delete(self, rule_id: int):
        if self._dao.get_by_id(rule_id) is None:
            raise NotFoundError(f"Recurring rule {rule_id} does not exist.")
        # Forecasts that were never confirmed go with the rule; confirmed
        # transactions survive with recurring_rule_id cleared by the schema.
        self._tx_dao.delete_forecasted_for_rule(rule_id, commit=False)
        self._dao.delete(rule_id)
        logger.info("Deleted recurring rule %s", rule_id)

    def materialize_due(self, reference_date: date | None = None) -> list[Transaction]:
        """
        Persist forecasted transactions for occurrences due within the
        catch-up window up to reference_date (default: today).
        Existing (rule, forecasted_date) keys are skipped.
        Returns list of newly created transactions.
        """
        ref = reference_date or today()
        cutoff = ref - timedelta(days=RECURRING_CATCHUP_DAYS)
        new_transactions: list[Transaction] = []

        conn = self._dao._db.get_connection()
        try:
            for rule in self._dao.get_active():
                existing = self._tx_dao.get_keys_for_rule(rule.id)
                for occ in iter_occurrences(rule, ref):
                    key = format_date(occ.date)
                    if occ.date < cutoff or occ.date > ref or key in existing:
                        continue
                    tx = self._tx_dao.create(
                        account_id=rule.account_id,
                        type_=rule.type,
                        date=key,
                        description=rule.name,
                        forecasted_amount=rule.amount,
                        forecasted_date=key,
                        forecasted=True,
                        destination_account_id=rule.destination_account_id,
                        recurring_rule_id=rule.id,
                        category=rule.category,
                        commit=False,
                    )
                    existing.add(key)
                    new_transactions.append(tx)
            conn.commit()
        except Exception:
            conn.rollback()
            raise

        if new_transactions:
            logger.info("Materialized %d forecasted transaction(s)", len(new_transactions))
        return new_transactions

    def next_due_date(self, rule: RecurringRule, after: date | None = None) -> date | None:
        """Return the next posting date of the rule after `after` (default: today)."""
        ref = after or today()
        for occ in iter_occurrences(rule, add_months(ref, 13)):
            if occ.date > ref:
                return occ.date
        return None

    def _validate(
        self, name, type_, amount, account_id, frequency, start_date, end_date,
        destination_account_id, weekend_policy, rule_id=None,
    ):
        """Raise ValidationError on bad input.

        Returns (amount, start_date, end_date) normalized to Decimal and YYYY-MM-DD.
        """
        if not name or not name.strip():
            raise ValidationError("Name cannot be empty.", rule_id)
        if type_ not in TRANSACTION_TYPES:
            raise ValidationError("Type must be income, expense or transfer.", rule_id)
        amount = parse_amount(amount, rule_id)
        if amount <= 0:
            raise ValidationError("Amount must be positive.", rule_id)
        if frequency not in FREQUENCIES:
            raise ValidationError(f"Invalid frequency '{frequency}'.", rule_id)
        if weekend_policy not in WEEKEND_POLICIES:
            raise ValidationError(f"Invalid weekend policy '{weekend_policy}'.", rule_id)
        start = parse_date(start_date)
        if not start:
            raise ValidationError("Invalid start date.", rule_id)
        end = None
        if end_date:
            end = parse_date(end_date)
            if not end:
                raise ValidationError("Invalid end date.", rule_id)
            if end < start:
                raise ValidationError("End date cannot be before start date.", rule_id)
        if type_ == "transfer":
            if destination_account_id is None:
                raise ValidationError("Transfers need a destination account.", rule_id)
            if destination_account_id == account_id:
                raise ValidationError("Cannot transfer to the same account.", rule_id)
        return amount, format_date(start), format_date(end) if end else None
