import logging

from models.forecast import Occurrence
from models.transaction import Transaction
from database.transaction_dao import TransactionDAO
from database.account_dao import AccountDAO
from engine.exceptions import NotFoundError, ValidationError
from utils.constants import TRANSACTION_TYPES
from utils.currency import parse_amount
from utils.date_helpers import format_date, parse_date

logger = logging.getLogger(__name__)


class TransactionService:
    def __init__(self, tx_dao: TransactionDAO, account_dao: AccountDAO):
        self._dao = tx_dao
        self._account_dao = account_dao

    def get_all(self) -> list[Transaction]:
        return self._dao.get_all()

    def get_for_account(
        self,
        account_id: int,
        month: str | None = None,
        forecasted_filter: str | None = None,
    ) -> list[Transaction]:
        return self._dao.get_by_account(account_id, month, forecasted_filter)

    def create_manual(
        self,
        account_id: int,
        type_: str,
        amount,
        date: str,
        description: str = "",
        category: str = "",
        destination_account_id: int | None = None,
    ) -> Transaction:
        """Record a transaction that did not come from a recurring rule."""
        amount, date = self._validate(type_, amount, date)
        self._validate_accounts(type_, account_id, destination_account_id)
        tx = self._dao.create(
            account_id=account_id,
            type_=type_,
            date=date,
            description=description,
            amount=amount,
            forecasted=False,
            destination_account_id=destination_account_id if type_ == "transfer" else None,
            category=category,
        )
        logger.info("Recorded %s transaction %s on %s", type_, tx.id, date)
        return tx

    def confirm(self, tx_id: int, amount, date: str | None = None) -> Transaction:
        """Reconcile a forecasted transaction with its actual amount (and date)."""
        tx = self._dao.get_by_id(tx_id)
        if tx is None:
            raise NotFoundError(f"Transaction {tx_id} does not exist.")
        amount, date = self._validate(tx.type, amount, date or tx.date)
        confirmed = self._dao.confirm(tx_id, amount, date)
        logger.info("Confirmed transaction %s: %s on %s", tx_id, amount, date)
        return confirmed

    def confirm_occurrence(self, occurrence: Occurrence, amount, date: str | None = None) -> Transaction:
        """Confirm a projected occurrence, materializing it if it was never stored.

        The stored transaction keeps the occurrence's date and amount as its
        forecasted values, which is what suppresses the occurrence in later
        projections.
        """
        key_date = format_date(occurrence.date)
        existing = self._dao.get_by_rule_key(occurrence.source_recurring_id, key_date)
        if existing is not None:
            return self.confirm(existing.id, amount, date)

        amount, date = self._validate(occurrence.type, amount, date or key_date)
        tx = self._dao.create(
            account_id=occurrence.account_id,
            type_=occurrence.type,
            date=date,
            description=occurrence.name,
            amount=amount,
            forecasted_amount=occurrence.amount,
            forecasted_date=key_date,
            forecasted=False,
            destination_account_id=occurrence.destination_account_id,
            recurring_rule_id=occurrence.source_recurring_id,
            category=occurrence.category,
        )
        logger.info("Confirmed occurrence %s as transaction %s", occurrence.id, tx.id)
        return tx

    def update(
        self,
        tx_id: int,
        type_: str,
        amount,
        date: str,
        description: str = "",
        category: str = "",
        account_id: int | None = None,
        destination_account_id: int | None = None,
    ) -> Transaction:
        tx = self._dao.get_by_id(tx_id)
        if tx is None:
            raise NotFoundError(f"Transaction {tx_id} does not exist.")
        if amount is None and tx.forecasted:
            _, date = self._validate(type_, tx.forecasted_amount, date)
        else:
            amount, date = self._validate(type_, amount, date)
        account_id = account_id or tx.account_id
        if destination_account_id is None:
            destination_account_id = tx.destination_account_id
        self._validate_accounts(type_, account_id, destination_account_id)
        return self._dao.update(
            tx_id, type_, date, amount, description, category, account_id,
            destination_account_id if type_ == "transfer" else None,
        )

    def delete(self, tx_id: int, force: bool = False):
        """Delete a transaction. Confirmed ones need force=True."""
        tx = self._dao.get_by_id(tx_id)
        if tx is None:
            raise NotFoundError(f"Transaction {tx_id} does not exist.")
        if not tx.forecasted and not force:
            raise ValidationError("Confirmed transactions can only be deleted with force.", tx_id)
        self._dao.delete(tx_id)
        logger.info("Deleted transaction %s", tx_id)

    def _validate(self, type_: str, amount, date: str):
        """Returns (amount as Decimal, date as YYYY-MM-DD)."""
        if type_ not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid type: {type_}")
        if amount is None:
            raise ValidationError("Amount is required.")
        amount = parse_amount(amount)
        if amount < 0:
            raise ValidationError("Amount cannot be negative; the type carries the sign.")
        d = parse_date(date)
        if not d:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
        return amount, format_date(d)

    def _validate_accounts(self, type_: str, account_id: int, destination_account_id: int | None):
        if self._account_dao.get_by_id(account_id) is None:
            raise ValidationError(f"Account {account_id} does not exist.")
        if type_ != "transfer":
            return
        if destination_account_id is None:
            raise ValidationError("Transfers need a destination account.")
        if destination_account_id == account_id:
            raise ValidationError("Cannot transfer to the same account.")
        if self._account_dao.get_by_id(destination_account_id) is None:
            raise ValidationError(f"Account {destination_account_id} does not exist.")
