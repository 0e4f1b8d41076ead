import logging

from models.balance_override import BalanceOverride
from database.balance_override_dao import BalanceOverrideDAO
from database.account_dao import AccountDAO
from engine.exceptions import NotFoundError, ValidationError
from utils.currency import parse_amount
from utils.date_helpers import format_date, parse_date

logger = logging.getLogger(__name__)


class BalanceOverrideService:
    def __init__(self, override_dao: BalanceOverrideDAO, account_dao: AccountDAO):
        self._dao = override_dao
        self._account_dao = account_dao

    def get_all(self) -> list[BalanceOverride]:
        return self._dao.get_all()

    def get_for_account(self, account_id: int) -> list[BalanceOverride]:
        return self._dao.get_by_account(account_id)

    def set_override(self, account_id: int, date: str, amount) -> BalanceOverride:
        """Assert the true balance of an account at the end of `date`.

        Setting a second override for the same day replaces the first.
        """
        if self._account_dao.get_by_id(account_id) is None:
            raise ValidationError(f"Account {account_id} does not exist.")
        d = parse_date(date)
        if not d:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
        amount = parse_amount(amount)
        override = self._dao.upsert(account_id, format_date(d), amount)
        logger.info("Balance override for account %s on %s: %s", account_id, override.date, amount)
        return override

    def remove_override(self, account_id: int, date: str):
        d = parse_date(date)
        if not d or not self._dao.delete(account_id, format_date(d)):
            raise NotFoundError(f"No balance override for account {account_id} on {date}.")
        logger.info("Removed balance override for account %s on %s", account_id, date)
