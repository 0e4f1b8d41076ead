import logging
from decimal import Decimal

from models.account import Account
from database.account_dao import AccountDAO
from engine.exceptions import NotFoundError, ValidationError
from utils.constants import ACCOUNT_TYPES
from utils.currency import parse_amount

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, account_dao: AccountDAO):
        self._dao = account_dao

    def get_all(self) -> list[Account]:
        return self._dao.get_all()

    def get_by_id(self, account_id: int) -> Account | None:
        return self._dao.get_by_id(account_id)

    def create(
        self,
        name: str,
        account_type: str = "bank",
        interest_rate=None,
        description: str = "",
    ) -> Account:
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty.")
        if self._dao.get_by_name(name):
            raise ValidationError(f"An account named '{name}' already exists.")
        self._validate_type(account_type)
        rate = self._sanitize_rate(interest_rate)
        account = self._dao.create(name, account_type, rate, description.strip())
        logger.info("Created account %s (%s)", account.id, account.name)
        return account

    def update(
        self,
        account_id: int,
        name: str,
        account_type: str = "bank",
        interest_rate=None,
        description: str = "",
    ) -> Account:
        if self._dao.get_by_id(account_id) is None:
            raise NotFoundError(f"Account {account_id} does not exist.")
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty.", account_id)
        existing = self._dao.get_by_name(name)
        if existing and existing.id != account_id:
            raise ValidationError(f"An account named '{name}' already exists.", account_id)
        self._validate_type(account_type)
        rate = self._sanitize_rate(interest_rate)
        return self._dao.update(account_id, name, account_type, rate, description.strip())

    def delete(self, account_id: int):
        # Dependent transactions are not cascaded; past projections stay intact.
        if self._dao.has_transactions(account_id):
            raise ValidationError(
                "Cannot delete an account with existing transactions. "
                "Remove all transactions first.",
                account_id,
            )
        self._dao.delete(account_id)
        logger.info("Deleted account %s", account_id)

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_type(account_type: str):
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(
                f"Invalid account type '{account_type}'. "
                f"Must be one of: {', '.join(ACCOUNT_TYPES)}."
            )

    @staticmethod
    def _sanitize_rate(interest_rate) -> Decimal | None:
        """None and 0 both mean 'no interest'; stored as NULL."""
        if interest_rate in (None, ""):
            return None
        rate = parse_amount(interest_rate, label="interest rate")
        if rate < 0:
            raise ValidationError("Interest rate must be 0 or greater.")
        return rate or None
