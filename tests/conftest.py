"""Pytest fixtures for testing"""

from decimal import Decimal

import pytest

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.balance_override_dao import BalanceOverrideDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.account import Account
from models.balance_override import BalanceOverride
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.account_service import AccountService
from services.balance_override_service import BalanceOverrideService
from services.forecast_service import ForecastService
from services.recurring_service import RecurringService
from services.transaction_service import TransactionService


@pytest.fixture
def make_rule():
    """Factory for in-memory recurring rules"""

    def _make(**overrides) -> RecurringRule:
        fields = dict(
            id=1,
            name="Rent",
            type="expense",
            amount=Decimal("100"),
            account_id=1,
            frequency="monthly",
            start_date="2024-01-15",
        )
        fields.update(overrides)
        return RecurringRule(**fields)

    return _make


@pytest.fixture
def make_transaction():
    """Factory for in-memory transactions"""

    def _make(**overrides) -> Transaction:
        fields = dict(
            id=1,
            account_id=1,
            type="expense",
            date="2024-01-15",
            description="Rent",
            amount=Decimal("100"),
            forecasted=False,
        )
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def checking() -> Account:
    return Account(id=1, name="Checking")


@pytest.fixture
def savings() -> Account:
    return Account(id=2, name="Savings", interest_rate=Decimal("12"))


@pytest.fixture
def override():
    def _make(account_id: int, date: str, amount) -> BalanceOverride:
        return BalanceOverride(account_id=account_id, date=date, amount=Decimal(str(amount)))

    return _make


# ── Storage-backed fixtures ──────────────────────────────────────────────────


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    manager = DatabaseManager(":memory:")
    manager.initialize()
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def account_dao(db) -> AccountDAO:
    return AccountDAO(db)


@pytest.fixture
def tx_dao(db) -> TransactionDAO:
    return TransactionDAO(db)


@pytest.fixture
def recurring_dao(db) -> RecurringDAO:
    return RecurringDAO(db)


@pytest.fixture
def override_dao(db) -> BalanceOverrideDAO:
    return BalanceOverrideDAO(db)


@pytest.fixture
def account_svc(account_dao) -> AccountService:
    return AccountService(account_dao)


@pytest.fixture
def recurring_svc(recurring_dao, tx_dao) -> RecurringService:
    return RecurringService(recurring_dao, tx_dao)


@pytest.fixture
def tx_svc(tx_dao, account_dao) -> TransactionService:
    return TransactionService(tx_dao, account_dao)


@pytest.fixture
def override_svc(override_dao, account_dao) -> BalanceOverrideService:
    return BalanceOverrideService(override_dao, account_dao)


@pytest.fixture
def forecast_svc(account_dao, recurring_dao, tx_dao, override_dao) -> ForecastService:
    return ForecastService(account_dao, recurring_dao, tx_dao, override_dao)
