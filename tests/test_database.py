"""Storage-level tests: schema, settings and DAO round trips"""

import sqlite3
from decimal import Decimal

import pytest


def test_settings_defaults_and_update(db):
    assert db.get_setting("currency_symbol") == "$"
    assert db.get_setting("missing", "x") == "x"

    db.set_setting("currency_symbol", "£")
    assert db.get_setting("currency_symbol") == "£"


def test_initialize_is_idempotent(db):
    db.initialize()
    cols = {row[1] for row in db.get_connection().execute("PRAGMA table_info(recurring_rules)")}
    assert "weekend_policy" in cols


def test_rule_key_is_unique(account_dao, recurring_dao, tx_dao):
    account = account_dao.create("Checking")
    rule = recurring_dao.create(
        name="Rent", type_="expense", amount=Decimal("100"), account_id=account.id,
        frequency="monthly", start_date="2024-01-15",
    )
    tx_dao.create(account.id, "expense", "2024-01-15", forecasted_amount=Decimal("100"),
                  forecasted_date="2024-01-15", recurring_rule_id=rule.id)

    with pytest.raises(sqlite3.IntegrityError):
        tx_dao.create(account.id, "expense", "2024-01-15", forecasted_amount=Decimal("100"),
                      forecasted_date="2024-01-15", recurring_rule_id=rule.id)


def test_manual_transactions_do_not_collide(account_dao, tx_dao):
    account = account_dao.create("Checking")
    tx_dao.create(account.id, "expense", "2024-01-15", amount=Decimal("5"), forecasted=False)
    tx_dao.create(account.id, "expense", "2024-01-15", amount=Decimal("5"), forecasted=False)

    assert len(tx_dao.get_all()) == 2


def test_amounts_come_back_as_decimal(account_dao, tx_dao):
    account = account_dao.create("Savings", interest_rate=Decimal("4.5"))
    tx = tx_dao.create(account.id, "income", "2024-01-02", amount=Decimal("10.10"), forecasted=False)

    assert account_dao.get_by_id(account.id).interest_rate == Decimal("4.5")
    assert tx.amount == Decimal("10.1")
    assert tx.forecasted_amount is None


def test_account_cache_refreshes_after_create(account_dao):
    assert account_dao.get_all() == []
    account_dao.create("Checking")

    assert [a.name for a in account_dao.get_all()] == ["Checking"]


def test_override_upsert_keeps_one_row(account_dao, override_dao):
    account = account_dao.create("Checking")
    override_dao.upsert(account.id, "2024-01-10", Decimal("500"))
    override_dao.upsert(account.id, "2024-01-10", Decimal("750"))

    rows = override_dao.get_by_account(account.id)
    assert len(rows) == 1
    assert rows[0].amount == Decimal("750")
    assert override_dao.delete(account.id, "2024-01-10") is True
    assert override_dao.delete(account.id, "2024-01-10") is False
