import logging
import os
import sqlite3
from decimal import Decimal

from utils.constants import DB_FILE

logger = logging.getLogger(__name__)

# Amounts live in REAL columns; models read them back through to_decimal().
sqlite3.register_adapter(Decimal, float)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed default settings."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS accounts (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                name          TEXT    NOT NULL UNIQUE,
                description   TEXT    NOT NULL DEFAULT '',
                account_type  TEXT    NOT NULL DEFAULT 'bank'
                              CHECK(account_type IN ('bank','credit','investments')),
                interest_rate REAL,
                created_at    TEXT    NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS recurring_rules (
                id                     INTEGER PRIMARY KEY AUTOINCREMENT,
                name                   TEXT NOT NULL,
                type                   TEXT NOT NULL CHECK(type IN ('income','expense','transfer')),
                amount                 REAL NOT NULL CHECK(amount > 0),
                account_id             INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
                destination_account_id INTEGER REFERENCES accounts(id) ON DELETE CASCADE,
                category               TEXT NOT NULL DEFAULT '',
                description            TEXT NOT NULL DEFAULT '',
                frequency              TEXT NOT NULL,
                start_date             TEXT NOT NULL,
                end_date               TEXT,
                weekend_policy         TEXT NOT NULL DEFAULT 'post_on_date',
                is_active              INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id                     INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id             INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
                destination_account_id INTEGER REFERENCES accounts(id) ON DELETE SET NULL,
                type                   TEXT NOT NULL CHECK(type IN ('income','expense','transfer')),
                amount                 REAL CHECK(amount IS NULL OR amount >= 0),
                forecasted_amount      REAL,
                forecasted_date        TEXT,
                forecasted             INTEGER NOT NULL DEFAULT 1,
                category               TEXT NOT NULL DEFAULT '',
                description            TEXT NOT NULL DEFAULT '',
                date                   TEXT NOT NULL,
                recurring_rule_id      INTEGER REFERENCES recurring_rules(id) ON DELETE SET NULL,
                created_at             TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at             TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS balance_overrides (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
                date       TEXT NOT NULL,
                amount     REAL NOT NULL,
                UNIQUE(account_id, date)
            );

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_account_id ON transactions(account_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date       ON transactions(date);
            CREATE UNIQUE INDEX IF NOT EXISTS idx_transactions_rule_key
                ON transactions(recurring_rule_id, forecasted_date)
                WHERE recurring_rule_id IS NOT NULL;
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("currency_symbol", "$"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    @staticmethod
    def open_in_folder(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and initializes) the DB file, optionally inside db_folder."""
        path = os.path.join(db_folder, DB_FILE) if db_folder else DB_FILE
        logger.info("Opening database %s", path)
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
