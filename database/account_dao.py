from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.account import Account
from utils.currency import to_decimal


class AccountDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db
        self._all_cache: list | None = None

    def _invalidate_cache(self):
        self._all_cache = None

    def _row_to_model(self, row) -> Account:
        rate = row["interest_rate"]
        return Account(
            id=row["id"],
            name=row["name"],
            account_type=row["account_type"],
            interest_rate=to_decimal(rate) if rate is not None else None,
            description=row["description"],
            created_at=row["created_at"],
        )

    def get_all(self) -> list[Account]:
        if self._all_cache is None:
            conn = self._db.get_connection()
            rows = conn.execute(
                "SELECT * FROM accounts ORDER BY name"
            ).fetchall()
            self._all_cache = [self._row_to_model(r) for r in rows]
        return list(self._all_cache)

    def get_by_id(self, account_id: int) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, name: str) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE name = ?", (name,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        name: str,
        account_type: str = "bank",
        interest_rate: Decimal | None = None,
        description: str = "",
    ) -> Account:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO accounts(name, account_type, interest_rate, description) VALUES (?, ?, ?, ?)",
            (name, account_type, interest_rate, description),
        )
        conn.commit()
        self._invalidate_cache()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        account_id: int,
        name: str,
        account_type: str = "bank",
        interest_rate: Decimal | None = None,
        description: str = "",
    ) -> Account:
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE accounts SET name = ?, account_type = ?, interest_rate = ?, description = ? WHERE id = ?",
            (name, account_type, interest_rate, description, account_id),
        )
        conn.commit()
        self._invalidate_cache()
        return self.get_by_id(account_id)

    def delete(self, account_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        conn.commit()
        self._invalidate_cache()

    def has_transactions(self, account_id: int) -> bool:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COUNT(*) AS cnt FROM transactions
               WHERE account_id = ? OR destination_account_id = ?""",
            (account_id, account_id),
        ).fetchone()
        return row["cnt"] > 0
