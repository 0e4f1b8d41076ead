from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.balance_override import BalanceOverride
from utils.currency import to_decimal


class BalanceOverrideDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> BalanceOverride:
        return BalanceOverride(
            id=row["id"],
            account_id=row["account_id"],
            date=row["date"],
            amount=to_decimal(row["amount"]),
        )

    def get_all(self) -> list[BalanceOverride]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM balance_overrides ORDER BY date ASC, id ASC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_account(self, account_id: int) -> list[BalanceOverride]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM balance_overrides WHERE account_id = ? ORDER BY date ASC",
            (account_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get(self, account_id: int, date: str) -> Optional[BalanceOverride]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM balance_overrides WHERE account_id = ? AND date = ?",
            (account_id, date),
        ).fetchone()
        return self._row_to_model(row) if row else None

    def upsert(self, account_id: int, date: str, amount: Decimal) -> BalanceOverride:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO balance_overrides(account_id, date, amount)
               VALUES (?, ?, ?)
               ON CONFLICT(account_id, date)
               DO UPDATE SET amount = excluded.amount""",
            (account_id, date, amount),
        )
        conn.commit()
        return self.get(account_id, date)

    def delete(self, account_id: int, date: str) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "DELETE FROM balance_overrides WHERE account_id = ? AND date = ?",
            (account_id, date),
        )
        conn.commit()
        return cursor.rowcount > 0
