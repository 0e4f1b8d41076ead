from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.currency import to_decimal


def _amount(value) -> Optional[Decimal]:
    return to_decimal(value) if value is not None else None


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            account_id=row["account_id"],
            destination_account_id=row["destination_account_id"],
            type=row["type"],
            amount=_amount(row["amount"]),
            forecasted_amount=_amount(row["forecasted_amount"]),
            forecasted_date=row["forecasted_date"],
            forecasted=bool(row["forecasted"]),
            category=row["category"],
            description=row["description"],
            date=row["date"],
            recurring_rule_id=row["recurring_rule_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _select(self) -> str:
        return "SELECT t.* FROM transactions t"

    def get_all(self) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY t.date ASC, t.id ASC"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_account(
        self,
        account_id: int,
        month: str | None = None,
        forecasted_filter: str | None = None,
    ) -> list[Transaction]:
        """Transactions touching the account, as source or transfer destination."""
        conn = self._db.get_connection()
        sql = self._select() + " WHERE (t.account_id = ? OR t.destination_account_id = ?)"
        params: list = [account_id, account_id]

        if month:
            sql += " AND strftime('%Y-%m', t.date) = ?"
            params.append(month)
        if forecasted_filter == "confirmed":
            sql += " AND t.forecasted = 0"
        elif forecasted_filter == "forecasted":
            sql += " AND t.forecasted = 1"

        sql += " ORDER BY t.date ASC, t.id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_rule(self, rule_id: int) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE t.recurring_rule_id = ? ORDER BY t.forecasted_date, t.id",
            (rule_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_rule_key(self, rule_id: int, forecasted_date: str) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.recurring_rule_id = ? AND t.forecasted_date = ?",
            (rule_id, forecasted_date),
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_keys_for_rule(self, rule_id: int) -> set[str]:
        """forecasted_date of every transaction already materialized from the rule."""
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT forecasted_date FROM transactions WHERE recurring_rule_id = ?",
            (rule_id,),
        ).fetchall()
        return {r["forecasted_date"] for r in rows}

    def create(
        self,
        account_id: int,
        type_: str,
        date: str,
        description: str = "",
        amount: Decimal | None = None,
        forecasted_amount: Decimal | None = None,
        forecasted_date: str | None = None,
        forecasted: bool = True,
        destination_account_id: int | None = None,
        recurring_rule_id: int | None = None,
        category: str = "",
        commit: bool = True,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (account_id, destination_account_id, type, amount, forecasted_amount,
                forecasted_date, forecasted, category, description, date,
                recurring_rule_id)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                account_id, destination_account_id, type_, amount, forecasted_amount,
                forecasted_date, 1 if forecasted else 0, category, description, date,
                recurring_rule_id,
            ),
        )
        if commit:
            conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        tx_id: int,
        type_: str,
        date: str,
        amount: Decimal | None,
        description: str = "",
        category: str = "",
        account_id: int | None = None,
        destination_account_id: int | None = None,
    ) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET type=?, date=?, amount=?, description=?, category=?,
                   account_id=COALESCE(?, account_id), destination_account_id=?,
                   updated_at=datetime('now')
               WHERE id=?""",
            (type_, date, amount, description, category, account_id,
             destination_account_id, tx_id),
        )
        conn.commit()
        return self.get_by_id(tx_id)

    def confirm(self, tx_id: int, amount: Decimal, date: str) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE transactions
               SET amount=?, date=?, forecasted=0, updated_at=datetime('now')
               WHERE id=?""",
            (amount, date, tx_id),
        )
        conn.commit()
        return self.get_by_id(tx_id)

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        conn.commit()

    def delete_forecasted_for_rule(self, rule_id: int, commit: bool = True) -> int:
        """Remove the rule's not-yet-confirmed transactions. Returns the row count."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            "DELETE FROM transactions WHERE recurring_rule_id = ? AND forecasted = 1",
            (rule_id,),
        )
        if commit:
            conn.commit()
        return cursor.rowcount
