from decimal import Decimal
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_rule import RecurringRule
from utils.currency import to_decimal

_COLUMNS = (
    "name", "type", "amount", "account_id", "destination_account_id", "category",
    "description", "frequency", "start_date", "end_date", "weekend_policy",
)


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        return RecurringRule(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            amount=to_decimal(row["amount"]),
            account_id=row["account_id"],
            destination_account_id=row["destination_account_id"],
            category=row["category"],
            description=row["description"],
            frequency=row["frequency"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            weekend_policy=row["weekend_policy"],
            is_active=bool(row["is_active"]),
            account_name=row["account_name"] if "account_name" in row.keys() else "",
        )

    def _select(self) -> str:
        return """
            SELECT r.*,
                   a.name AS account_name
            FROM recurring_rules r
            JOIN accounts a ON r.account_id = a.id
        """

    def get_all(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY r.name, r.id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE r.is_active = 1 ORDER BY r.name, r.id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: int) -> Optional[RecurringRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE r.id = ?", (rule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        name: str,
        type_: str,
        amount: Decimal,
        account_id: int,
        frequency: str,
        start_date: str,
        end_date: str | None = None,
        destination_account_id: int | None = None,
        category: str = "",
        description: str = "",
        weekend_policy: str = "post_on_date",
    ) -> RecurringRule:
        conn = self._db.get_connection()
        cursor = conn.execute(
            f"""INSERT INTO recurring_rules ({", ".join(_COLUMNS)})
                VALUES ({", ".join("?" * len(_COLUMNS))})""",
            (
                name, type_, amount, account_id, destination_account_id, category,
                description, frequency, start_date, end_date, weekend_policy,
            ),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        rule_id: int,
        name: str,
        type_: str,
        amount: Decimal,
        account_id: int,
        frequency: str,
        start_date: str,
        end_date: str | None = None,
        destination_account_id: int | None = None,
        category: str = "",
        description: str = "",
        weekend_policy: str = "post_on_date",
        is_active: bool = True,
        commit: bool = True,
    ) -> RecurringRule:
        conn = self._db.get_connection()
        conn.execute(
            f"""UPDATE recurring_rules SET
                {", ".join(f"{c}=?" for c in _COLUMNS)}, is_active=?
                WHERE id=?""",
            (
                name, type_, amount, account_id, destination_account_id, category,
                description, frequency, start_date, end_date, weekend_policy,
                1 if is_active else 0, rule_id,
            ),
        )
        if commit:
            conn.commit()
        return self.get_by_id(rule_id)

    def set_active(self, rule_id: int, is_active: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE recurring_rules SET is_active = ? WHERE id = ?",
            (1 if is_active else 0, rule_id),
        )
        conn.commit()

    def delete(self, rule_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))
        conn.commit()
