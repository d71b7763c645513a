from typing import Optional
from database.db_manager import DatabaseManager
from models.expense import Expense


class ExpenseDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Expense:
        return Expense(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            date=row["date"],
            recurring_expense_id=row["recurring_expense_id"],
            created_at=row["created_at"],
        )

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_date_range(self, start_date: str, end_date: str) -> list[Expense]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM expenses
               WHERE date >= ? AND date <= ?
               ORDER BY date DESC, id DESC""",
            (start_date, end_date),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_total_between(self, start_date: str, end_date: str) -> float:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT COALESCE(SUM(amount), 0) AS total FROM expenses WHERE date >= ? AND date <= ?",
            (start_date, end_date),
        ).fetchone()
        return float(row["total"])

    def create(
        self,
        amount: float,
        description: str,
        category: str,
        date: str,
        recurring_expense_id: int | None = None,
    ) -> Expense:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO expenses (amount, description, category, date, recurring_expense_id)
               VALUES (?, ?, ?, ?, ?)""",
            (amount, description, category, date, recurring_expense_id),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def delete(self, expense_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        conn.commit()
