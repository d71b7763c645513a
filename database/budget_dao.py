from typing import Optional
from database.db_manager import DatabaseManager
from models.budget import Budget


class BudgetDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Budget:
        return Budget(
            id=row["id"],
            amount=row["amount"],
            period=row["period"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_active(self) -> list[Budget]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM budgets WHERE is_active = 1 ORDER BY start_date DESC, id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM budgets WHERE id = ?", (budget_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        amount: float,
        period: str,
        start_date: str,
        end_date: str | None = None,
    ) -> Budget:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO budgets(amount, period, start_date, end_date) VALUES (?, ?, ?, ?)",
            (amount, period, start_date, end_date),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def set_active(self, budget_id: int, is_active: bool) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE budgets SET is_active = ?, updated_at = datetime('now') WHERE id = ?",
            (1 if is_active else 0, budget_id),
        )
        conn.commit()
        return cursor.rowcount > 0
