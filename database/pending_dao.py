from typing import Optional
from database.db_manager import DatabaseManager
from models.pending_occurrence import PendingOccurrence, PendingStatus


class PendingDAO:
    """Rows of pending_recurring_expenses: occurrences awaiting confirm / skip."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> PendingOccurrence:
        return PendingOccurrence(
            id=row["id"],
            recurring_expense_id=row["recurring_expense_id"],
            scheduled_date=row["scheduled_date"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            status=PendingStatus(row["status"]),
            created_at=row["created_at"],
        )

    def get_all(self, statuses: tuple[PendingStatus, ...] | None = None) -> list[PendingOccurrence]:
        conn = self._db.get_connection()
        sql = "SELECT * FROM pending_recurring_expenses"
        params: list = []
        if statuses:
            sql += f" WHERE status IN ({', '.join('?' for _ in statuses)})"
            params.extend(s.value for s in statuses)
        sql += " ORDER BY scheduled_date ASC, id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, pending_id: int) -> Optional[PendingOccurrence]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM pending_recurring_expenses WHERE id = ?", (pending_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_date(self, definition_id: int, scheduled_date: str) -> Optional[PendingOccurrence]:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT * FROM pending_recurring_expenses
               WHERE recurring_expense_id = ? AND scheduled_date = ?""",
            (definition_id, scheduled_date),
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        recurring_expense_id: int,
        scheduled_date: str,
        amount: float,
        description: str,
        category: str,
        status: PendingStatus = PendingStatus.PENDING,
    ) -> PendingOccurrence:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO pending_recurring_expenses
               (recurring_expense_id, scheduled_date, amount, description, category, status)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (recurring_expense_id, scheduled_date, amount, description, category, status.value),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def resolve(self, pending_id: int, status: PendingStatus) -> bool:
        """Record a terminal status and remove the row in one transaction."""
        conn = self._db.get_connection()
        with conn:
            conn.execute(
                "UPDATE pending_recurring_expenses SET status = ? WHERE id = ?",
                (status.value, pending_id),
            )
            cursor = conn.execute(
                "DELETE FROM pending_recurring_expenses WHERE id = ?", (pending_id,)
            )
        return cursor.rowcount > 0

    def mark_overdue_before(self, date_str: str) -> int:
        """pending -> overdue for every row scheduled before date_str. Returns rows changed."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE pending_recurring_expenses SET status = ?
               WHERE status = ? AND scheduled_date < ?""",
            (PendingStatus.OVERDUE.value, PendingStatus.PENDING.value, date_str),
        )
        conn.commit()
        return cursor.rowcount
