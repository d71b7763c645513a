import json
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_definition import RecurringDefinition

# Columns callers may change through update(); everything else is managed here.
_UPDATABLE = (
    "amount", "description", "category", "interval_days", "execution_dates",
    "start_date", "end_date", "next_due_date", "is_active",
    "requires_confirmation", "last_executed", "notify_days_before",
)


def _encode_dates(days: list[int] | None) -> str | None:
    if not days:
        return None
    return json.dumps(sorted(set(days)))


def _decode_dates(raw: str | None) -> list[int]:
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except ValueError:
        return []
    return sorted({int(v) for v in values})


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringDefinition:
        return RecurringDefinition(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            category=row["category"],
            start_date=row["start_date"],
            next_due_date=row["next_due_date"],
            interval_days=row["interval_days"],
            execution_dates=_decode_dates(row["execution_dates"]),
            is_active=bool(row["is_active"]),
            last_executed=row["last_executed"],
            end_date=row["end_date"],
            requires_confirmation=bool(row["requires_confirmation"]),
            notify_days_before=row["notify_days_before"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_all(self) -> list[RecurringDefinition]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM recurring_expenses ORDER BY next_due_date, id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurringDefinition]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM recurring_expenses WHERE is_active = 1 ORDER BY next_due_date, id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, definition_id: int) -> Optional[RecurringDefinition]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM recurring_expenses WHERE id = ?", (definition_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        next_due_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
    ) -> RecurringDefinition:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO recurring_expenses
               (amount, description, category, interval_days, execution_dates,
                start_date, end_date, next_due_date, requires_confirmation,
                notify_days_before)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                amount, description, category, interval_days,
                _encode_dates(execution_dates), start_date, end_date,
                next_due_date, 1 if requires_confirmation else 0,
                notify_days_before,
            ),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(self, definition_id: int, **fields) -> Optional[RecurringDefinition]:
        """Partial update. Returns the fresh row, or None if it no longer exists."""
        unknown = set(fields) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Unknown recurring expense fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get_by_id(definition_id)

        values = []
        for name, value in fields.items():
            if name == "execution_dates":
                value = _encode_dates(value)
            elif name in ("is_active", "requires_confirmation"):
                value = 1 if value else 0
            values.append(value)

        assignments = ", ".join(f"{name} = ?" for name in fields)
        conn = self._db.get_connection()
        cursor = conn.execute(
            f"UPDATE recurring_expenses SET {assignments}, updated_at = datetime('now') WHERE id = ?",
            (*values, definition_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(definition_id)

    def set_active(self, definition_id: int, is_active: bool) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "UPDATE recurring_expenses SET is_active = ?, updated_at = datetime('now') WHERE id = ?",
            (1 if is_active else 0, definition_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    def delete(self, definition_id: int) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute("DELETE FROM recurring_expenses WHERE id = ?", (definition_id,))
        conn.commit()
        return cursor.rowcount > 0
