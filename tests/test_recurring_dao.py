import sqlite3

import pytest

from database.db_manager import DatabaseManager


def test_execution_dates_round_trip_through_json_column(db, recurring_dao, make_definition):
    definition = make_definition(interval_days=None, execution_dates=[31, 1, 15, 1])

    raw = db.get_connection().execute(
        "SELECT execution_dates FROM recurring_expenses WHERE id = ?", (definition.id,)
    ).fetchone()["execution_dates"]

    assert raw == "[1, 15, 31]"
    assert recurring_dao.get_by_id(definition.id).execution_dates == [1, 15, 31]


def test_interval_definition_stores_no_execution_dates(db, make_definition):
    definition = make_definition(interval_days=15)

    row = db.get_connection().execute(
        "SELECT interval_days, execution_dates FROM recurring_expenses WHERE id = ?", (definition.id,)
    ).fetchone()

    assert row["interval_days"] == 15
    assert row["execution_dates"] is None


def test_unreadable_execution_dates_decode_as_empty(db, recurring_dao, make_definition):
    definition = make_definition(interval_days=None, execution_dates=[5])
    conn = db.get_connection()
    conn.execute("UPDATE recurring_expenses SET execution_dates = 'oops' WHERE id = ?", (definition.id,))
    conn.commit()

    assert recurring_dao.get_by_id(definition.id).execution_dates == []


def test_update_rejects_unknown_fields(recurring_dao, make_definition):
    definition = make_definition()

    with pytest.raises(ValueError):
        recurring_dao.update(definition.id, created_at="2020-01-01")


def test_update_of_missing_row_returns_none(recurring_dao):
    assert recurring_dao.update(999, amount=10) is None


def test_update_converts_flags_and_dates(recurring_dao, make_definition):
    definition = make_definition()

    updated = recurring_dao.update(
        definition.id, is_active=False, requires_confirmation=False,
        interval_days=None, execution_dates=[20, 10],
    )

    assert not updated.is_active
    assert not updated.requires_confirmation
    assert updated.execution_dates == [10, 20]
    assert updated.interval_days is None


def test_active_definitions_ordered_by_due_date(recurring_dao, make_definition):
    late = make_definition(next_due_date="2024-03-01")
    early = make_definition(next_due_date="2024-02-01")
    paused = make_definition(next_due_date="2024-01-01")
    recurring_dao.set_active(paused.id, False)

    assert [d.id for d in recurring_dao.get_active()] == [early.id, late.id]
    assert [d.id for d in recurring_dao.get_all()] == [paused.id, early.id, late.id]


def test_one_occurrence_per_definition_and_date(pending_dao, make_pending):
    pending = make_pending("2024-02-05")

    with pytest.raises(sqlite3.IntegrityError):
        pending_dao.create(
            recurring_expense_id=pending.recurring_expense_id, scheduled_date="2024-02-05",
            amount=1, description="dup", category="Housing",
        )


def test_deleting_definition_cascades_to_pending(recurring_dao, pending_dao, make_pending):
    pending = make_pending("2024-02-05")

    assert recurring_dao.delete(pending.recurring_expense_id)
    assert pending_dao.get_by_id(pending.id) is None


def test_deleting_definition_keeps_posted_expenses(recurring_dao, expense_dao, make_definition):
    definition = make_definition()
    expense = expense_dao.create(
        amount=50000, description="Rent", category="Housing", date="2024-02-05",
        recurring_expense_id=definition.id,
    )

    recurring_dao.delete(definition.id)

    kept = expense_dao.get_by_id(expense.id)
    assert kept is not None
    assert kept.recurring_expense_id is None


def test_interval_check_constraint(recurring_dao):
    with pytest.raises(sqlite3.IntegrityError):
        recurring_dao.create(
            amount=10, description="Odd", category="Misc",
            start_date="2024-01-01", next_due_date="2024-01-01", interval_days=10,
        )


def test_settings_are_seeded(db):
    assert db.get_setting("currency") == "COP"
    db.set_setting("currency", "USD")
    assert db.get_setting("currency") == "USD"
    assert db.get_setting("missing", "fallback") == "fallback"


def test_open_creates_database_in_folder(tmp_path):
    folder = tmp_path / "data"
    db = DatabaseManager.open(db_folder=str(folder))
    try:
        assert (folder / "expenses.db").exists()
        assert db.get_setting("notifications") == "true"
    finally:
        db.close()
