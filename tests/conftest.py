from datetime import datetime, timedelta

import pytest

from database.budget_dao import BudgetDAO
from database.db_manager import DatabaseManager
from database.expense_dao import ExpenseDAO
from database.pending_dao import PendingDAO
from database.recurring_dao import RecurringDAO
from services.budget_alert_service import BudgetAlertService
from services.budget_service import BudgetService
from services.overdue_service import OverdueService
from services.pending_service import PendingExpenseService
from services.recurring_service import RecurringService


class FixedClock:
    """Injectable clock the tests move by hand."""

    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value

    def advance(self, **kwargs):
        self.value += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 2, 5, 9, 0))


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def pending_dao(db):
    return PendingDAO(db)


@pytest.fixture
def expense_dao(db):
    return ExpenseDAO(db)


@pytest.fixture
def budget_dao(db):
    return BudgetDAO(db)


@pytest.fixture
def recurring_service(recurring_dao, pending_dao, clock):
    return RecurringService(recurring_dao, pending_dao, clock=clock)


@pytest.fixture
def pending_service(pending_dao, expense_dao):
    return PendingExpenseService(pending_dao, expense_dao)


@pytest.fixture
def overdue_service(pending_dao, clock):
    return OverdueService(pending_dao, clock=clock)


@pytest.fixture
def budget_service(budget_dao, expense_dao, clock):
    return BudgetService(budget_dao, expense_dao, clock=clock)


@pytest.fixture
def alert_service(clock):
    return BudgetAlertService(clock=clock, sink=None)


@pytest.fixture
def make_definition(recurring_dao):
    """Insert a definition row directly, with next_due_date chosen by the test."""

    def _make(**overrides):
        values = {
            "amount": 50000.0,
            "description": "Rent",
            "category": "Housing",
            "start_date": "2024-01-05",
            "next_due_date": "2024-02-05",
            "interval_days": 30,
        }
        if overrides.get("execution_dates") and "interval_days" not in overrides:
            values["interval_days"] = None
        values.update(overrides)
        return recurring_dao.create(**values)

    return _make


@pytest.fixture
def make_pending(pending_dao, make_definition):
    """Insert a pending occurrence owned by a fresh definition."""

    def _make(scheduled_date: str, amount: float = 500.0, description: str = "Internet"):
        definition = make_definition(description=description, amount=amount)
        return pending_dao.create(
            recurring_expense_id=definition.id,
            scheduled_date=scheduled_date,
            amount=amount,
            description=description,
            category=definition.category,
        )

    return _make
