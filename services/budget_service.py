import logging
from datetime import date, datetime, timedelta
from typing import Callable

from database.budget_dao import BudgetDAO
from database.expense_dao import ExpenseDAO
from models.budget import Budget, BudgetStatus
from models.budget_alert import BudgetAlert
from models.expense import RecurringStats
from services.budget_alert_service import BudgetAlertService
from services.errors import NotFoundError, ValidationError
from utils.constants import BUDGET_PERIODS
from utils.date_helpers import add_months, as_date, end_of_month, format_date, now as system_now, parse_date

logger = logging.getLogger(__name__)


def period_end(budget: Budget) -> date:
    """Explicit end_date, else the natural end of the budget's period."""
    if budget.end_date:
        return parse_date(budget.end_date)
    start = parse_date(budget.start_date)
    if budget.period == "weekly":
        return start + timedelta(days=6)
    if budget.period == "quarterly":
        return add_months(start, 3) - timedelta(days=1)
    return end_of_month(start)


def build_status(budget: Budget, spent: float, today: date) -> BudgetStatus:
    start = parse_date(budget.start_date)
    end = period_end(budget)
    total_days = (end - start).days + 1
    # Today counts as an elapsed day.
    days_elapsed = max(0, (today - start).days + 1)
    days_remaining = max(0, total_days - days_elapsed)
    remaining = budget.amount - spent

    average = spent / days_elapsed if days_elapsed > 0 else 0.0
    return BudgetStatus(
        budget_id=budget.id,
        budget_amount=budget.amount,
        spent=spent,
        days_remaining=days_remaining,
        total_days=total_days,
        average_daily_spending=average,
        recommended_daily_limit=remaining / days_remaining if days_remaining > 0 else 0.0,
        projected_total=average * total_days,
    )


class BudgetService:
    def __init__(
        self,
        budget_dao: BudgetDAO,
        expense_dao: ExpenseDAO,
        clock: Callable[[], datetime] = system_now,
    ):
        self._budget_dao = budget_dao
        self._expense_dao = expense_dao
        self._clock = clock

    def get_active(self) -> list[Budget]:
        return self._budget_dao.get_active()

    def create(self, amount: float, period: str, start_date: str, end_date: str | None = None) -> Budget:
        errors = []
        if amount is None or amount <= 0:
            errors.append("Budget amount must be greater than 0.")
        if period not in BUDGET_PERIODS:
            errors.append("Invalid budget period.")
        start = parse_date(start_date)
        if start is None:
            errors.append("Invalid start date.")
        if period == "custom" and not end_date:
            errors.append("Custom budgets need an end date.")
        if end_date:
            end = parse_date(end_date)
            if end is None or (start is not None and end < start):
                errors.append("Invalid end date.")
        if errors:
            raise ValidationError(errors)
        return self._budget_dao.create(amount, period, start_date, end_date)

    def set_active(self, budget_id: int, is_active: bool) -> None:
        if not self._budget_dao.set_active(budget_id, is_active):
            raise NotFoundError(f"Budget {budget_id} not found")

    def recurring_stats(self, start_date: str, end_date: str) -> RecurringStats:
        """Split spending between posted recurring occurrences and manual expenses."""
        stats = RecurringStats()
        for expense in self._expense_dao.get_by_date_range(start_date, end_date):
            if expense.is_recurring:
                stats.total_recurring += expense.amount
                stats.recurring_count += 1
            else:
                stats.total_manual += expense.amount
                stats.manual_count += 1
        return stats

    def get_status(self, budget_id: int, now: date | datetime | None = None) -> BudgetStatus:
        budget = self._budget_dao.get_by_id(budget_id)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        return self._status_for(budget, as_date(now if now is not None else self._clock()))

    def _status_for(self, budget: Budget, today: date) -> BudgetStatus:
        spent = self._expense_dao.get_total_between(budget.start_date, format_date(period_end(budget)))
        return build_status(budget, spent, today)

    def check_alerts(
        self,
        alert_service: BudgetAlertService,
        now: date | datetime | None = None,
    ) -> list[BudgetAlert]:
        """Evaluate every active budget; per-budget failures are logged and skipped."""
        now = now if now is not None else self._clock()
        today = as_date(now)
        alerts = []
        for budget in self._budget_dao.get_active():
            try:
                status = self._status_for(budget, today)
            except Exception:
                logger.exception("Could not compute status for budget %s", budget.id)
                continue
            alerts.extend(alert_service.evaluate(status, now))
        return alerts
