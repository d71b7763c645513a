import logging
from datetime import timedelta
import os
import sys

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.pending_dao import PendingDAO
from database.expense_dao import ExpenseDAO
from database.budget_dao import BudgetDAO

from services.recurring_service import RecurringService
from services.pending_service import PendingExpenseService
from services.overdue_service import OverdueService
from services.budget_service import BudgetService
from services.budget_alert_service import BudgetAlertService, log_sink
from services.processing_trigger import ProcessingTrigger, TriggerReason

from utils.app_config import get_settings
from utils.constants import APP_NAME
from utils.currency import currency_symbol, format_currency
from utils.date_helpers import end_of_month, format_date, now

logger = logging.getLogger(__name__)


def main():
    # ── Bootstrap: config.json + environment ─────────────────────────────────
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open(db_folder=settings.db_folder)

    # ── DAOs ─────────────────────────────────────────────────────────────────
    recurring_dao = RecurringDAO(db)
    pending_dao = PendingDAO(db)
    expense_dao = ExpenseDAO(db)
    budget_dao = BudgetDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    recurring_svc = RecurringService(recurring_dao, pending_dao)
    pending_svc = PendingExpenseService(pending_dao, expense_dao)
    overdue_svc = OverdueService(pending_dao, high_amount=settings.overdue_high_amount)
    budget_svc = BudgetService(budget_dao, expense_dao)
    notifications_on = db.get_setting("notifications", "true") == "true"
    alert_svc = BudgetAlertService(
        sink=log_sink if notifications_on else None,
        max_alerts=settings.max_alerts,
    )
    trigger = ProcessingTrigger(
        recurring_svc, overdue_svc,
        throttle=timedelta(minutes=settings.throttle_minutes),
    )

    symbol = currency_symbol(db.get_setting("currency", "COP"))

    def money(amount: float) -> str:
        return format_currency(amount, symbol)

    try:
        # ── App start pass ───────────────────────────────────────────────────
        result = trigger.fire(TriggerReason.APP_START)
        if not result.ok:
            print("Could not refresh some recurring expenses; they will be retried next time.")

        print(f"{APP_NAME}")
        print(f"Monthly recurring projection: {money(recurring_svc.monthly_projection())}")

        month_start = now().date().replace(day=1)
        stats = budget_svc.recurring_stats(format_date(month_start), format_date(end_of_month(month_start)))
        print(
            f"This month: {money(stats.total_combined)} spent, "
            f"{stats.recurring_percentage:.0f}% from recurring expenses"
        )

        pending = pending_svc.get_pending()
        print(f"\nPending expenses ({len(pending)}):")
        for p in pending:
            print(f"  #{p.id} {p.scheduled_date}  {money(p.amount):>14}  {p.description} [{p.status.value}]")

        overdue = overdue_svc.list_overdue()
        if overdue:
            print(f"\nOverdue ({len(overdue)}):")
            for item in overdue:
                print(
                    f"  {item.priority.value.upper():<7} {item.days_overdue:>3} days since {item.due_date}  "
                    f"{money(item.amount):>14}  {item.occurrence.description}"
                )

        budgets = budget_svc.get_active()
        if budgets:
            print(f"\nBudgets ({len(budgets)}):")
            for budget in budgets:
                status = budget_svc.get_status(budget.id)
                print(
                    f"  #{budget.id} {budget.period:<9} {money(status.spent):>14} of {money(status.budget_amount)}"
                    f"  [{status.state.value}] {status.days_remaining} days left"
                )

        alerts = budget_svc.check_alerts(alert_svc)
        if alerts:
            print(f"\nBudget alerts ({len(alerts)}):")
            for alert in alerts:
                print(f"  [{alert.priority.value}] {alert.title}: {alert.message}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
