import logging
import sqlite3

from database.expense_dao import ExpenseDAO
from database.pending_dao import PendingDAO
from models.expense import Expense
from models.pending_occurrence import PendingOccurrence, PendingStatus
from services.errors import InvalidTransitionError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PendingStatus.PENDING: {PendingStatus.CONFIRMED, PendingStatus.SKIPPED, PendingStatus.OVERDUE},
    PendingStatus.OVERDUE: {PendingStatus.CONFIRMED, PendingStatus.SKIPPED},
    PendingStatus.CONFIRMED: set(),
    PendingStatus.SKIPPED: set(),
}


def can_transition(current: PendingStatus, target: PendingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class PendingExpenseService:
    """User-facing resolution of pending occurrences: confirm or skip."""

    def __init__(self, pending_dao: PendingDAO, expense_dao: ExpenseDAO):
        self._dao = pending_dao
        self._expense_dao = expense_dao

    def get_pending(self) -> list[PendingOccurrence]:
        return [p for p in self._dao.get_all() if not p.status.is_terminal]

    def get_by_id(self, pending_id: int) -> PendingOccurrence | None:
        return self._dao.get_by_id(pending_id)

    def confirm(
        self,
        pending_id: int,
        amount: float | None = None,
        description: str | None = None,
    ) -> Expense:
        """Post the occurrence as an expense (optionally edited) and drop the pending row."""
        if amount is not None and amount <= 0:
            raise ValidationError(["Amount must be greater than 0."])
        pending = self._check_transition(pending_id, PendingStatus.CONFIRMED)

        expense = self._expense_dao.create(
            amount=amount if amount is not None else pending.amount,
            description=(description or "").strip() or pending.description,
            category=pending.category,
            date=pending.scheduled_date,
            recurring_expense_id=pending.recurring_expense_id,
        )
        try:
            self._dao.resolve(pending.id, PendingStatus.CONFIRMED)
        except sqlite3.Error:
            # The occurrence is still open, so the posted expense must go too.
            self._expense_dao.delete(expense.id)
            raise
        logger.info(
            "Confirmed pending expense %s as expense %s (%.2f)",
            pending_id, expense.id, expense.amount,
        )
        return expense

    def skip(self, pending_id: int) -> None:
        pending = self._check_transition(pending_id, PendingStatus.SKIPPED)
        self._dao.resolve(pending.id, PendingStatus.SKIPPED)
        logger.info("Skipped pending expense %s scheduled for %s", pending_id, pending.scheduled_date)

    def _check_transition(self, pending_id: int, target: PendingStatus) -> PendingOccurrence:
        pending = self._dao.get_by_id(pending_id)
        if pending is None:
            raise NotFoundError(f"Pending expense {pending_id} not found")
        if not can_transition(pending.status, target):
            raise InvalidTransitionError(
                f"Pending expense {pending_id} cannot go from {pending.status.value} to {target.value}"
            )
        return pending
