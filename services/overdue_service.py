import logging
from datetime import date, datetime
from typing import Callable

from database.pending_dao import PendingDAO
from models.pending_occurrence import OverdueItem, OverduePriority, PendingStatus
from utils.constants import OVERDUE_HIGH_AMOUNT, OVERDUE_HIGH_DAYS, OVERDUE_URGENT_DAYS
from utils.date_helpers import as_date, format_date, now as system_now, parse_date

logger = logging.getLogger(__name__)


def overdue_priority(
    days_overdue: int,
    amount: float,
    high_amount: float = OVERDUE_HIGH_AMOUNT,
) -> OverduePriority:
    if days_overdue >= OVERDUE_URGENT_DAYS:
        return OverduePriority.URGENT
    if days_overdue >= OVERDUE_HIGH_DAYS:
        return OverduePriority.HIGH
    if amount > high_amount:
        return OverduePriority.HIGH
    return OverduePriority.MEDIUM


class OverdueService:
    def __init__(
        self,
        pending_dao: PendingDAO,
        clock: Callable[[], datetime] = system_now,
        high_amount: float = OVERDUE_HIGH_AMOUNT,
    ):
        self._dao = pending_dao
        self._clock = clock
        self._high_amount = high_amount

    def _today(self, now: date | datetime | None) -> date:
        return as_date(now if now is not None else self._clock())

    def mark_overdue(self, now: date | datetime | None = None) -> int:
        """pending -> overdue for everything scheduled before today. Idempotent."""
        changed = self._dao.mark_overdue_before(format_date(self._today(now)))
        if changed:
            logger.info("Marked %d pending expenses as overdue", changed)
        return changed

    def list_overdue(self, now: date | datetime | None = None) -> list[OverdueItem]:
        """Unresolved occurrences past their date, most overdue first."""
        today = self._today(now)
        items = []
        for occurrence in self._dao.get_all((PendingStatus.PENDING, PendingStatus.OVERDUE)):
            scheduled = parse_date(occurrence.scheduled_date)
            if scheduled is None or scheduled >= today:
                continue
            days = (today - scheduled).days
            items.append(OverdueItem(
                occurrence=occurrence,
                days_overdue=days,
                priority=overdue_priority(days, occurrence.amount, self._high_amount),
            ))
        items.sort(key=lambda item: (-item.days_overdue, item.occurrence.id))
        return items
