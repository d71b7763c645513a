from dataclasses import dataclass
from enum import Enum


class PendingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SKIPPED = "skipped"
    OVERDUE = "overdue"

    @property
    def is_terminal(self) -> bool:
        return self in (PendingStatus.CONFIRMED, PendingStatus.SKIPPED)


class OverduePriority(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class PendingOccurrence:
    id: int
    recurring_expense_id: int
    scheduled_date: str     # 'YYYY-MM-DD'
    amount: float
    description: str
    category: str
    status: PendingStatus = PendingStatus.PENDING
    created_at: str = ""


@dataclass
class OverdueItem:
    occurrence: PendingOccurrence
    days_overdue: int
    priority: OverduePriority

    @property
    def id(self) -> int:
        return self.occurrence.id

    @property
    def amount(self) -> float:
        return self.occurrence.amount

    @property
    def due_date(self) -> str:
        return self.occurrence.scheduled_date
