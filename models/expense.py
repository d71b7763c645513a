from dataclasses import dataclass
from typing import Optional


@dataclass
class Expense:
    id: int
    amount: float
    description: str
    category: str
    date: str               # 'YYYY-MM-DD'
    recurring_expense_id: Optional[int] = None
    created_at: str = ""

    @property
    def is_recurring(self) -> bool:
        return self.recurring_expense_id is not None


@dataclass
class RecurringStats:
    """Recurring vs. manual spending over a date range."""
    total_recurring: float = 0.0
    total_manual: float = 0.0
    recurring_count: int = 0
    manual_count: int = 0

    @property
    def total_combined(self) -> float:
        return self.total_recurring + self.total_manual

    @property
    def recurring_percentage(self) -> float:
        if self.total_combined <= 0:
            return 0.0
        return self.total_recurring / self.total_combined * 100
