from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BudgetState(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    EXCEEDED = "exceeded"


@dataclass
class Budget:
    id: int
    amount: float
    period: str             # 'weekly' | 'monthly' | 'quarterly' | 'custom'
    start_date: str         # 'YYYY-MM-DD'
    end_date: Optional[str] = None
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass
class BudgetStatus:
    """Point-in-time view of a budget period, the input of the alert rules."""
    budget_id: int
    budget_amount: float
    spent: float
    days_remaining: int
    total_days: int
    average_daily_spending: float = 0.0
    recommended_daily_limit: float = 0.0
    projected_total: float = 0.0

    @property
    def remaining(self) -> float:
        return self.budget_amount - self.spent

    @property
    def spent_ratio(self) -> float:
        if self.budget_amount <= 0:
            return 0.0
        return self.spent / self.budget_amount

    @property
    def state(self) -> BudgetState:
        ratio = self.spent_ratio
        if ratio >= 1.0:
            return BudgetState.EXCEEDED
        if ratio >= 0.75:
            return BudgetState.WARNING
        return BudgetState.SAFE
