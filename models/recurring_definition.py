from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from utils.constants import MONTHLY_INTERVAL


class RuleKind(str, Enum):
    INTERVAL = "interval"              # every 7 or 15 days
    MONTHLY = "monthly"                # interval 30: same day-of-month as start_date
    MULTIPLE_DATES = "multiple_dates"  # explicit days of the month


@dataclass
class RecurringDefinition:
    id: int
    amount: float
    description: str
    category: str
    start_date: str                 # 'YYYY-MM-DD'
    next_due_date: str              # 'YYYY-MM-DD'
    interval_days: Optional[int] = None          # 7 | 15 | 30, None when execution_dates is used
    execution_dates: list[int] = field(default_factory=list)  # days of month, 1-31
    is_active: bool = True
    last_executed: Optional[str] = None
    end_date: Optional[str] = None
    requires_confirmation: bool = True
    notify_days_before: int = 1
    created_at: str = ""
    updated_at: str = ""

    @property
    def rule_kind(self) -> RuleKind:
        if self.execution_dates:
            return RuleKind.MULTIPLE_DATES
        if self.interval_days == MONTHLY_INTERVAL:
            return RuleKind.MONTHLY
        return RuleKind.INTERVAL

    @property
    def frequency_label(self) -> str:
        if self.execution_dates:
            days = ", ".join(str(d) for d in sorted(self.execution_dates))
            return f"Days {days} of the month"
        if self.interval_days == MONTHLY_INTERVAL:
            return "Monthly"
        return f"Every {self.interval_days} days"
