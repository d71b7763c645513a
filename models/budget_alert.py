from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AlertType(str, Enum):
    WARNING_75 = "warning_75"
    WARNING_90 = "warning_90"
    EXCEEDED_100 = "exceeded_100"
    DAILY_LIMIT = "daily_limit"
    MONTHLY_PREDICTION = "monthly_prediction"


class AlertPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


@dataclass
class BudgetAlert:
    id: str
    type: AlertType
    title: str
    message: str
    priority: AlertPriority
    budget_id: int
    timestamp: datetime
    is_read: bool = False
