APP_NAME = "Expense Tracker"
DB_FILE = "expenses.db"
CONFIG_DIR_NAME = ".expense_engine"

DATE_FORMAT = "%Y-%m-%d"

# Recurring rules
INTERVAL_OPTIONS = (7, 15, 30)
MONTHLY_INTERVAL = 30
MIN_EXECUTION_DAY = 1
MAX_EXECUTION_DAY = 31
NOTIFY_DAYS_OPTIONS = (1, 3, 7)

# Executions per month used by the monthly projection
MONTHLY_EXECUTIONS = {
    7: 4.33,
    15: 2,
    30: 1,
}

# Overdue tracking
OVERDUE_URGENT_DAYS = 7
OVERDUE_HIGH_DAYS = 3
OVERDUE_HIGH_AMOUNT = 100_000

# Processing trigger
PROCESSING_THROTTLE_MINUTES = 5

# Budget alerts
MAX_ALERTS = 50
WARNING_75_RATIO = 0.75
WARNING_90_RATIO = 0.90
EXCEEDED_RATIO = 1.0
DAILY_LIMIT_FACTOR = 1.5
PREDICTION_FACTOR = 1.1
PREDICTION_MIN_DAYS_REMAINING = 7

# Cooldowns in hours
ALERT_COOLDOWN_HOURS = {
    "warning_75": 24,
    "warning_90": 12,
    "exceeded_100": 6,
    "daily_limit": 24,
    "monthly_prediction": 7 * 24,
}

BUDGET_PERIODS = ("weekly", "monthly", "quarterly", "custom")

DEFAULT_SETTINGS = [
    ("currency", "COP"),
    ("notifications", "true"),
]

CURRENCY_SYMBOLS = {
    "COP": "$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}
