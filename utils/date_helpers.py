from datetime import date, datetime
import calendar
from utils.constants import DATE_FORMAT


def now() -> datetime:
    """Default clock. Services take this as an injectable collaborator."""
    return datetime.now()


def as_date(value: date | datetime) -> date:
    """Calendar date of a clock reading (datetime is a date subclass)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def shift_month(year: int, month: int, n: int = 1) -> tuple[int, int]:
    """Return (year, month) n months after the given one."""
    index = month - 1 + n
    return year + index // 12, index % 12 + 1


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    year, month = shift_month(d.year, d.month, n)
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def end_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))
