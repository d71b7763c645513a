"""Next-occurrence arithmetic for recurring definitions.

Everything here is a pure function of its arguments: no clock, no storage.
Day-of-month values are clamped to the length of the target month, so day 31
lands on the 30th in April and on the 28th/29th in February instead of being
skipped.
"""
from datetime import date, timedelta
from typing import Iterable

from models.recurring_definition import RecurringDefinition, RuleKind
from utils.date_helpers import clamp_day_to_month, parse_date, shift_month


def clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, clamp_day_to_month(year, month, day))


def candidate_dates_in_month(days: Iterable[int], year: int, month: int) -> list[date]:
    """Sorted occurrence dates of a days-of-month rule within one month.

    Days that clamp onto the same date (30 and 31 in April) count once.
    """
    return sorted({clamp_day(year, month, d) for d in days})


def is_candidate(days: Iterable[int], d: date) -> bool:
    return d in candidate_dates_in_month(days, d.year, d.month)


def catch_up_interval_date(start: date, interval_days: int, reference: date) -> date:
    """First date of the series start + k * interval_days strictly after reference."""
    if start > reference:
        return start
    steps = (reference - start).days // interval_days + 1
    return start + timedelta(days=steps * interval_days)


def next_interval_date(previous_due: date, interval_days: int, reference: date) -> date:
    """Advance a fired interval rule by one step, catching up if it was stale."""
    candidate = previous_due + timedelta(days=interval_days)
    if candidate <= reference:
        return catch_up_interval_date(candidate, interval_days, reference)
    return candidate


def next_monthly_date(start_day: int, reference: date) -> date:
    """Same day-of-month as the start date, strictly after reference."""
    candidate = clamp_day(reference.year, reference.month, start_day)
    if reference >= candidate:
        year, month = shift_month(reference.year, reference.month)
        candidate = clamp_day(year, month, start_day)
    return candidate


def next_multiple_dates_date(days: Iterable[int], reference: date) -> date:
    """Smallest candidate after reference this month, else the first one next month."""
    days = list(days)
    for candidate in candidate_dates_in_month(days, reference.year, reference.month):
        if candidate > reference:
            return candidate
    year, month = shift_month(reference.year, reference.month)
    return candidate_dates_in_month(days, year, month)[0]


def first_multiple_dates_on_or_after(days: Iterable[int], reference: date) -> date:
    return next_multiple_dates_date(days, reference - timedelta(days=1))


def multiple_dates_window(days: Iterable[int], due: date, today: date) -> list[date]:
    """Occurrences a days-of-month rule materializes in one processing pass.

    The due date itself when it is stale (and a real occurrence of its month),
    plus every candidate of the current month on or after today. When the
    current month has none left, the first candidate of the next month.
    """
    days = list(days)
    window = set()
    if due < today and is_candidate(days, due):
        window.add(due)

    current = [c for c in candidate_dates_in_month(days, today.year, today.month) if c >= today]
    if not current:
        year, month = shift_month(today.year, today.month)
        current = candidate_dates_in_month(days, year, month)[:1]
    window.update(current)
    return sorted(window)


def next_occurrence(definition: RecurringDefinition, reference: date) -> date:
    """Next due date of a definition that has fired, strictly after reference."""
    kind = definition.rule_kind
    if kind is RuleKind.MULTIPLE_DATES:
        return next_multiple_dates_date(definition.execution_dates, reference)
    start = parse_date(definition.start_date)
    if kind is RuleKind.MONTHLY:
        return next_monthly_date(start.day, reference)
    previous_due = parse_date(definition.next_due_date) or start
    return next_interval_date(previous_due, definition.interval_days, reference)


def initial_due_date(definition: RecurringDefinition, today: date) -> date:
    """First occurrence on or after max(start_date, today).

    Used for new definitions and whenever the schedule is recomputed from
    today (rule edits, resuming a stale definition on request).
    """
    start = parse_date(definition.start_date)
    base = max(start, today)
    kind = definition.rule_kind
    if kind is RuleKind.MULTIPLE_DATES:
        return first_multiple_dates_on_or_after(definition.execution_dates, base)
    if kind is RuleKind.MONTHLY:
        return next_monthly_date(start.day, base - timedelta(days=1))
    return catch_up_interval_date(start, definition.interval_days, today - timedelta(days=1))
