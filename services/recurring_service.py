import logging
from datetime import date, datetime
from typing import Callable

from database.pending_dao import PendingDAO
from database.recurring_dao import RecurringDAO
from models.pending_occurrence import PendingOccurrence
from models.processing_result import ProcessingResult
from models.recurring_definition import RecurringDefinition, RuleKind
from services import date_rules
from services.errors import NotFoundError, ValidationError
from utils.constants import (
    INTERVAL_OPTIONS,
    MAX_EXECUTION_DAY,
    MIN_EXECUTION_DAY,
    MONTHLY_EXECUTIONS,
    NOTIFY_DAYS_OPTIONS,
)
from utils.date_helpers import as_date, format_date, now as system_now, parse_date

logger = logging.getLogger(__name__)

# Fields whose change invalidates the stored next_due_date.
_SCHEDULE_FIELDS = ("interval_days", "execution_dates", "start_date")


class RecurringService:
    """Owns recurring definitions and materializes their due occurrences."""

    def __init__(
        self,
        recurring_dao: RecurringDAO,
        pending_dao: PendingDAO,
        clock: Callable[[], datetime] = system_now,
    ):
        self._dao = recurring_dao
        self._pending_dao = pending_dao
        self._clock = clock

    def _today(self, now: date | datetime | None = None) -> date:
        return as_date(now if now is not None else self._clock())

    # ── Definitions ──────────────────────────────────────────────────────────

    def get_all(self) -> list[RecurringDefinition]:
        return self._dao.get_all()

    def get_active(self) -> list[RecurringDefinition]:
        return self._dao.get_active()

    def get_by_id(self, definition_id: int) -> RecurringDefinition | None:
        return self._dao.get_by_id(definition_id)

    def create(
        self,
        amount: float,
        description: str,
        category: str,
        start_date: str,
        interval_days: int | None = None,
        execution_dates: list[int] | None = None,
        end_date: str | None = None,
        requires_confirmation: bool = True,
        notify_days_before: int = 1,
        now: date | datetime | None = None,
    ) -> RecurringDefinition:
        self.validate(
            amount, description, category, start_date,
            interval_days, execution_dates, end_date, notify_days_before,
        )
        draft = RecurringDefinition(
            id=0, amount=amount, description=description.strip(),
            category=category.strip(), start_date=start_date, next_due_date=start_date,
            interval_days=interval_days, execution_dates=sorted(set(execution_dates or [])),
        )
        next_due = date_rules.initial_due_date(draft, self._today(now))
        definition = self._dao.create(
            amount=amount, description=draft.description, category=draft.category,
            start_date=start_date, next_due_date=format_date(next_due),
            interval_days=interval_days, execution_dates=draft.execution_dates,
            end_date=end_date, requires_confirmation=requires_confirmation,
            notify_days_before=notify_days_before,
        )
        logger.info(
            "Created recurring expense %s (%s), first due %s",
            definition.id, definition.frequency_label, definition.next_due_date,
        )
        return definition

    def update(self, definition_id: int, now: date | datetime | None = None, **fields) -> RecurringDefinition:
        """Apply a user edit. Rule changes recompute next_due_date from today."""
        current = self._require(definition_id)
        merged = {
            "amount": current.amount,
            "description": current.description,
            "category": current.category,
            "start_date": current.start_date,
            "interval_days": current.interval_days,
            "execution_dates": current.execution_dates,
            "end_date": current.end_date,
            "notify_days_before": current.notify_days_before,
        }
        merged.update({k: v for k, v in fields.items() if k in merged})
        self.validate(**merged)

        for name in ("description", "category"):
            if name in fields:
                fields[name] = fields[name].strip()
        if "execution_dates" in fields:
            fields["execution_dates"] = sorted(set(fields["execution_dates"] or []))

        if any(name in fields for name in _SCHEDULE_FIELDS):
            draft = RecurringDefinition(
                id=current.id, amount=merged["amount"], description=merged["description"],
                category=merged["category"], start_date=merged["start_date"],
                next_due_date=current.next_due_date, interval_days=merged["interval_days"],
                execution_dates=list(merged["execution_dates"] or []),
            )
            fields["next_due_date"] = format_date(date_rules.initial_due_date(draft, self._today(now)))

        updated = self._dao.update(definition_id, **fields)
        if updated is None:
            raise NotFoundError(f"Recurring expense {definition_id} not found")
        return updated

    def pause(self, definition_id: int) -> None:
        if not self._dao.set_active(definition_id, False):
            raise NotFoundError(f"Recurring expense {definition_id} not found")
        logger.info("Paused recurring expense %s", definition_id)

    def is_stale(self, definition: RecurringDefinition, now: date | datetime | None = None) -> bool:
        """True when the stored due date is already behind today."""
        return parse_date(definition.next_due_date) < self._today(now)

    def resume(
        self,
        definition_id: int,
        recompute: bool = False,
        now: date | datetime | None = None,
    ) -> RecurringDefinition:
        """Reactivate a definition.

        recompute=False keeps a stale next_due_date, so the next pass
        materializes one backlog occurrence; recompute=True moves it to the
        first occurrence on or after today. Which one applies is the caller's
        decision.
        """
        current = self._require(definition_id)
        fields = {"is_active": True}
        if recompute:
            fields["next_due_date"] = format_date(date_rules.initial_due_date(current, self._today(now)))
        updated = self._dao.update(definition_id, **fields)
        if updated is None:
            raise NotFoundError(f"Recurring expense {definition_id} not found")
        logger.info("Resumed recurring expense %s, next due %s", definition_id, updated.next_due_date)
        return updated

    def delete(self, definition_id: int) -> None:
        self._dao.delete(definition_id)

    def monthly_projection(self) -> int:
        """Expected monthly total of all active definitions."""
        total = 0.0
        for definition in self._dao.get_active():
            if definition.execution_dates:
                executions = len(definition.execution_dates)
            else:
                executions = MONTHLY_EXECUTIONS.get(definition.interval_days, 0)
            total += definition.amount * executions
        return round(total)

    # ── Processing ───────────────────────────────────────────────────────────

    def process_due(self, now: date | datetime | None = None) -> ProcessingResult:
        """Materialize every due occurrence and advance each definition.

        Safe to call repeatedly: an occurrence is only written if none exists
        for the same (definition, date), and each definition is advanced past
        today. A failing definition is logged and reported; the others still run.
        """
        today = self._today(now)
        result = ProcessingResult()

        for definition in self._dao.get_active():
            due = parse_date(definition.next_due_date)
            if due is None or due > today:
                continue
            try:
                created = self._process_definition(definition.id, today)
            except Exception as exc:
                logger.exception("Failed to process recurring expense %s", definition.id)
                result.failures.append((definition.id, str(exc)))
                continue
            if created is None:
                continue
            result.created.extend(created)
            result.processed_ids.append(definition.id)

        if result.created or result.failures:
            logger.info(
                "Processed %d recurring expenses: %d occurrences created, %d failures",
                len(result.processed_ids), len(result.created), len(result.failures),
            )
        return result

    def _process_definition(self, definition_id: int, today: date) -> list[PendingOccurrence] | None:
        # Re-read so a definition deleted or paused mid-pass is left alone.
        definition = self._dao.get_by_id(definition_id)
        if definition is None or not definition.is_active:
            logger.debug("Recurring expense %s vanished during processing", definition_id)
            return None
        due = parse_date(definition.next_due_date)
        if due > today:
            return []

        if definition.rule_kind is RuleKind.MULTIPLE_DATES:
            dates = date_rules.multiple_dates_window(definition.execution_dates, due, today)
            next_due = date_rules.next_multiple_dates_date(definition.execution_dates, dates[-1])
        else:
            dates = [due]
            next_due = date_rules.next_occurrence(definition, today)

        created = []
        for scheduled in dates:
            occurrence = self._materialize(definition, scheduled)
            if occurrence is not None:
                created.append(occurrence)

        fields = {"next_due_date": format_date(next_due), "last_executed": format_date(today)}
        end = parse_date(definition.end_date) if definition.end_date else None
        if end and next_due > end:
            fields["is_active"] = False
            logger.info("Recurring expense %s reached its end date %s", definition.id, definition.end_date)
        if self._dao.update(definition.id, **fields) is None:
            logger.debug("Recurring expense %s deleted before it could be advanced", definition.id)
        return created

    def _materialize(self, definition: RecurringDefinition, scheduled: date) -> PendingOccurrence | None:
        scheduled_str = format_date(scheduled)
        if self._pending_dao.get_by_date(definition.id, scheduled_str) is not None:
            return None
        end = parse_date(definition.end_date) if definition.end_date else None
        if end and scheduled > end:
            return None
        occurrence = self._pending_dao.create(
            recurring_expense_id=definition.id,
            scheduled_date=scheduled_str,
            amount=definition.amount,
            description=definition.description,
            category=definition.category,
        )
        logger.debug("Materialized %s for recurring expense %s", scheduled_str, definition.id)
        return occurrence

    # ── Validation ───────────────────────────────────────────────────────────

    def _require(self, definition_id: int) -> RecurringDefinition:
        definition = self._dao.get_by_id(definition_id)
        if definition is None:
            raise NotFoundError(f"Recurring expense {definition_id} not found")
        return definition

    def validate(
        self,
        amount,
        description,
        category,
        start_date,
        interval_days=None,
        execution_dates=None,
        end_date=None,
        notify_days_before=1,
    ) -> None:
        errors = []
        if amount is None or amount <= 0:
            errors.append("Amount must be greater than 0.")
        if not description or not description.strip():
            errors.append("Description is required.")
        if not category or not category.strip():
            errors.append("Category is required.")

        start = parse_date(start_date) if start_date else None
        if not start_date:
            errors.append("Start date is required.")
        elif start is None:
            errors.append("Invalid start date.")

        if execution_dates:
            if interval_days is not None:
                errors.append("Use either an interval or execution dates, not both.")
            if any(
                not isinstance(day, int) or not MIN_EXECUTION_DAY <= day <= MAX_EXECUTION_DAY
                for day in execution_dates
            ):
                errors.append("Execution days must be between 1 and 31.")
        elif interval_days is None:
            errors.append("An interval or execution dates are required.")
        elif interval_days not in INTERVAL_OPTIONS:
            errors.append("Interval must be 7, 15 or 30 days.")

        if end_date:
            end = parse_date(end_date)
            if end is None:
                errors.append("Invalid end date.")
            elif start is not None and end < start:
                errors.append("End date cannot be before start date.")

        if notify_days_before not in NOTIFY_DAYS_OPTIONS:
            errors.append("Reminder must be 1, 3 or 7 days before.")

        if errors:
            raise ValidationError(errors)
