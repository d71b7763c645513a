import logging
import sqlite3
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable

from models.processing_result import ProcessingResult
from services.overdue_service import OverdueService
from services.recurring_service import RecurringService
from utils.constants import PROCESSING_THROTTLE_MINUTES
from utils.date_helpers import as_datetime, now as system_now

logger = logging.getLogger(__name__)


class TriggerReason(str, Enum):
    APP_START = "app_start"
    FOREGROUND = "foreground"
    MANUAL_REFRESH = "manual_refresh"
    EXPENSES_CHANGED = "expenses_changed"


class AppState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BACKGROUND = "background"


class ProcessingTrigger:
    """Runs processing passes in response to app events.

    Only foreground resumes are throttled: one arriving less than the throttle
    interval after the last successful pass does nothing.
    """

    def __init__(
        self,
        recurring_service: RecurringService,
        overdue_service: OverdueService,
        clock: Callable[[], datetime] = system_now,
        throttle: timedelta = timedelta(minutes=PROCESSING_THROTTLE_MINUTES),
    ):
        self._recurring = recurring_service
        self._overdue = overdue_service
        self._clock = clock
        self._throttle = throttle
        self._last_success: datetime | None = None
        self._app_state = AppState.ACTIVE

    @property
    def last_success(self) -> datetime | None:
        return self._last_success

    def fire(
        self,
        reason: TriggerReason,
        now: date | datetime | None = None,
    ) -> ProcessingResult | None:
        """Run a pass for `reason`. Returns None when the trigger was throttled."""
        now = as_datetime(now if now is not None else self._clock())
        if reason is TriggerReason.FOREGROUND and self._is_throttled(now):
            logger.debug("Foreground trigger ignored, last pass at %s", self._last_success)
            return None

        logger.info("Processing recurring expenses (%s)", reason.value)
        try:
            result = self._recurring.process_due(now)
        except sqlite3.Error as exc:
            logger.exception("Processing pass failed before completing")
            result = ProcessingResult(error=str(exc))
        try:
            result.marked_overdue = self._overdue.mark_overdue(now)
        except sqlite3.Error as exc:
            logger.exception("Failed to mark overdue pending expenses")
            result.overdue_error = str(exc)

        if result.ok:
            self._last_success = now
        else:
            logger.warning(
                "Could not refresh (%d failed recurring expenses%s); will retry on next trigger",
                len(result.failures), ", pass aborted" if result.error else "",
            )
        return result

    def on_app_state_change(
        self,
        state: AppState,
        now: date | datetime | None = None,
    ) -> ProcessingResult | None:
        """Fire a foreground pass on background/inactive -> active."""
        previous = self._app_state
        self._app_state = state
        if state is AppState.ACTIVE and previous in (AppState.INACTIVE, AppState.BACKGROUND):
            return self.fire(TriggerReason.FOREGROUND, now)
        return None

    def _is_throttled(self, now: datetime) -> bool:
        if self._last_success is None:
            return False
        return now - self._last_success < self._throttle
