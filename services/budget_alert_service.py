import logging
from datetime import date, datetime, timedelta
from typing import Callable

from models.budget import BudgetStatus
from models.budget_alert import AlertPriority, AlertType, BudgetAlert
from utils.constants import (
    ALERT_COOLDOWN_HOURS,
    DAILY_LIMIT_FACTOR,
    EXCEEDED_RATIO,
    MAX_ALERTS,
    PREDICTION_FACTOR,
    PREDICTION_MIN_DAYS_REMAINING,
    WARNING_75_RATIO,
    WARNING_90_RATIO,
)
from utils.currency import format_currency
from utils.date_helpers import as_datetime, now as system_now

logger = logging.getLogger(__name__)

AlertSink = Callable[[BudgetAlert], None]
AlertListener = Callable[[list[BudgetAlert]], None]


def log_sink(alert: BudgetAlert) -> None:
    """Default delivery: write the alert to the log."""
    logger.info("Budget alert: %s - %s", alert.title, alert.message)


def cooldown_for(alert_type: AlertType) -> timedelta:
    return timedelta(hours=ALERT_COOLDOWN_HOURS[alert_type.value])


class BudgetAlertService:
    """Turns budget status snapshots into alerts, at most once per cooldown per key.

    Cooldown timestamps live in memory only, so they reset on restart.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = system_now,
        sink: AlertSink | None = log_sink,
        max_alerts: int = MAX_ALERTS,
    ):
        self._clock = clock
        self._sink = sink
        self._max_alerts = max_alerts
        self._alerts: list[BudgetAlert] = []
        self._last_fired: dict[str, datetime] = {}
        self._listeners: list[AlertListener] = []

    # ── Evaluation ───────────────────────────────────────────────────────────

    def evaluate(self, status: BudgetStatus, now: date | datetime | None = None) -> list[BudgetAlert]:
        now = as_datetime(now if now is not None else self._clock())
        new_alerts = [
            alert
            for alert in self._candidate_alerts(status, now)
            if alert is not None
        ]
        if not new_alerts:
            return []

        # Newest first; the store keeps only the latest max_alerts.
        self._alerts[:0] = new_alerts
        del self._alerts[self._max_alerts:]

        for alert in new_alerts:
            self._deliver(alert)
        self._notify_listeners()
        return new_alerts

    def _candidate_alerts(self, status: BudgetStatus, now: datetime):
        budget_id = status.budget_id
        ratio = status.spent_ratio

        if WARNING_75_RATIO <= ratio < WARNING_90_RATIO:
            yield self._fire(
                AlertType.WARNING_75, f"warning_75_{budget_id}", budget_id, now,
                title="Budget at 75%",
                message=(
                    f"You have spent {ratio * 100:.1f}% of your budget. "
                    f"Consider slowing down your spending."
                ),
                priority=AlertPriority.NORMAL,
            )

        if WARNING_90_RATIO <= ratio < EXCEEDED_RATIO:
            yield self._fire(
                AlertType.WARNING_90, f"warning_90_{budget_id}", budget_id, now,
                title="Budget at 90%",
                message=(
                    f"Careful! You have spent {ratio * 100:.1f}% of your budget. "
                    f"Only {format_currency(status.remaining)} left."
                ),
                priority=AlertPriority.HIGH,
            )

        if ratio >= EXCEEDED_RATIO:
            yield self._fire(
                AlertType.EXCEEDED_100, f"exceeded_100_{budget_id}", budget_id, now,
                title="Budget exceeded",
                message=(
                    f"You are over your budget by {format_currency(status.spent - status.budget_amount)}. "
                    f"Review your recent expenses."
                ),
                priority=AlertPriority.HIGH,
            )

        if (
            status.days_remaining > 0
            and status.average_daily_spending > status.recommended_daily_limit * DAILY_LIMIT_FACTOR
        ):
            yield self._fire(
                AlertType.DAILY_LIMIT, f"daily_limit_{budget_id}_{now.date().isoformat()}", budget_id, now,
                title="Daily limit exceeded",
                message=(
                    f"Your average daily spending ({format_currency(status.average_daily_spending)}) "
                    f"is above the recommended {format_currency(status.recommended_daily_limit)}."
                ),
                priority=AlertPriority.NORMAL,
            )

        if (
            status.projected_total > status.budget_amount * PREDICTION_FACTOR
            and status.days_remaining > PREDICTION_MIN_DAYS_REMAINING
        ):
            yield self._fire(
                AlertType.MONTHLY_PREDICTION, f"monthly_prediction_{budget_id}", budget_id, now,
                title="Projected overspend",
                message=(
                    f"At this pace you will exceed your budget by "
                    f"{format_currency(status.projected_total - status.budget_amount)} this period."
                ),
                priority=AlertPriority.NORMAL,
            )

    def _fire(
        self,
        alert_type: AlertType,
        key: str,
        budget_id: int,
        now: datetime,
        title: str,
        message: str,
        priority: AlertPriority,
    ) -> BudgetAlert | None:
        if self.was_recently_notified(key, cooldown_for(alert_type), now):
            return None
        self._last_fired[key] = now
        return BudgetAlert(
            id=f"{key}_{int(now.timestamp() * 1000)}",
            type=alert_type,
            title=title,
            message=message,
            priority=priority,
            budget_id=budget_id,
            timestamp=now,
        )

    def was_recently_notified(self, key: str, cooldown: timedelta, now: datetime) -> bool:
        last = self._last_fired.get(key)
        if last is None:
            return False
        return now - last < cooldown

    def _deliver(self, alert: BudgetAlert) -> None:
        if self._sink is None:
            return
        try:
            self._sink(alert)
        except Exception:
            logger.exception("Alert sink failed for %s", alert.id)

    # ── Alert store ──────────────────────────────────────────────────────────

    def get_all(self) -> list[BudgetAlert]:
        return list(self._alerts)

    def get_unread(self) -> list[BudgetAlert]:
        return [a for a in self._alerts if not a.is_read]

    def mark_read(self, alert_id: str) -> bool:
        for alert in self._alerts:
            if alert.id == alert_id:
                alert.is_read = True
                self._notify_listeners()
                return True
        return False

    def mark_all_read(self) -> None:
        for alert in self._alerts:
            alert.is_read = True
        self._notify_listeners()

    def delete(self, alert_id: str) -> bool:
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.id != alert_id]
        removed = len(self._alerts) != before
        if removed:
            self._notify_listeners()
        return removed

    def clear_all(self) -> None:
        """Drop every alert and forget the cooldowns."""
        self._alerts = []
        self._last_fired.clear()
        self._notify_listeners()

    def subscribe(self, listener: AlertListener) -> Callable[[], None]:
        """Register a listener for store changes. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(list(self._alerts))
            except Exception:
                logger.exception("Error notifying alert listener")
