import sqlite3
from datetime import datetime, timedelta

import pytest

from services.processing_trigger import AppState, ProcessingTrigger, TriggerReason

START = datetime(2024, 2, 5, 9, 0)


@pytest.fixture
def trigger(recurring_service, overdue_service, clock):
    return ProcessingTrigger(recurring_service, overdue_service, clock=clock)


def test_app_start_processes_and_records_success(trigger, pending_dao, make_definition):
    make_definition(next_due_date="2024-02-05")

    result = trigger.fire(TriggerReason.APP_START, START)

    assert result.ok
    assert len(result.created) == 1
    assert trigger.last_success == START
    assert len(pending_dao.get_all()) == 1


def test_foreground_within_throttle_window_is_ignored(trigger, recurring_service, monkeypatch):
    trigger.fire(TriggerReason.APP_START, START)
    calls = []
    monkeypatch.setattr(recurring_service, "process_due", lambda now: calls.append(now))

    assert trigger.fire(TriggerReason.FOREGROUND, START + timedelta(minutes=2)) is None
    assert calls == []


def test_foreground_after_throttle_window_runs(trigger):
    trigger.fire(TriggerReason.APP_START, START)

    result = trigger.fire(TriggerReason.FOREGROUND, START + timedelta(minutes=5))

    assert result is not None
    assert trigger.last_success == START + timedelta(minutes=5)


@pytest.mark.parametrize("reason", [
    TriggerReason.APP_START, TriggerReason.MANUAL_REFRESH, TriggerReason.EXPENSES_CHANGED,
])
def test_only_foreground_is_throttled(trigger, reason):
    trigger.fire(TriggerReason.APP_START, START)

    assert trigger.fire(reason, START + timedelta(seconds=30)) is not None


def test_repeated_triggers_never_duplicate_occurrences(trigger, pending_dao, make_definition):
    make_definition(next_due_date="2024-02-01")
    make_definition(interval_days=None, execution_dates=[1, 5, 20], next_due_date="2024-02-01")

    for minutes in range(0, 30, 3):
        trigger.fire(TriggerReason.MANUAL_REFRESH, START + timedelta(minutes=minutes))

    dates = [(p.recurring_expense_id, p.scheduled_date) for p in pending_dao.get_all()]
    assert len(dates) == len(set(dates))


def test_overdue_marking_is_part_of_the_pass(trigger, make_pending):
    make_pending("2024-02-01")
    make_pending("2024-02-02")

    result = trigger.fire(TriggerReason.APP_START, START)

    assert result.marked_overdue == 2


def test_failed_pass_keeps_last_success_and_is_retried(trigger, overdue_service, monkeypatch):
    trigger.fire(TriggerReason.APP_START, START)

    def failing_mark(now=None):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(overdue_service, "mark_overdue", failing_mark)
    failed = trigger.fire(TriggerReason.MANUAL_REFRESH, START + timedelta(minutes=10))

    assert not failed.ok
    assert failed.overdue_error == "database is locked"
    assert trigger.last_success == START

    monkeypatch.undo()
    retried = trigger.fire(TriggerReason.FOREGROUND, START + timedelta(minutes=11))
    assert retried is not None
    assert retried.ok


def test_definition_failures_mark_the_pass_failed(trigger, recurring_dao, make_definition, monkeypatch):
    make_definition(next_due_date="2024-02-05")

    def broken_get_by_id(definition_id):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(recurring_dao, "get_by_id", broken_get_by_id)
    result = trigger.fire(TriggerReason.APP_START, START)

    assert not result.ok
    assert trigger.last_success is None


def test_storage_failure_listing_definitions_is_reported_not_raised(
    trigger, recurring_dao, make_pending, monkeypatch
):
    make_pending("2024-02-01")

    def locked():
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(recurring_dao, "get_active", locked)
    result = trigger.fire(TriggerReason.APP_START, START)

    assert not result.ok
    assert result.error == "database is locked"
    assert result.marked_overdue == 1
    assert trigger.last_success is None

    monkeypatch.undo()
    retried = trigger.fire(TriggerReason.FOREGROUND, START + timedelta(minutes=1))
    assert retried is not None
    assert retried.ok


def test_returning_to_foreground_fires_once(trigger, monkeypatch):
    fired = []
    monkeypatch.setattr(trigger, "fire", lambda reason, now=None: fired.append(reason))

    trigger.on_app_state_change(AppState.BACKGROUND, START)
    trigger.on_app_state_change(AppState.ACTIVE, START)
    trigger.on_app_state_change(AppState.ACTIVE, START)
    trigger.on_app_state_change(AppState.INACTIVE, START)
    trigger.on_app_state_change(AppState.BACKGROUND, START)
    trigger.on_app_state_change(AppState.ACTIVE, START)

    assert fired == [TriggerReason.FOREGROUND, TriggerReason.FOREGROUND]


def test_foreground_transition_respects_throttle(trigger):
    trigger.fire(TriggerReason.APP_START, START)
    trigger.on_app_state_change(AppState.BACKGROUND, START)

    assert trigger.on_app_state_change(AppState.ACTIVE, START + timedelta(minutes=1)) is None


def test_fire_defaults_to_injected_clock(trigger, clock):
    trigger.fire(TriggerReason.APP_START)

    assert trigger.last_success == clock()
