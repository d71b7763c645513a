from datetime import date

import pytest

from models.pending_occurrence import OverduePriority, PendingStatus
from services.overdue_service import OverdueService, overdue_priority


@pytest.mark.parametrize("days, amount, expected", [
    (1, 500, OverduePriority.MEDIUM),
    (2, 500, OverduePriority.MEDIUM),
    (3, 500, OverduePriority.HIGH),
    (6, 500, OverduePriority.HIGH),
    (7, 500, OverduePriority.URGENT),
    (30, 500, OverduePriority.URGENT),
    (1, 100_000, OverduePriority.MEDIUM),
    (1, 100_001, OverduePriority.HIGH),
    (8, 250_000, OverduePriority.URGENT),
])
def test_priority_thresholds(days, amount, expected):
    assert overdue_priority(days, amount) is expected


def test_priority_never_drops_as_days_grow():
    order = list(OverduePriority)
    for amount in (10, 150_000):
        ranks = [order.index(overdue_priority(days, amount)) for days in range(1, 40)]
        assert ranks == sorted(ranks)


def test_custom_high_amount_threshold():
    assert overdue_priority(1, 600, high_amount=500) is OverduePriority.HIGH
    assert overdue_priority(1, 400, high_amount=500) is OverduePriority.MEDIUM


def test_mark_overdue_only_touches_past_pending_rows(overdue_service, pending_dao, make_pending):
    past = make_pending("2024-02-04")
    today = make_pending("2024-02-05")
    future = make_pending("2024-02-06")

    changed = overdue_service.mark_overdue(date(2024, 2, 5))

    assert changed == 1
    assert pending_dao.get_by_id(past.id).status is PendingStatus.OVERDUE
    assert pending_dao.get_by_id(today.id).status is PendingStatus.PENDING
    assert pending_dao.get_by_id(future.id).status is PendingStatus.PENDING


def test_mark_overdue_is_idempotent(overdue_service, make_pending):
    make_pending("2024-01-01")
    make_pending("2024-01-15")

    assert overdue_service.mark_overdue(date(2024, 2, 5)) == 2
    assert overdue_service.mark_overdue(date(2024, 2, 5)) == 0


def test_mark_overdue_uses_injected_clock(overdue_service, clock, pending_dao, make_pending):
    pending = make_pending("2024-02-05")
    assert overdue_service.mark_overdue() == 0

    clock.advance(days=1)

    assert overdue_service.mark_overdue() == 1
    assert pending_dao.get_by_id(pending.id).status is PendingStatus.OVERDUE


def test_list_overdue_sorts_most_overdue_first(overdue_service, make_pending):
    make_pending("2024-02-03", amount=500)
    make_pending("2024-01-20", amount=500)
    make_pending("2024-02-04", amount=150_000)
    make_pending("2024-02-05", amount=999_999)

    items = overdue_service.list_overdue(date(2024, 2, 5))

    assert [(i.due_date, i.days_overdue, i.priority) for i in items] == [
        ("2024-01-20", 16, OverduePriority.URGENT),
        ("2024-02-03", 2, OverduePriority.MEDIUM),
        ("2024-02-04", 1, OverduePriority.HIGH),
    ]


def test_list_overdue_ties_break_by_id(overdue_service, make_pending):
    first = make_pending("2024-02-01")
    second = make_pending("2024-02-01", description="Water")

    items = overdue_service.list_overdue(date(2024, 2, 5))

    assert [i.id for i in items] == [first.id, second.id]


def test_list_overdue_includes_marked_rows(overdue_service, make_pending):
    make_pending("2024-02-01")
    overdue_service.mark_overdue(date(2024, 2, 5))

    items = overdue_service.list_overdue(date(2024, 2, 5))

    assert len(items) == 1
    assert items[0].occurrence.status is PendingStatus.OVERDUE
    assert items[0].days_overdue == 4
    assert items[0].priority is OverduePriority.HIGH


def test_configured_high_amount_changes_priority(pending_dao, clock, make_pending):
    make_pending("2024-02-04", amount=600)
    service = OverdueService(pending_dao, clock=clock, high_amount=500)

    assert service.list_overdue()[0].priority is OverduePriority.HIGH
