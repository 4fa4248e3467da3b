"""Unit tests for payment listing filters and the paid/unpaid transitions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from models.payment import PaymentStatus
from models.subscription import Frequency
from services.payment_service import PaymentService, parse_status, summarize_payments, year_bounds
from services.schedule_generator import ScheduleGenerator
from tests.conftest import OTHER_USER_ID, USER_ID
from utils.errors import NotFoundError, ValidationError


@pytest.fixture()
def service(payment_repo) -> PaymentService:
    return PaymentService(payment_repo)


@pytest.fixture()
def monthly(subscription_repo, payment_repo, make_subscription, today):
    """A monthly subscription from 2026-01-01 with its generated schedule."""
    sub = subscription_repo.add(make_subscription())
    ScheduleGenerator(subscription_repo, payment_repo).regenerate_schedule(sub.id, today)
    return sub


def test_list_payments_by_status(service, monthly, today):
    overdue = service.list_payments(USER_ID, status="overdue", today=today)
    pending = service.list_payments(USER_ID, status="PENDING", today=today)

    assert [p.due_date for p in overdue] == [date(2026, 1, 1), date(2026, 2, 1), date(2026, 3, 1)]
    assert len(pending) == 9
    assert all(p.subscription.name == "Netflix" for p in pending)


def test_list_payments_by_year(service, subscription_repo, payment_repo, make_subscription, today):
    sub = subscription_repo.add(make_subscription(start_date=date(2026, 7, 1)))
    ScheduleGenerator(subscription_repo, payment_repo).regenerate_schedule(sub.id, today)

    assert len(service.list_payments(USER_ID, year=2026, today=today)) == 6
    assert len(service.list_payments(USER_ID, year="2027", today=today)) == 6
    assert len(service.list_payments(USER_ID, year="current", today=today)) == 12
    assert len(service.list_payments(USER_ID, year="all", today=today)) == 12
    assert service.available_years(USER_ID) == [2026, 2027]


def test_list_payments_rejects_bad_filters(service):
    with pytest.raises(ValidationError) as excinfo:
        service.list_payments(USER_ID, status="late")
    assert "status" in excinfo.value.errors

    with pytest.raises(ValidationError) as excinfo:
        service.list_payments(USER_ID, year="soon")
    assert "year" in excinfo.value.errors


def test_mark_paid_and_unpaid(service, monthly, today):
    payment = service.list_payments(USER_ID, status="overdue", today=today)[0]

    paid = service.mark_paid(payment.id, USER_ID, paid_on=today)
    assert paid.status is PaymentStatus.PAID
    assert paid.paid_date == today
    assert service.get_payment(payment.id, USER_ID).is_paid

    reverted = service.mark_unpaid(payment.id, USER_ID)
    assert reverted.status is PaymentStatus.PENDING
    assert reverted.paid_date is None
    assert service.get_payment(payment.id, USER_ID).paid_date is None


def test_mark_paid_twice_keeps_first_paid_date(service, monthly, today):
    payment = service.list_payments(USER_ID, today=today)[0]
    service.mark_paid(payment.id, USER_ID, paid_on=date(2026, 1, 3))

    again = service.mark_paid(payment.id, USER_ID, paid_on=date(2026, 2, 3))

    assert again.paid_date == date(2026, 1, 3)


def test_mark_unpaid_on_unpaid_payment_is_noop(service, monthly, today):
    payment = service.list_payments(USER_ID, status="overdue", today=today)[0]

    assert service.mark_unpaid(payment.id, USER_ID).status is PaymentStatus.OVERDUE


def test_payments_of_other_users_are_not_found(service, monthly, today):
    payment = service.list_payments(USER_ID, today=today)[0]

    with pytest.raises(NotFoundError):
        service.mark_paid(payment.id, OTHER_USER_ID)
    with pytest.raises(NotFoundError):
        service.delete_payment(payment.id, OTHER_USER_ID)


def test_delete_payment(service, monthly, today):
    payment = service.list_payments(USER_ID, today=today)[0]

    service.delete_payment(payment.id, USER_ID)

    with pytest.raises(NotFoundError):
        service.get_payment(payment.id, USER_ID)


def test_summarize_payments(service, monthly, today):
    payments = service.list_payments(USER_ID, today=today)
    service.mark_paid(payments[0].id, USER_ID, paid_on=today)
    payments = service.list_payments(USER_ID, today=today)

    overview = summarize_payments(payments, today)

    assert overview.this_month_count == 1
    assert overview.this_month_amount == Decimal("12")
    assert overview.upcoming_count == 9
    assert overview.upcoming_amount == Decimal("108")
    assert overview.overdue_count == 2


def test_format_list(service, monthly, today):
    assert "No payments" in service.format_list([])

    text = service.format_list(service.list_payments(USER_ID, today=today), today=today)

    assert "Payments* (12)" in text
    assert "Overdue: 3" in text
    assert "Netflix" in text


def test_parse_status():
    assert parse_status(None) is None
    assert parse_status("all") is None
    assert parse_status("paid") is PaymentStatus.PAID
    assert parse_status(PaymentStatus.OVERDUE) is PaymentStatus.OVERDUE


def test_year_bounds(today):
    assert year_bounds(None, today) == (None, None)
    assert year_bounds(2025, today) == (date(2025, 1, 1), date(2026, 1, 1))
    assert year_bounds("current", today) == (date(2026, 1, 1), date(2028, 1, 1))
    with pytest.raises(ValidationError):
        year_bounds("99999", today)


def test_weekly_schedule_counts(service, subscription_repo, payment_repo, make_subscription, today):
    sub = subscription_repo.add(make_subscription(frequency=Frequency.WEEKLY, start_date=date(2026, 3, 16)))
    ScheduleGenerator(subscription_repo, payment_repo).regenerate_schedule(sub.id, today)

    payments = service.list_payments(USER_ID, subscription_id=sub.id, today=today)

    assert len(payments) == 53
    assert all(p.status is PaymentStatus.PENDING for p in payments)
