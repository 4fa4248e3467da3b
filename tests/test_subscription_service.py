"""Unit tests for subscription CRUD, validation and schedule regeneration."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from handlers.subscription_handler import parse_subscription_args
from models.payment import PaymentStatus
from models.subscription import Category, Frequency, SubscriptionStatus
from services.subscription_service import SubscriptionService
from tests.conftest import OTHER_USER_ID, USER_ID
from utils.errors import NotFoundError, ValidationError

VALID = {
    "name": "Spotify",
    "category": "subscription",
    "amount": "9.99",
    "frequency": "monthly",
    "start_date": "2026-01-10",
}


@pytest.fixture()
def service(subscription_repo, payment_repo) -> SubscriptionService:
    return SubscriptionService(subscription_repo, payment_repo)


def test_create_stores_typed_subscription_and_schedule(service, payment_repo, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    assert sub.id is not None
    assert sub.amount == Decimal("9.99")
    assert sub.category is Category.SUBSCRIPTION
    assert sub.frequency is Frequency.MONTHLY
    assert sub.currency == "EUR"
    assert sub.status is SubscriptionStatus.ACTIVE

    schedule = payment_repo.for_subscription(sub.id)
    assert len(schedule) == 12
    assert [p.status for p in schedule[:4]] == [
        PaymentStatus.OVERDUE, PaymentStatus.OVERDUE, PaymentStatus.OVERDUE, PaymentStatus.PENDING,
    ]


def test_create_reports_every_invalid_field(service, subscription_repo, payment_repo):
    bad = {
        "name": "  ",
        "category": "food",
        "amount": "-3",
        "frequency": "daily",
        "start_date": "not a date",
    }

    with pytest.raises(ValidationError) as excinfo:
        service.create_subscription(USER_ID, bad)

    assert set(excinfo.value.errors) == {"name", "category", "amount", "frequency", "start_date"}
    assert subscription_repo.rows == {}
    assert payment_repo.rows == {}


def test_create_requires_mandatory_fields(service):
    with pytest.raises(ValidationError) as excinfo:
        service.create_subscription(USER_ID, {"name": "Gym"})

    assert set(excinfo.value.errors) == {"category", "amount", "frequency", "start_date"}


def test_create_from_short_add_command_starts_today(service, payment_repo):
    sub = service.create_subscription(USER_ID, parse_subscription_args("Netflix | 15.99 | monthly"))

    assert sub.start_date == date.today()
    assert sub.amount == Decimal("15.99")
    assert sub.category is Category.SUBSCRIPTION
    schedule = payment_repo.for_subscription(sub.id)
    assert len(schedule) == 12
    assert schedule[0].due_date == date.today()
    assert schedule[0].status is PaymentStatus.PENDING


def test_create_rejects_end_before_start(service, subscription_repo):
    with pytest.raises(ValidationError) as excinfo:
        service.create_subscription(USER_ID, {**VALID, "end_date": "2025-12-31"})

    assert "end_date" in excinfo.value.errors
    assert subscription_repo.rows == {}


def test_update_regenerates_unpaid_payments(service, payment_repo, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    updated = service.update_subscription(
        sub.id, USER_ID, {"amount": "12.50", "end_date": "2026-07-10"}, today=today,
    )

    assert updated.amount == Decimal("12.50")
    schedule = payment_repo.for_subscription(sub.id)
    assert len(schedule) == 6
    assert {p.amount for p in schedule} == {Decimal("12.50")}


def test_update_rejects_end_before_existing_start(service, subscription_repo, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    with pytest.raises(ValidationError):
        service.update_subscription(sub.id, USER_ID, {"end_date": "2025-01-01"})

    assert subscription_repo.get_by_id(sub.id).end_date is None


def test_update_of_unknown_field_is_rejected(service, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    with pytest.raises(ValidationError) as excinfo:
        service.update_subscription(sub.id, USER_ID, {"colour": "red"})

    assert excinfo.value.errors == {"colour": "is not an editable field"}


def test_update_of_someone_elses_subscription_is_not_found(service, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    with pytest.raises(NotFoundError):
        service.update_subscription(sub.id, OTHER_USER_ID, {"amount": "1"})


def test_cancel_keeps_existing_payments(service, payment_repo, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)
    before = len(payment_repo.for_subscription(sub.id))

    cancelled = service.cancel_subscription(sub.id, USER_ID)

    assert cancelled.status is SubscriptionStatus.CANCELLED
    assert len(payment_repo.for_subscription(sub.id)) == before
    assert service.generator.regenerate_schedule(sub.id, today) == []


def test_delete_removes_subscription_and_payments(service, subscription_repo, payment_repo, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    service.delete_subscription(sub.id, USER_ID)

    assert subscription_repo.get_by_id(sub.id) is None
    assert payment_repo.for_subscription(sub.id) == []


def test_delete_unknown_subscription_raises(service):
    with pytest.raises(NotFoundError):
        service.delete_subscription(42, USER_ID)


def test_get_subscription_is_scoped_to_owner(service, today):
    sub = service.create_subscription(USER_ID, VALID, today=today)

    assert service.get_subscription(sub.id, USER_ID).name == "Spotify"
    with pytest.raises(NotFoundError):
        service.get_subscription(sub.id, OTHER_USER_ID)


def test_format_list(service, today):
    assert "No subscriptions yet" in service.format_list(USER_ID)

    service.create_subscription(USER_ID, {**VALID, "frequency": "ONE_TIME"}, today=today)
    text = service.format_list(USER_ID)

    assert "Spotify" in text
    assert "9.99€" in text
    assert "one-time" in text


def test_list_filters_by_status(service, today):
    kept = service.create_subscription(USER_ID, VALID, today=today)
    dropped = service.create_subscription(USER_ID, {**VALID, "name": "Gym"}, today=today)
    service.cancel_subscription(dropped.id, USER_ID)

    active = service.list_subscriptions(USER_ID, status=SubscriptionStatus.ACTIVE)

    assert [s.id for s in active] == [kept.id]
    assert date(2026, 1, 10) == active[0].start_date
