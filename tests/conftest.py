"""Shared fixtures: in-memory repositories and a subscription factory."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models.payment import Payment, PaymentStatus
from models.subscription import Category, Frequency, Subscription, SubscriptionStatus
from tests.fakes import (
    InMemoryPaymentRepository,
    InMemorySubscriptionRepository,
    InMemoryUserRepository,
)

USER_ID = 1001
OTHER_USER_ID = 2002


@pytest.fixture()
def today() -> date:
    return date(2026, 3, 15)


@pytest.fixture()
def subscription_repo() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture()
def payment_repo(subscription_repo) -> InMemoryPaymentRepository:
    repo = InMemoryPaymentRepository(subscription_repo)
    subscription_repo.payment_repo = repo
    return repo


@pytest.fixture()
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def make_subscription():
    """Build (unsaved) subscriptions with sensible defaults."""

    def _make(**overrides) -> Subscription:
        fields = {
            "user_id": USER_ID,
            "name": "Netflix",
            "category": Category.SUBSCRIPTION,
            "amount": Decimal("12"),
            "frequency": Frequency.MONTHLY,
            "start_date": date(2026, 1, 1),
            "end_date": None,
            "currency": "EUR",
            "status": SubscriptionStatus.ACTIVE,
        }
        fields.update(overrides)
        return Subscription(**fields)

    return _make


@pytest.fixture()
def populated(subscription_repo, payment_repo, user_repo, make_subscription, today) -> Subscription:
    """USER_ID has an email and payments due today, overdue and in 30 days; OTHER_USER_ID is due in 40."""
    mine = subscription_repo.add(make_subscription(name="Rent", category=Category.OTHER))
    theirs = subscription_repo.add(make_subscription(user_id=OTHER_USER_ID, name="Gym"))
    payment_repo.replace_unpaid(mine.id, [
        Payment(subscription_id=mine.id, amount=Decimal("700"), due_date=today),
        Payment(subscription_id=mine.id, amount=Decimal("700"), due_date=today - timedelta(days=10),
                status=PaymentStatus.OVERDUE),
        Payment(subscription_id=mine.id, amount=Decimal("700"), due_date=today + timedelta(days=30)),
    ])
    payment_repo.replace_unpaid(theirs.id, [
        Payment(subscription_id=theirs.id, amount=Decimal("30"), due_date=today + timedelta(days=40)),
    ])
    user_repo.ensure_user(USER_ID, "Giulia")
    user_repo.set_email(USER_ID, "giulia@example.com")
    return mine
