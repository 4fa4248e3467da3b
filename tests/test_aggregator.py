"""Unit tests for the monthly, yearly and per-category cost projections."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from models.subscription import Category, Frequency, SubscriptionStatus
from services.aggregator import (
    compute_category_breakdown,
    compute_monthly_total,
    compute_yearly_total,
    monthly_equivalent,
    months_active,
)

NOW = date(2026, 3, 15)


@pytest.mark.parametrize(
    "frequency, amount, expected",
    [
        (Frequency.MONTHLY, "12", "12"),
        (Frequency.YEARLY, "120", "10"),
        (Frequency.QUARTERLY, "30", "10"),
        (Frequency.WEEKLY, "10", "43.30"),
        (Frequency.ONE_TIME, "500", "0"),
    ],
)
def test_monthly_equivalent(make_subscription, frequency, amount, expected):
    sub = make_subscription(frequency=frequency, amount=Decimal(amount))
    assert monthly_equivalent(sub) == Decimal(expected)


def test_months_active_is_clamped():
    assert months_active(date(2026, 6, 15), NOW) == 3
    assert months_active(date(2026, 6, 1), NOW) == 3
    assert months_active(date(2026, 3, 20), NOW) == 0
    assert months_active(date(2030, 1, 1), NOW) == 12
    assert months_active(date(2025, 1, 1), NOW) == 0


def test_open_ended_monthly(make_subscription):
    subs = [make_subscription(amount=Decimal("12"))]

    assert compute_monthly_total(subs, NOW) == Decimal("12")
    assert compute_yearly_total(subs, NOW) == Decimal("144")


def test_ending_in_three_months_is_pro_rated(make_subscription):
    subs = [make_subscription(amount=Decimal("12"), end_date=date(2026, 6, 15))]

    assert compute_monthly_total(subs, NOW) == Decimal("3")
    assert compute_yearly_total(subs, NOW) == Decimal("36")


def test_end_beyond_window_counts_full_year(make_subscription):
    subs = [make_subscription(amount=Decimal("12"), end_date=date(2027, 9, 1))]

    assert compute_monthly_total(subs, NOW) == Decimal("12")
    assert compute_yearly_total(subs, NOW) == Decimal("144")


def test_one_time_inside_window_counts_once_in_yearly_only(make_subscription):
    subs = [make_subscription(
        frequency=Frequency.ONE_TIME, amount=Decimal("100"), end_date=date(2026, 8, 15),
    )]

    assert compute_monthly_total(subs, NOW) == Decimal("0")
    assert compute_yearly_total(subs, NOW) == Decimal("100")


def test_one_time_outside_window_counts_nothing(make_subscription):
    subs = [make_subscription(
        frequency=Frequency.ONE_TIME, amount=Decimal("100"), end_date=date(2027, 4, 15),
    )]

    assert compute_monthly_total(subs, NOW) == Decimal("0")
    assert compute_yearly_total(subs, NOW) == Decimal("0")


def test_one_time_without_end_uses_start_date(make_subscription):
    upcoming = make_subscription(
        frequency=Frequency.ONE_TIME, amount=Decimal("80"), start_date=date(2026, 4, 1),
    )
    past = make_subscription(
        frequency=Frequency.ONE_TIME, amount=Decimal("50"), start_date=date(2026, 1, 1),
    )

    assert compute_yearly_total([upcoming, past], NOW) == Decimal("80")


def test_inactive_and_lapsed_are_skipped(make_subscription):
    subs = [
        make_subscription(amount=Decimal("10")),
        make_subscription(amount=Decimal("99"), status=SubscriptionStatus.CANCELLED),
        make_subscription(amount=Decimal("99"), status=SubscriptionStatus.EXPIRED),
        make_subscription(amount=Decimal("99"), end_date=date(2026, 3, 1)),
    ]

    assert compute_monthly_total(subs, NOW) == Decimal("10")
    assert compute_yearly_total(subs, NOW) == Decimal("120")


def test_no_subscriptions_totals_zero():
    assert compute_monthly_total([], NOW) == Decimal("0")
    assert compute_yearly_total([], NOW) == Decimal("0")
    assert compute_category_breakdown([]) == {}


def test_non_finite_amounts_become_zero(make_subscription):
    subs = [
        make_subscription(amount=Decimal("NaN")),
        make_subscription(amount=Decimal("Infinity"), frequency=Frequency.WEEKLY),
        make_subscription(amount=Decimal("5")),
    ]

    assert compute_monthly_total(subs, NOW) == Decimal("5")
    assert compute_yearly_total(subs, NOW) == Decimal("60")
    assert compute_category_breakdown(subs) == {Category.SUBSCRIPTION: Decimal("5")}


def test_accepts_datetime_reference(make_subscription):
    subs = [make_subscription(amount=Decimal("12"), end_date=date(2026, 6, 15))]

    assert compute_monthly_total(subs, datetime(2026, 3, 15, 18, 30)) == Decimal("3")


def test_category_breakdown_sums_active_per_category(make_subscription):
    subs = [
        make_subscription(amount=Decimal("10")),
        make_subscription(amount=Decimal("5")),
        make_subscription(amount=Decimal("500"), status=SubscriptionStatus.CANCELLED),
        make_subscription(category=Category.TAX,
                          amount=Decimal("240"), frequency=Frequency.YEARLY,
                          status=SubscriptionStatus.CANCELLED),
    ]

    assert compute_category_breakdown(subs) == {Category.SUBSCRIPTION: Decimal("15")}


def test_category_breakdown_ignores_end_dates(make_subscription):
    subs = [
        make_subscription(category=Category.TAX, amount=Decimal("240"), frequency=Frequency.YEARLY),
        make_subscription(
            category=Category.INSTALLMENT, amount=Decimal("50"),
            start_date=date(2024, 1, 1), end_date=date(2025, 1, 1),
        ),
    ]

    assert compute_category_breakdown(subs) == {
        Category.TAX: Decimal("20"),
        Category.INSTALLMENT: Decimal("50"),
    }
