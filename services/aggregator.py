"""
services/aggregator.py
----------------------
Recurring-cost projections computed from subscription definitions only
(generated payments are never read here).

Frequency → monthly equivalent:
    MONTHLY   amount
    YEARLY    amount / 12
    QUARTERLY amount / 3
    WEEKLY    amount × 4.33
    ONE_TIME  0 (not a recurring cost)

Subscriptions whose `end_date` falls inside the next 12 months are pro-rated
by the number of calendar months left (`months_active`). Day of month is
ignored: ending on the 1st or the 28th of a month counts the same.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from dateutil.relativedelta import relativedelta

from models.subscription import Category, Frequency, Subscription, SubscriptionStatus

ZERO = Decimal("0")
WEEKS_PER_MONTH = Decimal("4.33")
PROJECTION_MONTHS = 12

_MONTHLY_DIVISORS = {
    Frequency.MONTHLY: Decimal("1"),
    Frequency.QUARTERLY: Decimal("3"),
    Frequency.YEARLY: Decimal("12"),
}


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _finite(value) -> Decimal:
    """Coerce to Decimal, replacing NaN, infinities and garbage with zero."""
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return number if number.is_finite() else ZERO


def monthly_equivalent(subscription: Subscription) -> Decimal:
    """Average per-month cost of a subscription, independent of its billing frequency."""
    amount = _finite(subscription.amount)
    if subscription.frequency is Frequency.WEEKLY:
        return amount * WEEKS_PER_MONTH
    if subscription.frequency is Frequency.ONE_TIME:
        return ZERO
    return amount / _MONTHLY_DIVISORS[subscription.frequency]


def months_active(end_date: date, now) -> int:
    """Calendar months from `now` until `end_date`, clamped to [0, 12]."""
    now = _as_date(now)
    months = (end_date.year - now.year) * 12 + (end_date.month - now.month)
    return max(0, min(PROJECTION_MONTHS, months))


def _window_end(now: date) -> date:
    return now + relativedelta(months=PROJECTION_MONTHS)


def _ends_within_window(day: date, now: date) -> bool:
    return now <= day <= _window_end(now)


def _current(subscriptions: Iterable[Subscription], now: date) -> list[Subscription]:
    """ACTIVE subscriptions that have not already lapsed."""
    return [
        s for s in subscriptions
        if s.status is SubscriptionStatus.ACTIVE
        and (s.end_date is None or s.end_date >= now)
    ]


def compute_monthly_total(subscriptions: Iterable[Subscription], now) -> Decimal:
    """
    Average monthly recurring burden over the coming year.

    A subscription ending within 12 months contributes
    `monthly_equivalent × months_active / 12`; one-time items contribute nothing.
    """
    now = _as_date(now)
    total = ZERO
    for sub in _current(subscriptions, now):
        if not sub.frequency.is_recurring:
            continue
        contribution = monthly_equivalent(sub)
        if sub.end_date is not None and _ends_within_window(sub.end_date, now):
            contribution = contribution * months_active(sub.end_date, now) / PROJECTION_MONTHS
        total += _finite(contribution)
    return max(_finite(total), ZERO)


def compute_yearly_total(subscriptions: Iterable[Subscription], now) -> Decimal:
    """
    Forecast cost over the next 12 months.

    Recurring items contribute `monthly_equivalent × months_active` (12 when
    open-ended). A one-time item adds its full amount once if it falls due
    (end date, else start date) within the window.
    """
    now = _as_date(now)
    total = ZERO
    for sub in _current(subscriptions, now):
        if sub.frequency is Frequency.ONE_TIME:
            due = sub.end_date or sub.start_date
            contribution = _finite(sub.amount) if _ends_within_window(due, now) else ZERO
        else:
            months = PROJECTION_MONTHS
            if sub.end_date is not None and _ends_within_window(sub.end_date, now):
                months = months_active(sub.end_date, now)
            contribution = monthly_equivalent(sub) * months
        total += _finite(contribution)
    return max(_finite(total), ZERO)


def compute_category_breakdown(subscriptions: Iterable[Subscription]) -> dict[Category, Decimal]:
    """Sum of monthly equivalents per category across ACTIVE subscriptions."""
    breakdown: dict[Category, Decimal] = {}
    for sub in subscriptions:
        if sub.status is not SubscriptionStatus.ACTIVE:
            continue
        breakdown[sub.category] = breakdown.get(sub.category, ZERO) + _finite(monthly_equivalent(sub))
    return {category: _finite(value) for category, value in breakdown.items()}
