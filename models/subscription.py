"""
models/subscription.py
----------------------
Domain model for recurring financial obligations (subscriptions, taxes, installments).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta


class Category(str, Enum):
    SUBSCRIPTION = "SUBSCRIPTION"
    TAX = "TAX"
    INSTALLMENT = "INSTALLMENT"
    OTHER = "OTHER"


class Frequency(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    ONE_TIME = "ONE_TIME"

    @property
    def step(self) -> Optional[relativedelta]:
        """Distance between two consecutive due dates, None for one-time items."""
        return _STEPS[self]

    @property
    def is_recurring(self) -> bool:
        return self is not Frequency.ONE_TIME


_STEPS = {
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
    Frequency.ONE_TIME: None,
}


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


@dataclass
class Subscription:
    """
    Represents a recurring (or one-time) financial obligation.

    Attributes:
        id: Database primary key (None for new records).
        user_id: Telegram user ID of the owner.
        name: Friendly name (e.g. 'Netflix', 'Car tax').
        category: One of Category.
        amount: Amount charged per occurrence.
        frequency: How often the amount is due.
        start_date: First due date.
        end_date: Optional last day of the obligation (exclusive bound for due dates).
        currency: ISO currency code (default: EUR).
        status: Lifecycle status; only ACTIVE subscriptions carry a schedule.
        created_at: Timestamp when the record was created.
        updated_at: Timestamp of the last edit.
    """
    user_id: int
    name: str
    category: Category
    amount: Decimal
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    currency: str = "EUR"
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status is SubscriptionStatus.ACTIVE

    def horizon(self) -> date:
        """Upper bound (exclusive) for generated due dates."""
        if self.end_date is not None:
            return self.end_date
        return self.start_date + relativedelta(years=1)

    def __str__(self) -> str:
        status = "✅" if self.is_active else "❌"
        end = f" → {self.end_date}" if self.end_date else ""
        return (
            f"{status} {self.name}: {self.amount:.2f} {self.currency} "
            f"({self.frequency.value.lower()}, {self.category.value.lower()}) "
            f"from {self.start_date}{end}"
        )
