"""
models/payment.py
-----------------
Domain model for a concrete, dated payment generated from a subscription.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from models.subscription import Subscription


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


UNPAID_STATUSES = (PaymentStatus.PENDING, PaymentStatus.OVERDUE)


@dataclass
class Payment:
    """
    One scheduled instance of a subscription.

    Attributes:
        id: Database primary key (None until inserted).
        subscription_id: Owning subscription.
        amount: Amount copied from the subscription at generation time.
        due_date: Date the payment falls due.
        status: PENDING, PAID or OVERDUE.
        paid_date: Set if and only if status is PAID.
        created_at: Timestamp when the record was created.
        subscription: Parent subscription, populated by joined queries only.
    """
    subscription_id: int
    amount: Decimal
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    paid_date: Optional[date] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    subscription: Optional[Subscription] = None

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID

    def mark_paid(self, paid_on: date) -> None:
        self.status = PaymentStatus.PAID
        self.paid_date = paid_on

    def mark_unpaid(self) -> None:
        """Reverse a payment back to PENDING; the next sweep re-flags it if late."""
        self.status = PaymentStatus.PENDING
        self.paid_date = None

    def __str__(self) -> str:
        icon = {"PAID": "🟢", "PENDING": "🟡", "OVERDUE": "🔴"}[self.status.value]
        name = self.subscription.name if self.subscription else f"subscription #{self.subscription_id}"
        return f"{icon} #{self.id} {name}: {self.amount:.2f} due {self.due_date}"
