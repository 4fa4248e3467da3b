"""
models/notification.py
----------------------
Structured payment-notification requests handed to a delivery sink.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.payment import Payment


class NotificationType(str, Enum):
    DUE_TODAY = "due_today"
    DUE_TOMORROW = "due_tomorrow"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


@dataclass
class PaymentNotification:
    """
    A request to notify one user about one payment.

    ``payment.subscription`` is always populated so the sink can render
    name, currency and category without another lookup.
    """
    user_id: int
    payment: Payment
    notification_type: NotificationType
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialize to the wire shape consumed by external sinks."""
        sub = self.payment.subscription
        return {
            "userEmail": self.user_email,
            "userName": self.user_name,
            "payment": {
                "id": self.payment.id,
                "amount": float(self.payment.amount),
                "dueDate": self.payment.due_date.isoformat(),
                "status": self.payment.status.value,
                "subscription": {
                    "name": sub.name,
                    "currency": sub.currency,
                    "type": sub.category.value,
                },
            },
            "notificationType": self.notification_type.value,
        }
