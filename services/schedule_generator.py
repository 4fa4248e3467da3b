"""
services/schedule_generator.py
-------------------------------
Expands a subscription's recurrence rule into concrete Payment records and
keeps the unpaid part of the schedule in sync with the subscription.

Rules:
    - Payments run from `start_date` up to (excluding) the horizon:
      `end_date` if set, otherwise one year after `start_date`.
    - Due dates are computed from `start_date` (start + n * step), so a
      subscription starting on the 31st lands on the last day of short
      months without drifting afterwards.
    - A payment due before today is generated as OVERDUE, otherwise PENDING.
    - PAID payments are history: regeneration never deletes or rewrites them,
      and does not emit a second payment for a due date that is already paid.
"""

from datetime import date
from typing import Optional

from models.payment import Payment, PaymentStatus
from models.subscription import Subscription, SubscriptionStatus
from repositories.payment_repo import PaymentRepository
from repositories.subscription_repo import SubscriptionRepository
from utils.logger import get_logger

logger = get_logger(__name__)


def expand_schedule(subscription: Subscription, today: date) -> list[Payment]:
    """
    Build (without persisting) the payments a subscription should have.

    Args:
        subscription: Subscription to expand.
        today: Reference date used to decide PENDING vs OVERDUE.

    Returns:
        Payments in strictly increasing due-date order. A ONE_TIME
        subscription yields at most one payment; an empty window yields none.
    """
    horizon = subscription.horizon()
    end_date = subscription.end_date
    step = subscription.frequency.step

    payments: list[Payment] = []
    cursor = subscription.start_date
    occurrence = 0
    while cursor < horizon and (end_date is None or cursor < end_date):
        payments.append(Payment(
            subscription_id=subscription.id,
            amount=subscription.amount,
            due_date=cursor,
            status=PaymentStatus.OVERDUE if cursor < today else PaymentStatus.PENDING,
        ))
        if step is None:
            break
        occurrence += 1
        cursor = subscription.start_date + step * occurrence
    return payments


class ScheduleGenerator:
    """
    Generates and maintains the payment schedule of subscriptions.

    The generator holds no state of its own; all persistence goes through the
    injected repositories.
    """

    def __init__(self, subscription_repo=None, payment_repo=None):
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.payment_repo = payment_repo or PaymentRepository()

    def regenerate_schedule(self, subscription_id: int, today: Optional[date] = None) -> list[Payment]:
        """
        Replace a subscription's unpaid payments with a freshly expanded schedule.

        Missing or non-ACTIVE subscriptions are left alone and yield an empty list.
        Store errors propagate; the call is safe to retry as a whole.

        Returns:
            The newly created payments.
        """
        subscription = self.subscription_repo.get_by_id(subscription_id)
        if subscription is None or subscription.status is not SubscriptionStatus.ACTIVE:
            return []

        payments = expand_schedule(subscription, today or date.today())
        created = self.payment_repo.replace_unpaid(subscription.id, payments)
        logger.info(
            f"Regenerated {len(created)} payment(s) for subscription "
            f"'{subscription.name}' #{subscription.id}"
        )
        return created

    def regenerate_all_for_user(self, user_id: int, today: Optional[date] = None) -> int:
        """
        Regenerate every ACTIVE subscription owned by a user.

        Returns:
            Total number of payments (re)created.
        """
        today = today or date.today()
        subscriptions = self.subscription_repo.get_all(user_id, status=SubscriptionStatus.ACTIVE)
        total = sum(len(self.regenerate_schedule(s.id, today)) for s in subscriptions)
        logger.info(
            f"Regenerated {total} payment(s) across {len(subscriptions)} "
            f"subscription(s) for user {user_id}"
        )
        return total

    def sweep_overdue(self, user_id: Optional[int] = None, today: Optional[date] = None) -> int:
        """
        Mark PENDING payments whose due date has passed as OVERDUE.

        Args:
            user_id: Limit the sweep to one user's subscriptions; None sweeps everyone.
            today: Reference date (defaults to the current date).

        Returns:
            Number of payments transitioned. Repeated calls return 0.
        """
        count = self.payment_repo.mark_overdue(today or date.today(), user_id=user_id)
        scope = f"user {user_id}" if user_id is not None else "all users"
        if count:
            logger.info(f"Marked {count} payment(s) as overdue for {scope}")
        return count
