"""
services/subscription_service.py
---------------------------------
Business logic for creating, editing and removing subscriptions.
Every create/update of an ACTIVE subscription regenerates its payment schedule.
"""

from dataclasses import replace
from datetime import date
from typing import Optional

from models.subscription import Subscription, SubscriptionStatus
from repositories.subscription_repo import SubscriptionRepository
from services.schedule_generator import ScheduleGenerator
from services.validation import check_date_order, parse_subscription_fields
from utils.errors import NotFoundError
from utils.formatting import format_currency
from utils.logger import get_logger

logger = get_logger(__name__)


class SubscriptionService:
    """
    Handles all business logic for subscriptions.

    Workflow for writes:
        1. Validate the raw input (nothing is written on failure).
        2. Persist via the repository.
        3. Regenerate the payment schedule if the subscription is ACTIVE.
    """

    def __init__(self, subscription_repo=None, payment_repo=None):
        self.repo = subscription_repo or SubscriptionRepository()
        self.generator = ScheduleGenerator(self.repo, payment_repo)

    def create_subscription(self, user_id: int, data: dict, today: Optional[date] = None) -> Subscription:
        """
        Validate and store a new subscription, then generate its schedule.

        Raises:
            ValidationError: If any field is invalid.
        """
        fields = parse_subscription_fields(data)
        subscription = self.repo.add(Subscription(user_id=user_id, **fields))
        self.generator.regenerate_schedule(subscription.id, today)
        return subscription

    def get_subscription(self, subscription_id: int, user_id: int) -> Subscription:
        """
        Raises:
            NotFoundError: If it does not exist or belongs to someone else.
        """
        subscription = self.repo.get_by_id(subscription_id, user_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)
        return subscription

    def list_subscriptions(
        self, user_id: int, status: Optional[SubscriptionStatus] = None
    ) -> list[Subscription]:
        return self.repo.get_all(user_id, status=status)

    def update_subscription(
        self, subscription_id: int, user_id: int, changes: dict, today: Optional[date] = None
    ) -> Subscription:
        """
        Apply a partial edit. If the subscription is ACTIVE afterwards its unpaid
        payments are regenerated; PAID history is kept.

        Raises:
            ValidationError: If any changed field is invalid.
            NotFoundError: If the subscription is missing or not owned by the user.
        """
        fields = parse_subscription_fields(changes, partial=True)
        current = self.get_subscription(subscription_id, user_id)
        updated = replace(current, **fields)
        check_date_order(updated.start_date, updated.end_date)

        if not self.repo.update(updated):
            raise NotFoundError("Subscription", subscription_id)
        logger.info(f"Updated subscription #{subscription_id}: {', '.join(fields)}")

        if updated.is_active:
            self.generator.regenerate_schedule(updated.id, today)
        return updated

    def cancel_subscription(self, subscription_id: int, user_id: int) -> Subscription:
        """Mark a subscription CANCELLED. Its payments are left as they are."""
        return self.update_subscription(
            subscription_id, user_id, {"status": SubscriptionStatus.CANCELLED}
        )

    def delete_subscription(self, subscription_id: int, user_id: int) -> None:
        """
        Delete a subscription together with all of its payments.

        Raises:
            NotFoundError: If nothing was deleted.
        """
        if not self.repo.delete(subscription_id, user_id):
            raise NotFoundError("Subscription", subscription_id)

    def format_list(self, user_id: int) -> str:
        """Formatted list of a user's subscriptions for the bot."""
        subscriptions = self.list_subscriptions(user_id)
        if not subscriptions:
            return "📭 No subscriptions yet. Add one with /add_subscription."

        lines = ["🔁 *Your subscriptions:*\n"]
        for s in subscriptions:
            icon = "✅" if s.is_active else "❌"
            end = f" → {s.end_date}" if s.end_date else ""
            lines.append(
                f"{icon} #{s.id} {s.name}: {format_currency(s.amount, s.currency)} "
                f"({s.frequency.value.lower().replace('_', '-')}, {s.category.value.lower()}) "
                f"{s.start_date}{end}"
            )
        return "\n".join(lines)
