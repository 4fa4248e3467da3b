"""
services/dashboard_service.py
------------------------------
Assembles the per-user financial overview from the aggregator functions.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from models.subscription import Category, SubscriptionStatus
from repositories.subscription_repo import SubscriptionRepository
from services.aggregator import (
    compute_category_breakdown,
    compute_monthly_total,
    compute_yearly_total,
)
from utils.formatting import format_currency
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class DashboardSummary:
    active_count: int
    total_count: int
    monthly_total: Decimal
    yearly_total: Decimal
    by_category: dict[Category, Decimal] = field(default_factory=dict)

    @property
    def top_category(self) -> Optional[Category]:
        """Category with the highest positive monthly cost, if any."""
        positive = {c: v for c, v in self.by_category.items() if v > 0}
        if not positive:
            return None
        return max(positive, key=positive.get)


class DashboardService:
    """Read-only financial overview of a user's subscriptions."""

    def __init__(self, subscription_repo=None):
        self.subscription_repo = subscription_repo or SubscriptionRepository()

    def get_summary(self, user_id: int, now: Optional[date] = None) -> DashboardSummary:
        """
        Compute totals for a user.

        Expired subscriptions are excluded from the listing counts; the
        aggregator itself only ever looks at ACTIVE ones.
        """
        now = now or date.today()
        subscriptions = [
            s for s in self.subscription_repo.get_all(user_id)
            if s.status is not SubscriptionStatus.EXPIRED
        ]
        return DashboardSummary(
            active_count=sum(1 for s in subscriptions if s.is_active),
            total_count=len(subscriptions),
            monthly_total=compute_monthly_total(subscriptions, now),
            yearly_total=compute_yearly_total(subscriptions, now),
            by_category=compute_category_breakdown(subscriptions),
        )

    def format_summary(self, user_id: int, currency: str = "EUR") -> str:
        """Render the dashboard as a bot message."""
        summary = self.get_summary(user_id)
        lines = ["📊 *Dashboard*\n"]
        lines.append(f"🔁 Active subscriptions: {summary.active_count} ({summary.total_count} total)")
        lines.append(f"📅 Monthly total: {format_currency(summary.monthly_total, currency)}")
        lines.append(f"🗓️ Yearly total: {format_currency(summary.yearly_total, currency)}")

        top = summary.top_category
        if top is not None:
            lines.append(
                f"🏆 Most expensive category: {top.value.title()} "
                f"({format_currency(summary.by_category[top], currency)}/month)"
            )

        if summary.by_category:
            lines.append("\n📂 Monthly cost by category:")
            for category, value in sorted(summary.by_category.items(), key=lambda x: -x[1]):
                lines.append(f"  • {category.value.title()}: {format_currency(value, currency)}")
        return "\n".join(lines)
