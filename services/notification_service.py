"""
services/notification_service.py
---------------------------------
Decides which unpaid payments deserve a reminder, builds structured
notification requests, and delivers them over Telegram and the optional
email relay.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from config import DUE_SOON_DAYS
from models.notification import NotificationType, PaymentNotification
from models.payment import Payment, PaymentStatus
from repositories.payment_repo import PaymentRepository
from repositories.user_repo import UserRepository
from utils.formatting import format_currency
from utils.logger import get_logger

logger = get_logger(__name__)


def classify_payment(
    payment: Payment, today: date, due_soon_days: int = DUE_SOON_DAYS
) -> Optional[NotificationType]:
    """
    Pick the reminder type for a payment, or None if no reminder is due.

    OVERDUE status wins; otherwise a PENDING payment is due today, tomorrow,
    or "soon" when it falls within the next `due_soon_days` days.
    """
    if payment.status is PaymentStatus.OVERDUE:
        return NotificationType.OVERDUE
    if payment.status is not PaymentStatus.PENDING:
        return None
    if payment.due_date == today:
        return NotificationType.DUE_TODAY
    if payment.due_date == today + timedelta(days=1):
        return NotificationType.DUE_TOMORROW
    if today < payment.due_date < today + timedelta(days=due_soon_days):
        return NotificationType.DUE_SOON
    return None


@dataclass
class DeliverySummary:
    """Outcome of one reminder run."""
    users_checked: int = 0
    users_notified: int = 0
    sent: int = 0
    failed: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    by_type: dict[NotificationType, int] = field(
        default_factory=lambda: {t: 0 for t in NotificationType}
    )

    def record(self, notification: PaymentNotification, delivered: bool) -> None:
        if delivered:
            self.sent += 1
            self.by_type[notification.notification_type] += 1
        else:
            self.failed += 1

    def record_email(self, delivered: bool) -> None:
        if delivered:
            self.emails_sent += 1
        else:
            self.emails_failed += 1

    def __str__(self) -> str:
        return (
            f"users checked={self.users_checked}, notified={self.users_notified}, "
            f"sent={self.sent}, failed={self.failed}, "
            f"emails sent={self.emails_sent}, emails failed={self.emails_failed}"
        )


_HEADLINES = {
    NotificationType.DUE_TODAY: "🚨 *Payment due today*",
    NotificationType.DUE_TOMORROW: "⏰ *Payment due tomorrow*",
    NotificationType.DUE_SOON: "📅 *Payment due soon*",
    NotificationType.OVERDUE: "🔴 *Payment overdue*",
}


def render_message(notification: PaymentNotification, emailed_to: Optional[str] = None) -> str:
    """Telegram text for a notification request, noting the email copy if one was sent."""
    payment = notification.payment
    sub = payment.subscription
    greeting = f"Hi {notification.user_name}," if notification.user_name else "Hi there,"
    copy_line = f"📧 A copy was sent to `{emailed_to}`.\n" if emailed_to else ""
    return (
        f"{_HEADLINES[notification.notification_type]}\n\n"
        f"{greeting}\n"
        f"📌 {sub.name} ({sub.category.value.lower()})\n"
        f"💶 {format_currency(payment.amount, sub.currency)}\n"
        f"📅 Due: {payment.due_date:%B %d, %Y}\n\n"
        f"{copy_line}"
        f"Mark it as paid with /pay {payment.id} once it's done."
    )


async def deliver_notifications(
    notifications: list[PaymentNotification],
    summary: DeliverySummary,
    bot,
    email_sink=None,
) -> DeliverySummary:
    """
    Send every notification through Telegram and, when the user set an email
    and a sink is configured, through the email sink as well.

    The email is attempted first so the Telegram text only mentions a copy
    that was actually accepted. A failure on either channel is logged and
    counted; it never stops the remaining deliveries.
    """
    for notification in notifications:
        emailed_to = None
        if email_sink is not None and notification.user_email:
            emailed = await email_sink.send(notification)
            summary.record_email(emailed)
            if emailed:
                emailed_to = notification.user_email

        try:
            await bot.send_message(
                chat_id=notification.user_id,
                text=render_message(notification, emailed_to),
                parse_mode="Markdown",
            )
            summary.record(notification, delivered=True)
        except Exception as e:
            summary.record(notification, delivered=False)
            logger.error(f"Failed to send reminder for payment #{notification.payment.id}: {e}")

    logger.info(f"Payment reminders: {summary}")
    return summary


class NotificationService:
    """Builds payment-notification requests for every user with unpaid payments."""

    def __init__(self, payment_repo=None, user_repo=None, due_soon_days: int = DUE_SOON_DAYS):
        self.payment_repo = payment_repo or PaymentRepository()
        self.user_repo = user_repo or UserRepository()
        self.due_soon_days = due_soon_days

    def collect_notifications(
        self, today: Optional[date] = None
    ) -> tuple[list[PaymentNotification], DeliverySummary]:
        """
        Scan all unpaid payments and build one notification per payment needing one.

        Returns:
            The notifications and a summary pre-filled with user counts; the
            caller records each delivery result into the summary.
        """
        today = today or date.today()
        by_user: dict[int, list[Payment]] = {}
        for payment in self.payment_repo.list_unpaid():
            by_user.setdefault(payment.subscription.user_id, []).append(payment)

        summary = DeliverySummary(users_checked=len(by_user))
        notifications: list[PaymentNotification] = []
        for user_id, payments in by_user.items():
            pending = []
            for p in payments:
                kind = classify_payment(p, today, self.due_soon_days)
                if kind is not None:
                    pending.append((p, kind))
            if not pending:
                continue

            user = self.user_repo.get_by_telegram_id(user_id) or {}
            summary.users_notified += 1
            notifications.extend(
                PaymentNotification(
                    user_id=user_id,
                    payment=p,
                    notification_type=kind,
                    user_email=user.get("email"),
                    user_name=user.get("first_name"),
                )
                for p, kind in pending
            )

        logger.info(f"Prepared {len(notifications)} payment notification(s) for {summary.users_notified} user(s)")
        return notifications, summary
