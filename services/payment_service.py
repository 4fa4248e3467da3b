"""
services/payment_service.py
----------------------------
Business logic for browsing payments and recording them as paid or unpaid.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from models.payment import Payment, PaymentStatus
from repositories.payment_repo import PaymentRepository
from utils.errors import NotFoundError, ValidationError
from utils.formatting import format_currency
from utils.logger import get_logger

logger = get_logger(__name__)

YearFilter = Union[int, str, None]


@dataclass
class PaymentsOverview:
    """Counts and amounts shown above a payment list."""
    this_month_count: int
    this_month_amount: Decimal
    upcoming_count: int
    upcoming_amount: Decimal
    overdue_count: int
    overdue_amount: Decimal


def summarize_payments(payments: list[Payment], today: date) -> PaymentsOverview:
    """
    Group payments into this month's (any status), upcoming (PENDING, due
    after today) and overdue ones.
    """
    month_start = today.replace(day=1)
    next_month = month_start + relativedelta(months=1)

    this_month = [p for p in payments if month_start <= p.due_date < next_month]
    upcoming = [p for p in payments if p.status is PaymentStatus.PENDING and p.due_date > today]
    overdue = [p for p in payments if p.status is PaymentStatus.OVERDUE]

    def total(items):
        return sum((p.amount for p in items), Decimal("0"))

    return PaymentsOverview(
        this_month_count=len(this_month),
        this_month_amount=total(this_month),
        upcoming_count=len(upcoming),
        upcoming_amount=total(upcoming),
        overdue_count=len(overdue),
        overdue_amount=total(overdue),
    )


def parse_status(value) -> Optional[PaymentStatus]:
    """Accept a PaymentStatus, a case-insensitive name, or None/'all'."""
    if value is None or isinstance(value, PaymentStatus):
        return value
    key = str(value).strip().upper()
    if key in ("", "ALL"):
        return None
    try:
        return PaymentStatus(key)
    except ValueError:
        raise ValidationError({"status": "must be one of PENDING, PAID, OVERDUE, ALL"})


def year_bounds(year: YearFilter, today: date) -> tuple[Optional[date], Optional[date]]:
    """
    Translate a year filter into a [from, before) due-date range.

    ``"current"`` covers this year and the next one (the generated horizon),
    ``"all"``/None applies no bounds, an int selects that calendar year.
    """
    if year is None or year == "all":
        return None, None
    if year == "current":
        return date(today.year, 1, 1), date(today.year + 2, 1, 1)
    try:
        y = int(year)
    except (TypeError, ValueError):
        raise ValidationError({"year": "must be a year, 'current' or 'all'"})
    if not 1900 <= y <= 9998:
        raise ValidationError({"year": "is out of range"})
    return date(y, 1, 1), date(y + 1, 1, 1)


class PaymentService:
    """Handles payment listing and the PAID <-> unpaid transitions."""

    def __init__(self, payment_repo=None):
        self.repo = payment_repo or PaymentRepository()

    def list_payments(
        self,
        user_id: int,
        status=None,
        subscription_id: Optional[int] = None,
        year: YearFilter = None,
        today: Optional[date] = None,
    ) -> list[Payment]:
        """
        List a user's payments ordered by due date.

        Raises:
            ValidationError: If the status or year filter is malformed.
        """
        status = parse_status(status)
        due_from, due_before = year_bounds(year, today or date.today())
        return self.repo.list_for_user(
            user_id,
            status=status,
            subscription_id=subscription_id,
            due_from=due_from,
            due_before=due_before,
        )

    def get_payment(self, payment_id: int, user_id: int) -> Payment:
        payment = self.repo.get_by_id(payment_id, user_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    def mark_paid(self, payment_id: int, user_id: int, paid_on: Optional[date] = None) -> Payment:
        """
        Record a PENDING/OVERDUE payment as PAID. Already-paid payments keep
        their original paid date.

        Raises:
            NotFoundError: If the payment is missing or not owned by the user.
        """
        payment = self.get_payment(payment_id, user_id)
        if payment.is_paid:
            return payment
        payment.mark_paid(paid_on or date.today())
        self.repo.update_status(payment)
        logger.info(f"Payment #{payment_id} marked as paid on {payment.paid_date}")
        return payment

    def mark_unpaid(self, payment_id: int, user_id: int) -> Payment:
        """
        Reverse a PAID payment back to PENDING (paid date cleared).
        Unpaid payments are returned unchanged.
        """
        payment = self.get_payment(payment_id, user_id)
        if not payment.is_paid:
            return payment
        payment.mark_unpaid()
        self.repo.update_status(payment)
        logger.info(f"Payment #{payment_id} reverted to pending")
        return payment

    def delete_payment(self, payment_id: int, user_id: int) -> None:
        if not self.repo.delete(payment_id, user_id):
            raise NotFoundError("Payment", payment_id)

    def available_years(self, user_id: int) -> list[int]:
        """Years that have at least one payment, ascending."""
        return sorted(set(self.repo.get_years(user_id)))

    def format_list(self, payments: list[Payment], today: Optional[date] = None) -> str:
        """Render a payment list with the overview header for the bot."""
        if not payments:
            return "📭 No payments match this filter."

        today = today or date.today()
        overview = summarize_payments(payments, today)
        currency = payments[0].subscription.currency if payments[0].subscription else "EUR"

        lines = [
            f"💳 *Payments* ({len(payments)})\n",
            f"📅 This month: {overview.this_month_count} · {format_currency(overview.this_month_amount, currency)}",
            f"⏭️ Upcoming: {overview.upcoming_count} · {format_currency(overview.upcoming_amount, currency)}",
            f"🔴 Overdue: {overview.overdue_count} · {format_currency(overview.overdue_amount, currency)}\n",
        ]
        for p in payments:
            paid = f" (paid {p.paid_date})" if p.paid_date else ""
            lines.append(f"{p}{paid}")
        return "\n".join(lines)
