"""
handlers/payment_handler.py
----------------------------
Handles payment commands: list, pay, unpay and schedule refresh.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.rate_limiter import rate_limited
from services.payment_service import PaymentService
from services.schedule_generator import ScheduleGenerator
from utils.errors import NotFoundError, ValidationError
from utils.formatting import format_currency, format_validation_error
from utils.logger import get_logger

logger = get_logger(__name__)
payment_service = PaymentService()
schedule_generator = ScheduleGenerator()


def parse_payment_filters(args: list[str]) -> tuple[str | None, str | None]:
    """
    Split /payments arguments into (status, year). Either may come first.

    Example:
        ["overdue", "2026"] -> ("overdue", "2026")
        ["current"]         -> (None, "current")
    """
    status, year = None, None
    for arg in args:
        value = arg.strip().lower()
        if value.isdigit() or value in ("current", "all"):
            year = value
        else:
            status = value
    return status, year


async def _parse_payment_id(update: Update, context: ContextTypes.DEFAULT_TYPE, usage: str) -> int | None:
    if not context.args:
        await update.message.reply_text(usage)
        return None
    try:
        return int(context.args[0].lstrip("#"))
    except ValueError:
        await update.message.reply_text("⚠️ The payment ID must be a number.")
        return None


@rate_limited
async def payments_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /payments [status] [year].

    Usage:
        /payments               -> everything
        /payments overdue       -> only overdue
        /payments pending 2026  -> pending payments due in 2026
        /payments current       -> this year and next
    """
    user = update.effective_user
    status, year = parse_payment_filters(context.args or [])

    try:
        payments = payment_service.list_payments(user.id, status=status, year=year)
    except ValidationError as e:
        await update.message.reply_text(format_validation_error(e.errors))
        return

    await update.message.reply_text(payment_service.format_list(payments), parse_mode="Markdown")


@rate_limited
async def pay_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pay <id> - mark a payment as paid today."""
    user = update.effective_user
    payment_id = await _parse_payment_id(update, context, "⚠️ Usage: /pay <payment id>")
    if payment_id is None:
        return

    try:
        was_paid = payment_service.get_payment(payment_id, user.id).is_paid
        payment = payment_service.mark_paid(payment_id, user.id)
    except NotFoundError:
        await update.message.reply_text(f"⚠️ Payment #{payment_id} not found.")
        return

    if was_paid:
        await update.message.reply_text(f"ℹ️ Payment #{payment_id} was already paid on {payment.paid_date}.")
        return

    name = payment.subscription.name if payment.subscription else f"#{payment.subscription_id}"
    currency = payment.subscription.currency if payment.subscription else "EUR"
    await update.message.reply_text(
        f"✅ Paid: {name} {format_currency(payment.amount, currency)} "
        f"(due {payment.due_date}, paid {payment.paid_date})"
    )


@rate_limited
async def unpay_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /unpay <id> - revert a paid payment to pending."""
    user = update.effective_user
    payment_id = await _parse_payment_id(update, context, "⚠️ Usage: /unpay <payment id>")
    if payment_id is None:
        return

    try:
        payment = payment_service.mark_unpaid(payment_id, user.id)
    except NotFoundError:
        await update.message.reply_text(f"⚠️ Payment #{payment_id} not found.")
        return

    await update.message.reply_text(f"↩️ Payment #{payment.id} is now {payment.status.value.lower()}.")


@rate_limited
async def refresh_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /refresh - regenerate all schedules and flag overdue payments."""
    user = update.effective_user
    created = schedule_generator.regenerate_all_for_user(user.id)
    overdue = schedule_generator.sweep_overdue(user_id=user.id)
    await update.message.reply_text(
        f"🔄 Schedules refreshed: {created} unpaid payment(s) regenerated, "
        f"{overdue} newly overdue."
    )
