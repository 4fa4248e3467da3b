"""
handlers/subscription_handler.py
---------------------------------
Handles subscription commands: list, add, edit, cancel, delete.
Input is parsed into raw field dicts here; validation happens in the service.
"""

import re
from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from repositories.user_repo import UserRepository
from security.rate_limiter import rate_limited
from services.subscription_service import SubscriptionService
from utils.errors import NotFoundError, ValidationError
from utils.formatting import format_currency, format_validation_error
from utils.logger import get_logger

logger = get_logger(__name__)
subscription_service = SubscriptionService()
user_repo = UserRepository()

_FREQ_ALIASES = {
    "week": "WEEKLY", "weekly": "WEEKLY",
    "month": "MONTHLY", "monthly": "MONTHLY",
    "quarter": "QUARTERLY", "quarterly": "QUARTERLY",
    "year": "YEARLY", "yearly": "YEARLY", "annual": "YEARLY", "annually": "YEARLY",
    "once": "ONE_TIME", "one-time": "ONE_TIME", "onetime": "ONE_TIME", "one_time": "ONE_TIME",
}

_FIELD_ALIASES = {
    "type": "category",
    "start": "start_date",
    "end": "end_date",
}

_EDIT_SPLIT = re.compile(r"\s+(?=[A-Za-z_]+=)")

ADD_USAGE = (
    "📝 *Add a subscription*\n\n"
    "`/add_subscription name | amount | frequency | category | start | end`\n\n"
    "*Examples:*\n"
    "• `/add_subscription Netflix | 15.99 | monthly`\n"
    "• `/add_subscription Car tax | 240 | yearly | tax | 2026-03-01`\n"
    "• `/add_subscription Laptop | 99 | monthly | installment | 2026-01-15 | 2026-12-15`\n\n"
    "*Frequency:* weekly, monthly, quarterly, yearly, once\n"
    "*Category:* subscription (default), tax, installment, other\n"
    "*Start* defaults to today; *end* is optional."
)


def _normalize_frequency(value: str) -> str:
    return _FREQ_ALIASES.get(value.strip().lower(), value.strip())


def parse_subscription_args(text: str) -> dict | None:
    """
    Parse the pipe-separated add format into raw subscription fields.

    Returns:
        Field dict (values still strings), or None if fewer than three parts.
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 3:
        return None

    data = {
        "name": parts[0],
        "amount": parts[1],
        "frequency": _normalize_frequency(parts[2]),
        "category": parts[3] if len(parts) > 3 and parts[3] else "SUBSCRIPTION",
    }
    data["start_date"] = parts[4] if len(parts) > 4 and parts[4] else date.today().isoformat()
    if len(parts) > 5 and parts[5]:
        data["end_date"] = parts[5]
    return data


def parse_edit_args(text: str) -> dict:
    """
    Parse ``field=value`` pairs; values may contain spaces.

    Example:
        "name=Netflix Premium amount=17.99 end=" ->
        {"name": "Netflix Premium", "amount": "17.99", "end_date": ""}
    """
    changes = {}
    for chunk in _EDIT_SPLIT.split(text.strip()):
        if "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        key = key.strip().lower()
        key = _FIELD_ALIASES.get(key, key)
        value = value.strip()
        changes[key] = _normalize_frequency(value) if key == "frequency" else value
    return changes


async def _parse_id(update: Update, context: ContextTypes.DEFAULT_TYPE, usage: str) -> int | None:
    if not context.args:
        await update.message.reply_text(usage)
        return None
    try:
        return int(context.args[0].lstrip("#"))
    except ValueError:
        await update.message.reply_text("⚠️ The subscription ID must be a number.")
        return None


@rate_limited
async def subscriptions_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /subscriptions - list all of the user's subscriptions."""
    user = update.effective_user
    await update.message.reply_text(subscription_service.format_list(user.id), parse_mode="Markdown")


@rate_limited
async def add_subscription_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add_subscription name | amount | frequency [| category | start | end]."""
    user = update.effective_user
    data = parse_subscription_args(" ".join(context.args)) if context.args else None
    if data is None:
        await update.message.reply_text(ADD_USAGE, parse_mode="Markdown")
        return

    user_repo.ensure_user(user.id, user.first_name)
    try:
        sub = subscription_service.create_subscription(user.id, data)
    except ValidationError as e:
        await update.message.reply_text(format_validation_error(e.errors))
        return

    payments = subscription_service.generator.payment_repo.list_for_user(user.id, subscription_id=sub.id)
    await update.message.reply_text(
        f"🔁 Subscription added:\n"
        f"  📌 {sub.name}\n"
        f"  💶 {format_currency(sub.amount, sub.currency)} ({sub.frequency.value.lower()})\n"
        f"  📂 {sub.category.value.lower()}\n"
        f"  📅 from {sub.start_date}{f' to {sub.end_date}' if sub.end_date else ''}\n"
        f"  🧾 {len(payments)} payment(s) scheduled\n"
        f"  🔖 ID: #{sub.id}"
    )


@rate_limited
async def edit_subscription_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /edit_subscription <id> field=value ...
    Fields: name, amount, frequency, category, currency, start, end, status.
    """
    user = update.effective_user
    usage = (
        "⚠️ Usage: /edit_subscription <id> field=value ...\n"
        "Example: /edit_subscription 3 amount=17.99 end=2026-12-31"
    )
    subscription_id = await _parse_id(update, context, usage)
    if subscription_id is None:
        return

    changes = parse_edit_args(" ".join(context.args[1:]))
    if not changes:
        await update.message.reply_text(usage)
        return

    try:
        sub = subscription_service.update_subscription(subscription_id, user.id, changes)
    except ValidationError as e:
        await update.message.reply_text(format_validation_error(e.errors))
        return
    except NotFoundError:
        await update.message.reply_text(f"⚠️ Subscription #{subscription_id} not found.")
        return

    note = "Unpaid payments were regenerated." if sub.is_active else "Payment schedule left unchanged."
    await update.message.reply_text(f"✏️ Updated:\n{sub}\n\n{note}")


@rate_limited
async def cancel_subscription_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel_subscription <id>."""
    user = update.effective_user
    subscription_id = await _parse_id(update, context, "⚠️ Usage: /cancel_subscription <id>")
    if subscription_id is None:
        return
    try:
        sub = subscription_service.cancel_subscription(subscription_id, user.id)
    except NotFoundError:
        await update.message.reply_text(f"⚠️ Subscription #{subscription_id} not found.")
        return
    await update.message.reply_text(f"❌ '{sub.name}' cancelled. Paid history is kept.")


@rate_limited
async def delete_subscription_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete_subscription <id> - removes the subscription and all its payments."""
    user = update.effective_user
    subscription_id = await _parse_id(update, context, "⚠️ Usage: /delete_subscription <id>")
    if subscription_id is None:
        return
    try:
        subscription_service.delete_subscription(subscription_id, user.id)
    except NotFoundError:
        await update.message.reply_text(f"⚠️ Subscription #{subscription_id} not found.")
        return
    await update.message.reply_text(f"🗑️ Subscription #{subscription_id} and its payments were deleted.")
