"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /email commands.
Registers the user and shows available commands.
"""

import re

from telegram import Update
from telegram.ext import ContextTypes

from config import NOTIFICATION_WEBHOOK_URL
from repositories.user_repo import UserRepository
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)
user_repo = UserRepository()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

HELP_TEXT = """
🤖 *Welcome to SubTrack!*
Your tracker for subscriptions, taxes and installments 💶

*🔁 Subscriptions:*
/subscriptions - list your subscriptions
/add\\_subscription - add one (`name | amount | frequency | category | start | end`)
/edit\\_subscription - edit fields (`/edit_subscription 3 amount=12.99`)
/cancel\\_subscription - stop a subscription
/delete\\_subscription - delete it with all its payments

*💳 Payments:*
/payments - list payments (`/payments overdue 2026`)
/pay - mark a payment as paid (`/pay 42`)
/unpay - undo a payment (`/unpay 42`)
/refresh - regenerate all payment schedules

*📊 Reports:*
/dashboard - monthly and yearly totals
/chart - monthly cost by category
/export\\_csv - export payments as CSV (`/export_csv 2026`)
/export\\_excel - export payments as Excel

/email - set an address that also receives reminders
"""



def email_saved_text(address: str, forwarding: bool) -> str:
    if forwarding:
        return f"✅ Saved. Payment reminders will also be emailed to {address}."
    return (
        f"✅ Saved {address}.\n"
        f"Email forwarding is not enabled on this bot, so reminders stay in Telegram for now."
    )


@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - register user and show welcome message."""
    user = update.effective_user
    user_repo.ensure_user(user.id, user.first_name)
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"I keep track of your recurring expenses and remind you before they're due.\n\n"
        f"Type /help to see everything I can do.",
    )


@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


@rate_limited
async def email_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /email <address> - store the reminder address.
    /email off clears it.
    """
    user = update.effective_user
    user_repo.ensure_user(user.id, user.first_name)

    if not context.args:
        current = (user_repo.get_by_telegram_id(user.id) or {}).get("email")
        await update.message.reply_text(
            f"📧 Current reminder address: {current or 'none'}\n"
            f"Usage: /email you@example.com (or /email off)"
        )
        return

    address = context.args[0].strip()
    if address.lower() == "off":
        user_repo.set_email(user.id, None)
        await update.message.reply_text("📭 Reminder address removed.")
        return

    if not _EMAIL_RE.match(address):
        await update.message.reply_text("⚠️ That doesn't look like an email address.")
        return

    user_repo.set_email(user.id, address)
    await update.message.reply_text(email_saved_text(address, forwarding=bool(NOTIFICATION_WEBHOOK_URL)))
