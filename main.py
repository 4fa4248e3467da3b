"""
main.py
-------
Entry point for the SubTrack Telegram bot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Configure and start the Telegram bot with all handlers.
    - Schedule the daily schedule refresh, overdue sweep and payment reminders.
"""

from datetime import time as dt_time
from zoneinfo import ZoneInfo

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from config import REMINDER_HOUR, SWEEP_HOUR, TELEGRAM_BOT_TOKEN, TIMEZONE
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from handlers.start_handler import start_command, help_command, email_command
from handlers.subscription_handler import (
    subscriptions_command,
    add_subscription_command,
    edit_subscription_command,
    cancel_subscription_command,
    delete_subscription_command,
)
from handlers.payment_handler import (
    payments_command,
    pay_command,
    unpay_command,
    refresh_command,
)
from handlers.dashboard_handler import dashboard_command, chart_command
from handlers.export_handler import export_csv_command, export_excel_command
from repositories.subscription_repo import SubscriptionRepository
from services.email_sink import build_email_sink
from services.notification_service import NotificationService, deliver_notifications
from services.schedule_generator import ScheduleGenerator
from utils.logger import get_logger

logger = get_logger(__name__)


async def regenerate_all_schedules(context) -> None:
    """
    Scheduled job: rebuild the unpaid schedule of every active subscription.
    A failure for one user is logged and does not stop the others.
    """
    generator = ScheduleGenerator()
    owners = SubscriptionRepository().get_owner_ids()

    total = 0
    for user_id in owners:
        try:
            total += generator.regenerate_all_for_user(user_id)
        except Exception as e:
            logger.error(f"Failed to regenerate schedules for user {user_id}: {e}")
    logger.info(f"Nightly regeneration: {total} payment(s) across {len(owners)} user(s)")


async def sweep_overdue_payments(context) -> None:
    """Scheduled job: flag PENDING payments whose due date has passed."""
    count = ScheduleGenerator().sweep_overdue()
    logger.info(f"Overdue sweep: {count} payment(s) marked overdue")


async def send_payment_reminders(context) -> None:
    """
    Scheduled job: remind users about overdue and upcoming payments.
    Runs daily at REMINDER_HOUR.
    """
    notifications, summary = NotificationService().collect_notifications()
    await deliver_notifications(notifications, summary, context.bot, build_email_sink())


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "🚀 Start the bot"),
        BotCommand("help", "📖 Show help"),
        BotCommand("subscriptions", "🔁 List subscriptions"),
        BotCommand("add_subscription", "➕ Add a subscription"),
        BotCommand("edit_subscription", "✏️ Edit a subscription"),
        BotCommand("cancel_subscription", "❌ Cancel a subscription"),
        BotCommand("delete_subscription", "🗑️ Delete a subscription"),
        BotCommand("payments", "💳 List payments"),
        BotCommand("pay", "✅ Mark a payment as paid"),
        BotCommand("unpay", "↩️ Undo a payment"),
        BotCommand("refresh", "🔄 Regenerate schedules"),
        BotCommand("dashboard", "📊 Monthly and yearly totals"),
        BotCommand("chart", "🍩 Cost by category"),
        BotCommand("export_csv", "📄 Export CSV"),
        BotCommand("export_excel", "📊 Export Excel"),
        BotCommand("email", "📧 Reminder address"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    create_tables()

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(set_bot_commands).build()

    # ── 3. Register command handlers ──────────────────────
    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("email", email_command))
    app.add_handler(CommandHandler("subscriptions", subscriptions_command))
    app.add_handler(CommandHandler("add_subscription", add_subscription_command))
    app.add_handler(CommandHandler("edit_subscription", edit_subscription_command))
    app.add_handler(CommandHandler("cancel_subscription", cancel_subscription_command))
    app.add_handler(CommandHandler("delete_subscription", delete_subscription_command))
    app.add_handler(CommandHandler("payments", payments_command))
    app.add_handler(CommandHandler("pay", pay_command))
    app.add_handler(CommandHandler("unpay", unpay_command))
    app.add_handler(CommandHandler("refresh", refresh_command))
    app.add_handler(CommandHandler("dashboard", dashboard_command))
    app.add_handler(CommandHandler("chart", chart_command))
    app.add_handler(CommandHandler("export_csv", export_csv_command))
    app.add_handler(CommandHandler("export_excel", export_excel_command))

    # ── 4. Schedule jobs ──────────────────────────────────
    tz = ZoneInfo(TIMEZONE)
    job_queue = app.job_queue
    if job_queue:
        job_queue.run_daily(
            regenerate_all_schedules,
            time=dt_time(hour=SWEEP_HOUR, minute=0, tzinfo=tz),
            name="regenerate_schedules",
        )
        # Must run after regeneration
        job_queue.run_daily(
            sweep_overdue_payments,
            time=dt_time(hour=SWEEP_HOUR, minute=15, tzinfo=tz),
            name="overdue_sweep",
        )
        job_queue.run_daily(
            send_payment_reminders,
            time=dt_time(hour=REMINDER_HOUR, minute=0, tzinfo=tz),
            name="payment_reminders",
        )
        logger.info(
            f"Scheduled regeneration ({SWEEP_HOUR:02d}:00), overdue sweep ({SWEEP_HOUR:02d}:15) "
            f"and reminders ({REMINDER_HOUR:02d}:00) in {TIMEZONE}"
        )

    # ── 5. Start polling ──────────────────────────────────
    logger.info("🚀 SubTrack is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    # ── 6. Cleanup on shutdown ────────────────────────────
    close_pool()
    logger.info("SubTrack stopped.")


if __name__ == "__main__":
    main()
