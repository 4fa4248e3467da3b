"""
handlers/dashboard_handler.py
------------------------------
Handles /dashboard and /chart.
"""

from telegram import Update
from telegram.ext import ContextTypes

from config import DEFAULT_CURRENCY
from security.rate_limiter import rate_limited
from services.chart_service import ChartService
from services.dashboard_service import DashboardService
from utils.logger import get_logger

logger = get_logger(__name__)
dashboard_service = DashboardService()
chart_service = ChartService(dashboard_service)


@rate_limited
async def dashboard_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dashboard - monthly and yearly totals plus category breakdown."""
    user = update.effective_user
    text = dashboard_service.format_summary(user.id, DEFAULT_CURRENCY)
    await update.message.reply_text(text, parse_mode="Markdown")


@rate_limited
async def chart_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /chart - donut chart of monthly cost per category."""
    user = update.effective_user
    await update.message.reply_text("📊 Drawing your chart...")

    buf = chart_service.generate_category_donut(user.id, DEFAULT_CURRENCY)
    if buf:
        await update.message.reply_photo(photo=buf, caption="📊 Monthly cost by category")
    else:
        await update.message.reply_text("📭 No active subscriptions to chart yet.")
