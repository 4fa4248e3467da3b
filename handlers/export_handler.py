"""
handlers/export_handler.py
---------------------------
Handles data export commands (CSV, Excel).
Delegates to ExportService.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.rate_limiter import rate_limited
from services.export_service import ExportService
from utils.errors import ValidationError
from utils.formatting import format_validation_error
from utils.logger import get_logger

logger = get_logger(__name__)
export_service = ExportService()


def _year_arg(context: ContextTypes.DEFAULT_TYPE) -> str:
    return context.args[0].strip().lower() if context.args else "all"


def _filename(year: str, extension: str) -> str:
    suffix = "" if year == "all" else f"_{year}"
    return f"payments{suffix}.{extension}"


@rate_limited
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /export_csv command - send payments as CSV.
    Optional: /export_csv 2026 (or current / all).
    """
    user = update.effective_user
    year = _year_arg(context)

    await update.message.reply_text("📄 Preparing your CSV file...")

    try:
        buffer = export_service.export_payments_csv(user.id, year)
    except ValidationError as e:
        await update.message.reply_text(format_validation_error(e.errors))
        return
    except Exception as e:
        logger.error(f"CSV export failed for user {user.id}: {e}")
        await update.message.reply_text("❌ The export failed. Please try again.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=_filename(year, "csv"),
        caption=f"📊 Payments ({year}) - CSV",
    )


@rate_limited
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /export_excel command - send payments as an Excel workbook.
    Optional: /export_excel 2026 (or current / all).
    """
    user = update.effective_user
    year = _year_arg(context)

    await update.message.reply_text("📊 Preparing your Excel file...")

    try:
        buffer = export_service.export_payments_excel(user.id, year)
    except ValidationError as e:
        await update.message.reply_text(format_validation_error(e.errors))
        return
    except Exception as e:
        logger.error(f"Excel export failed for user {user.id}: {e}")
        await update.message.reply_text("❌ The export failed. Please try again.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=_filename(year, "xlsx"),
        caption=f"📊 Payments ({year}) - Excel",
    )
