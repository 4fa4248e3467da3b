"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of a user's payment schedule.
"""

import io
from typing import Optional

import pandas as pd

from services.payment_service import PaymentService
from utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "Due date", "Subscription #", "Subscription", "Category", "Amount", "Currency", "Status", "Paid on",
]


class ExportService:
    """Generates downloadable payment reports in CSV and Excel formats."""

    def __init__(self, payment_service: Optional[PaymentService] = None):
        self.payment_service = payment_service or PaymentService()

    def payments_frame(self, user_id: int, year=None) -> pd.DataFrame:
        """
        Build a DataFrame of a user's payments.

        Args:
            user_id: Telegram user ID.
            year: Calendar year, "current" or "all"/None (see PaymentService.list_payments).
        """
        payments = self.payment_service.list_payments(user_id, year=year)
        rows = [
            {
                "Due date": p.due_date.isoformat(),
                "Subscription #": p.subscription_id,
                "Subscription": p.subscription.name,
                "Category": p.subscription.category.value,
                "Amount": float(p.amount),
                "Currency": p.subscription.currency,
                "Status": p.status.value,
                "Paid on": p.paid_date.isoformat() if p.paid_date else "",
            }
            for p in payments
        ]
        return pd.DataFrame(rows, columns=EXPORT_COLUMNS)

    def export_payments_csv(self, user_id: int, year=None) -> io.BytesIO:
        """Export payments as a UTF-8 CSV file in a BytesIO buffer."""
        df = self.payments_frame(user_id, year)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} payments as CSV for user {user_id}")
        return buffer

    def export_payments_excel(self, user_id: int, year=None) -> io.BytesIO:
        """
        Export payments as an Excel (.xlsx) workbook.

        Sheets:
            Payments: one row per payment.
            Summary: total, paid and outstanding amounts per subscription
                (keyed by id, so equally named subscriptions stay apart).
        """
        df = self.payments_frame(user_id, year)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Payments", index=False)

            if not df.empty:
                summary = (
                    df.assign(
                        Paid=df["Amount"].where(df["Status"] == "PAID", 0.0),
                        Outstanding=df["Amount"].where(df["Status"] != "PAID", 0.0),
                    )
                    .groupby(["Subscription #", "Subscription", "Currency"])[["Amount", "Paid", "Outstanding"]]
                    .sum()
                    .reset_index()
                    .rename(columns={"Amount": "Total"})
                )
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} payments as Excel for user {user_id}")
        return buffer
