"""
services/chart_service.py
--------------------------
Renders the monthly category breakdown as a chart image.
Uses matplotlib and returns PNG images as BytesIO buffers.
"""

import io
from typing import Optional

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt

from services.dashboard_service import DashboardService
from utils.formatting import format_currency
from utils.logger import get_logger

logger = get_logger(__name__)

plt.rcParams["figure.facecolor"] = "#1a1a2e"
plt.rcParams["text.color"] = "#e0e0e0"
plt.rcParams["axes.facecolor"] = "#1a1a2e"

_COLORS = {
    "SUBSCRIPTION": "#45B7D1",
    "TAX": "#FF6B6B",
    "INSTALLMENT": "#FFEAA7",
    "OTHER": "#96CEB4",
}


class ChartService:
    """Generates visual charts of recurring costs."""

    def __init__(self, dashboard_service: Optional[DashboardService] = None):
        self.dashboard_service = dashboard_service or DashboardService()

    def generate_category_donut(self, user_id: int, currency: str = "EUR") -> io.BytesIO | None:
        """
        Donut chart of the monthly cost per category.

        Returns:
            BytesIO buffer with a PNG image, or None if there is nothing to plot.
        """
        summary = self.dashboard_service.get_summary(user_id)
        data = {c: v for c, v in summary.by_category.items() if v > 0}
        if not data:
            return None

        categories = sorted(data, key=lambda c: -data[c])
        values = [float(data[c]) for c in categories]

        fig, ax = plt.subplots(figsize=(8, 6))
        wedges, _, autotexts = ax.pie(
            values,
            labels=None,
            autopct=lambda pct: f"{pct:.1f}%",
            colors=[_COLORS[c.value] for c in categories],
            startangle=90,
            pctdistance=0.78,
            wedgeprops=dict(width=0.45, edgecolor="#1a1a2e", linewidth=2),
        )
        for autotext in autotexts:
            autotext.set_color("white")
            autotext.set_fontsize(10)
            autotext.set_fontweight("bold")

        ax.legend(
            wedges,
            [f"{c.value.title()}: {format_currency(data[c], currency)}" for c in categories],
            loc="center left",
            bbox_to_anchor=(1, 0, 0.5, 1),
            fontsize=10,
            frameon=False,
        )
        ax.set_title(
            f"Monthly cost by category\nTotal: {format_currency(sum(data.values()), currency)}/month",
            fontsize=14,
            fontweight="bold",
            pad=20,
        )

        plt.tight_layout()
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        buf.seek(0)
        plt.close(fig)

        logger.info(f"Generated category chart for user {user_id}")
        return buf
