"""
services/chart_service.py
--------------------------
Generates chart images of subscription costs.
Uses matplotlib to draw a donut chart and returns it as a BytesIO buffer.
"""

import io

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt

from repositories.subscription_repo import SubscriptionRepository
from services import billing_engine as engine
from utils.formatting import format_money
from utils.logger import get_logger

logger = get_logger(__name__)

plt.rcParams["font.family"] = "DejaVu Sans"
plt.rcParams["figure.facecolor"] = "#1a1a2e"
plt.rcParams["text.color"] = "#e0e0e0"
plt.rcParams["axes.facecolor"] = "#1a1a2e"

COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4",
    "#FFEAA7", "#DDA0DD", "#98D8C8", "#F7DC6F",
    "#BB8FCE", "#85C1E9", "#F1948A", "#82E0AA",
]


class ChartService:
    """Generates visual charts for subscription costs."""

    def __init__(self, repo: SubscriptionRepository | None = None):
        self.repo = repo or SubscriptionRepository()

    def category_donut(self, user_id: int, currency: str = "EUR", yearly: bool = False) -> io.BytesIO | None:
        """
        Donut chart of normalized cost per category.

        Returns:
            BytesIO buffer with PNG image, or None if the user has no subscriptions.
        """
        subs = self.repo.get_all(user_id)
        if not subs:
            return None

        per_category = engine.by_category(subs, yearly=yearly)
        labels = list(per_category)
        values = [float(v) for v in per_category.values()]
        if sum(values) == 0:
            return None

        fig, ax = plt.subplots(figsize=(8, 6))
        wedges, _, autotexts = ax.pie(
            values,
            labels=None,
            autopct=lambda pct: f"{pct:.1f}%",
            colors=[COLORS[i % len(COLORS)] for i in range(len(values))],
            startangle=90,
            pctdistance=0.82,
            wedgeprops=dict(width=0.5, edgecolor="#1a1a2e", linewidth=2),
        )
        for autotext in autotexts:
            autotext.set_color("white")
            autotext.set_fontsize(10)
            autotext.set_fontweight("bold")

        ax.legend(
            wedges,
            [f"{label}: {format_money(per_category[label], currency)}" for label in labels],
            loc="center left",
            bbox_to_anchor=(1, 0, 0.5, 1),
            fontsize=10,
            frameon=False,
        )

        total = engine.yearly_total(subs) if yearly else engine.monthly_total(subs)
        per = "year" if yearly else "month"
        ax.set_title(
            f"Subscriptions per {per}\nTotal: {format_money(total, currency)}",
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
