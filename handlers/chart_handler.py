"""
handlers/chart_handler.py
--------------------------
Handles the /chart command.
Delegates to ChartService and sends the image to the user.
"""

from telegram import Update
from telegram.ext import ContextTypes

from repositories.user_repo import UserRepository
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.chart_service import ChartService
from utils.logger import get_logger

logger = get_logger(__name__)
chart_service = ChartService()
user_repo = UserRepository()


@authorized_only
@rate_limited
async def chart_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /chart - donut chart of cost per category.

    Usage:
        /chart       → per month
        /chart year  → per year
    """
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    yearly = bool(context.args) and context.args[0].lower() in ("year", "yearly", "jaar")

    buf = chart_service.category_donut(user.id, settings.currency, yearly=yearly)
    if buf:
        await update.message.reply_photo(photo=buf, caption="📊 Cost per category")
    else:
        await update.message.reply_text("📭 No subscriptions to chart yet.")
