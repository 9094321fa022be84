"""
handlers/start_handler.py
--------------------------
Handles /start and /help commands.
Registers the user and shows available commands.
"""

from telegram import Update
from telegram.ext import ContextTypes

from repositories.user_repo import UserRepository
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)
user_repo = UserRepository()

HELP_TEXT = """
🤖 Welcome to AbboBuddy!
Your personal subscription tracker 💶

💬 Just talk to me:
• "total per month"
• "what is due within 14 days"
• "mark netflix as paid"
• "add spotify 10,99 monthly on 1/11"

🔧 Commands:
/list - all subscriptions with totals
/add - add a subscription (name | price | frequency | date | category)
/edit - change a field (/edit 3 price 15,99)
/delete - delete a subscription (/delete 3)
/paid - mark paid and move the due date (/paid 3)
/total - monthly and yearly totals
/upcoming - due in the next days (/upcoming 14)
/attention - due today or earlier
/overview - cost per category (/overview year)
/chart - chart of monthly cost per category
/savings - what cancelling saves (/savings 3 5)
/settings - currency, reminders, window
/categories - add, delete or reorder categories
/myid - your Telegram ID
"""


@authorized_only
@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - register user and show welcome message."""
    user = update.effective_user
    user_repo.ensure_user(user.id, user.first_name)
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"I keep track of your subscriptions and remind you before they renew.\n\n"
        f"Send /help to see everything I can do."
    )


@authorized_only
@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT)


@authorized_only
async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show user's Telegram ID for whitelisting."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your Telegram ID: `{user.id}`\n"
        f"Add it to `ALLOWED_USER_IDS` in the `.env` file to lock the bot down.",
        parse_mode="Markdown",
    )
