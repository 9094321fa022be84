"""
handlers/chat_handler.py
------------------------
Routes plain text messages (not commands) to the rule-based assistant.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.reminder_handler import schedule_reminder
from repositories.user_repo import UserRepository
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.chat_service import ChatService
from utils.logger import get_logger

logger = get_logger(__name__)
chat_service = ChatService()
user_repo = UserRepository()


@authorized_only
@rate_limited
async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Answer any plain text message through the chat assistant."""
    user = update.effective_user
    text = update.message.text.strip()
    if not text:
        return

    settings = user_repo.ensure_user(user.id, user.first_name)
    reply = chat_service.reply(user.id, text, settings)

    if reply.get("subscription") is not None:
        schedule_reminder(context.job_queue, reply["subscription"])
    await update.message.reply_text(reply["message"])
