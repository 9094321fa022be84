"""
security/auth.py
-----------------
Access control for the Telegram bot.
Only whitelisted Telegram users may talk to the bot.
"""

from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import ALLOWED_USER_IDS
from utils.logger import get_logger

logger = get_logger(__name__)

DENIED_TEXT = "⛔ Sorry, this is a private bot. Send /myid and ask the owner to add you."


def is_allowed(user_id: int, allowed: list[int] | None = None) -> bool:
    """An empty whitelist lets everyone in (dev mode)."""
    allowed = ALLOWED_USER_IDS if allowed is None else allowed
    return not allowed or user_id in allowed


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to whitelisted users only.

    Usage:
        @authorized_only
        async def my_handler(update, context):
            ...
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not is_allowed(user.id):
            logger.warning(
                f"🚫 Unauthorized access attempt: user_id={user.id}, "
                f"username={user.username}, name={user.first_name}"
            )
            if update.message:
                await update.message.reply_text(DENIED_TEXT)
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
