"""
security/rate_limiter.py
-------------------------
Per-user sliding-window rate limiting for incoming messages.
"""

import time
from collections import defaultdict
from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Remembers message timestamps per user and refuses a message once
    `max_messages` arrived within the last `window_seconds`.
    """

    def __init__(self, max_messages: int, window_seconds: float,
                 clock: Callable[[], float] = time.monotonic):
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.clock = clock
        self._timestamps: dict[int, list[float]] = defaultdict(list)

    def hit(self, user_id: int) -> bool:
        """Record a message. Returns False if the user is over the limit."""
        now = self.clock()
        cutoff = now - self.window_seconds
        recent = [t for t in self._timestamps[user_id] if t > cutoff]
        if len(recent) >= self.max_messages:
            self._timestamps[user_id] = recent
            return False
        recent.append(now)
        self._timestamps[user_id] = recent
        return True

    def reset(self, user_id: int | None = None) -> None:
        if user_id is None:
            self._timestamps.clear()
        else:
            self._timestamps.pop(user_id, None)


limiter = RateLimiter(RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS)


def rate_limited(func: Callable):
    """
    Decorator that enforces rate limiting per user.

    Configuration (via .env):
        RATE_LIMIT_MESSAGES: Max messages per window (default: 30).
        RATE_LIMIT_WINDOW_SECONDS: Window duration in seconds (default: 60).
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not limiter.hit(user.id):
            logger.warning(f"⚠️ Rate limit hit for user {user.id}")
            if update.message:
                await update.message.reply_text(
                    "⚠️ You're sending a lot of messages. Wait a moment and try again."
                )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
