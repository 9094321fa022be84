"""
handlers/settings_handler.py
----------------------------
Handles /settings (currency, reminder lead time, reminder time and
the "due soon" window) and /categories for a user.
"""

import re
from dataclasses import replace
from datetime import time

from telegram import Update
from telegram.ext import ContextTypes

from config import LEAD_DAY_CHOICES
from handlers.reminder_handler import schedule_reminder
from models.user_settings import UserSettings
from repositories.user_repo import UserRepository
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.subscription_service import SubscriptionService
from utils.formatting import plural
from utils.logger import get_logger

logger = get_logger(__name__)
user_repo = UserRepository()
subscription_service = SubscriptionService()

_TIME_RE = re.compile(r"^(\d{1,2})[:.h](\d{2})$")

SETTINGS_USAGE = (
    "⚙️ Change a setting:\n"
    "• /settings currency USD\n"
    f"• /settings lead 3   (one of {', '.join(map(str, LEAD_DAY_CHOICES))} days)\n"
    "• /settings time 08:30\n"
    "• /settings window 14"
)


def describe(settings: UserSettings) -> str:
    lead = "on the due date" if settings.lead_days == 0 else f"{plural(settings.lead_days, 'day')} before"
    return (
        "⚙️ Your settings:\n"
        f"  💱 Currency: {settings.currency}\n"
        f"  ⏰ Reminder: {lead}, at {settings.reminder_time:%H:%M}\n"
        f"  📅 Due-soon window: {plural(settings.window_days, 'day')}"
    )


def apply_setting(settings: UserSettings, key: str, value: str) -> UserSettings:
    """
    Return a copy of `settings` with one value changed.

    Raises:
        ValueError: On an unknown key or an invalid value.
    """
    key = key.lower()
    if key == "currency":
        code = value.strip().upper()
        if not re.fullmatch(r"[A-Z]{3}", code):
            raise ValueError("currency must be a 3-letter code like EUR")
        return replace(settings, currency=code)
    if key == "lead":
        days = int(value)
        if days not in LEAD_DAY_CHOICES:
            raise ValueError(f"lead must be one of {', '.join(map(str, LEAD_DAY_CHOICES))}")
        return replace(settings, lead_days=days)
    if key == "time":
        m = _TIME_RE.match(value.strip())
        if not m:
            raise ValueError("time must look like 08:30")
        return replace(settings, reminder_time=time(int(m.group(1)), int(m.group(2))))
    if key == "window":
        days = int(value)
        if days < 0:
            raise ValueError("window must be 0 or more days")
        return replace(settings, window_days=days)
    raise ValueError(f"unknown setting '{key}'")


@authorized_only
@rate_limited
async def settings_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings [key value] - show or change a setting."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)

    if not context.args:
        await update.message.reply_text(f"{describe(settings)}\n\n{SETTINGS_USAGE}")
        return
    if len(context.args) < 2:
        await update.message.reply_text(SETTINGS_USAGE)
        return

    try:
        updated = apply_setting(settings, context.args[0], " ".join(context.args[1:]))
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    user_repo.update_settings(user.id, updated)
    if (updated.lead_days, updated.reminder_time) != (settings.lead_days, settings.reminder_time):
        for sub in subscription_service.get_all(user.id):
            schedule_reminder(context.job_queue, sub)
    await update.message.reply_text(describe(updated))


# ── Categories ────────────────────────────────────────────

CATEGORIES_USAGE = (
    "🏷️ Manage categories:\n"
    "• /categories add Gaming\n"
    "• /categories delete Gaming\n"
    "• /categories move Gaming 1"
)


def _index_of(categories: list[str], name: str) -> int:
    wanted = name.strip().casefold()
    for i, category in enumerate(categories):
        if category.casefold() == wanted:
            return i
    raise ValueError(f"no category '{name.strip()}'")


def change_categories(categories: list[str], action: str, value: str) -> list[str]:
    """
    Return a new category list with one change applied.

    Actions:
        add <name>             → appended, then sorted alphabetically
        delete <name>          → removed (the last category cannot go)
        move <name> <position> → moved to a 1-based position

    Raises:
        ValueError: On an unknown action, a duplicate or a missing category.
    """
    result = list(categories)
    action = action.lower()
    if action == "add":
        name = value.strip()
        if not name:
            raise ValueError("give the category a name")
        if any(c.casefold() == name.casefold() for c in result):
            raise ValueError(f"'{name}' is already a category")
        result.append(name)
        result.sort(key=str.casefold)
        return result
    if action in ("delete", "remove"):
        index = _index_of(result, value)
        if len(result) == 1:
            raise ValueError("keep at least one category")
        del result[index]
        return result
    if action == "move":
        name, _, position = value.strip().rpartition(" ")
        if not name or not position.isdigit():
            raise ValueError("usage: move <name> <position>")
        category = result.pop(_index_of(result, name))
        target = min(max(int(position), 1), len(result) + 1)
        result.insert(target - 1, category)
        return result
    raise ValueError(f"unknown action '{action}'")


@authorized_only
@rate_limited
async def categories_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /categories [add|delete|move ...] - show or change the category list."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)

    if len(context.args) < 2:
        listing = "\n".join(f"  {i}. {c}" for i, c in enumerate(settings.categories, start=1))
        await update.message.reply_text(f"🏷️ Your categories:\n{listing}\n\n{CATEGORIES_USAGE}")
        return

    try:
        categories = change_categories(settings.categories, context.args[0], " ".join(context.args[1:]))
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    user_repo.update_settings(user.id, replace(settings, categories=categories))
    logger.info(f"User {user.id} changed categories: {context.args[0]}")
    listing = "\n".join(f"  {i}. {c}" for i, c in enumerate(categories, start=1))
    await update.message.reply_text(f"🏷️ Your categories:\n{listing}")
