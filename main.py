"""
main.py
-------
Entry point for the AbboBuddy Telegram bot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Configure and start the Telegram bot with all handlers.
    - Schedule renewal reminders and the daily attention digest.
"""

from datetime import time as dt_time

from telegram import BotCommand
from telegram.ext import (
    Application,
    CommandHandler,
    Defaults,
    MessageHandler,
    filters,
)

from config import DIGEST_HOUR, DIGEST_MINUTE, TELEGRAM_BOT_TOKEN, TIMEZONE
from db.connection import init_pool, close_pool
from db.init_db import create_tables
from handlers.chart_handler import chart_command
from handlers.chat_handler import handle_text_message
from handlers.reminder_handler import schedule_all_reminders, send_attention_digest
from handlers.settings_handler import categories_command, settings_command
from handlers.start_handler import start_command, help_command, myid_command
from handlers.subscription_handler import (
    list_command,
    add_command,
    edit_command,
    delete_command,
    paid_command,
    total_command,
    upcoming_command,
    attention_command,
    overview_command,
    savings_command,
)
from utils.logger import get_logger

logger = get_logger(__name__)

COMMANDS = [
    ("start", "🚀 Start the bot", start_command),
    ("help", "📖 Show help", help_command),
    ("list", "📋 All subscriptions", list_command),
    ("add", "➕ Add a subscription", add_command),
    ("edit", "✏️ Edit a subscription", edit_command),
    ("delete", "🗑️ Delete a subscription", delete_command),
    ("paid", "✅ Mark as paid", paid_command),
    ("total", "💶 Monthly and yearly totals", total_command),
    ("upcoming", "📅 Due soon", upcoming_command),
    ("attention", "⚠️ Due today or overdue", attention_command),
    ("overview", "🏷️ Cost per category", overview_command),
    ("chart", "📊 Category chart", chart_command),
    ("savings", "💡 What cancelling saves", savings_command),
    ("settings", "⚙️ Currency and reminders", settings_command),
    ("categories", "🗂️ Manage categories", categories_command),
    ("myid", "🆔 Your Telegram ID", myid_command),
]


async def on_startup(application: Application) -> None:
    """Register the bot commands menu and schedule pending reminders."""
    await application.bot.set_my_commands(
        [BotCommand(name, description) for name, description, _ in COMMANDS]
    )
    logger.info("Bot commands menu registered successfully.")
    await schedule_all_reminders(application)


async def on_shutdown(application: Application) -> None:
    close_pool()


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    create_tables()

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = (
        Application.builder()
        .token(TELEGRAM_BOT_TOKEN)
        .defaults(Defaults(tzinfo=TIMEZONE))
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )

    # ── 3. Register command handlers ──────────────────────
    for name, _, callback in COMMANDS:
        app.add_handler(CommandHandler(name, callback))

    # ── 4. Register text message handler (catch-all) ──────
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text_message))

    # ── 5. Schedule the daily digest ──────────────────────
    if app.job_queue:
        app.job_queue.run_daily(
            send_attention_digest,
            time=dt_time(hour=DIGEST_HOUR, minute=DIGEST_MINUTE, tzinfo=TIMEZONE),
            name="attention_digest",
        )
        logger.info(f"Scheduled attention digest ({DIGEST_HOUR:02d}:{DIGEST_MINUTE:02d})")
    else:
        logger.warning("JobQueue unavailable; install python-telegram-bot[job-queue] for reminders.")

    # ── 6. Start polling ──────────────────────────────────
    logger.info("🚀 AbboBuddy is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])
    logger.info("AbboBuddy stopped.")


if __name__ == "__main__":
    main()
