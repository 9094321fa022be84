"""
handlers/subscription_handler.py
--------------------------------
Command handlers for subscriptions.
Supports the structured `/add` syntax and falls back to Gemini for free text.
"""

from datetime import date
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from config import TIMEZONE
from handlers.reminder_handler import cancel_reminder, schedule_reminder
from models.subscription import InvalidFrequency
from repositories.user_repo import UserRepository
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services import billing_engine as engine
from services.subscription_service import EDIT_FIELDS, SubscriptionService
from utils.formatting import format_date, format_money
from utils.logger import get_logger
from utils.parsing import find_date, parse_amount, parse_frequency

logger = get_logger(__name__)
subscription_service = SubscriptionService()
user_repo = UserRepository()

ADD_USAGE = (
    "📝 Add a subscription\n\n"
    "Format:\n"
    "/add name | price | frequency\n"
    "/add name | price | frequency | next due date | category\n\n"
    "Examples:\n"
    "• /add Netflix | 13,99 | monthly\n"
    "• /add iCloud | 2.99 | monthly | 5/11 | Cloud\n"
    "• /add Car insurance | 600 | yearly | 2026-03-01\n\n"
    "Frequencies: weekly, monthly, quarterly, yearly"
)


def _today() -> date:
    return engine.today_in(TIMEZONE)


def parse_add_args(text: str, today: date) -> Optional[dict]:
    """
    Parse `name | price | frequency [| date] [| category]`.

    Without a date the first due date is one period from today.

    Returns:
        Dict with name, price, frequency, next_due_date, category; None if
        the text is not in the structured format.
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 3 or not parts[0]:
        return None
    try:
        price = parse_amount(parts[1])
        frequency = parse_frequency(parts[2])
    except (ValueError, InvalidFrequency):
        return None

    next_due = None
    if len(parts) >= 4 and parts[3]:
        next_due = find_date(parts[3], today)
        if next_due is None:
            return None
    if next_due is None:
        next_due = engine.advance(today, frequency)

    category = parts[4] if len(parts) >= 5 and parts[4] else None
    return {
        "name": parts[0],
        "price": price,
        "frequency": frequency,
        "next_due_date": next_due,
        "category": category,
    }


def _parse_id(args: list[str]) -> Optional[int]:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


@authorized_only
@rate_limited
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list - show every subscription with totals."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    await update.message.reply_text(subscription_service.list_all(user.id, settings, _today()))


@authorized_only
@rate_limited
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add - add a new subscription.

    Structured format (no AI):
        /add name | price | frequency
        /add name | price | frequency | date | category
    Anything else is handed to Gemini.
    """
    user = update.effective_user
    if not context.args:
        await update.message.reply_text(ADD_USAGE)
        return

    settings = user_repo.ensure_user(user.id, user.first_name)
    text = " ".join(context.args)
    parsed = parse_add_args(text, _today())

    if parsed:
        result = subscription_service.add(
            user_id=user.id, currency=settings.currency, categories=settings.categories, **parsed
        )
    else:
        result = subscription_service.add_from_text(
            user.id, text, currency=settings.currency, categories=settings.categories
        )

    if result.get("success"):
        schedule_reminder(context.job_queue, result["subscription"])
        await update.message.reply_text(result["message"])
    else:
        await update.message.reply_text(f"🤔 {result.get('question', 'Try again?')}")


@authorized_only
@rate_limited
async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /edit <id> <field> <value>.

    Examples:
        /edit 3 price 15,99
        /edit 3 date 1/12
        /edit 3 cancelable no
    """
    user = update.effective_user
    sub_id = _parse_id(context.args)
    if sub_id is None or len(context.args) < 3:
        await update.message.reply_text(
            "⚠️ Usage: /edit <id> <field> <value>\n"
            f"Fields: {', '.join(EDIT_FIELDS)}\n"
            "Example: /edit 3 price 15,99"
        )
        return

    field, value = context.args[1], " ".join(context.args[2:])
    result = subscription_service.edit(user.id, sub_id, field, value)
    if result.get("success"):
        schedule_reminder(context.job_queue, result["subscription"])
        await update.message.reply_text(result["message"])
    else:
        await update.message.reply_text(f"🤔 {result['question']}")


@authorized_only
@rate_limited
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete <id> - delete a subscription.
    Usage: /delete 3
    """
    user = update.effective_user
    sub_id = _parse_id(context.args)
    if sub_id is None:
        await update.message.reply_text("⚠️ Usage: /delete <id>\nExample: /delete 3")
        return

    msg = subscription_service.delete(user.id, sub_id)
    cancel_reminder(context.job_queue, sub_id)
    await update.message.reply_text(msg)


@authorized_only
@rate_limited
async def paid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /paid <id> [date] - record a payment and roll the due date forward.

    Examples:
        /paid 3
        /paid 3 28/10
    """
    user = update.effective_user
    sub_id = _parse_id(context.args)
    if sub_id is None:
        await update.message.reply_text("⚠️ Usage: /paid <id> [date]\nExample: /paid 3 28/10")
        return

    today = _today()
    paid_on = None
    if len(context.args) > 1:
        paid_on = find_date(" ".join(context.args[1:]), today)
        if paid_on is None:
            await update.message.reply_text("⚠️ I couldn't read that date. Try 28/10 or 2025-10-28.")
            return

    result = subscription_service.mark_paid(user.id, sub_id, paid_on=paid_on, today=today)
    if result.get("success"):
        schedule_reminder(context.job_queue, result["subscription"])
        await update.message.reply_text(result["message"])
    else:
        await update.message.reply_text(f"🤔 {result['question']}")


@authorized_only
@rate_limited
async def total_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /total - monthly and yearly totals."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    monthly, yearly = subscription_service.totals(user.id)
    await update.message.reply_text(
        f"💶 Per month: {format_money(monthly, settings.currency)}\n"
        f"📆 Per year: {format_money(yearly, settings.currency)}"
    )


@authorized_only
@rate_limited
async def upcoming_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /upcoming [days] - subscriptions due within the window."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    window = settings.window_days
    if context.args:
        try:
            window = max(int(context.args[0]), 0)
        except ValueError:
            await update.message.reply_text("⚠️ Usage: /upcoming [days]\nExample: /upcoming 14")
            return

    subs = subscription_service.upcoming(user.id, window, _today())
    if not subs:
        await update.message.reply_text(f"🎉 Nothing due in the next {window} days.")
        return

    lines = [f"📅 Due in the next {window} days:\n"]
    for s in subs:
        lines.append(
            f"  #{s.id} {s.name}: {format_money(s.price, settings.currency)}"
            f" - {format_date(s.next_due_date)}"
        )
    await update.message.reply_text("\n".join(lines))


@authorized_only
@rate_limited
async def attention_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /attention - subscriptions due today or earlier."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    subs = subscription_service.needs_attention(user.id, _today())
    if not subs:
        await update.message.reply_text("✅ Nothing needs your attention.")
        return

    lines = ["🔔 Due today or earlier:\n"]
    for s in subs:
        lines.append(
            f"  #{s.id} {s.name}: {format_money(s.price, settings.currency)}"
            f" - due {format_date(s.next_due_date)} → /paid {s.id}"
        )
    await update.message.reply_text("\n".join(lines))


@authorized_only
@rate_limited
async def overview_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /overview [year] - cost per category."""
    user = update.effective_user
    settings = user_repo.ensure_user(user.id, user.first_name)
    yearly = bool(context.args) and context.args[0].lower() in ("year", "yearly", "jaar")
    await update.message.reply_text(subscription_service.overview(user.id, settings, yearly=yearly))


@authorized_only
@rate_limited
async def savings_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /savings <id> [id ...] - what cancelling those subscriptions saves.
    Usage: /savings 3 5
    """
    user = update.effective_user
    try:
        ids = [int(a.lstrip("#")) for a in context.args]
    except ValueError:
        ids = []
    if not ids:
        await update.message.reply_text("⚠️ Usage: /savings <id> [id ...]\nExample: /savings 3 5")
        return

    settings = user_repo.ensure_user(user.id, user.first_name)
    per_month, per_year = subscription_service.savings(user.id, ids)
    await update.message.reply_text(
        f"💡 Cancelling these saves {format_money(per_month, settings.currency)} per month, "
        f"{format_money(per_year, settings.currency)} per year."
    )
