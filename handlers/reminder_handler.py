"""
handlers/reminder_handler.py
----------------------------
Job-queue side of renewal reminders.

Every subscription has at most one pending one-off job named `sub-<id>`.
It is (re)scheduled whenever the subscription is added, edited or paid, and
for every subscription when the bot starts. A daily job sends the
"needs attention" digest for subscriptions due today or earlier.
"""

from datetime import date, datetime

from telegram.ext import Application, ContextTypes, JobQueue

from config import TIMEZONE
from models.subscription import Subscription
from repositories.user_repo import UserRepository
from services.reminder_service import ReminderService, reminder_job_name
from utils.logger import get_logger

logger = get_logger(__name__)
reminder_service = ReminderService()
user_repo = UserRepository()


def cancel_reminder(job_queue: JobQueue | None, sub_id: int) -> None:
    """Drop any pending reminder job of a subscription."""
    if job_queue is None:
        return
    for job in job_queue.get_jobs_by_name(reminder_job_name(sub_id)):
        job.schedule_removal()


def schedule_reminder(job_queue: JobQueue | None, sub: Subscription, when: datetime | None = None) -> None:
    """
    Replace the pending reminder of `sub` with one for its current due date.

    Args:
        when: Precomputed trigger; looked up from the owner's settings if None.
    """
    if job_queue is None:
        logger.warning("No job queue available; reminders are disabled.")
        return
    cancel_reminder(job_queue, sub.id)
    if when is None:
        settings = user_repo.get_settings(sub.user_id)
        when = reminder_service.plan(sub, settings, datetime.now(TIMEZONE))
    if when is None:
        return
    job_queue.run_once(
        send_reminder,
        when=when,
        data={"sub_id": sub.id, "due": sub.next_due_date.isoformat()},
        name=reminder_job_name(sub.id),
        chat_id=sub.user_id,
        user_id=sub.user_id,
    )
    logger.info(f"Reminder for '{sub.name}' #{sub.id} scheduled at {when:%Y-%m-%d %H:%M}")


async def send_reminder(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Scheduled job: remind one user about one upcoming renewal."""
    job = context.job
    user_id = job.user_id
    due = date.fromisoformat(job.data["due"])
    sub = reminder_service.is_still_current(job.data["sub_id"], user_id, due)
    if sub is None:
        logger.info(f"Skipping stale reminder {job.name}")
        return

    settings = user_repo.get_settings(user_id)
    today = datetime.now(TIMEZONE).date()
    try:
        await context.bot.send_message(
            chat_id=job.chat_id,
            text=reminder_service.reminder_text(sub, settings, today),
        )
        reminder_service.record_sent(sub)
        logger.info(f"Sent reminder for '{sub.name}' to user {user_id}")
    except Exception as e:
        logger.error(f"Failed to send reminder for '{sub.name}': {e}")


async def send_attention_digest(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: tell every user which subscriptions are due today or earlier.
    Runs daily.
    """
    today = datetime.now(TIMEZONE).date()
    for user_id in reminder_service.users_with_subscriptions():
        try:
            settings = user_repo.get_settings(user_id)
            text = reminder_service.attention_digest(user_id, settings, today)
            if text is None:
                continue
            await context.bot.send_message(chat_id=user_id, text=text)
            logger.info(f"Sent attention digest to user {user_id}")
        except Exception as e:
            logger.error(f"Failed to send attention digest to {user_id}: {e}")


async def schedule_all_reminders(application: Application) -> None:
    """Start-up hook: schedule a reminder for every subscription that needs one."""
    if application.job_queue is None:
        logger.warning("No job queue available; reminders are disabled.")
        return
    for sub, when in reminder_service.plan_all(datetime.now(TIMEZONE)):
        schedule_reminder(application.job_queue, sub, when)
