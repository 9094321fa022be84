"""
services/reminder_service.py
----------------------------
Decides when renewal reminders fire and what they say.
Scheduling itself is done by the Telegram job queue in handlers/reminder_handler.py.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

from models.subscription import Subscription
from models.user_settings import UserSettings
from repositories.subscription_repo import SubscriptionRepository
from repositories.user_repo import UserRepository
from services import billing_engine as engine
from utils.formatting import format_date, format_money, plural
from utils.logger import get_logger

logger = get_logger(__name__)

# A trigger that already passed fires this long after "now" instead
CATCH_UP_DELAY = timedelta(minutes=1)


def trigger_time(due: date, lead_days: int, at: time, now: datetime) -> datetime:
    """
    Moment a reminder for `due` should fire: `lead_days` before it, at `at`.

    A moment already in the past becomes now + 1 minute, so a subscription
    added or paid late still gets its reminder.
    """
    trigger = datetime.combine(due - timedelta(days=lead_days), at, tzinfo=now.tzinfo)
    if trigger <= now:
        return now + CATCH_UP_DELAY
    return trigger


def reminder_job_name(sub_id: int) -> str:
    return f"sub-{sub_id}"


class ReminderService:
    """Builds reminder schedules and texts for subscriptions."""

    def __init__(
        self,
        repo: Optional[SubscriptionRepository] = None,
        user_repo: Optional[UserRepository] = None,
    ):
        self.repo = repo or SubscriptionRepository()
        self.user_repo = user_repo or UserRepository()

    def plan(self, sub: Subscription, settings: UserSettings, now: datetime) -> Optional[datetime]:
        """
        When to remind about `sub`, or None.

        Records whose due date already passed get no reminder; they show up
        in the daily attention digest instead. A cycle whose reminder already
        went out is not reminded again.
        """
        if engine.days_until(sub.next_due_date, now) < 0:
            return None
        if sub.reminded_for == sub.next_due_date:
            return None
        return trigger_time(sub.next_due_date, settings.lead_days, settings.reminder_time, now)

    def plan_all(self, now: datetime) -> list[tuple[Subscription, datetime]]:
        """(subscription, trigger) for every subscription that needs a reminder."""
        settings_cache: dict[int, UserSettings] = {}
        plans = []
        for sub in self.repo.get_everything():
            if sub.user_id not in settings_cache:
                settings_cache[sub.user_id] = self.user_repo.get_settings(sub.user_id)
            when = self.plan(sub, settings_cache[sub.user_id], now)
            if when is not None:
                plans.append((sub, when))
        logger.info(f"Planned {len(plans)} reminders")
        return plans

    def reminder_text(self, sub: Subscription, settings: UserSettings, today: date) -> str:
        days = engine.days_until(sub.next_due_date, today)
        when = "today" if days == 0 else f"in {plural(days, 'day')}"
        return (
            f"⏰ Renewal reminder\n\n"
            f"📌 {sub.name} renews {when} ({format_date(sub.next_due_date)}).\n"
            f"💶 Amount: {format_money(sub.price, settings.currency)}\n\n"
            f"Paid already? /paid {sub.id}"
        )

    def record_sent(self, sub: Subscription) -> None:
        """Mark the reminder for the current cycle of `sub` as delivered."""
        self.repo.mark_reminded(sub.id, sub.next_due_date)
        sub.reminded_for = sub.next_due_date

    def is_still_current(self, sub_id: int, user_id: int, due: date) -> Optional[Subscription]:
        """
        The subscription, if it still exists and is still due on `due`.
        A reminder planned for an older due date is stale.
        """
        sub = self.repo.get_by_id(sub_id, user_id)
        if sub is None or sub.next_due_date != due:
            return None
        return sub

    def attention_digest(self, user_id: int, settings: UserSettings, today: date) -> Optional[str]:
        """Text listing subscriptions due today or earlier, or None if there are none."""
        overdue = engine.needs_attention(self.repo.get_all(user_id), today)
        if not overdue:
            return None
        lines = [
            f"🔔 {plural(len(overdue), 'subscription')} due today or earlier. "
            f"Mark them paid once you've paid:\n"
        ]
        for s in overdue:
            lines.append(
                f"  #{s.id} {s.name}: {format_money(s.price, settings.currency)}"
                f" - due {format_date(s.next_due_date)} → /paid {s.id}"
            )
        return "\n".join(lines)

    def users_with_subscriptions(self) -> list[int]:
        return self.repo.get_user_ids()
