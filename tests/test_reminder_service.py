"""Tests for reminder planning, reminder texts and the attention digest."""

# pylint: disable=redefined-outer-name

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from models.user_settings import UserSettings
from services.reminder_service import ReminderService, reminder_job_name, trigger_time
from tests.helpers import USER_ID

BRUSSELS = ZoneInfo("Europe/Brussels")
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=BRUSSELS)


@pytest.fixture
def reminders(repo, user_repo) -> ReminderService:
    return ReminderService(repo=repo, user_repo=user_repo)


class TestTriggerTime:
    def test_lead_days_before_at_reminder_time(self):
        assert trigger_time(date(2025, 6, 10), 2, time(9, 0), NOW) == datetime(
            2025, 6, 8, 9, 0, tzinfo=BRUSSELS
        )

    def test_same_day_reminder(self):
        assert trigger_time(date(2025, 6, 10), 0, time(18, 30), NOW) == datetime(
            2025, 6, 10, 18, 30, tzinfo=BRUSSELS
        )

    def test_past_trigger_fires_shortly(self):
        assert trigger_time(date(2025, 6, 2), 3, time(9, 0), NOW) == NOW + timedelta(minutes=1)


def test_job_name():
    assert reminder_job_name(12) == "sub-12"


class TestPlan:
    def test_future_due_date(self, reminders, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 6, 10))
        assert reminders.plan(sub, settings, NOW) == datetime(2025, 6, 8, 9, 0, tzinfo=BRUSSELS)

    def test_due_today_fires_now(self, reminders, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 6, 1))
        assert reminders.plan(sub, settings, NOW) == NOW + timedelta(minutes=1)

    def test_overdue_gets_no_reminder(self, reminders, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 5, 31))
        assert reminders.plan(sub, settings, NOW) is None

    def test_plan_all_uses_each_owners_settings(self, reminders, make_sub, user_repo):
        user_repo.update_settings(7, UserSettings(lead_days=7, reminder_time=time(8, 0)))
        mine = make_sub("Netflix", due=date(2025, 6, 20))
        theirs = make_sub("Netflix", due=date(2025, 6, 20), user_id=7)
        make_sub("Old", due=date(2025, 1, 1))

        plans = dict((sub.id, when) for sub, when in reminders.plan_all(NOW))

        assert plans == {
            mine.id: datetime(2025, 6, 18, 9, 0, tzinfo=BRUSSELS),
            theirs.id: datetime(2025, 6, 13, 8, 0, tzinfo=BRUSSELS),
        }


class TestSentReminders:
    def test_restart_does_not_resend(self, reminders, make_sub):
        make_sub("Netflix", due=date(2025, 6, 2))
        make_sub("Spotify", due=date(2025, 6, 3))

        first = reminders.plan_all(NOW)
        assert len(first) == 2
        for sub, _ in first:
            reminders.record_sent(sub)

        assert reminders.plan_all(NOW + timedelta(hours=3)) == []

    def test_settings_change_does_not_resend(self, reminders, make_sub, user_repo):
        sub = make_sub("Netflix", due=date(2025, 6, 2))
        reminders.record_sent(sub)

        user_repo.update_settings(USER_ID, UserSettings(lead_days=14, reminder_time=time(7, 0)))

        assert reminders.plan_all(NOW) == []

    def test_record_sent_is_stored(self, reminders, repo, make_sub):
        sub = make_sub("Netflix", due=date(2025, 6, 10))
        reminders.record_sent(sub)
        assert repo.rows[sub.id].reminded_for == date(2025, 6, 10)
        assert sub.reminded_for == date(2025, 6, 10)

    def test_new_cycle_is_reminded_again(self, reminders, repo, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 6, 10))
        reminders.record_sent(sub)
        repo.update(sub.id, USER_ID, next_due_date=date(2025, 7, 10))

        moved = repo.get_by_id(sub.id, USER_ID)
        assert reminders.plan(moved, settings, NOW) == datetime(2025, 7, 8, 9, 0, tzinfo=BRUSSELS)


class TestTexts:
    def test_reminder_text(self, reminders, make_sub, settings):
        sub = make_sub("Netflix", "13.99", due=date(2025, 6, 3))
        text = reminders.reminder_text(sub, settings, date(2025, 6, 1))
        assert "Netflix renews in 2 days (3 Jun 2025)" in text
        assert "€13.99" in text
        assert f"/paid {sub.id}" in text

    def test_reminder_text_today(self, reminders, make_sub, settings):
        sub = make_sub("Netflix", due=date(2025, 6, 1))
        assert "renews today" in reminders.reminder_text(sub, settings, date(2025, 6, 1))

    def test_attention_digest(self, reminders, make_sub, settings):
        make_sub("Netflix", due=date(2025, 6, 1))
        gym = make_sub("Gym", "30", "quarterly", due=date(2025, 5, 1))
        make_sub("Spotify", due=date(2025, 6, 5))

        text = reminders.attention_digest(USER_ID, settings, date(2025, 6, 1))

        assert text.startswith("🔔 2 subscriptions due today or earlier")
        assert text.index("Gym") < text.index("Netflix")
        assert f"→ /paid {gym.id}" in text
        assert "Spotify" not in text

    def test_attention_digest_empty(self, reminders, make_sub, settings):
        make_sub("Spotify", due=date(2025, 6, 5))
        assert reminders.attention_digest(USER_ID, settings, date(2025, 6, 1)) is None


class TestStaleness:
    def test_current(self, reminders, make_sub):
        sub = make_sub("Netflix", due=date(2025, 6, 10))
        assert reminders.is_still_current(sub.id, USER_ID, date(2025, 6, 10)).name == "Netflix"

    def test_paid_in_the_meantime(self, reminders, make_sub):
        sub = make_sub("Netflix", due=date(2025, 7, 10))
        assert reminders.is_still_current(sub.id, USER_ID, date(2025, 6, 10)) is None

    def test_deleted(self, reminders):
        assert reminders.is_still_current(99, USER_ID, date(2025, 6, 10)) is None

    def test_users_with_subscriptions(self, reminders, make_sub):
        make_sub("Netflix")
        make_sub("Netflix", user_id=7)
        assert reminders.users_with_subscriptions() == [7, USER_ID]
