"""In-memory stand-ins for the PostgreSQL repositories, shared by the tests."""

from dataclasses import replace
from datetime import date, datetime

from models.subscription import Subscription
from models.user_settings import UserSettings

USER_ID = 42


class FakeSubscriptionRepository:
    """Keeps subscriptions in a dict, with the same method contract as the SQL repository."""

    def __init__(self):
        self.rows: dict[int, Subscription] = {}
        self._next_id = 1

    def add(self, sub: Subscription) -> Subscription:
        sub.id = self._next_id
        sub.created_at = datetime(2025, 1, 1, 12, 0)
        self._next_id += 1
        self.rows[sub.id] = replace(sub)
        return sub

    def get_all(self, user_id: int) -> list[Subscription]:
        return [replace(s) for s in self.rows.values() if s.user_id == user_id]

    def get_everything(self) -> list[Subscription]:
        return [replace(s) for s in self.rows.values()]

    def get_by_id(self, sub_id: int, user_id: int):
        sub = self.rows.get(sub_id)
        return replace(sub) if sub and sub.user_id == user_id else None

    def get_user_ids(self) -> list[int]:
        return sorted({s.user_id for s in self.rows.values()})

    def update(self, sub_id: int, user_id: int, **fields) -> bool:
        sub = self.rows.get(sub_id)
        if sub is None or sub.user_id != user_id:
            return False
        for key, value in fields.items():
            setattr(sub, key, value)
        return True

    def update_due_date(self, sub: Subscription, next_due: date, paid_on: date) -> None:
        stored = self.rows[sub.id]
        stored.next_due_date = next_due
        stored.last_paid_on = paid_on

    def mark_reminded(self, sub_id: int, due: date) -> None:
        self.rows[sub_id].reminded_for = due

    def delete(self, sub_id: int, user_id: int) -> bool:
        sub = self.rows.get(sub_id)
        if sub is None or sub.user_id != user_id:
            return False
        del self.rows[sub_id]
        return True


class FakeUserRepository:
    """Per-user settings in a dict."""

    def __init__(self):
        self.settings: dict[int, UserSettings] = {}

    def ensure_user(self, telegram_id: int, first_name=None) -> UserSettings:
        return self.settings.setdefault(telegram_id, UserSettings())

    def get_settings(self, telegram_id: int) -> UserSettings:
        return self.settings.get(telegram_id, UserSettings())

    def update_settings(self, telegram_id: int, settings: UserSettings) -> None:
        self.settings[telegram_id] = settings
