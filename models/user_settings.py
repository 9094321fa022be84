"""
models/user_settings.py
-----------------------
Per-user preferences handed explicitly to the reminder and
presentation collaborators.
"""

from dataclasses import dataclass, field
from datetime import time

from config import (
    CATEGORIES,
    DEFAULT_CURRENCY,
    DEFAULT_LEAD_DAYS,
    DEFAULT_REMINDER_HOUR,
    DEFAULT_REMINDER_MINUTE,
    DEFAULT_WINDOW_DAYS,
)


@dataclass
class UserSettings:
    """
    Attributes:
        currency: ISO currency code used to render amounts.
        lead_days: Days before the due date a reminder is sent.
        reminder_time: Time of day reminders fire.
        window_days: Size of the "due soon" window in days.
        categories: The user's category list, in display order.
    """
    currency: str = DEFAULT_CURRENCY
    lead_days: int = DEFAULT_LEAD_DAYS
    reminder_time: time = field(
        default_factory=lambda: time(DEFAULT_REMINDER_HOUR, DEFAULT_REMINDER_MINUTE)
    )
    window_days: int = DEFAULT_WINDOW_DAYS
    categories: list[str] = field(default_factory=lambda: list(CATEGORIES))
