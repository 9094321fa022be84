"""
models/subscription.py
----------------------
Domain model for tracked subscriptions and their billing frequency.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from config import DEFAULT_CATEGORY


class InvalidFrequency(ValueError):
    """Raised for a billing period outside the closed frequency set."""


class Frequency(str, Enum):
    """
    Billing period of a subscription's price.

    `months` is the calendar step for month-based periods (0 for weekly),
    `per_year` the number of periods in a year.
    """
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        return _MONTHS[self]

    @property
    def per_year(self) -> int:
        return _PER_YEAR[self]

    @classmethod
    def parse(cls, value) -> "Frequency":
        """
        Coerce a Frequency or its tag ('monthly', ' Yearly ') to a Frequency.

        Raises:
            InvalidFrequency: If the tag is not one of the four periods.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidFrequency(f"Unknown billing frequency: {value!r}") from None


_MONTHS = {
    Frequency.WEEKLY: 0,
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}

_PER_YEAR = {
    Frequency.WEEKLY: 52,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.YEARLY: 1,
}


@dataclass
class Subscription:
    """
    Represents a recurring subscription (streaming, software, utility, ...).

    Attributes:
        id: Database primary key (None for new records).
        user_id: Telegram user ID of the owner.
        name: Display name, unique per user (case-insensitive).
        price: Amount per billing period, never negative.
        frequency: Billing period of `price`.
        next_due_date: The next date a payment is expected.
        category: Free-text category (e.g. 'Streaming').
        cancelable: Whether the user marked it as cancelable.
        note: Optional free-text note.
        last_paid_on: Reference date of the last recorded payment.
        reminded_for: Due date the last renewal reminder was sent for.
        created_at: Timestamp when the record was created.
    """
    user_id: int
    name: str
    price: Decimal
    frequency: Frequency
    next_due_date: date
    category: str = DEFAULT_CATEGORY
    cancelable: bool = True
    note: Optional[str] = None
    last_paid_on: Optional[date] = None
    reminded_for: Optional[date] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.frequency = Frequency.parse(self.frequency)
        if not isinstance(self.price, Decimal):
            self.price = Decimal(str(self.price))

    def __str__(self) -> str:
        return (
            f"{self.name}: {self.price:.2f} ({self.frequency.value}) "
            f"- Next: {self.next_due_date}"
        )
