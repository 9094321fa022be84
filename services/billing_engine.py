"""
services/billing_engine.py
--------------------------
Billing-cycle arithmetic shared by every part of the bot.

All functions are pure: they read prices, frequencies and dates and return
new values. Nothing here touches the database or the clock, except that
`record_payment` falls back to today's date when no reference date is given.

Frequencies may be passed as `Frequency` members or as their string tag;
an unknown tag raises `InvalidFrequency`.
"""

from calendar import monthrange
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from models.subscription import Frequency, Subscription

# Any run of 48 consecutive months contains a non-leap February, the shortest
# month there is. Scanning further cannot shorten an end-of-month clamp.
_CLAMP_HORIZON_MONTHS = 48

_ZERO = Decimal("0")


def _as_date(value, tz=None) -> date:
    """Reduce a datetime to its calendar day (optionally in `tz`); dates pass through."""
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def _as_decimal(price) -> Decimal:
    return price if isinstance(price, Decimal) else Decimal(str(price))


# ── Amounts ───────────────────────────────────────────────

def periods_per_year(frequency) -> int:
    """52, 12, 4 or 1."""
    return Frequency.parse(frequency).per_year


def monthly_amount(price, frequency) -> Decimal:
    """
    Monthly-equivalent value of a price quoted per billing period.

    weekly: p * 52 / 12, monthly: p, quarterly: p / 3, yearly: p / 12.
    The price is not validated.
    """
    frequency = Frequency.parse(frequency)
    price = _as_decimal(price)
    if frequency is Frequency.WEEKLY:
        return price * 52 / 12
    if frequency is Frequency.MONTHLY:
        return price
    if frequency is Frequency.QUARTERLY:
        return price / 3
    return price / 12


def yearly_amount(price, frequency) -> Decimal:
    """
    Yearly-equivalent value of a price quoted per billing period.

    weekly: p * 52, monthly: p * 12, quarterly: p * 4, yearly: p.
    """
    frequency = Frequency.parse(frequency)
    return _as_decimal(price) * frequency.per_year


# ── Due dates ─────────────────────────────────────────────

def days_until(due, today) -> int:
    """
    Signed number of calendar days from `today` to `due`.

    Time of day is discarded; an aware `due` datetime is first moved into the
    zone of an aware `today`. Negative when the due date has passed.
    """
    tz = today.tzinfo if isinstance(today, datetime) else None
    return (_as_date(due, tz) - _as_date(today)).days


def is_due_soon(due, today, window_days: int) -> bool:
    """True when the due date is today or within the next `window_days` days."""
    return 0 <= days_until(due, today) <= window_days


def is_overdue(due, today) -> bool:
    """
    True when the due date is today or earlier ("needs attention").

    Overlaps with `is_due_soon` on the due date itself.
    """
    return days_until(due, today) <= 0


def advance(due, frequency) -> date:
    """
    Move a due date forward by exactly one billing period.

    Month-based periods clamp to the last valid day of the target month,
    so 2024-01-31 + 1 month is 2024-02-29.
    """
    frequency = Frequency.parse(frequency)
    due = _as_date(due)
    if frequency is Frequency.WEEKLY:
        return due + timedelta(weeks=1)
    return due + relativedelta(months=frequency.months)


def advance_by(due, frequency, periods: int) -> date:
    """
    Same result as calling `advance` `periods` times, without the loop.

    Repeated month steps keep the shortest day-of-month seen on the way
    (Jan 31 -> Feb 29 -> Mar 29), so the clamp of every intermediate month
    is taken into account, not just the target month's.
    """
    if periods < 0:
        raise ValueError(f"periods must be >= 0, got {periods}")
    frequency = Frequency.parse(frequency)
    due = _as_date(due)
    if periods == 0:
        return due
    if frequency is Frequency.WEEKLY:
        return due + timedelta(weeks=periods)

    step = frequency.months
    target = due + relativedelta(months=step * periods)
    if due.day <= 28:
        return target

    day = due.day
    for i in range(1, min(periods, _CLAMP_HORIZON_MONTHS // step) + 1):
        passed = due + relativedelta(months=step * i)
        day = min(day, monthrange(passed.year, passed.month)[1])
    return target.replace(day=min(day, target.day))


def _elapsed_periods(due: date, frequency: Frequency, reference: date) -> int:
    """Whole periods between `due` and `reference`, estimated from the calendar."""
    if frequency is Frequency.WEEKLY:
        return (reference - due).days // 7
    months = (reference.year - due.year) * 12 + reference.month - due.month
    return months // frequency.months


def record_payment(due, frequency, reference=None) -> date:
    """
    Next due date after a payment made on `reference` (default: today).

    - Paid early (reference before the due date): exactly one period is
      consumed, however early the payment was.
    - Paid on time or late: the due date rolls forward over every elapsed
      period and lands on the first cycle boundary strictly after the
      reference date.

    The period count is computed from the calendar and then corrected by
    at most two steps, so a years-old weekly record costs constant work.
    """
    frequency = Frequency.parse(frequency)
    due = _as_date(due)
    reference = _as_date(reference) if reference is not None else date.today()

    if reference < due:
        return advance(due, frequency)

    periods = max(_elapsed_periods(due, frequency, reference), 1)
    result = advance_by(due, frequency, periods)
    while result <= reference:
        periods += 1
        result = advance_by(due, frequency, periods)
    return result


def mark_paid_once(due, frequency, reference=None, last_paid_on=None) -> date:
    """
    `record_payment` guarded against being applied twice for one reference date.

    When the record was already marked paid on `reference` and its due date is
    past that reference, the due date is returned unchanged.
    """
    due = _as_date(due)
    reference = _as_date(reference) if reference is not None else date.today()
    if last_paid_on is not None and _as_date(last_paid_on) == reference and due > reference:
        return due
    return record_payment(due, frequency, reference)


# ── Aggregations ──────────────────────────────────────────

def monthly_total(subscriptions: Iterable[Subscription]) -> Decimal:
    return sum((monthly_amount(s.price, s.frequency) for s in subscriptions), _ZERO)


def yearly_total(subscriptions: Iterable[Subscription]) -> Decimal:
    return sum((yearly_amount(s.price, s.frequency) for s in subscriptions), _ZERO)


def due_soon(subscriptions: Iterable[Subscription], today, window_days: int) -> list[Subscription]:
    """Subscriptions due within the window, soonest first."""
    return sorted(
        (s for s in subscriptions if is_due_soon(s.next_due_date, today, window_days)),
        key=lambda s: s.next_due_date,
    )


def needs_attention(subscriptions: Iterable[Subscription], today) -> list[Subscription]:
    """Subscriptions due today or earlier, oldest first."""
    return sorted(
        (s for s in subscriptions if is_overdue(s.next_due_date, today)),
        key=lambda s: s.next_due_date,
    )


def savings(subscriptions: Iterable[Subscription]) -> tuple[Decimal, Decimal]:
    """(per month, per year) saved by cancelling the given subscriptions."""
    per_month = monthly_total(subscriptions)
    return per_month, per_month * 12


def by_category(subscriptions: Iterable[Subscription], yearly: bool = False) -> dict[str, Decimal]:
    """Normalized cost per category, largest first."""
    amount = yearly_amount if yearly else monthly_amount
    totals: dict[str, Decimal] = {}
    for s in subscriptions:
        totals[s.category] = totals.get(s.category, _ZERO) + amount(s.price, s.frequency)
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def today_in(tz: Optional[tzinfo] = None) -> date:
    """Current calendar date in `tz` (local time when None)."""
    return datetime.now(tz).date()
