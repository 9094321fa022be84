"""
services/subscription_service.py
--------------------------------
Business logic for managing subscriptions.
Validates input, talks to the SubscriptionRepository and delegates all
date and amount arithmetic to the billing engine.
"""

import unicodedata
from datetime import date
from decimal import Decimal
from typing import Optional

from psycopg2 import errors as pg_errors

from ai.gemini_parser import parse_subscription
from config import DEFAULT_CATEGORY, TIMEZONE
from models.subscription import Frequency, InvalidFrequency, Subscription
from models.user_settings import UserSettings
from repositories.subscription_repo import SubscriptionRepository
from services import billing_engine as engine
from utils.formatting import format_date, format_money
from utils.logger import get_logger
from utils.parsing import parse_amount, parse_bool, parse_date, parse_frequency

logger = get_logger(__name__)

# User-facing field names accepted by `edit`, mapped to model attributes
EDIT_FIELDS = {
    "name": "name",
    "price": "price",
    "frequency": "frequency",
    "date": "next_due_date",
    "due": "next_due_date",
    "category": "category",
    "note": "note",
    "cancelable": "cancelable",
}


def _fold(text: str) -> str:
    """Case- and accent-insensitive form of a name, for searching."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold().strip()


def _canonical_category(category: Optional[str], categories: Optional[list[str]]) -> str:
    category = (category or "").strip() or DEFAULT_CATEGORY
    for known in categories or ():
        if known.casefold() == category.casefold():
            return known
    return category


class SubscriptionService:
    """
    Handles all business logic for subscriptions.

    Responsibilities:
        - Create, edit and delete subscriptions with validation.
        - Roll due dates forward when a payment is recorded.
        - Compute totals, upcoming renewals and savings scenarios.
    """

    def __init__(self, repo: Optional[SubscriptionRepository] = None):
        self.repo = repo or SubscriptionRepository()

    # ── Create ────────────────────────────────────────────

    def add(
        self,
        user_id: int,
        name: str,
        price,
        frequency,
        next_due_date: date,
        category: Optional[str] = None,
        cancelable: bool = True,
        note: Optional[str] = None,
        currency: str = "EUR",
        categories: Optional[list[str]] = None,
    ) -> dict:
        """
        Validate and persist a new subscription.

        A category matching one of `categories` (ignoring case) takes that
        spelling.

        Returns:
            Dict with 'success', 'message' and 'subscription',
            or 'success': False and a 'question' for the user.
        """
        try:
            name = (name or "").strip()
            if not name:
                raise ValueError("name is empty")
            price = price if isinstance(price, Decimal) else parse_amount(str(price))
            if price < 0:
                raise ValueError("price is negative")
            frequency = Frequency.parse(frequency)
        except InvalidFrequency:
            return {"success": False, "question": "Frequency must be weekly, monthly, quarterly or yearly."}
        except ValueError as e:
            logger.info(f"Rejected subscription for user {user_id}: {e}")
            return {"success": False, "question": "I need a name and a price of 0 or more."}

        if self._find_exact(user_id, name):
            return {"success": False, "question": f"You already track '{name}'. Pick another name."}

        sub = Subscription(
            user_id=user_id,
            name=name,
            price=price,
            frequency=frequency,
            next_due_date=next_due_date,
            category=_canonical_category(category, categories),
            cancelable=cancelable,
            note=note,
        )
        try:
            saved = self.repo.add(sub)
        except pg_errors.UniqueViolation:
            return {"success": False, "question": f"You already track '{name}'. Pick another name."}

        msg = (
            f"➕ Added subscription:\n"
            f"  📌 Name: {saved.name}\n"
            f"  💶 Price: {format_money(saved.price, currency)} ({saved.frequency.value})\n"
            f"  📅 Next due: {format_date(saved.next_due_date)}\n"
            f"  🏷️ Category: {saved.category}\n"
            f"  🔖 ID: #{saved.id}"
        )
        return {"success": True, "message": msg, "subscription": saved}

    def add_from_text(
        self, user_id: int, text: str, currency: str = "EUR", categories: Optional[list[str]] = None
    ) -> dict:
        """
        Parse free text with Gemini and save the result as a subscription.

        Args:
            user_id: Telegram user ID.
            text: e.g. "spotify 10.99 every month from the 3rd".
        """
        parsed = parse_subscription(text, self._today(), categories)
        if "error" in parsed:
            return {"success": False, "question": parsed.get("question", "Try again?")}

        try:
            return self.add(
                user_id=user_id,
                name=parsed["name"],
                price=str(parsed["price"]),
                frequency=parsed.get("frequency", Frequency.MONTHLY.value),
                next_due_date=date.fromisoformat(parsed["next_due_date"]),
                category=parsed.get("category"),
                currency=currency,
                categories=categories,
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Validation error for parsed subscription: {e}, parsed: {parsed}")
            return {"success": False, "question": "Something was off. Try: name | price | frequency | date"}

    # ── Read ──────────────────────────────────────────────

    def get(self, user_id: int, sub_id: int) -> Optional[Subscription]:
        return self.repo.get_by_id(sub_id, user_id)

    def get_all(self, user_id: int) -> list[Subscription]:
        return self.repo.get_all(user_id)

    def find_by_name(self, user_id: int, needle: str) -> Optional[Subscription]:
        """First subscription whose name contains `needle`, ignoring case and accents."""
        folded = _fold(needle)
        if not folded:
            return None
        subs = self.repo.get_all(user_id)
        exact = [s for s in subs if _fold(s.name) == folded]
        if exact:
            return exact[0]
        return next((s for s in subs if folded in _fold(s.name)), None)

    def list_all(self, user_id: int, settings: UserSettings, today: Optional[date] = None) -> str:
        """Formatted list of every subscription with monthly and yearly totals."""
        subs = sorted(self.repo.get_all(user_id), key=lambda s: s.name.casefold())
        if not subs:
            return "📭 No subscriptions yet. Add one with /add."

        today = today or self._today()
        cur = settings.currency
        lines = ["📋 Your subscriptions:\n"]
        for s in subs:
            flag = " ⚠️" if engine.is_overdue(s.next_due_date, today) else ""
            lines.append(
                f"  #{s.id} {s.name}: {format_money(s.price, cur)} ({s.frequency.value}, "
                f"{format_money(engine.monthly_amount(s.price, s.frequency), cur)}/m)"
                f" - next {format_date(s.next_due_date)}{flag}"
            )
        lines.append(f"\n💶 Per month: {format_money(engine.monthly_total(subs), cur)}")
        lines.append(f"📆 Per year: {format_money(engine.yearly_total(subs), cur)}")
        return "\n".join(lines)

    def totals(self, user_id: int) -> tuple[Decimal, Decimal]:
        """(monthly, yearly) normalized totals of all subscriptions."""
        subs = self.repo.get_all(user_id)
        return engine.monthly_total(subs), engine.yearly_total(subs)

    def upcoming(self, user_id: int, window_days: int, today: Optional[date] = None) -> list[Subscription]:
        return engine.due_soon(self.repo.get_all(user_id), today or self._today(), window_days)

    def needs_attention(self, user_id: int, today: Optional[date] = None) -> list[Subscription]:
        return engine.needs_attention(self.repo.get_all(user_id), today or self._today())

    def savings(self, user_id: int, sub_ids: list[int]) -> tuple[Decimal, Decimal]:
        """(per month, per year) saved by cancelling the given subscriptions."""
        wanted = set(sub_ids)
        return engine.savings([s for s in self.repo.get_all(user_id) if s.id in wanted])

    def overview(self, user_id: int, settings: UserSettings, yearly: bool = False) -> str:
        """Cost per category, normalized to a month or a year."""
        subs = self.repo.get_all(user_id)
        if not subs:
            return "📭 No subscriptions yet."

        per = "year" if yearly else "month"
        lines = [f"🗂️ Cost per category (per {per}):\n"]
        for category, amount in engine.by_category(subs, yearly=yearly).items():
            count = sum(1 for s in subs if s.category == category)
            lines.append(f"  • {category} ({count}): {format_money(amount, settings.currency)}")
        total = engine.yearly_total(subs) if yearly else engine.monthly_total(subs)
        lines.append(f"\n💶 Total: {format_money(total, settings.currency)}")
        return "\n".join(lines)

    # ── Update ────────────────────────────────────────────

    def edit(self, user_id: int, sub_id: int, field: str, value: str) -> dict:
        """
        Change one field of a subscription.

        Args:
            field: One of EDIT_FIELDS (name, price, frequency, date, category, note, cancelable).
            value: Raw user input for the new value.
        """
        attr = EDIT_FIELDS.get(field.strip().lower())
        if attr is None:
            return {"success": False, "question": f"Editable fields: {', '.join(EDIT_FIELDS)}."}

        sub = self.repo.get_by_id(sub_id, user_id)
        if sub is None:
            return {"success": False, "question": f"Subscription #{sub_id} not found."}

        try:
            new_value = self._convert_field(attr, value)
        except InvalidFrequency:
            return {"success": False, "question": "Frequency must be weekly, monthly, quarterly or yearly."}
        except ValueError as e:
            return {"success": False, "question": f"Invalid value for {field}: {e}"}

        if attr == "name":
            clash = self._find_exact(user_id, new_value)
            if clash and clash.id != sub_id:
                return {"success": False, "question": f"You already track '{new_value}'."}

        try:
            self.repo.update(sub_id, user_id, **{attr: new_value})
        except pg_errors.UniqueViolation:
            return {"success": False, "question": f"You already track '{new_value}'."}

        setattr(sub, attr, new_value)
        shown = getattr(new_value, "value", new_value)
        return {"success": True, "message": f"✏️ #{sub_id} {field} → {shown}", "subscription": sub}

    def mark_paid(
        self,
        user_id: int,
        sub_id: int,
        paid_on: Optional[date] = None,
        today: Optional[date] = None,
    ) -> dict:
        """
        Record a payment and roll the due date forward.

        Args:
            paid_on: Date the payment was made (default: today).

        Returns:
            Dict with 'success', 'message' and the updated 'subscription'.
        """
        sub = self.repo.get_by_id(sub_id, user_id)
        if sub is None:
            return {"success": False, "question": f"Subscription #{sub_id} not found."}

        reference = paid_on or today or self._today()
        next_due = engine.mark_paid_once(
            sub.next_due_date, sub.frequency, reference, sub.last_paid_on
        )
        if next_due == sub.next_due_date:
            return {
                "success": True,
                "message": f"ℹ️ {sub.name} was already marked paid on {format_date(reference)}.",
                "subscription": sub,
            }

        self.repo.update_due_date(sub, next_due, reference)
        sub.next_due_date, sub.last_paid_on = next_due, reference
        return {
            "success": True,
            "message": f"✅ {sub.name} marked paid. Next due: {format_date(next_due)}.",
            "subscription": sub,
        }

    # ── Delete ────────────────────────────────────────────

    def delete(self, user_id: int, sub_id: int) -> str:
        """Delete a subscription by ID."""
        if self.repo.delete(sub_id, user_id):
            return f"🗑️ Subscription #{sub_id} deleted."
        return f"⚠️ Subscription #{sub_id} not found."

    # ── Helpers ───────────────────────────────────────────

    def _find_exact(self, user_id: int, name: str) -> Optional[Subscription]:
        wanted = name.strip().casefold()
        return next((s for s in self.repo.get_all(user_id) if s.name.casefold() == wanted), None)

    def _convert_field(self, attr: str, value: str):
        if attr == "price":
            price = parse_amount(value)
            if price < 0:
                raise ValueError("price cannot be negative")
            return price
        if attr == "frequency":
            return parse_frequency(value)
        if attr == "next_due_date":
            return parse_date(value, self._today())
        if attr == "cancelable":
            return parse_bool(value)
        value = value.strip()
        if attr == "name" and not value:
            raise ValueError("name cannot be empty")
        if attr == "category":
            return value or DEFAULT_CATEGORY
        return value or None

    @staticmethod
    def _today() -> date:
        return engine.today_in(TIMEZONE)
