"""
services/chat_service.py
------------------------
Rule-based assistant behind plain text messages.

Recognizes a handful of English and Dutch phrasings with keyword and regex
matching and answers them through SubscriptionService:

    "total per month" / "totaal per maand"
    "total per year" / "totaal per jaar"
    "what is due within 14 days" / "wat vervalt binnenkort"
    "mark netflix as paid on 1/11" / "markeer netflix als betaald"
    "add 'Disney+' 8,99 monthly on 3/12 category Streaming" / "voeg spotify 10,99 toe"
    "what do I save if I cancel netflix and spotify" / "wat bespaar ik als ik netflix en spotify opzeg"
"""

import re
from datetime import date
from typing import Optional

from config import TIMEZONE
from models.subscription import Frequency
from models.user_settings import UserSettings
from services import billing_engine as engine
from services.subscription_service import SubscriptionService
from utils.formatting import format_date, format_money
from utils.logger import get_logger
from utils.parsing import FREQUENCY_ALIASES, find_date, find_frequency, find_price, mentions_date

logger = get_logger(__name__)

TOTAL_MONTH = "total_month"
TOTAL_YEAR = "total_year"
UPCOMING = "upcoming"
MARK_PAID = "mark_paid"
ADD = "add"
SAVINGS = "savings"
HELP = "help"

# Upcoming lists are cut off after this many lines
MAX_LISTED = 10

BAD_DATE_TEXT = "⚠️ I couldn't read that date. Try 28/10 or 2025-10-28."

HELP_TEXT = (
    "💬 Things you can ask me:\n"
    "  • total per month / total per year\n"
    "  • what is due within 14 days\n"
    "  • mark netflix as paid (on 1/11)\n"
    "  • add \"Disney+\" 8,99 monthly on 3/12 category Streaming\n"
    "  • what do I save if I cancel netflix and spotify\n"
    "Dutch works too: \"totaal per maand\", \"markeer netflix als betaald\"."
)

_WINDOW_RE = re.compile(r"\b(?:within|in|binnen)\s+(\d+)")
_MARK_PAID_RE = re.compile(r"\b(?:mark|markeer)\s+(.+?)\s+(?:as|als)\s+(?:paid|betaald)\b")
_QUOTED_RE = re.compile(r"[\"'‘“](.+?)[\"'’”]")
_LEADING_VERB_RE = re.compile(r"^(?:please\s+)?(?:voeg|add)\s+", re.IGNORECASE)
_CATEGORY_RE = re.compile(r"\b(?:category|categorie)\b[:\s]*(.*)$", re.IGNORECASE)
_SAVINGS_NAMES_RE = re.compile(r"\b(?:if i cancel|als ik)\s+(.*)$")
_SPLIT_NAMES_RE = re.compile(r",|\s+(?:and|en|or|of)\s+")

_NAME_STOP_WORDS = {
    "€", "$", "£", "eur", "euro", "per", "every", "elke", "toe", "on", "op",
    "from", "vanaf", "category", "categorie", "for", "voor", "at",
} | set(FREQUENCY_ALIASES)


def detect_intent(text: str) -> str:
    """Classify a message into one of the intents above; HELP when nothing matches."""
    lower = text.lower()

    if ("totaal" in lower and "maand" in lower) or ("total" in lower and "month" in lower):
        return TOTAL_MONTH
    if ("totaal" in lower and "jaar" in lower) or ("total" in lower and "year" in lower):
        return TOTAL_YEAR
    if any(w in lower for w in ("binnenkort", "vervalt", "aankomend", "upcoming", "due")):
        return UPCOMING
    if (
        ("markeer" in lower and "betaald" in lower)
        or ("mark" in lower and "paid" in lower)
    ):
        return MARK_PAID
    if ("voeg" in lower and "toe" in lower) or re.search(r"\badd\s", lower):
        return ADD
    if any(w in lower for w in ("wat bespaar", "bespaar ik", "besparing", "save if", "how much save", "would i save")):
        return SAVINGS
    return HELP


def extract_window(text: str, default: int) -> int:
    m = _WINDOW_RE.search(text.lower())
    return int(m.group(1)) if m else default


def extract_paid_name(text: str) -> Optional[str]:
    m = _MARK_PAID_RE.search(text.lower())
    return m.group(1).strip() if m else None


def extract_add_name(text: str) -> Optional[str]:
    """
    Name of the subscription in an "add" sentence.

    A quoted name wins; otherwise the words after the leading verb up to the
    first number, currency or keyword.
    """
    quoted = _QUOTED_RE.search(text)
    if quoted and quoted.group(1).strip():
        return quoted.group(1).strip()

    remainder = _LEADING_VERB_RE.sub("", text.strip())
    words = []
    for word in remainder.split():
        lw = word.lower().rstrip(",")
        if lw[:1].isdigit() or lw[:1] in "€$£" or lw in _NAME_STOP_WORDS:
            break
        words.append(word.rstrip(","))
    name = " ".join(words).strip()
    if name.lower() in ("", "add", "voeg"):
        return None
    return name


def extract_category(text: str) -> Optional[str]:
    m = _CATEGORY_RE.search(text)
    if not m:
        return None
    return m.group(1).strip() or None


def extract_savings_names(text: str) -> list[str]:
    m = _SAVINGS_NAMES_RE.search(text.lower().rstrip("?!. "))
    if not m:
        return []
    rest = re.sub(r"\b(?:opzeggen|opzeg|cancel)\b", "", m.group(1))
    return [n.strip() for n in _SPLIT_NAMES_RE.split(rest) if n.strip()]


class ChatService:
    """
    Answers chat messages by mapping them onto SubscriptionService calls.

    Every reply is a dict with 'message' and, when a record changed,
    the updated 'subscription' so the caller can reschedule its reminder.
    """

    def __init__(self, subscriptions: Optional[SubscriptionService] = None):
        self.subscriptions = subscriptions or SubscriptionService()

    def reply(self, user_id: int, text: str, settings: UserSettings, today: Optional[date] = None) -> dict:
        today = today or engine.today_in(TIMEZONE)
        intent = detect_intent(text)
        logger.info(f"Chat intent for user {user_id}: {intent}")
        handler = {
            TOTAL_MONTH: self._total_month,
            TOTAL_YEAR: self._total_year,
            UPCOMING: self._upcoming,
            MARK_PAID: self._mark_paid,
            ADD: self._add,
            SAVINGS: self._savings,
        }.get(intent)
        if handler is None:
            return {"message": HELP_TEXT}
        return handler(user_id, text, settings, today)

    # ── Intents ───────────────────────────────────────────

    def _total_month(self, user_id, text, settings, today) -> dict:
        monthly, _ = self.subscriptions.totals(user_id)
        return {"message": f"💶 You pay {format_money(monthly, settings.currency)} per month."}

    def _total_year(self, user_id, text, settings, today) -> dict:
        _, yearly = self.subscriptions.totals(user_id)
        return {"message": f"📆 You pay {format_money(yearly, settings.currency)} per year."}

    def _upcoming(self, user_id, text, settings, today) -> dict:
        window = extract_window(text, settings.window_days)
        subs = self.subscriptions.upcoming(user_id, window, today)
        if not subs:
            return {"message": f"🎉 Nothing due in the next {window} days."}
        lines = [f"📅 Due in the next {window} days:"]
        for s in subs[:MAX_LISTED]:
            per_month = engine.monthly_amount(s.price, s.frequency)
            lines.append(
                f"  • {s.name} - {format_date(s.next_due_date)}"
                f" - {format_money(per_month, settings.currency)}/m"
            )
        return {"message": "\n".join(lines)}

    def _mark_paid(self, user_id, text, settings, today) -> dict:
        name = extract_paid_name(text)
        sub = self.subscriptions.find_by_name(user_id, name) if name else None
        if sub is None:
            return {"message": "🤔 Which subscription? Try: mark netflix as paid"}

        paid_on = find_date(text, today)
        if paid_on is None and mentions_date(text):
            return {"message": BAD_DATE_TEXT}
        result = self.subscriptions.mark_paid(user_id, sub.id, paid_on=paid_on, today=today)
        if not result.get("success"):
            return {"message": f"🤔 {result.get('question')}"}
        return {"message": result["message"], "subscription": result["subscription"]}

    def _add(self, user_id, text, settings, today) -> dict:
        category = extract_category(text)
        body = _CATEGORY_RE.sub("", text)
        name = extract_add_name(body) or "New subscription"
        price = find_price(body)
        if price is None:
            return {"message": f"🤔 How much does {name} cost? Try: add {name} 9,99 monthly"}
        due = find_date(body, today)
        if due is None and mentions_date(body):
            return {"message": BAD_DATE_TEXT}

        result = self.subscriptions.add(
            user_id=user_id,
            name=name,
            price=price,
            frequency=find_frequency(body) or Frequency.MONTHLY,
            next_due_date=due or today,
            category=category,
            currency=settings.currency,
            categories=settings.categories,
        )
        if not result.get("success"):
            return {"message": f"🤔 {result.get('question')}"}
        return {"message": result["message"], "subscription": result["subscription"]}

    def _savings(self, user_id, text, settings, today) -> dict:
        found = [self.subscriptions.find_by_name(user_id, n) for n in extract_savings_names(text)]
        found = [s for s in found if s is not None]
        if not found:
            return {"message": "🤔 Which ones would you cancel? Try: what do I save if I cancel netflix and spotify"}

        per_month, per_year = self.subscriptions.savings(user_id, [s.id for s in found])
        names = ", ".join(s.name for s in found)
        return {
            "message": (
                f"💡 Cancelling {names} saves "
                f"{format_money(per_month, settings.currency)} per month, "
                f"{format_money(per_year, settings.currency)} per year."
            )
        }
