"""
utils/parsing.py
----------------
Tolerant parsing of user input (English and Dutch) shared by the
command handlers and the chat assistant.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from models.subscription import Frequency, InvalidFrequency

FREQUENCY_ALIASES = {
    "weekly": Frequency.WEEKLY, "week": Frequency.WEEKLY, "wekelijks": Frequency.WEEKLY,
    "monthly": Frequency.MONTHLY, "month": Frequency.MONTHLY,
    "maandelijks": Frequency.MONTHLY, "maand": Frequency.MONTHLY,
    "quarterly": Frequency.QUARTERLY, "quarter": Frequency.QUARTERLY,
    "driemaandelijks": Frequency.QUARTERLY, "kwartaal": Frequency.QUARTERLY,
    "yearly": Frequency.YEARLY, "year": Frequency.YEARLY, "annual": Frequency.YEARLY,
    "annually": Frequency.YEARLY, "jaarlijks": Frequency.YEARLY, "jaar": Frequency.YEARLY,
}

MONTH_NAMES = {
    "january": 1, "januari": 1, "jan": 1,
    "february": 2, "februari": 2, "feb": 2,
    "march": 3, "maart": 3, "mar": 3, "mrt": 3,
    "april": 4, "apr": 4,
    "may": 5, "mei": 5,
    "june": 6, "juni": 6, "jun": 6,
    "july": 7, "juli": 7, "jul": 7,
    "august": 8, "augustus": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oktober": 10, "oct": 10, "okt": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_TRUE_WORDS = {"yes", "y", "true", "1", "ja", "on"}
_FALSE_WORDS = {"no", "n", "false", "0", "nee", "off"}

_ISO_RE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_DMY_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{2,4}))?\b")
_NAMED_RE = re.compile(
    r"\b(\d{1,2})\s+("
    + "|".join(sorted(MONTH_NAMES, key=len, reverse=True))
    + r")\b\.?(?:\s+(\d{4}))?"
)
_TODAY_RE = re.compile(r"\b(today|vandaag)\b")
_TOMORROW_RE = re.compile(r"\b(tomorrow|morgen)\b")

_CURRENCY_PRICE_RE = re.compile(
    r"(?:[€$£]\s?(\d+(?:[.,]\d{1,2})?))|(?:(\d+(?:[.,]\d{1,2})?)\s?(?:[€$£]|eur\b|euro\b|usd\b|gbp\b))"
)
_BARE_PRICE_RE = re.compile(r"(?<![\w.,])(\d+(?:[.,]\d{1,2})?)(?![\w.,])")


def parse_frequency(text: str) -> Frequency:
    """
    Map a frequency word in either language to a Frequency.

    Raises:
        InvalidFrequency: If the word is unknown.
    """
    key = text.strip().lower()
    if key in FREQUENCY_ALIASES:
        return FREQUENCY_ALIASES[key]
    raise InvalidFrequency(f"Unknown billing frequency: {text!r}")


def find_frequency(text: str) -> Optional[Frequency]:
    """First frequency word found anywhere in a sentence."""
    for word in re.findall(r"[a-z]+", text.lower()):
        if word in FREQUENCY_ALIASES:
            return FREQUENCY_ALIASES[word]
    return None


def parse_amount(text: str) -> Decimal:
    """
    Parse '9,99', '€ 12.50' or '120' into a Decimal.

    Raises:
        ValueError: If the text is not a number.
    """
    cleaned = re.sub(r"[€$£\s]|euro|eur", "", text.strip().lower()).replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Not an amount: {text!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not an amount: {text!r}")
    return value


def parse_bool(text: str) -> bool:
    key = text.strip().lower()
    if key in _TRUE_WORDS:
        return True
    if key in _FALSE_WORDS:
        return False
    raise ValueError(f"Not a yes/no value: {text!r}")


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _date_spans(text: str) -> list[tuple[int, int]]:
    lower = text.lower()
    spans = []
    for rx in (_ISO_RE, _DMY_RE, _NAMED_RE):
        spans.extend(m.span() for m in rx.finditer(lower))
    return spans


def find_date(text: str, today: date) -> Optional[date]:
    """
    First date mentioned in a sentence.

    Understands today/vandaag, tomorrow/morgen, 2025-11-01, 1/11, 1-11-2025,
    1/11/25 and '1 november [2025]' (English or Dutch month names).
    A date without a year is taken in the current year.
    """
    lower = text.lower()
    if _TODAY_RE.search(lower):
        return today
    if _TOMORROW_RE.search(lower):
        return today + timedelta(days=1)

    m = _ISO_RE.search(lower)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _DMY_RE.search(lower)
    if m:
        year = today.year
        if m.group(3):
            year = int(m.group(3))
            year = 2000 + year if year < 100 else year
        return _safe_date(year, int(m.group(2)), int(m.group(1)))

    m = _NAMED_RE.search(lower)
    if m:
        year = int(m.group(3)) if m.group(3) else today.year
        return _safe_date(year, MONTH_NAMES[m.group(2)], int(m.group(1)))
    return None


def mentions_date(text: str) -> bool:
    """True when the text holds something shaped like a date, valid or not."""
    lower = text.lower()
    return bool(_date_spans(lower) or _TODAY_RE.search(lower) or _TOMORROW_RE.search(lower))


def parse_date(text: str, today: date) -> date:
    """
    Strict variant of `find_date` for a field that must hold a date.

    Raises:
        ValueError: If no valid date is found.
    """
    found = find_date(text, today)
    if found is None:
        raise ValueError(f"Not a date: {text!r}")
    return found


def find_price(text: str) -> Optional[Decimal]:
    """
    First price in a sentence. Numbers marked with a currency win over bare
    numbers; numbers that are part of a date are ignored.
    """
    lower = text.lower()
    for start, end in _date_spans(lower):
        lower = lower[:start] + " " * (end - start) + lower[end:]

    m = _CURRENCY_PRICE_RE.search(lower)
    raw = (m.group(1) or m.group(2)) if m else None
    if raw is None:
        m = _BARE_PRICE_RE.search(lower)
        raw = m.group(1) if m else None
    return Decimal(raw.replace(",", ".")) if raw else None
