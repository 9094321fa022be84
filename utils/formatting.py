"""
utils/formatting.py
-------------------
Small helpers shared by every message-building service.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "JPY": "¥", "CHF": "CHF "}

_CENT = Decimal("0.01")


def format_money(amount, currency: str = "EUR") -> str:
    """Render an amount with its currency symbol, rounded to cents."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")
    return f"{symbol}{value:,.2f}"


def format_date(value: date) -> str:
    """Medium date style, e.g. '1 Nov 2025'."""
    return f"{value.day} {value.strftime('%b %Y')}"


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
