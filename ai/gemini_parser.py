"""
ai/gemini_parser.py
-------------------
Uses Google Gemini to turn a free-form description of a subscription
("Disney+ 8.99 every month starting the 3rd") into structured data.

Only used as a fallback when the structured `/add` syntax does not parse.
"""

import json
from datetime import date

import google.generativeai as genai

from config import CATEGORIES, GEMINI_API_KEY, GEMINI_MODEL
from utils.logger import get_logger

logger = get_logger(__name__)

_model = None

_SUBSCRIPTION_PROMPT = """You are a personal finance assistant. Turn the user's message
into JSON describing ONE recurring subscription.

Today's date: {today}

## Rules
1. **name**: the service or bill (e.g. "Netflix", "Gym", "Internet").
2. **price**: the amount per billing period, as a number (9,99 -> 9.99).
3. **frequency**: one of "weekly", "monthly", "quarterly", "yearly".
   Default to "monthly" when the message does not say.
4. **next_due_date**: YYYY-MM-DD of the next payment. When missing:
   weekly -> one week from today, monthly -> one month from today,
   quarterly -> three months from today, yearly -> one year from today.
5. **category**: one of {categories}.

## Examples
- "netflix 13.99 a month" -> {{"name":"Netflix","price":13.99,"frequency":"monthly","next_due_date":"<today + 1 month>","category":"Streaming"}}
- "icloud 2,99 monthly on the 5th" -> {{"name":"iCloud","price":2.99,"frequency":"monthly","next_due_date":"<next 5th>","category":"Cloud"}}
- "car insurance 600 every year from 1 march" -> {{"name":"Car insurance","price":600,"frequency":"yearly","next_due_date":"<next 1 March>","category":"Other"}}

## Output
Return JSON only, no markdown:
{{"name":"<name>","price":<number>,"frequency":"weekly|monthly|quarterly|yearly","next_due_date":"YYYY-MM-DD","category":"<category>"}}

If the message is unclear: {{"error":"unclear","question":"<short clarifying question>"}}
"""


def _get_model():
    """Configure the Gemini client on first use."""
    global _model
    if _model is None:
        genai.configure(api_key=GEMINI_API_KEY)
        _model = genai.GenerativeModel(GEMINI_MODEL)
    return _model


def _strip_fences(raw: str) -> str:
    """Remove ``` code fences the model sometimes adds."""
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[:-3]
    return raw.strip()


def parse_subscription(text: str, today: date | None = None, categories: list[str] | None = None) -> dict:
    """
    Ask Gemini to extract a subscription from natural text.

    Args:
        text: e.g. "spotify family 17.99 per month".
        today: Reference date for relative due dates (default: today).
        categories: The user's own category list (default: CATEGORIES).

    Returns:
        Dict with: name, price, frequency, next_due_date, category.
        OR a dict with keys: error, question (if the message is unclear).
    """
    prompt = _SUBSCRIPTION_PROMPT.format(
        today=(today or date.today()).isoformat(),
        categories=", ".join(categories or CATEGORIES),
    )
    raw = ""
    try:
        response = _get_model().generate_content(
            [
                {"role": "user", "parts": [{"text": prompt}]},
                {"role": "user", "parts": [{"text": text}]},
            ],
            generation_config=genai.GenerationConfig(
                temperature=0.1,
                max_output_tokens=300,
            ),
        )
        raw = _strip_fences(response.text)
        result = json.loads(raw)
        logger.info(f"Gemini parsed subscription: {result}")
        return result

    except json.JSONDecodeError:
        logger.warning(f"Gemini returned non-JSON: {raw!r}")
        return {"error": "parse_failed", "question": "I didn't get that. Try: name | price | frequency"}
    except Exception as e:
        logger.error(f"Gemini API error: {e}")
        return {"error": "api_error", "question": "Something went wrong while reading that. Try again?"}
