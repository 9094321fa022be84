"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Gemini AI ─────────────────────────────────────────────
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "abbobuddy")
DB_USER: str = os.getenv("DB_USER", "abbobuddy_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ── Time ──────────────────────────────────────────────────
TIMEZONE: ZoneInfo = ZoneInfo(os.getenv("TIMEZONE", "Europe/Brussels"))

# ── User defaults (overridable per user with /settings) ───
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "EUR")
DEFAULT_LEAD_DAYS: int = int(os.getenv("DEFAULT_LEAD_DAYS", "2"))
DEFAULT_REMINDER_HOUR: int = int(os.getenv("DEFAULT_REMINDER_HOUR", "9"))
DEFAULT_REMINDER_MINUTE: int = int(os.getenv("DEFAULT_REMINDER_MINUTE", "0"))
DEFAULT_WINDOW_DAYS: int = int(os.getenv("DEFAULT_WINDOW_DAYS", "7"))

# Lead times offered in /settings (same day, 1, 2, 3 days, 1 or 2 weeks)
LEAD_DAY_CHOICES: tuple[int, ...] = (0, 1, 2, 3, 7, 14)

# ── Scheduled jobs ────────────────────────────────────────
DIGEST_HOUR: int = int(os.getenv("DIGEST_HOUR", "9"))
DIGEST_MINUTE: int = int(os.getenv("DIGEST_MINUTE", "0"))

# ── Categories ────────────────────────────────────────────
DEFAULT_CATEGORY: str = "Other"
CATEGORIES: list[str] = [
    "Streaming", "Music", "Cloud", "Software", "Sport", "Internet", DEFAULT_CATEGORY,
]
