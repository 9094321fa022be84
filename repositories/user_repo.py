"""
repositories/user_repo.py
--------------------------
Data access layer for user records and their settings.
"""

from datetime import time
from typing import Optional

from config import CATEGORIES
from db.connection import pooled_connection
from models.user_settings import UserSettings
from utils.logger import get_logger

logger = get_logger(__name__)

_SETTINGS_COLUMNS = "currency, lead_days, reminder_hour, reminder_minute, window_days, categories"


class UserRepository:
    """Repository for the users table."""

    def ensure_user(self, telegram_id: int, first_name: Optional[str] = None) -> UserSettings:
        """
        Insert a user if they don't exist and return their settings.
        Uses PostgreSQL's ON CONFLICT (upsert) for atomicity.
        """
        sql = f"""
            INSERT INTO users (telegram_id, first_name)
            VALUES (%s, %s)
            ON CONFLICT (telegram_id) DO UPDATE SET first_name = EXCLUDED.first_name
            RETURNING {_SETTINGS_COLUMNS};
        """
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (telegram_id, first_name))
                row = cur.fetchone()
        except Exception as e:
            logger.error(f"Failed to ensure user {telegram_id}: {e}")
            raise
        return self._row_to_settings(row)

    def get_settings(self, telegram_id: int) -> UserSettings:
        """Settings of a user; defaults when the user is unknown."""
        sql = f"SELECT {_SETTINGS_COLUMNS} FROM users WHERE telegram_id = %s;"
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(sql, (telegram_id,))
            row = cur.fetchone()
        return self._row_to_settings(row) if row else UserSettings()

    def update_settings(self, telegram_id: int, settings: UserSettings) -> None:
        """Overwrite every setting column of a user."""
        sql = """
            UPDATE users SET currency = %s, lead_days = %s, reminder_hour = %s,
                             reminder_minute = %s, window_days = %s, categories = %s
            WHERE telegram_id = %s;
        """
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (
                    settings.currency, settings.lead_days,
                    settings.reminder_time.hour, settings.reminder_time.minute,
                    settings.window_days, list(settings.categories), telegram_id,
                ))
        except Exception as e:
            logger.error(f"Failed to update settings of {telegram_id}: {e}")
            raise
        logger.info(f"Updated settings of user {telegram_id}")

    @staticmethod
    def _row_to_settings(row: tuple) -> UserSettings:
        return UserSettings(
            currency=row[0],
            lead_days=row[1],
            reminder_time=time(row[2], row[3]),
            window_days=row[4],
            categories=list(row[5]) if row[5] else list(CATEGORIES),
        )
