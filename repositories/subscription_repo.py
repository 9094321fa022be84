"""
repositories/subscription_repo.py
---------------------------------
Data access layer for subscriptions.
All SQL queries related to the `subscriptions` table live here.
"""

from datetime import date
from typing import Optional

from db.connection import pooled_connection
from models.subscription import Subscription
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "id, user_id, name, price, frequency, next_due_date, category, "
    "cancelable, note, last_paid_on, reminded_for, created_at"
)

# Columns `update` may touch, mapped to their SQL names
EDITABLE_FIELDS = {
    "name": "name",
    "price": "price",
    "frequency": "frequency",
    "next_due_date": "next_due_date",
    "category": "category",
    "cancelable": "cancelable",
    "note": "note",
}


class SubscriptionRepository:
    """Repository for CRUD operations on the subscriptions table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, sub: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Returns:
            The same object with its `id` and `created_at` populated.

        Raises:
            psycopg2.errors.UniqueViolation: If the user already has a
                subscription with this name (case-insensitive).
        """
        sql = """
            INSERT INTO subscriptions
                (user_id, name, price, frequency, next_due_date, category, cancelable, note)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (
                    sub.user_id, sub.name, sub.price, sub.frequency.value,
                    sub.next_due_date, sub.category, sub.cancelable, sub.note,
                ))
                sub.id, sub.created_at = cur.fetchone()
        except Exception as e:
            logger.error(f"Failed to add subscription '{sub.name}': {e}")
            raise
        logger.info(f"Added subscription '{sub.name}' #{sub.id}")
        return sub

    # ── READ ──────────────────────────────────────────────

    def get_all(self, user_id: int) -> list[Subscription]:
        """All subscriptions of a user, soonest due first."""
        sql = f"SELECT {_COLUMNS} FROM subscriptions WHERE user_id = %s ORDER BY next_due_date ASC;"
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(sql, (user_id,))
            return [self._row_to_subscription(r) for r in cur.fetchall()]

    def get_everything(self) -> list[Subscription]:
        """Every subscription of every user. Used to (re)schedule reminders."""
        sql = f"SELECT {_COLUMNS} FROM subscriptions ORDER BY next_due_date ASC;"
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(sql)
            return [self._row_to_subscription(r) for r in cur.fetchall()]

    def get_by_id(self, sub_id: int, user_id: int) -> Optional[Subscription]:
        """Fetch a single subscription by ID, scoped to user."""
        sql = f"SELECT {_COLUMNS} FROM subscriptions WHERE id = %s AND user_id = %s;"
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(sql, (sub_id, user_id))
            row = cur.fetchone()
            return self._row_to_subscription(row) if row else None

    def get_user_ids(self) -> list[int]:
        """Telegram IDs of every user owning at least one subscription."""
        sql = "SELECT DISTINCT user_id FROM subscriptions;"
        with pooled_connection() as conn, conn.cursor() as cur:
            cur.execute(sql)
            return [r[0] for r in cur.fetchall()]

    # ── UPDATE ────────────────────────────────────────────

    def update(self, sub_id: int, user_id: int, **fields) -> bool:
        """
        Update one or more editable columns of a subscription.

        Args:
            sub_id: Subscription ID.
            user_id: Owner, for scoping.
            **fields: Keys from EDITABLE_FIELDS.

        Returns:
            True if a row was updated.
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown or not fields:
            raise ValueError(f"Not editable: {sorted(unknown) or 'no fields given'}")

        values = [getattr(v, "value", v) for v in fields.values()]
        assignments = ", ".join(f"{EDITABLE_FIELDS[k]} = %s" for k in fields)
        sql = f"UPDATE subscriptions SET {assignments} WHERE id = %s AND user_id = %s;"
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (*values, sub_id, user_id))
                updated = cur.rowcount > 0
        except Exception as e:
            logger.error(f"Failed to update subscription #{sub_id}: {e}")
            raise
        if updated:
            logger.info(f"Updated subscription #{sub_id}: {', '.join(fields)}")
        return updated

    def update_due_date(self, sub: Subscription, next_due: date, paid_on: date) -> None:
        """
        Persist a rolled-forward due date after a payment.

        Args:
            sub: The subscription that was paid.
            next_due: New next_due_date computed by the billing engine.
            paid_on: Reference date of the payment.
        """
        sql = """
            UPDATE subscriptions SET next_due_date = %s, last_paid_on = %s
            WHERE id = %s AND user_id = %s;
        """
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (next_due, paid_on, sub.id, sub.user_id))
        except Exception as e:
            logger.error(f"Failed to advance due date of #{sub.id}: {e}")
            raise
        logger.info(f"Advanced '{sub.name}' next due date to {next_due}")

    def mark_reminded(self, sub_id: int, due: date) -> None:
        """Remember that the reminder for the cycle due on `due` went out."""
        sql = "UPDATE subscriptions SET reminded_for = %s WHERE id = %s;"
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (due, sub_id))
        except Exception as e:
            logger.error(f"Failed to mark reminder of #{sub_id} as sent: {e}")
            raise

    # ── DELETE ────────────────────────────────────────────

    def delete(self, sub_id: int, user_id: int) -> bool:
        """Delete a subscription by ID, scoped to user."""
        sql = "DELETE FROM subscriptions WHERE id = %s AND user_id = %s;"
        try:
            with pooled_connection(write=True) as conn, conn.cursor() as cur:
                cur.execute(sql, (sub_id, user_id))
                deleted = cur.rowcount > 0
        except Exception as e:
            logger.error(f"Failed to delete subscription #{sub_id}: {e}")
            raise
        if deleted:
            logger.info(f"Deleted subscription #{sub_id}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_subscription(row: tuple) -> Subscription:
        """Convert a database row tuple to a Subscription domain object."""
        return Subscription(
            id=row[0],
            user_id=row[1],
            name=row[2],
            price=row[3],
            frequency=row[4],
            next_due_date=row[5],
            category=row[6],
            cancelable=row[7],
            note=row[8],
            last_paid_on=row[9],
            reminded_for=row[10],
            created_at=row[11],
        )
