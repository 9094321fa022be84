"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import pooled_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users table: Telegram users and their reminder/display preferences
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL PRIMARY KEY,
    telegram_id     BIGINT UNIQUE NOT NULL,
    first_name      VARCHAR(100),
    currency        VARCHAR(5) DEFAULT 'EUR',
    lead_days       INT DEFAULT 2 CHECK (lead_days >= 0),
    reminder_hour   INT DEFAULT 9 CHECK (reminder_hour BETWEEN 0 AND 23),
    reminder_minute INT DEFAULT 0 CHECK (reminder_minute BETWEEN 0 AND 59),
    window_days     INT DEFAULT 7 CHECK (window_days >= 0),
    categories      TEXT[],
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Subscriptions table: one row per tracked subscription
CREATE TABLE IF NOT EXISTS subscriptions (
    id              SERIAL PRIMARY KEY,
    user_id         BIGINT NOT NULL REFERENCES users(telegram_id) ON DELETE CASCADE,
    name            VARCHAR(100) NOT NULL CHECK (length(trim(name)) > 0),
    price           NUMERIC(12,2) NOT NULL CHECK (price >= 0),
    frequency       VARCHAR(20) NOT NULL
                    CHECK (frequency IN ('weekly', 'monthly', 'quarterly', 'yearly')),
    next_due_date   DATE NOT NULL,
    category        VARCHAR(50) DEFAULT 'Other',
    cancelable      BOOLEAN DEFAULT TRUE,
    note            TEXT,
    last_paid_on    DATE,
    reminded_for    DATE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Columns added after the first release
ALTER TABLE subscriptions ADD COLUMN IF NOT EXISTS reminded_for DATE;
ALTER TABLE users ADD COLUMN IF NOT EXISTS categories TEXT[];

-- Names are unique per user, ignoring case
CREATE UNIQUE INDEX IF NOT EXISTS uq_subscriptions_user_name
    ON subscriptions(user_id, lower(name));
CREATE INDEX IF NOT EXISTS idx_subscriptions_due ON subscriptions(next_due_date);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    try:
        with pooled_connection(write=True) as conn, conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        logger.error(f"Failed to initialize schema: {e}")
        raise


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("Database schema created successfully.")
