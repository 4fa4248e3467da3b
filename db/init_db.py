"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users table: Telegram users and their contact preferences
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL PRIMARY KEY,
    telegram_id     BIGINT UNIQUE NOT NULL,
    first_name      VARCHAR(100),
    email           VARCHAR(255),
    currency        VARCHAR(5) DEFAULT 'EUR',
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Subscriptions table: recurring (or one-time) obligation templates
CREATE TABLE IF NOT EXISTS subscriptions (
    id              SERIAL PRIMARY KEY,
    user_id         BIGINT NOT NULL REFERENCES users(telegram_id) ON DELETE CASCADE,
    name            VARCHAR(100) NOT NULL CHECK (length(trim(name)) > 0),
    category        VARCHAR(20) NOT NULL
                    CHECK (category IN ('SUBSCRIPTION', 'TAX', 'INSTALLMENT', 'OTHER')),
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    currency        VARCHAR(5) NOT NULL DEFAULT 'EUR',
    frequency       VARCHAR(20) NOT NULL
                    CHECK (frequency IN ('WEEKLY', 'MONTHLY', 'QUARTERLY', 'YEARLY', 'ONE_TIME')),
    start_date      DATE NOT NULL,
    end_date        DATE CHECK (end_date IS NULL OR end_date >= start_date),
    status          VARCHAR(20) NOT NULL DEFAULT 'ACTIVE'
                    CHECK (status IN ('ACTIVE', 'CANCELLED', 'EXPIRED')),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Payments table: concrete dated instances generated from subscriptions
CREATE TABLE IF NOT EXISTS payments (
    id              SERIAL PRIMARY KEY,
    subscription_id INT NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    due_date        DATE NOT NULL,
    paid_date       DATE,
    status          VARCHAR(10) NOT NULL DEFAULT 'PENDING'
                    CHECK (status IN ('PENDING', 'PAID', 'OVERDUE')),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    CHECK ((status = 'PAID') = (paid_date IS NOT NULL))
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_subscriptions_user ON subscriptions(user_id, status);
CREATE INDEX IF NOT EXISTS idx_payments_subscription ON payments(subscription_id, status);
CREATE INDEX IF NOT EXISTS idx_payments_pending_due ON payments(due_date) WHERE status = 'PENDING';
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
