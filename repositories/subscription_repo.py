"""
repositories/subscription_repo.py
----------------------------------
Data access layer for subscriptions.
All SQL queries related to the `subscriptions` table live here.
"""

from decimal import Decimal
from typing import Optional

from db.connection import get_connection, release_connection, transaction
from models.subscription import Category, Frequency, Subscription, SubscriptionStatus
from utils.logger import get_logger

logger = get_logger(__name__)

COLUMNS = (
    "id, user_id, name, category, amount, currency, frequency, "
    "start_date, end_date, status, created_at, updated_at"
)


class SubscriptionRepository:
    """Repository for CRUD operations on the subscriptions table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, subscription: Subscription) -> Subscription:
        """
        Insert a new subscription.

        Returns:
            The same object with `id`, `created_at` and `updated_at` populated.
        """
        sql = """
            INSERT INTO subscriptions
                (user_id, name, category, amount, currency, frequency, start_date, end_date, status)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at, updated_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    subscription.user_id, subscription.name, subscription.category.value,
                    subscription.amount, subscription.currency, subscription.frequency.value,
                    subscription.start_date, subscription.end_date, subscription.status.value,
                ))
                row = cur.fetchone()
                subscription.id, subscription.created_at, subscription.updated_at = row
            conn.commit()
            logger.info(f"Added subscription '{subscription.name}' #{subscription.id}")
            return subscription
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to add subscription: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, subscription_id: int, user_id: Optional[int] = None) -> Optional[Subscription]:
        """
        Fetch a subscription by ID.

        Args:
            subscription_id: Primary key.
            user_id: If given, the row must also belong to this user.
        """
        sql = f"SELECT {COLUMNS} FROM subscriptions WHERE id = %s"
        params: list = [subscription_id]
        if user_id is not None:
            sql += " AND user_id = %s"
            params.append(user_id)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
                return self.row_to_subscription(row) if row else None
        finally:
            release_connection(conn)

    def get_all(
        self, user_id: int, status: Optional[SubscriptionStatus] = None
    ) -> list[Subscription]:
        """
        Get a user's subscriptions, most expensive first.

        Args:
            user_id: Telegram user ID.
            status: Optional status filter.
        """
        sql = f"SELECT {COLUMNS} FROM subscriptions WHERE user_id = %s"
        params: list = [user_id]
        if status is not None:
            sql += " AND status = %s"
            params.append(status.value)
        sql += " ORDER BY amount DESC, id ASC;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self.row_to_subscription(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_owner_ids(self) -> list[int]:
        """Telegram IDs of every user owning at least one ACTIVE subscription."""
        sql = "SELECT DISTINCT user_id FROM subscriptions WHERE status = 'ACTIVE' ORDER BY user_id;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [r[0] for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def update(self, subscription: Subscription) -> bool:
        """
        Persist every editable field of an existing subscription.

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE subscriptions
            SET name = %s, category = %s, amount = %s, currency = %s, frequency = %s,
                start_date = %s, end_date = %s, status = %s, updated_at = NOW()
            WHERE id = %s AND user_id = %s
            RETURNING updated_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    subscription.name, subscription.category.value, subscription.amount,
                    subscription.currency, subscription.frequency.value,
                    subscription.start_date, subscription.end_date, subscription.status.value,
                    subscription.id, subscription.user_id,
                ))
                row = cur.fetchone()
                if row:
                    subscription.updated_at = row[0]
            conn.commit()
            return row is not None
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update subscription #{subscription.id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, subscription_id: int, user_id: int) -> bool:
        """
        Delete a subscription and all of its payments in one transaction.

        Returns:
            True if the subscription existed and was deleted.
        """
        try:
            with transaction() as cur:
                cur.execute(
                    """
                    DELETE FROM payments
                    WHERE subscription_id IN (
                        SELECT id FROM subscriptions WHERE id = %s AND user_id = %s
                    );
                    """,
                    (subscription_id, user_id),
                )
                removed_payments = cur.rowcount
                cur.execute(
                    "DELETE FROM subscriptions WHERE id = %s AND user_id = %s;",
                    (subscription_id, user_id),
                )
                deleted = cur.rowcount > 0
        except Exception as e:
            logger.error(f"Failed to delete subscription #{subscription_id}: {e}")
            raise

        if deleted:
            logger.info(
                f"Deleted subscription #{subscription_id} and {removed_payments} payment(s)"
            )
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def row_to_subscription(row: tuple) -> Subscription:
        """Convert a row selected with COLUMNS into a Subscription."""
        return Subscription(
            id=row[0],
            user_id=row[1],
            name=row[2],
            category=Category(row[3]),
            amount=Decimal(row[4]),
            currency=row[5],
            frequency=Frequency(row[6]),
            start_date=row[7],
            end_date=row[8],
            status=SubscriptionStatus(row[9]),
            created_at=row[10],
            updated_at=row[11],
        )
