"""
repositories/payment_repo.py
-----------------------------
Data access layer for generated payments.
All SQL queries related to the `payments` table live here.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from psycopg2.extras import execute_values

from db.connection import get_connection, release_connection, transaction
from models.payment import Payment, PaymentStatus
from repositories.subscription_repo import COLUMNS as SUBSCRIPTION_COLUMNS
from repositories.subscription_repo import SubscriptionRepository
from utils.logger import get_logger

logger = get_logger(__name__)

COLUMNS = "id, subscription_id, amount, due_date, paid_date, status, created_at"

# Payment columns followed by the parent subscription's columns
_JOINED_SELECT = (
    "SELECT "
    + ", ".join(f"p.{c.strip()}" for c in COLUMNS.split(","))
    + ", "
    + ", ".join(f"s.{c.strip()}" for c in SUBSCRIPTION_COLUMNS.split(","))
    + " FROM payments p JOIN subscriptions s ON s.id = p.subscription_id"
)
_PAYMENT_WIDTH = len(COLUMNS.split(","))


class PaymentRepository:
    """Repository for payments; every read joins the parent subscription."""

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, payment_id: int, user_id: int) -> Optional[Payment]:
        """Fetch a single payment, scoped to the owner of its subscription."""
        sql = f"{_JOINED_SELECT} WHERE p.id = %s AND s.user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (payment_id, user_id))
                row = cur.fetchone()
                return self._row_to_payment(row) if row else None
        finally:
            release_connection(conn)

    def list_for_user(
        self,
        user_id: int,
        status: Optional[PaymentStatus] = None,
        subscription_id: Optional[int] = None,
        due_from: Optional[date] = None,
        due_before: Optional[date] = None,
    ) -> list[Payment]:
        """
        List a user's payments ordered by due date.

        Args:
            user_id: Telegram user ID.
            status: Optional status filter.
            subscription_id: Optional subscription filter.
            due_from: Inclusive lower bound on due date.
            due_before: Exclusive upper bound on due date.
        """
        sql = f"{_JOINED_SELECT} WHERE s.user_id = %s"
        params: list = [user_id]
        if status is not None:
            sql += " AND p.status = %s"
            params.append(status.value)
        if subscription_id is not None:
            sql += " AND p.subscription_id = %s"
            params.append(subscription_id)
        if due_from is not None:
            sql += " AND p.due_date >= %s"
            params.append(due_from)
        if due_before is not None:
            sql += " AND p.due_date < %s"
            params.append(due_before)
        sql += " ORDER BY p.due_date ASC, p.id ASC;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_payment(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def list_unpaid(self) -> list[Payment]:
        """All PENDING/OVERDUE payments of all users (used by the reminder job)."""
        sql = f"{_JOINED_SELECT} WHERE p.status IN ('PENDING', 'OVERDUE') ORDER BY s.user_id, p.due_date;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
                return [self._row_to_payment(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_years(self, user_id: int) -> list[int]:
        """Distinct due-date years among a user's payments, ascending."""
        sql = """
            SELECT DISTINCT EXTRACT(YEAR FROM p.due_date)::INT AS year
            FROM payments p JOIN subscriptions s ON s.id = p.subscription_id
            WHERE s.user_id = %s
            ORDER BY year;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                return [r[0] for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── WRITE ─────────────────────────────────────────────

    def replace_unpaid(self, subscription_id: int, payments: list[Payment]) -> list[Payment]:
        """
        Delete the subscription's PENDING/OVERDUE payments and bulk-insert `payments`.

        Runs as one transaction. The subscription row is locked first so two
        regenerations of the same subscription cannot interleave their
        delete and insert steps. PAID payments are never touched, and a
        payment whose due date is already PAID is not inserted again.

        Returns:
            The inserted payments with `id` and `created_at` populated.
        """
        try:
            with transaction() as cur:
                cur.execute("SELECT id FROM subscriptions WHERE id = %s FOR UPDATE;", (subscription_id,))
                cur.execute(
                    "SELECT due_date FROM payments WHERE subscription_id = %s AND status = 'PAID';",
                    (subscription_id,),
                )
                paid_dates = {r[0] for r in cur.fetchall()}
                payments = [p for p in payments if p.due_date not in paid_dates]
                cur.execute(
                    "DELETE FROM payments WHERE subscription_id = %s AND status IN ('PENDING', 'OVERDUE');",
                    (subscription_id,),
                )
                removed = cur.rowcount
                if payments:
                    rows = execute_values(
                        cur,
                        """
                        INSERT INTO payments (subscription_id, amount, due_date, paid_date, status)
                        VALUES %s
                        RETURNING id, created_at;
                        """,
                        [
                            (p.subscription_id, p.amount, p.due_date, p.paid_date, p.status.value)
                            for p in payments
                        ],
                        fetch=True,
                    )
                    for payment, (new_id, created_at) in zip(payments, rows):
                        payment.id = new_id
                        payment.created_at = created_at
        except Exception as e:
            logger.error(f"Failed to replace payments of subscription #{subscription_id}: {e}")
            raise

        logger.debug(
            f"Subscription #{subscription_id}: removed {removed} unpaid, inserted {len(payments)}"
        )
        return payments

    def update_status(self, payment: Payment) -> bool:
        """Persist a payment's status and paid date."""
        sql = "UPDATE payments SET status = %s, paid_date = %s WHERE id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (payment.status.value, payment.paid_date, payment.id))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update payment #{payment.id}: {e}")
            raise
        finally:
            release_connection(conn)

    def mark_overdue(self, today: date, user_id: Optional[int] = None) -> int:
        """
        Flip PENDING payments due before `today` to OVERDUE.

        Args:
            today: Reference date; payments due strictly before it are late.
            user_id: Restrict to one user's subscriptions, or None for everyone.

        Returns:
            Number of payments transitioned.
        """
        sql = "UPDATE payments SET status = 'OVERDUE' WHERE status = 'PENDING' AND due_date < %s"
        params: list = [today]
        if user_id is not None:
            sql += " AND subscription_id IN (SELECT id FROM subscriptions WHERE user_id = %s)"
            params.append(user_id)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                count = cur.rowcount
            conn.commit()
            return count
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to sweep overdue payments: {e}")
            raise
        finally:
            release_connection(conn)

    def delete(self, payment_id: int, user_id: int) -> bool:
        """Delete a payment, scoped to the owner of its subscription."""
        sql = """
            DELETE FROM payments
            WHERE id = %s
              AND subscription_id IN (SELECT id FROM subscriptions WHERE user_id = %s);
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (payment_id, user_id))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted payment #{payment_id} for user {user_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete payment #{payment_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_payment(row: tuple) -> Payment:
        """Convert a joined row (payment columns + subscription columns) to a Payment."""
        return Payment(
            id=row[0],
            subscription_id=row[1],
            amount=Decimal(row[2]),
            due_date=row[3],
            paid_date=row[4],
            status=PaymentStatus(row[5]),
            created_at=row[6],
            subscription=SubscriptionRepository.row_to_subscription(row[_PAYMENT_WIDTH:]),
        )
