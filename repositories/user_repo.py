"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
"""

from typing import Optional

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for CRUD operations on the users table."""

    def ensure_user(self, telegram_id: int, first_name: Optional[str] = None) -> dict:
        """
        Insert a user if they don't exist, or refresh their first name.

        Returns:
            Dict with user data: {'id', 'telegram_id', 'first_name', 'email', 'currency'}.
        """
        sql = """
            INSERT INTO users (telegram_id, first_name)
            VALUES (%s, %s)
            ON CONFLICT (telegram_id) DO UPDATE SET first_name = EXCLUDED.first_name
            RETURNING id, telegram_id, first_name, email, currency;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (telegram_id, first_name))
                row = cur.fetchone()
            conn.commit()
            return self._row_to_user(row)
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to ensure user {telegram_id}: {e}")
            raise
        finally:
            release_connection(conn)

    def set_email(self, telegram_id: int, email: Optional[str]) -> bool:
        """Store (or clear) the address used for payment notifications."""
        sql = "UPDATE users SET email = %s WHERE telegram_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (email, telegram_id))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to set email for user {telegram_id}: {e}")
            raise
        finally:
            release_connection(conn)

    def get_by_telegram_id(self, telegram_id: int) -> Optional[dict]:
        """Fetch a user by their Telegram ID, or None."""
        sql = "SELECT id, telegram_id, first_name, email, currency FROM users WHERE telegram_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (telegram_id,))
                row = cur.fetchone()
                return self._row_to_user(row) if row else None
        finally:
            release_connection(conn)

    @staticmethod
    def _row_to_user(row: tuple) -> dict:
        return {
            "id": row[0],
            "telegram_id": row[1],
            "first_name": row[2],
            "email": row[3],
            "currency": row[4],
        }
