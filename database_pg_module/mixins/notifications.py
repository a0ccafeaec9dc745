"""
Notification-related database operations.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any


class NotificationMixin:
    """Mixin for notification-related database operations."""

    @staticmethod
    def _insert_notification(
        cursor,
        user_id: int,
        notification: dict[str, str],
        shipment_id: int | None = None,
        offer_id: int | None = None,
    ) -> dict[str, Any]:
        """Insert a notification on the caller's transaction.

        ``notification`` carries ``type``, ``title`` and ``message``.
        """
        cursor.execute('''
            INSERT INTO notifications (user_id, type, title, message, shipment_id, offer_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
        ''', (
            user_id,
            notification["type"],
            notification["title"],
            notification["message"],
            shipment_id,
            offer_id,
        ))
        return dict(cursor.fetchone())

    def add_notification(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        shipment_id: int | None = None,
        offer_id: int | None = None,
    ) -> dict[str, Any]:
        """Add notification and return the stored row."""
        with self.get_connection() as conn:
            return self._insert_notification(
                conn.cursor(),
                user_id,
                {"type": type, "title": title, "message": message},
                shipment_id,
                offer_id,
            )

    def get_user_notifications(self, user_id: int, unread_only: bool = False):
        """Get user notifications, newest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if unread_only:
                cursor.execute('''
                    SELECT * FROM notifications
                    WHERE user_id = %s AND read = FALSE
                    ORDER BY created_at DESC, notification_id DESC
                ''', (user_id,))
            else:
                cursor.execute('''
                    SELECT * FROM notifications
                    WHERE user_id = %s
                    ORDER BY created_at DESC, notification_id DESC
                ''', (user_id,))
            return [dict(row) for row in cursor.fetchall()]

    def get_unread_notifications_since(self, user_id: int, since: datetime):
        """Unread notifications created strictly after ``since``, oldest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT * FROM notifications
                WHERE user_id = %s AND read = FALSE AND created_at > %s
                ORDER BY created_at ASC, notification_id ASC
            ''', (user_id, since))
            return [dict(row) for row in cursor.fetchall()]

    def get_database_time(self) -> datetime:
        """Current database clock, the one that stamps ``created_at``."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT clock_timestamp() AS now")
            return cursor.fetchone()["now"]
