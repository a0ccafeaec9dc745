"""
User-related database operations.
"""
from __future__ import annotations

from typing import Any

from logging_config import logger


class UserMixin:
    """Mixin for user-related database operations."""

    def add_user(self, email: str, name: str, role: str) -> int:
        """Create a user and return its ID. Duplicate emails raise UniqueViolation."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (email, name, role)
                VALUES (%s, %s, %s)
                RETURNING user_id
            """,
                (email, name, role),
            )
            user_id = cursor.fetchone()["user_id"]
            logger.info(f"User {user_id} added ({role})")
            return user_id

    def get_user(self, user_id: int) -> dict[str, Any] | None:
        """Get user by ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, email, name, role, created_at FROM users WHERE user_id = %s",
                (user_id,),
            )
            result = cursor.fetchone()
            return dict(result) if result else None

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Get user by email (case-insensitive)."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, email, name, role, created_at FROM users WHERE lower(email) = lower(%s)",
                (email,),
            )
            result = cursor.fetchone()
            return dict(result) if result else None
