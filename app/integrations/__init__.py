"""Integrations package - outbound collaborators."""

from app.integrations.email_notifier import EmailNotifier, format_price

__all__ = [
    "EmailNotifier",
    "format_price",
]
