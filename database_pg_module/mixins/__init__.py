"""Database mixins for modular database operations."""
from __future__ import annotations

from .notifications import NotificationMixin
from .offers import OfferMixin
from .shipments import ShipmentMixin
from .users import UserMixin

__all__ = [
    "NotificationMixin",
    "OfferMixin",
    "ShipmentMixin",
    "UserMixin",
]
