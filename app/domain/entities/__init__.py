"""Domain entities package."""

from .notification import Notification
from .offer import Offer
from .shipment import REQUIRED_SHIPMENT_FIELDS, Shipment, ShipmentDraft
from .user import AuthUser, User

__all__ = [
    "User",
    "AuthUser",
    "Shipment",
    "ShipmentDraft",
    "REQUIRED_SHIPMENT_FIELDS",
    "Offer",
    "Notification",
]
