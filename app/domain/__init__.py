"""Domain package."""

from .entities import AuthUser, Notification, Offer, Shipment, ShipmentDraft, User
from .shipment import OfferStatus, ShipmentStatus
from .value_objects import Dimensions, ServiceType, UserRole

__all__ = [
    # Entities
    "User",
    "AuthUser",
    "Shipment",
    "ShipmentDraft",
    "Offer",
    "Notification",
    # Value Objects
    "Dimensions",
    "ServiceType",
    "UserRole",
    "ShipmentStatus",
    "OfferStatus",
]
