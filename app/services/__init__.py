"""Business services orchestrating domain logic."""

from .live_channel import LiveChannel
from .notification_service import NotificationDispatcher
from .offer_service import OfferLifecycleManager
from .shipment_service import ShipmentLifecycleManager

__all__ = [
    "LiveChannel",
    "NotificationDispatcher",
    "OfferLifecycleManager",
    "ShipmentLifecycleManager",
]
