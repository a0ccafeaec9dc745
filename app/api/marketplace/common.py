from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from app.core.config import Settings
from app.core.exceptions import ConfigurationException
from app.core.notifications import NotificationBus
from app.integrations.email_notifier import EmailNotifier
from app.services import (
    LiveChannel,
    NotificationDispatcher,
    OfferLifecycleManager,
    ShipmentLifecycleManager,
)
from database_protocol import DatabaseProtocol

logger = logging.getLogger(__name__)


# =============================================================================
# Service container
# =============================================================================


@dataclass(slots=True)
class Services:
    """Everything a request handler needs, wired once per app."""

    db: DatabaseProtocol
    settings: Settings
    bus: NotificationBus
    email_notifier: EmailNotifier
    dispatcher: NotificationDispatcher
    shipments: ShipmentLifecycleManager
    offers: OfferLifecycleManager

    def open_live_channel(self, user_id: int) -> LiveChannel:
        return LiveChannel(
            user_id,
            self.dispatcher,
            bus=self.bus,
            interval=self.settings.live_poll_interval,
        )


def build_services(
    db: DatabaseProtocol,
    settings: Settings,
    bus: NotificationBus,
    email_notifier: EmailNotifier,
) -> Services:
    dispatcher = NotificationDispatcher(db, bus)
    return Services(
        db=db,
        settings=settings,
        bus=bus,
        email_notifier=email_notifier,
        dispatcher=dispatcher,
        shipments=ShipmentLifecycleManager(db),
        offers=OfferLifecycleManager(db, dispatcher, email_notifier),
    )


_services: Services | None = None


def set_services(services: Services | None) -> None:
    """Set service container for API routes."""
    global _services
    _services = services


def get_services() -> Services:
    """Get service container."""
    if _services is None:
        raise ConfigurationException("API services not initialized")
    return _services


# =============================================================================
# Request models
# =============================================================================


class OfferCreateRequest(BaseModel):
    # Loosely typed: the offer manager owns validation and its messages
    shipment_id: Any = Field(None, description="Target shipment ID")
    price: Any = Field(None, description="Quoted price, >= 0")
    notes: str | None = Field(None, max_length=5000, description="Optional notes")


class StatusUpdateRequest(BaseModel):
    status: str | None = Field(None, description="New shipment status")


__all__ = [
    "Services",
    "build_services",
    "set_services",
    "get_services",
    "OfferCreateRequest",
    "StatusUpdateRequest",
    "logger",
]
