"""Notification dispatcher: persisted notifications plus live wake-ups."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.core.async_db import run_db
from app.core.notifications import NotificationBus, NotificationEvent, NotificationType
from app.domain.entities import Notification
from app.integrations.email_notifier import format_price
from database_protocol import DatabaseProtocol, NotificationDraft

logger = logging.getLogger(__name__)


def new_offer_draft(agent_name: str | None, price: float, shipment_id: int) -> NotificationDraft:
    return {
        "type": NotificationType.NEW_OFFER.value,
        "title": "New Offer Received",
        "message": (
            f"You have received a new offer of ${format_price(price)} from "
            f"{agent_name or 'an agent'} for your shipment #{shipment_id}."
        ),
    }


def offer_accepted_draft(price: float) -> NotificationDraft:
    return {
        "type": NotificationType.OFFER_ACCEPTED.value,
        "title": "Offer Accepted",
        "message": f"Your offer of ${format_price(price)} has been accepted!",
    }


def offer_rejected_draft(price: float) -> NotificationDraft:
    return {
        "type": NotificationType.OFFER_REJECTED.value,
        "title": "Offer Rejected",
        "message": f"Your offer of ${format_price(price)} has been rejected.",
    }


class NotificationDispatcher:
    """Writes one notification row per lifecycle event.

    The row is the delivery record. Offer transitions store theirs on the
    transition's own transaction and hand the row to ``announce``; ``emit``
    stores a standalone row. Either way a wake-up is then published on the
    recipient's channel; publish failures are logged and never raised.
    """

    def __init__(self, db: DatabaseProtocol, bus: NotificationBus | None = None):
        self.db = db
        self.bus = bus

    async def announce(self, row: dict[str, Any]) -> Notification:
        """Wake the recipient's live channels for an already stored row."""
        notification = Notification.from_db_row(row)
        logger.info(
            f"🔔 {notification.type} -> user {notification.user_id} "
            f"(notification {notification.notification_id})"
        )

        if self.bus is not None:
            try:
                await self.bus.notify_user(
                    NotificationEvent(
                        type=NotificationType(notification.type),
                        recipient_id=notification.user_id,
                        notification_id=notification.notification_id,
                    )
                )
            except Exception as e:
                logger.error(
                    f"❌ Failed to publish wake-up for user {notification.user_id}: {e}"
                )

        return notification

    async def emit(
        self,
        recipient_id: int,
        type: NotificationType | str,
        title: str,
        message: str,
        shipment_id: int | None = None,
        offer_id: int | None = None,
    ) -> Notification:
        notification_type = NotificationType(type)
        row = await run_db(
            self.db.add_notification,
            recipient_id,
            notification_type.value,
            title,
            message,
            shipment_id,
            offer_id,
        )
        return await self.announce(row)

    async def list(self, user_id: int) -> list[Notification]:
        """All of the user's notifications, newest first."""
        rows = await run_db(self.db.get_user_notifications, user_id)
        return [Notification.from_db_row(row) for row in rows]

    async def unread_since(self, user_id: int, since: datetime) -> list[Notification]:
        """Unread notifications created strictly after ``since``, oldest first."""
        rows = await run_db(self.db.get_unread_notifications_since, user_id, since)
        return [Notification.from_db_row(row) for row in rows]

    async def store_time(self) -> datetime:
        """Current time on the clock that stamps notification rows."""
        return await run_db(self.db.get_database_time)

    # Lifecycle events

    async def notify_new_offer(
        self,
        client_id: int,
        agent_name: str | None,
        price: float,
        shipment_id: int,
        offer_id: int,
    ) -> Notification:
        return await self.emit(
            client_id,
            shipment_id=shipment_id,
            offer_id=offer_id,
            **new_offer_draft(agent_name, price, shipment_id),
        )

    async def notify_offer_accepted(
        self, agent_id: int, price: float, shipment_id: int, offer_id: int
    ) -> Notification:
        return await self.emit(
            agent_id, shipment_id=shipment_id, offer_id=offer_id, **offer_accepted_draft(price)
        )

    async def notify_offer_rejected(
        self, agent_id: int, price: float, shipment_id: int, offer_id: int
    ) -> Notification:
        return await self.emit(
            agent_id, shipment_id=shipment_id, offer_id=offer_id, **offer_rejected_draft(price)
        )
