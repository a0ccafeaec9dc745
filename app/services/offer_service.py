"""Offer lifecycle: submission, acceptance and rejection."""
from __future__ import annotations

import logging
import math
from typing import Any

from app.core.async_db import run_db
from app.core.exceptions import (
    DatabaseException,
    DuplicateOfferException,
    ForbiddenException,
    InvalidStateException,
    OfferNotFoundException,
    ShipmentNotFoundException,
    ValidationException,
)
from app.domain.entities import AuthUser, Offer, Shipment
from app.domain.lifecycle_rules import ALREADY_ACCEPTED, NOT_OPEN, validate_offer_decision
from app.domain.shipment import OfferStatus, ShipmentStatus
from app.integrations.email_notifier import EmailNotifier
from app.services.notification_service import (
    NotificationDispatcher,
    new_offer_draft,
    offer_accepted_draft,
    offer_rejected_draft,
)
from database_protocol import DatabaseProtocol

logger = logging.getLogger(__name__)


def parse_shipment_id(value: Any) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationException("Shipment ID and price are required")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationException("Shipment ID must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationException("Shipment ID must be an integer") from None


def parse_price(value: Any) -> float:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationException("Shipment ID and price are required")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationException("Price must be a number") from None
    if math.isnan(price) or math.isinf(price):
        raise ValidationException("Price must be a number")
    if price < 0:
        raise ValidationException("Price must not be negative")
    return price


class OfferLifecycleManager:
    """Owns offer state and the accept cascade into the shipment."""

    def __init__(
        self,
        db: DatabaseProtocol,
        dispatcher: NotificationDispatcher,
        email_notifier: EmailNotifier | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.email_notifier = email_notifier

    async def _load_offer(self, offer_id: int) -> Offer:
        row = await run_db(self.db.get_offer, offer_id)
        if not row:
            raise OfferNotFoundException(offer_id)
        return Offer.from_db_row(row)

    async def _load_shipment(self, shipment_id: int) -> Shipment:
        row = await run_db(self.db.get_shipment, shipment_id)
        if not row:
            raise ShipmentNotFoundException(shipment_id)
        return Shipment.from_db_row(row)

    async def _owned_shipment(self, offer: Offer, requester: AuthUser, action: str) -> Shipment:
        shipment = await self._load_shipment(offer.shipment_id)
        if not requester.is_client or shipment.client_id != requester.user_id:
            logger.warning(
                f"User {requester.user_id} tried to {action} offer {offer.offer_id} "
                f"on shipment {shipment.shipment_id} they do not own"
            )
            raise ForbiddenException(f"Only the shipment owner can {action} offers")
        return shipment

    async def _send_email(self, method_name: str, **kwargs: Any) -> None:
        """Best-effort email; every failure stops here."""
        if self.email_notifier is None:
            return
        try:
            await getattr(self.email_notifier, method_name)(**kwargs)
        except Exception as e:
            logger.error(f"❌ Email notifier {method_name} failed: {type(e).__name__}: {e}")

    async def create(
        self,
        requester: AuthUser,
        shipment_id: Any,
        price: Any,
        notes: str | None = None,
    ) -> Offer:
        if not requester.is_agent:
            logger.warning(f"User {requester.user_id} ({requester.role}) tried to submit an offer")
            raise ForbiddenException("Only agents can submit offers")

        shipment_id = parse_shipment_id(shipment_id)
        price = parse_price(price)
        if isinstance(notes, str):
            notes = notes.strip() or None
        else:
            notes = None

        agent = await run_db(self.db.get_user, requester.user_id)
        agent_name = agent["name"] if agent else None

        row, notification, reason = await run_db(
            self.db.create_offer_atomic,
            shipment_id,
            requester.user_id,
            price,
            notes,
            new_offer_draft(agent_name, price, shipment_id),
        )
        if row is None:
            if reason == "shipment_not_found":
                raise ShipmentNotFoundException(shipment_id)
            if reason == "duplicate_offer":
                logger.warning(
                    f"Duplicate offer from agent {requester.user_id} on shipment {shipment_id}"
                )
                raise DuplicateOfferException(shipment_id, requester.user_id)
            if reason and reason.startswith("shipment_closed:"):
                raise InvalidStateException(NOT_OPEN)
            raise DatabaseException(f"Failed to create offer: {reason}")

        offer = Offer.from_db_row(row)
        logger.info(
            f"💰 Offer {offer.offer_id} (${offer.price}) on shipment {shipment_id} "
            f"by agent {requester.user_id}"
        )

        await self.dispatcher.announce(notification)
        client = await run_db(self.db.get_user, notification["user_id"])
        if client:
            await self._send_email(
                "notify_new_offer",
                client_email=client["email"],
                client_name=client["name"],
                agent_name=agent_name or "an agent",
                price=offer.price,
                shipment_id=shipment_id,
            )
        return offer

    async def accept(self, offer_id: int, requester: AuthUser) -> Offer:
        offer = await self._load_offer(offer_id)
        shipment = await self._owned_shipment(offer, requester, "accept")

        check = validate_offer_decision(
            shipment_status=shipment.status,
            accepted_offer_id=shipment.accepted_offer_id,
            offer_status=offer.status,
        )
        if not check.allowed:
            logger.warning(f"Accept of offer {offer_id} refused: {check.reason}")
            raise InvalidStateException(check.reason or "Offer cannot be accepted")

        ok, notification, reason = await run_db(
            self.db.accept_offer_atomic, offer_id, offer_accepted_draft(offer.price)
        )
        if not ok:
            # Lost a race against another decision on this shipment
            if reason == "offer_not_found":
                raise OfferNotFoundException(offer_id)
            if reason == "shipment_not_found":
                raise ShipmentNotFoundException(offer.shipment_id)
            if reason and reason.startswith("shipment_closed:"):
                logger.warning(f"Accept of offer {offer_id} lost to a concurrent decision")
                if reason == f"shipment_closed:{ShipmentStatus.OFFER_ACCEPTED.value}":
                    raise InvalidStateException(ALREADY_ACCEPTED)
                raise InvalidStateException(NOT_OPEN)
            if reason and reason.startswith("offer_not_pending:"):
                status = reason.split(":", 1)[1]
                raise InvalidStateException(f"Offer is already {status}")
            raise DatabaseException(f"Failed to accept offer {offer_id}: {reason}")

        logger.info(f"✅ Offer {offer_id} accepted for shipment {offer.shipment_id}")

        await self.dispatcher.announce(notification)
        agent = await run_db(self.db.get_user, offer.agent_id)
        if agent:
            await self._send_email(
                "notify_offer_accepted",
                agent_email=agent["email"],
                agent_name=agent["name"],
                price=offer.price,
                shipment_id=offer.shipment_id,
            )
        return await self._load_offer(offer_id)

    async def reject(self, offer_id: int, requester: AuthUser) -> Offer:
        offer = await self._load_offer(offer_id)
        await self._owned_shipment(offer, requester, "reject")

        if offer.status != OfferStatus.PENDING.value:
            raise InvalidStateException(f"Offer is already {offer.status}")

        ok, notification, reason = await run_db(
            self.db.reject_offer, offer_id, offer_rejected_draft(offer.price)
        )
        if not ok:
            if reason == "offer_not_found":
                raise OfferNotFoundException(offer_id)
            status = (reason or "").split(":", 1)[-1]
            raise InvalidStateException(f"Offer is already {status}")

        logger.info(f"🚫 Offer {offer_id} rejected on shipment {offer.shipment_id}")

        await self.dispatcher.announce(notification)
        return await self._load_offer(offer_id)
