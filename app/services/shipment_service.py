"""Shipment lifecycle: creation, reads, status edits and deletion."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from app.core.async_db import run_db
from app.core.exceptions import (
    DatabaseException,
    ForbiddenException,
    InvalidStateException,
    ShipmentNotFoundException,
    ValidationException,
)
from app.domain.entities import (
    REQUIRED_SHIPMENT_FIELDS,
    AuthUser,
    Offer,
    Shipment,
    ShipmentDraft,
)
from app.domain.lifecycle_rules import is_deletable, validate_status_update
from app.domain.shipment import ShipmentStatus
from app.domain.value_objects import encode_dimensions, encode_documents
from database_protocol import DatabaseProtocol

logger = logging.getLogger(__name__)


def describe_validation_error(error: ValidationError) -> str:
    """First pydantic error as a short human-readable sentence."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    # {} is how an empty dimensions form posts
    return isinstance(value, Mapping) and not value


class ShipmentLifecycleManager:
    """Owns shipment state outside of offer acceptance."""

    def __init__(self, db: DatabaseProtocol):
        self.db = db

    async def _load(self, shipment_id: int) -> Shipment:
        row = await run_db(self.db.get_shipment, shipment_id)
        if not row:
            raise ShipmentNotFoundException(shipment_id)
        return Shipment.from_db_row(row)

    async def create(self, requester: AuthUser, fields: Mapping[str, Any]) -> Shipment:
        if not requester.is_client:
            logger.warning(f"User {requester.user_id} ({requester.role}) tried to create a shipment")
            raise ForbiddenException("Only clients can create shipments")

        missing = [name for name in REQUIRED_SHIPMENT_FIELDS if _is_missing(fields.get(name))]
        if missing:
            raise ValidationException(f"Missing required fields: {', '.join(missing)}")

        try:
            draft = ShipmentDraft.model_validate(dict(fields))
        except ValidationError as e:
            raise ValidationException(describe_validation_error(e)) from e

        row = await run_db(
            self.db.add_shipment,
            client_id=requester.user_id,
            service_type=draft.service_type.value,
            description=draft.description,
            weight=draft.weight,
            dimensions=encode_dimensions(draft.dimensions),
            pickup_address=draft.pickup_address,
            pickup_date=draft.pickup_date,
            delivery_address=draft.delivery_address,
            delivery_date=draft.delivery_date,
            required_documents=encode_documents(draft.required_documents),
            notes=draft.notes,
        )
        shipment = Shipment.from_db_row(row)
        logger.info(f"📦 Shipment {shipment.shipment_id} created by client {requester.user_id}")
        return shipment

    async def get(self, shipment_id: int, requester: AuthUser) -> tuple[Shipment, list[Offer]]:
        """Shipment plus its offers, newest first."""
        shipment = await self._load(shipment_id)
        if requester.is_client and shipment.client_id != requester.user_id:
            raise ForbiddenException("You do not have access to this shipment")

        rows = await run_db(self.db.get_shipment_offers, shipment_id)
        return shipment, [Offer.from_db_row(row) for row in rows]

    async def list(self, requester: AuthUser) -> list[Shipment]:
        """Clients see their own shipments; agents see those open for offers."""
        if requester.is_client:
            rows = await run_db(self.db.get_client_shipments, requester.user_id)
        else:
            rows = await run_db(self.db.get_open_shipments)
        return [Shipment.from_db_row(row) for row in rows]

    async def delete(self, shipment_id: int, requester: AuthUser) -> None:
        if not requester.is_client:
            raise ForbiddenException("Only the owning client can delete a shipment")

        shipment = await self._load(shipment_id)
        if shipment.client_id != requester.user_id:
            raise ForbiddenException("Only the owning client can delete a shipment")
        if not is_deletable(shipment.status):
            raise InvalidStateException(
                f"Cannot delete a shipment in status '{shipment.status}'"
            )

        ok, reason = await run_db(self.db.delete_shipment_cascade, shipment_id)
        if ok:
            logger.info(f"🗑 Shipment {shipment_id} deleted by client {requester.user_id}")
            return

        # Status may have moved between the read and the locked re-check
        if reason == "shipment_not_found":
            raise ShipmentNotFoundException(shipment_id)
        if reason and reason.startswith("shipment_locked:"):
            status = reason.split(":", 1)[1]
            raise InvalidStateException(f"Cannot delete a shipment in status '{status}'")
        raise DatabaseException(f"Failed to delete shipment {shipment_id}: {reason}")

    async def update_status(
        self, shipment_id: int, requester: AuthUser, new_status: str | None
    ) -> Shipment:
        target = ShipmentStatus.parse(new_status)
        if target is None:
            raise ValidationException(
                "Invalid status. Expected one of: "
                + ", ".join(status.value for status in ShipmentStatus)
            )

        shipment = await self._load(shipment_id)
        if requester.is_client and shipment.client_id != requester.user_id:
            raise ForbiddenException("You do not have access to this shipment")

        result = validate_status_update(
            current_status=shipment.status,
            target_status=target.value,
            accepted_offer_id=shipment.accepted_offer_id,
        )
        if not result.allowed:
            logger.warning(f"Status update rejected for shipment {shipment_id}: {result.reason}")
            raise InvalidStateException(result.reason or "Status change not allowed")

        if shipment.status == target.value:
            return shipment

        updated = await run_db(
            self.db.update_shipment_status, shipment_id, target.value, shipment.status
        )
        if not updated:
            raise InvalidStateException("Shipment status changed concurrently, reload and retry")

        logger.info(
            f"📦 Shipment {shipment_id}: {shipment.status} -> {target.value} "
            f"(by user {requester.user_id})"
        )
        return await self._load(shipment_id)
