"""Shipment and offer status enums."""
from __future__ import annotations

from enum import Enum


class ShipmentStatus(str, Enum):
    """Shipment lifecycle statuses."""

    PENDING = "pending"
    OFFERS_RECEIVED = "offers_received"
    OFFER_ACCEPTED = "offer_accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str | None) -> ShipmentStatus | None:
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class OfferStatus(str, Enum):
    """Offer lifecycle statuses. Accepted and rejected are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
