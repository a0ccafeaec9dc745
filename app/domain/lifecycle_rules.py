"""Shipment status rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass

from app.domain.shipment import OfferStatus, ShipmentStatus

# Shipments that still accept offers
OPEN_STATUSES = frozenset(
    {
        ShipmentStatus.PENDING,
        ShipmentStatus.OFFERS_RECEIVED,
    }
)

# Shipments that can no longer be deleted
LOCKED_STATUSES = frozenset(
    {
        ShipmentStatus.OFFER_ACCEPTED,
        ShipmentStatus.IN_PROGRESS,
        ShipmentStatus.COMPLETED,
    }
)


ALREADY_ACCEPTED = "This shipment already has an accepted offer"
NOT_OPEN = "This shipment is no longer accepting offers"


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def is_open_for_offers(status: str | None) -> bool:
    return ShipmentStatus.parse(status) in OPEN_STATUSES


def is_deletable(status: str | None) -> bool:
    parsed = ShipmentStatus.parse(status)
    return parsed is not None and parsed not in LOCKED_STATUSES


def validate_status_update(
    *,
    current_status: str | None,
    target_status: str | None,
    accepted_offer_id: int | None,
) -> TransitionValidationResult:
    """Validate a direct status edit.

    Direct edits are permissive: any lateral or forward move is allowed,
    except that ``offer_accepted`` is only reachable through offer
    acceptance and a shipment with an accepted offer never reopens.
    """
    if not target_status:
        return TransitionValidationResult(False, "Status is required")

    target = ShipmentStatus.parse(target_status)
    if target is None:
        return TransitionValidationResult(False, f"Unsupported status: {target_status}")

    current = ShipmentStatus.parse(current_status)
    if current == target:
        return TransitionValidationResult(True)

    if target == ShipmentStatus.OFFER_ACCEPTED:
        return TransitionValidationResult(
            False, "Status 'offer_accepted' is set only by accepting an offer"
        )

    if target in OPEN_STATUSES and (
        accepted_offer_id is not None or current in LOCKED_STATUSES
    ):
        reason = (
            "Shipment with an accepted offer"
            if accepted_offer_id is not None
            else f"Shipment in '{current.value}'"
        )
        return TransitionValidationResult(False, f"{reason} cannot move back to '{target.value}'")

    return TransitionValidationResult(True)


def validate_offer_decision(
    *,
    shipment_status: str | None,
    accepted_offer_id: int | None,
    offer_status: str | None,
) -> TransitionValidationResult:
    """Validate that an offer may be accepted right now."""
    parsed = ShipmentStatus.parse(shipment_status)
    if accepted_offer_id is not None or parsed == ShipmentStatus.OFFER_ACCEPTED:
        return TransitionValidationResult(False, ALREADY_ACCEPTED)
    if parsed not in OPEN_STATUSES:
        return TransitionValidationResult(False, NOT_OPEN)
    if offer_status != OfferStatus.PENDING.value:
        return TransitionValidationResult(False, f"Offer is already {offer_status}")
    return TransitionValidationResult(True)
