"""Custom exceptions for the LogiFlow marketplace."""
from __future__ import annotations


class LogiflowException(Exception):
    """Base exception for all LogiFlow errors."""

    code = "error"
    status_code = 500

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class DatabaseException(LogiflowException):
    """Database-related errors."""

    code = "internal_error"


class ValidationException(LogiflowException):
    """Missing or malformed input."""

    code = "validation_error"
    status_code = 400


class UnauthorizedException(LogiflowException):
    """No identity or an invalid one."""

    code = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenException(LogiflowException):
    """Authenticated but not entitled to the operation."""

    code = "forbidden"
    status_code = 403


class NotFoundException(LogiflowException):
    """Referenced entity is absent."""

    code = "not_found"
    status_code = 404


class ShipmentNotFoundException(NotFoundException):
    """Shipment not found in database."""

    def __init__(self, shipment_id: int) -> None:
        super().__init__(f"Shipment {shipment_id} not found")
        self.shipment_id = shipment_id


class OfferNotFoundException(NotFoundException):
    """Offer not found in database."""

    def __init__(self, offer_id: int) -> None:
        super().__init__(f"Offer {offer_id} not found")
        self.offer_id = offer_id


class InvalidStateException(LogiflowException):
    """Operation is not legal in the entity's current lifecycle state."""

    code = "invalid_state"
    status_code = 409


class DuplicateOfferException(LogiflowException):
    """Agent already has an offer on the shipment."""

    code = "duplicate_offer"
    status_code = 409

    def __init__(self, shipment_id: int, agent_id: int) -> None:
        super().__init__("You have already submitted an offer for this shipment")
        self.shipment_id = shipment_id
        self.agent_id = agent_id


class ConfigurationException(LogiflowException):
    """Configuration errors."""

    pass
