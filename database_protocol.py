"""
Database Protocol - Interface contract for database implementations.

This protocol defines the interface that all store implementations must follow:
the PostgreSQL ``database_pg_module.Database`` in production and the in-memory
store used by the test-suite. Rows are plain dicts; ``dimensions`` and
``required_documents`` travel as JSON text.
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

RowType = dict[str, Any]
RowList = list[dict[str, Any]]
# type, title and message of a notification written inside an offer transition
NotificationDraft = dict[str, str]


@runtime_checkable
class DatabaseProtocol(Protocol):
    """
    Protocol describing database methods for type checking.

    The ``*_atomic`` / ``*_cascade`` methods and ``reject_offer`` are the only
    multi-row writes; each runs in one transaction and reports refusals as a
    reason string instead of raising.
    """

    # ========== CONNECTION MANAGEMENT ==========
    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Get a database connection from the pool."""
        ...

    def close(self) -> None:
        """Close all database connections."""
        ...

    # ========== USER METHODS ==========
    def add_user(self, email: str, name: str, role: str) -> int:
        ...

    def get_user(self, user_id: int) -> RowType | None:
        ...

    def get_user_by_email(self, email: str) -> RowType | None:
        ...

    # ========== SHIPMENT METHODS ==========
    def add_shipment(
        self,
        client_id: int,
        service_type: str,
        description: str,
        weight: float,
        dimensions: str,
        pickup_address: str,
        pickup_date: datetime,
        delivery_address: str,
        delivery_date: datetime,
        required_documents: str | None = None,
        notes: str | None = None,
    ) -> RowType:
        ...

    def get_shipment(self, shipment_id: int) -> RowType | None:
        ...

    def get_client_shipments(self, client_id: int) -> RowList:
        """Shipments owned by the client, newest first."""
        ...

    def get_open_shipments(self) -> RowList:
        """Pending / offers_received shipments with ``client_name``, newest first."""
        ...

    def update_shipment_status(
        self, shipment_id: int, new_status: str, expected_status: str
    ) -> bool:
        """Compare-and-set status. False if the current status differs."""
        ...

    def delete_shipment_cascade(self, shipment_id: int) -> tuple[bool, Optional[str]]:
        """Delete notifications, offers and the shipment in one transaction."""
        ...

    # ========== OFFER METHODS ==========
    def create_offer_atomic(
        self,
        shipment_id: int,
        agent_id: int,
        price: float,
        notes: str | None = None,
        notification: NotificationDraft | None = None,
    ) -> tuple[Optional[RowType], Optional[RowType], Optional[str]]:
        """Insert offer + mark shipment offers_received under the shipment lock.

        Returns (offer, notification for the client, reason).
        """
        ...

    def get_offer(self, offer_id: int) -> RowType | None:
        ...

    def get_shipment_offers(self, shipment_id: int) -> RowList:
        """Offers newest first with ``agent_name`` / ``agent_email``."""
        ...

    def accept_offer_atomic(
        self, offer_id: int, notification: NotificationDraft | None = None
    ) -> tuple[bool, Optional[RowType], Optional[str]]:
        """Accept offer, reject siblings, set shipment offer_accepted.

        Returns (ok, notification for the agent, reason).
        """
        ...

    def reject_offer(
        self, offer_id: int, notification: NotificationDraft | None = None
    ) -> tuple[bool, Optional[RowType], Optional[str]]:
        """Reject a pending offer. Returns (ok, notification for the agent, reason)."""
        ...

    # ========== NOTIFICATION METHODS ==========
    def add_notification(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        shipment_id: int | None = None,
        offer_id: int | None = None,
    ) -> RowType:
        ...

    def get_user_notifications(self, user_id: int, unread_only: bool = False) -> RowList:
        """Newest first."""
        ...

    def get_unread_notifications_since(self, user_id: int, since: datetime) -> RowList:
        """Unread rows with created_at > since, oldest first."""
        ...

    def get_database_time(self) -> datetime:
        """Clock that stamps created_at."""
        ...
