"""
Shipment-related database operations.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from logging_config import logger

OPEN_SHIPMENT_STATUSES = ("pending", "offers_received")
LOCKED_SHIPMENT_STATUSES = ("offer_accepted", "in_progress", "completed")


class ShipmentMixin:
    """Mixin for shipment-related database operations."""

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
    ) -> dict[str, Any]:
        """Insert a shipment in ``pending`` and return the stored row.

        ``dimensions`` and ``required_documents`` are JSON text.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO shipments (
                    client_id, service_type, description, weight, dimensions,
                    pickup_address, pickup_date, delivery_address, delivery_date,
                    required_documents, notes, status
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'pending')
                RETURNING *
            """,
                (
                    client_id,
                    service_type,
                    description,
                    weight,
                    dimensions,
                    pickup_address,
                    pickup_date,
                    delivery_address,
                    delivery_date,
                    required_documents,
                    notes,
                ),
            )
            row = dict(cursor.fetchone())
            logger.info(f"Shipment {row['shipment_id']} created by client {client_id}")
            return row

    def get_shipment(self, shipment_id: int) -> dict[str, Any] | None:
        """Get shipment by ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM shipments WHERE shipment_id = %s", (shipment_id,))
            result = cursor.fetchone()
            return dict(result) if result else None

    def get_client_shipments(self, client_id: int) -> list[dict[str, Any]]:
        """Shipments owned by a client, newest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM shipments
                WHERE client_id = %s
                ORDER BY created_at DESC, shipment_id DESC
            """,
                (client_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_open_shipments(self) -> list[dict[str, Any]]:
        """Shipments still accepting offers, newest first, with the client's name."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT s.*, u.name AS client_name
                FROM shipments s
                JOIN users u ON u.user_id = s.client_id
                WHERE s.status = ANY(%s)
                ORDER BY s.created_at DESC, s.shipment_id DESC
            """,
                (list(OPEN_SHIPMENT_STATUSES),),
            )
            return [dict(row) for row in cursor.fetchall()]

    def update_shipment_status(
        self, shipment_id: int, new_status: str, expected_status: str
    ) -> bool:
        """Compare-and-set the shipment status.

        Returns False when the row no longer has ``expected_status``.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE shipments
                SET status = %s, updated_at = now()
                WHERE shipment_id = %s AND status = %s
            """,
                (new_status, shipment_id, expected_status),
            )
            updated = cursor.rowcount == 1
            if updated:
                logger.info(
                    f"Shipment {shipment_id} status: {expected_status} -> {new_status}"
                )
            return updated

    def delete_shipment_cascade(self, shipment_id: int):
        """Delete a shipment with its offers and notifications in one transaction.

        Returns: Tuple[bool, Optional[str]]
            - ok: True if everything was deleted
            - error_reason: shipment_not_found, shipment_locked:<status> or
              exception:<type>
        """
        conn = None
        try:
            conn = self.pool.getconn()
            conn.autocommit = False
            cursor = conn.cursor()

            cursor.execute(
                "SELECT status FROM shipments WHERE shipment_id = %s FOR UPDATE",
                (shipment_id,),
            )
            shipment = cursor.fetchone()
            if not shipment:
                conn.rollback()
                return (False, "shipment_not_found")

            if shipment["status"] in LOCKED_SHIPMENT_STATUSES:
                conn.rollback()
                logger.warning(
                    f"🔵 Shipment {shipment_id} is '{shipment['status']}', refusing delete"
                )
                return (False, f"shipment_locked:{shipment['status']}")

            cursor.execute(
                """
                DELETE FROM notifications
                WHERE shipment_id = %s
                   OR offer_id IN (SELECT offer_id FROM offers WHERE shipment_id = %s)
            """,
                (shipment_id, shipment_id),
            )
            notifications_deleted = cursor.rowcount
            cursor.execute("DELETE FROM offers WHERE shipment_id = %s", (shipment_id,))
            offers_deleted = cursor.rowcount
            cursor.execute("DELETE FROM shipments WHERE shipment_id = %s", (shipment_id,))

            conn.commit()
            logger.info(
                f"✅ Shipment {shipment_id} deleted "
                f"(offers={offers_deleted}, notifications={notifications_deleted})"
            )
            return (True, None)

        except Exception as e:
            if conn:
                self._rollback_quietly(conn)
            logger.error(f"❌ Error deleting shipment {shipment_id}: {type(e).__name__}: {e}")
            return (False, f"exception:{type(e).__name__}")
        finally:
            if conn:
                self.pool.putconn(conn)
