"""
Offer-related database operations.

Offer state only changes through ``create_offer_atomic``,
``accept_offer_atomic`` and ``reject_offer``; each one guards on the current
status under a row lock and writes the resulting notification on the same
transaction, so a transition is never committed without its notification.
"""
from __future__ import annotations

from typing import Any

from psycopg import errors

from logging_config import logger

from .shipments import OPEN_SHIPMENT_STATUSES


class OfferMixin:
    """Mixin for offer-related database operations."""

    def create_offer_atomic(
        self,
        shipment_id: int,
        agent_id: int,
        price: float,
        notes: str | None = None,
        notification: dict[str, str] | None = None,
    ):
        """Insert an offer and move the shipment to ``offers_received``.

        Holds the shipment row lock for the whole check-insert-update so an
        offer never lands on a shipment that was accepted concurrently. When
        ``notification`` is given it is stored for the shipment's client in
        the same transaction.

        Returns: Tuple[Optional[dict], Optional[dict], Optional[str]]
            - offer: stored offer row or None on error
            - notification: stored notification row or None
            - error_reason: shipment_not_found, shipment_closed:<status>,
              duplicate_offer or exception:<type>
        """
        conn = None
        try:
            conn = self.pool.getconn()
            conn.autocommit = False
            cursor = conn.cursor()

            cursor.execute(
                """
                SELECT client_id, status, accepted_offer_id FROM shipments
                WHERE shipment_id = %s
                FOR UPDATE
            """,
                (shipment_id,),
            )
            shipment = cursor.fetchone()
            if not shipment:
                conn.rollback()
                return (None, None, "shipment_not_found")

            if (
                shipment["status"] not in OPEN_SHIPMENT_STATUSES
                or shipment["accepted_offer_id"] is not None
            ):
                conn.rollback()
                logger.warning(
                    f"🔵 Shipment {shipment_id} is '{shipment['status']}', not accepting offers"
                )
                return (None, None, f"shipment_closed:{shipment['status']}")

            cursor.execute(
                "SELECT 1 FROM offers WHERE shipment_id = %s AND agent_id = %s",
                (shipment_id, agent_id),
            )
            if cursor.fetchone():
                conn.rollback()
                return (None, None, "duplicate_offer")

            cursor.execute(
                """
                INSERT INTO offers (shipment_id, agent_id, price, notes, status)
                VALUES (%s, %s, %s, %s, 'pending')
                RETURNING *
            """,
                (shipment_id, agent_id, price, notes),
            )
            offer = dict(cursor.fetchone())

            cursor.execute(
                """
                UPDATE shipments
                SET status = 'offers_received', updated_at = now()
                WHERE shipment_id = %s AND status = 'pending'
            """,
                (shipment_id,),
            )

            stored = None
            if notification is not None:
                stored = self._insert_notification(
                    cursor, shipment["client_id"], notification, shipment_id, offer["offer_id"]
                )

            conn.commit()
            logger.info(
                f"✅ Offer {offer['offer_id']} created: shipment={shipment_id}, agent={agent_id}"
            )
            return (offer, stored, None)

        except errors.UniqueViolation:
            if conn:
                self._rollback_quietly(conn)
            return (None, None, "duplicate_offer")
        except Exception as e:
            if conn:
                self._rollback_quietly(conn)
            logger.error(f"❌ Error creating offer atomically: {type(e).__name__}: {e}")
            return (None, None, f"exception:{type(e).__name__}")
        finally:
            if conn:
                self.pool.putconn(conn)

    def get_offer(self, offer_id: int) -> dict[str, Any] | None:
        """Get offer by ID."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM offers WHERE offer_id = %s", (offer_id,))
            result = cursor.fetchone()
            return dict(result) if result else None

    def get_shipment_offers(self, shipment_id: int) -> list[dict[str, Any]]:
        """Offers on a shipment, newest first, with agent name and email."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT o.*, u.name AS agent_name, u.email AS agent_email
                FROM offers o
                JOIN users u ON u.user_id = o.agent_id
                WHERE o.shipment_id = %s
                ORDER BY o.created_at DESC, o.offer_id DESC
            """,
                (shipment_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def accept_offer_atomic(self, offer_id: int, notification: dict[str, str] | None = None):
        """Accept one offer, reject its siblings and close the shipment.

        ``notification``, when given, is stored for the offer's agent in the
        same transaction.

        Returns: Tuple[bool, Optional[dict], Optional[str]]
            - ok: True if the offer is now the shipment's accepted offer
            - notification: stored notification row or None
            - error_reason: offer_not_found, shipment_not_found,
              shipment_closed:<status>, offer_not_pending:<status> or
              exception:<type>
        """
        logger.info(f"🔵 accept_offer_atomic START: offer_id={offer_id}")

        conn = None
        try:
            conn = self.pool.getconn()
            conn.autocommit = False
            cursor = conn.cursor()

            cursor.execute("SELECT shipment_id FROM offers WHERE offer_id = %s", (offer_id,))
            offer = cursor.fetchone()
            if not offer:
                conn.rollback()
                return (False, None, "offer_not_found")
            shipment_id = offer["shipment_id"]

            # Lock order: shipment first, then offers
            cursor.execute(
                """
                SELECT status, accepted_offer_id FROM shipments
                WHERE shipment_id = %s
                FOR UPDATE
            """,
                (shipment_id,),
            )
            shipment = cursor.fetchone()
            if not shipment:
                conn.rollback()
                return (False, None, "shipment_not_found")

            if (
                shipment["status"] not in OPEN_SHIPMENT_STATUSES
                or shipment["accepted_offer_id"] is not None
            ):
                conn.rollback()
                logger.warning(
                    f"🔵 Shipment {shipment_id} already decided "
                    f"(status={shipment['status']}, accepted={shipment['accepted_offer_id']})"
                )
                return (False, None, f"shipment_closed:{shipment['status']}")

            cursor.execute(
                "SELECT agent_id, status FROM offers WHERE offer_id = %s FOR UPDATE", (offer_id,)
            )
            current = cursor.fetchone()
            if current["status"] != "pending":
                conn.rollback()
                logger.warning(f"🔵 Offer {offer_id} is '{current['status']}', not pending")
                return (False, None, f"offer_not_pending:{current['status']}")

            cursor.execute(
                """
                UPDATE offers SET status = 'accepted', updated_at = now()
                WHERE offer_id = %s
            """,
                (offer_id,),
            )
            cursor.execute(
                """
                UPDATE offers SET status = 'rejected', updated_at = now()
                WHERE shipment_id = %s AND offer_id <> %s AND status = 'pending'
            """,
                (shipment_id, offer_id),
            )
            siblings_rejected = cursor.rowcount
            cursor.execute(
                """
                UPDATE shipments
                SET status = 'offer_accepted', accepted_offer_id = %s, updated_at = now()
                WHERE shipment_id = %s
            """,
                (offer_id, shipment_id),
            )

            stored = None
            if notification is not None:
                stored = self._insert_notification(
                    cursor, current["agent_id"], notification, shipment_id, offer_id
                )

            conn.commit()
            logger.info(
                f"✅ accept_offer_atomic SUCCESS: offer={offer_id}, shipment={shipment_id}, "
                f"rejected_siblings={siblings_rejected}"
            )
            return (True, stored, None)

        except Exception as e:
            if conn:
                self._rollback_quietly(conn)
            logger.error(f"❌ Error accepting offer atomically: {type(e).__name__}: {e}")
            return (False, None, f"exception:{type(e).__name__}")
        finally:
            if conn:
                self.pool.putconn(conn)

    def reject_offer(self, offer_id: int, notification: dict[str, str] | None = None):
        """Reject a pending offer, storing ``notification`` for its agent.

        Returns: Tuple[bool, Optional[dict], Optional[str]]
            - ok: True if the offer moved from pending to rejected
            - notification: stored notification row or None
            - error_reason: offer_not_found or offer_not_pending:<status>
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE offers SET status = 'rejected', updated_at = now()
                WHERE offer_id = %s AND status = 'pending'
                RETURNING shipment_id, agent_id
            """,
                (offer_id,),
            )
            offer = cursor.fetchone()
            if not offer:
                cursor.execute("SELECT status FROM offers WHERE offer_id = %s", (offer_id,))
                current = cursor.fetchone()
                if not current:
                    return (False, None, "offer_not_found")
                return (False, None, f"offer_not_pending:{current['status']}")

            stored = None
            if notification is not None:
                stored = self._insert_notification(
                    cursor, offer["agent_id"], notification, offer["shipment_id"], offer_id
                )
            logger.info(f"Offer {offer_id} rejected")
            return (True, stored, None)
