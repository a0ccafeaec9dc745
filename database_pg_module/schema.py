"""
Database schema initialization.
"""
from __future__ import annotations

from logging_config import logger


class SchemaMixin:
    """Mixin for database schema initialization."""

    def init_db(self):
        """Create tables and indexes if they are missing.

        Mirrors the Alembic baseline in ``migrations_alembic/versions``; use
        ``scripts/migrate.py`` for managed deployments and ``SKIP_DB_INIT=1``
        to disable this path.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()

            # Users table
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS users (
                    user_id BIGSERIAL PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    role TEXT NOT NULL CHECK (role IN ('client', 'agent')),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            ''')

            # Shipments table
            # accepted_offer_id has no FK: offers reference shipments, and the
            # value is only ever written inside accept_offer_atomic
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS shipments (
                    shipment_id BIGSERIAL PRIMARY KEY,
                    client_id BIGINT NOT NULL REFERENCES users(user_id),
                    service_type TEXT NOT NULL
                        CHECK (service_type IN ('transport', 'customs', 'storage', 'shipping')),
                    description TEXT NOT NULL,
                    weight DOUBLE PRECISION NOT NULL,
                    dimensions TEXT NOT NULL,
                    pickup_address TEXT NOT NULL,
                    pickup_date TIMESTAMPTZ NOT NULL,
                    delivery_address TEXT NOT NULL,
                    delivery_date TIMESTAMPTZ NOT NULL,
                    required_documents TEXT,
                    notes TEXT,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'offers_received', 'offer_accepted',
                                          'in_progress', 'completed')),
                    accepted_offer_id BIGINT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
                )
            ''')

            # Offers table
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS offers (
                    offer_id BIGSERIAL PRIMARY KEY,
                    shipment_id BIGINT NOT NULL REFERENCES shipments(shipment_id),
                    agent_id BIGINT NOT NULL REFERENCES users(user_id),
                    price DOUBLE PRECISION NOT NULL CHECK (price >= 0),
                    notes TEXT,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'accepted', 'rejected')),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
                    CONSTRAINT uq_offers_shipment_agent UNIQUE (shipment_id, agent_id)
                )
            ''')

            # Notifications table
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS notifications (
                    notification_id BIGSERIAL PRIMARY KEY,
                    user_id BIGINT NOT NULL REFERENCES users(user_id),
                    type TEXT NOT NULL
                        CHECK (type IN ('new_offer', 'offer_accepted', 'offer_rejected')),
                    title TEXT NOT NULL,
                    message TEXT NOT NULL,
                    shipment_id BIGINT REFERENCES shipments(shipment_id),
                    offer_id BIGINT REFERENCES offers(offer_id),
                    read BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
                )
            ''')

            # At most one accepted offer per shipment
            cursor.execute('''
                CREATE UNIQUE INDEX IF NOT EXISTS uq_offers_one_accepted
                ON offers (shipment_id) WHERE status = 'accepted'
            ''')

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_shipments_client_created "
                "ON shipments (client_id, created_at DESC)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_shipments_status_created "
                "ON shipments (status, created_at DESC)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_offers_shipment_created "
                "ON offers (shipment_id, created_at DESC)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_notifications_user_created "
                "ON notifications (user_id, created_at)"
            )

            logger.info("✅ Database schema initialized")
