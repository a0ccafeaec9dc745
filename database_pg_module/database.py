"""
Main Database class combining all mixins.
"""
from __future__ import annotations

import os

from logging_config import logger

from .core import DatabaseCore
from .mixins import NotificationMixin, OfferMixin, ShipmentMixin, UserMixin
from .schema import SchemaMixin


class Database(
    DatabaseCore,
    SchemaMixin,
    UserMixin,
    ShipmentMixin,
    OfferMixin,
    NotificationMixin,
):
    """
    PostgreSQL Database for LogiFlow.

    Combines all database functionality through mixins:
    - UserMixin: User accounts (client / agent)
    - ShipmentMixin: Shipments and cascading delete
    - OfferMixin: Offers with atomic create/accept
    - NotificationMixin: Persisted user notifications
    """

    def __init__(self, database_url=None):
        """Initialize database with connection pool and schema."""
        super().__init__(database_url)
        # Skip init_db if SKIP_DB_INIT is set (for migration-managed databases)
        if not os.getenv("SKIP_DB_INIT"):
            self.init_db()
            logger.info("✅ Database initialized with all mixins")
        else:
            logger.info("⏭️  Skipping database initialization (SKIP_DB_INIT=1)")
