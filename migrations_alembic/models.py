"""
SQLAlchemy models for Alembic migrations.

They mirror ``database_pg_module/schema.py``; the runtime store itself uses
psycopg directly and never imports these.
"""
from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('client', 'agent')", name="ck_users_role"),)

    user_id = Column(BigInteger, primary_key=True, autoincrement=True)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=text("now()"))

    shipments = relationship("Shipment", back_populates="client")


class Shipment(Base):
    __tablename__ = "shipments"
    __table_args__ = (
        CheckConstraint(
            "service_type IN ('transport', 'customs', 'storage', 'shipping')",
            name="ck_shipments_service_type",
        ),
        CheckConstraint(
            "status IN ('pending', 'offers_received', 'offer_accepted', 'in_progress', 'completed')",
            name="ck_shipments_status",
        ),
        Index("idx_shipments_client_created", "client_id", text("created_at DESC")),
        Index("idx_shipments_status_created", "status", text("created_at DESC")),
    )

    shipment_id = Column(BigInteger, primary_key=True, autoincrement=True)
    client_id = Column(BigInteger, ForeignKey("users.user_id"), nullable=False)
    service_type = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    weight = Column(Float, nullable=False)
    dimensions = Column(Text, nullable=False)  # JSON {"length","width","height"}
    pickup_address = Column(Text, nullable=False)
    pickup_date = Column(DateTime(timezone=True), nullable=False)
    delivery_address = Column(Text, nullable=False)
    delivery_date = Column(DateTime(timezone=True), nullable=False)
    required_documents = Column(Text)  # JSON list of strings
    notes = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    accepted_offer_id = Column(BigInteger)
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )

    client = relationship("User", back_populates="shipments")
    offers = relationship("Offer", back_populates="shipment")


class Offer(Base):
    __tablename__ = "offers"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_offers_price"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="ck_offers_status"
        ),
        UniqueConstraint("shipment_id", "agent_id", name="uq_offers_shipment_agent"),
        Index(
            "uq_offers_one_accepted",
            "shipment_id",
            unique=True,
            postgresql_where=text("status = 'accepted'"),
        ),
        Index("idx_offers_shipment_created", "shipment_id", text("created_at DESC")),
    )

    offer_id = Column(BigInteger, primary_key=True, autoincrement=True)
    shipment_id = Column(BigInteger, ForeignKey("shipments.shipment_id"), nullable=False)
    agent_id = Column(BigInteger, ForeignKey("users.user_id"), nullable=False)
    price = Column(Float, nullable=False)
    notes = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )

    shipment = relationship("Shipment", back_populates="offers")


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "type IN ('new_offer', 'offer_accepted', 'offer_rejected')",
            name="ck_notifications_type",
        ),
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )

    notification_id = Column(BigInteger, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.user_id"), nullable=False)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    shipment_id = Column(BigInteger, ForeignKey("shipments.shipment_id"))
    offer_id = Column(BigInteger, ForeignKey("offers.offer_id"))
    read = Column(Boolean, nullable=False, server_default=text("false"))
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )
