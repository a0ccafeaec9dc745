"""Initial marketplace schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Creates users, shipments, offers and notifications. Matches the tables that
``SchemaMixin.init_db`` creates, so databases built that way can be stamped.
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

CLOCK_NOW = sa.text('clock_timestamp()')


def upgrade() -> None:
    # === Users ===
    op.create_table(
        'users',
        sa.Column('user_id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email'),
        sa.CheckConstraint("role IN ('client', 'agent')", name='ck_users_role'),
    )

    # === Shipments ===
    op.create_table(
        'shipments',
        sa.Column('shipment_id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('client_id', sa.BigInteger(), nullable=False),
        sa.Column('service_type', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('dimensions', sa.Text(), nullable=False),
        sa.Column('pickup_address', sa.Text(), nullable=False),
        sa.Column('pickup_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivery_address', sa.Text(), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('required_documents', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column('accepted_offer_id', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=CLOCK_NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=CLOCK_NOW, nullable=False),
        sa.PrimaryKeyConstraint('shipment_id'),
        sa.ForeignKeyConstraint(['client_id'], ['users.user_id']),
        sa.CheckConstraint(
            "service_type IN ('transport', 'customs', 'storage', 'shipping')",
            name='ck_shipments_service_type',
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'offers_received', 'offer_accepted', 'in_progress', 'completed')",
            name='ck_shipments_status',
        ),
    )
    op.create_index('idx_shipments_client_created', 'shipments', ['client_id', sa.text('created_at DESC')])
    op.create_index('idx_shipments_status_created', 'shipments', ['status', sa.text('created_at DESC')])

    # === Offers ===
    op.create_table(
        'offers',
        sa.Column('offer_id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('shipment_id', sa.BigInteger(), nullable=False),
        sa.Column('agent_id', sa.BigInteger(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=CLOCK_NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=CLOCK_NOW, nullable=False),
        sa.PrimaryKeyConstraint('offer_id'),
        sa.ForeignKeyConstraint(['shipment_id'], ['shipments.shipment_id']),
        sa.ForeignKeyConstraint(['agent_id'], ['users.user_id']),
        sa.UniqueConstraint('shipment_id', 'agent_id', name='uq_offers_shipment_agent'),
        sa.CheckConstraint('price >= 0', name='ck_offers_price'),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name='ck_offers_status'),
    )
    op.create_index(
        'uq_offers_one_accepted',
        'offers',
        ['shipment_id'],
        unique=True,
        postgresql_where=sa.text("status = 'accepted'"),
    )
    op.create_index('idx_offers_shipment_created', 'offers', ['shipment_id', sa.text('created_at DESC')])

    # === Notifications ===
    op.create_table(
        'notifications',
        sa.Column('notification_id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('shipment_id', sa.BigInteger(), nullable=True),
        sa.Column('offer_id', sa.BigInteger(), nullable=True),
        sa.Column('read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=CLOCK_NOW, nullable=False),
        sa.PrimaryKeyConstraint('notification_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['shipment_id'], ['shipments.shipment_id']),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.offer_id']),
        sa.CheckConstraint(
            "type IN ('new_offer', 'offer_accepted', 'offer_rejected')",
            name='ck_notifications_type',
        ),
    )
    op.create_index('idx_notifications_user_created', 'notifications', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('idx_notifications_user_created', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('idx_offers_shipment_created', table_name='offers')
    op.drop_index('uq_offers_one_accepted', table_name='offers')
    op.drop_table('offers')
    op.drop_index('idx_shipments_status_created', table_name='shipments')
    op.drop_index('idx_shipments_client_created', table_name='shipments')
    op.drop_table('shipments')
    op.drop_table('users')
