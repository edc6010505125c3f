"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates:
- apartment_types: sellable unit categories with base price
- seasonal_rates: (type, month, year) nightly overrides, unique per tuple
- bookings: direct reservations, half-open [check_in, check_out)
- channel_integrations: one iCal feed per channel and apartment type
- blocked_ranges: manual and channel-imported non-bookable ranges
- sync_conflicts: channel blocks that landed on an existing booking
- notification_outbox: booking lifecycle events for the notifier
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==================
    # apartment_types table
    # ==================
    op.create_table(
        'apartment_types',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('max_guests', sa.Integer, nullable=False, server_default='2'),
        sa.Column('size_sqm', sa.Integer, nullable=True),
        sa.Column('display_order', sa.Integer, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_apartment_types_slug', 'apartment_types', ['slug'], unique=True)

    # ==================
    # seasonal_rates table
    # ==================
    op.create_table(
        'seasonal_rates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('apartment_type_id', sa.String(36), sa.ForeignKey('apartment_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('month', sa.Integer, nullable=False),
        sa.Column('year', sa.Integer, nullable=False),
        sa.Column('price_per_night', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('apartment_type_id', 'month', 'year', name='uq_seasonal_rate_type_month_year'),
    )
    op.create_index('ix_seasonal_rate_year', 'seasonal_rates', ['year'])

    # ==================
    # bookings table
    # ==================
    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('apartment_type_id', sa.String(36), sa.ForeignKey('apartment_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('guest_name', sa.String(100), nullable=False),
        sa.Column('guest_email', sa.String(255), nullable=True),
        sa.Column('guest_phone', sa.String(30), nullable=True),
        sa.Column('guests', sa.Integer, nullable=False, server_default='1'),
        sa.Column('check_in_date', sa.Date, nullable=False),
        sa.Column('check_out_date', sa.Date, nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('payment_status', sa.String(20), server_default='unpaid'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('cancelled_at', sa.DateTime, nullable=True),
        sa.CheckConstraint('check_out_date > check_in_date', name='ck_booking_dates'),
    )
    op.create_index('ix_booking_type_dates', 'bookings', ['apartment_type_id', 'check_in_date', 'check_out_date'])
    op.create_index('ix_booking_status', 'bookings', ['status'])

    # ==================
    # channel_integrations table
    # ==================
    op.create_table(
        'channel_integrations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_name', sa.String(50), nullable=False),
        sa.Column('apartment_type_id', sa.String(36), sa.ForeignKey('apartment_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('ical_url', sa.String(1000), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('last_synced_at', sa.DateTime, nullable=True),
        sa.Column('last_sync_error', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_channel_integration_type', 'channel_integrations', ['apartment_type_id'])

    # ==================
    # blocked_ranges table
    # ==================
    op.create_table(
        'blocked_ranges',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('apartment_type_id', sa.String(36), sa.ForeignKey('apartment_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('source', sa.String(50), nullable=False, server_default='manual'),
        sa.Column('reason', sa.Text, nullable=True),
        sa.Column('external_id', sa.String(255), nullable=True),
        sa.Column('integration_id', sa.String(36), sa.ForeignKey('channel_integrations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('integration_id', 'external_id', name='uq_blocked_range_integration_uid'),
        sa.CheckConstraint('end_date > start_date', name='ck_blocked_range_dates'),
    )
    op.create_index('ix_blocked_range_type_dates', 'blocked_ranges', ['apartment_type_id', 'start_date', 'end_date'])
    op.create_index('ix_blocked_range_integration', 'blocked_ranges', ['integration_id'])

    # ==================
    # sync_conflicts table
    # ==================
    op.create_table(
        'sync_conflicts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('integration_id', sa.String(36), sa.ForeignKey('channel_integrations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blocked_range_id', sa.String(36), sa.ForeignKey('blocked_ranges.id', ondelete='CASCADE'), nullable=False),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('apartment_type_id', sa.String(36), sa.ForeignKey('apartment_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('overlap_start', sa.Date, nullable=False),
        sa.Column('overlap_end', sa.Date, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('resolution_notes', sa.Text, nullable=True),
        sa.Column('resolved_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('blocked_range_id', 'booking_id', name='uq_sync_conflict_block_booking'),
    )
    op.create_index('ix_sync_conflict_status', 'sync_conflicts', ['status'])

    # ==================
    # notification_outbox table
    # ==================
    op.create_table(
        'notification_outbox',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='SET NULL'), nullable=True),
        sa.Column('payload', sa.JSON, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('delivered_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_notification_outbox_status_created', 'notification_outbox', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_table('notification_outbox')
    op.drop_table('sync_conflicts')
    op.drop_table('blocked_ranges')
    op.drop_table('channel_integrations')
    op.drop_table('bookings')
    op.drop_table('seasonal_rates')
    op.drop_table('apartment_types')
