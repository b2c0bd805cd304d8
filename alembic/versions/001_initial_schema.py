"""Initial schema: websites, bookings, sync_logs

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'websites',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('domain', sa.String(255), nullable=False),
        sa.Column('api_key', sa.String(255), nullable=False),
        sa.Column('webhook_url', sa.String(500), nullable=True),
        sa.Column('webhook_secret', sa.String(255), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_websites_api_key', 'websites', ['api_key'], unique=True)

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('website_id', sa.String(100), sa.ForeignKey('websites.id', ondelete='CASCADE'), nullable=False),
        sa.Column('source_booking_id', sa.String(255), nullable=False),
        sa.Column('booking_ref', sa.String(100), nullable=False),
        sa.Column('package_name', sa.String(255), nullable=True),
        sa.Column('package_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('activity_date', sa.Date(), nullable=True),
        sa.Column('time_slot', sa.String(50), nullable=True),
        sa.Column('guest_count', sa.Integer(), nullable=True),
        sa.Column('adult_count', sa.Integer(), nullable=True),
        sa.Column('child_count', sa.Integer(), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('currency', sa.String(10), nullable=True),
        sa.Column('status', sa.String(30), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_country_code', sa.String(10), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('transport_type', sa.String(30), nullable=True),
        sa.Column('hotel_name', sa.String(255), nullable=True),
        sa.Column('room_number', sa.String(50), nullable=True),
        sa.Column('non_players', sa.Integer(), nullable=True),
        sa.Column('private_passengers', sa.Integer(), nullable=True),
        sa.Column('transport_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('addons', sa.JSON(), nullable=True),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('pickup_time', sa.String(5), nullable=True),
        sa.Column('source_created_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('website_id', 'source_booking_id', name='uq_booking_website_source'),
    )
    op.create_index('ix_bookings_booking_ref', 'bookings', ['booking_ref'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_booking_activity_date', 'bookings', ['activity_date'])
    op.create_index('ix_booking_created_at', 'bookings', ['created_at'])

    op.create_table(
        'sync_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id', ondelete='SET NULL'), nullable=True),
        sa.Column('website_id', sa.String(100), sa.ForeignKey('websites.id', ondelete='SET NULL'), nullable=True),
        sa.Column('direction', sa.String(10), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_sync_log_booking', 'sync_logs', ['booking_id', 'direction', 'status', 'created_at'])
    op.create_index('ix_sync_log_website', 'sync_logs', ['website_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_sync_log_website', table_name='sync_logs')
    op.drop_index('ix_sync_log_booking', table_name='sync_logs')
    op.drop_table('sync_logs')
    op.drop_index('ix_booking_created_at', table_name='bookings')
    op.drop_index('ix_booking_activity_date', table_name='bookings')
    op.drop_index('ix_bookings_status', table_name='bookings')
    op.drop_index('ix_bookings_booking_ref', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_websites_api_key', table_name='websites')
    op.drop_table('websites')
