"""Create booking finance tables

Revision ID: 001_booking_finance
Revises:
Create Date: 2026-10-18

Bookings, cabin allocations of cabin charters, their payment ledger and
the pick-list lookups used by the booking form.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '001_booking_finance'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types are shared between tables, so they are created once up front
fx_rate_source_enum = postgresql.ENUM('api', 'manual', name='fx_rate_source_enum', create_type=False)
booking_source_type_enum = postgresql.ENUM('direct', 'agency', name='booking_source_type_enum', create_type=False)
payment_status_enum = postgresql.ENUM('unpaid', 'partial', 'paid', name='payment_status_enum', create_type=False)
charter_type_enum = postgresql.ENUM(
    'day_charter', 'overnight_charter', 'cabin_charter', 'bareboat_charter',
    name='charter_type_enum', create_type=False,
)
cabin_allocation_status_enum = postgresql.ENUM(
    'available', 'held', 'booked', name='cabin_allocation_status_enum', create_type=False,
)
booking_payment_type_enum = postgresql.ENUM('deposit', 'balance', name='booking_payment_type_enum', create_type=False)

ENUMS = (
    fx_rate_source_enum,
    booking_source_type_enum,
    payment_status_enum,
    charter_type_enum,
    cabin_allocation_status_enum,
    booking_payment_type_enum,
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _finance_columns():
    return [
        sa.Column('currency', sa.String(length=3), server_default='THB', nullable=False),
        sa.Column('charter_fee', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('admin_fee', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('fx_rate', sa.DECIMAL(14, 6), nullable=True),
        sa.Column('fx_rate_source', fx_rate_source_enum, nullable=True),
        sa.Column('thb_total_price', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('commission_rate', sa.DECIMAL(5, 2), nullable=True),
        sa.Column('commission_rate_default', sa.DECIMAL(5, 2), nullable=True),
        sa.Column('total_commission', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('total_commission_overridden', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('commission_deduction', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('commission_received', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('commission_received_overridden', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('commission_note', sa.Text(), nullable=True),
        sa.Column('extra_items', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('booking_source_type', booking_source_type_enum, server_default='direct', nullable=False),
        sa.Column('agent_name', sa.String(length=255), nullable=True),
        sa.Column('agency_commission_rate', sa.DECIMAL(5, 2), nullable=True),
        sa.Column('agency_commission_amount', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('agency_commission_overridden', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('agency_commission_thb', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('payment_status', payment_status_enum, server_default='unpaid', nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('booking_number', sa.String(length=50), nullable=True),
        sa.Column('charter_type', charter_type_enum, nullable=True),
        sa.Column('date_from', sa.Date(), nullable=True),
        sa.Column('project_id', sa.String(length=36), nullable=True),
        sa.Column('external_boat_name', sa.String(length=255), nullable=True),
        sa.Column('charter_cost', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('charter_cost_currency', sa.String(length=3), nullable=True),
        sa.Column('extra_charges', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('total_price', sa.DECIMAL(12, 2), nullable=True),
        *_finance_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_bookings_booking_number', 'bookings', ['booking_number'])

    # Create cabin_allocations table
    op.create_table('cabin_allocations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('booking_id', sa.String(length=36), nullable=False),
        sa.Column('cabin_label', sa.String(length=100), server_default='', nullable=False),
        sa.Column('cabin_number', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', cabin_allocation_status_enum, server_default='available', nullable=False),
        sa.Column('guest_names', sa.Text(), nullable=True),
        sa.Column('number_of_guests', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('price', sa.DECIMAL(12, 2), nullable=True),
        *_finance_columns(),
        *_timestamps(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cabin_allocations_booking_id', 'cabin_allocations', ['booking_id'])

    # Create booking_payments table
    op.create_table('booking_payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('booking_id', sa.String(length=36), nullable=True),
        sa.Column('cabin_allocation_id', sa.String(length=36), nullable=True),
        sa.Column('payment_type', booking_payment_type_enum, server_default='deposit', nullable=False),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=True),
        sa.Column('currency', sa.String(length=3), server_default='THB', nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('payment_method', sa.String(length=100), nullable=True),
        sa.Column('bank_account_id', sa.String(length=36), nullable=True),
        sa.Column('receipt_id', sa.String(length=36), nullable=True),
        sa.Column('synced_to_receipt', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('needs_accounting_action', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['cabin_allocation_id'], ['cabin_allocations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_booking_payments_booking_id', 'booking_payments', ['booking_id'])
    op.create_index('ix_booking_payments_cabin_allocation_id', 'booking_payments', ['cabin_allocation_id'])

    # Create booking_lookups table
    op.create_table('booking_lookups',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_booking_lookups_category', 'booking_lookups', ['category'])


def downgrade() -> None:
    op.drop_table('booking_lookups')
    op.drop_table('booking_payments')
    op.drop_table('cabin_allocations')
    op.drop_table('bookings')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
