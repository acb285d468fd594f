"""Create customers, bookings and request_info tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:02:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0002'
down_revision: str | None = '20261019_0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create customers, bookings and request_info tables."""
    op.create_table(
        'customers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, server_default=''),
        sa.Column('email', sa.String(254), nullable=False, unique=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tour_id', sa.String(36), sa.ForeignKey('tours.id'), nullable=False),
        sa.Column('tour_date_id', sa.String(36), sa.ForeignKey('tour_dates.id'), nullable=True),
        sa.Column('customer_id', sa.String(36), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False, server_default='1'),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 1', name='bookings_quantity_check'),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')",
            name='bookings_status_check',
        ),
    )
    op.create_index('idx_bookings_tour', 'bookings', ['tour_id'])
    op.create_index('idx_bookings_created', 'bookings', ['created_at'])

    op.create_table(
        'request_info',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('tour_id', sa.String(36), sa.ForeignKey('tours.id'), nullable=True),
        sa.Column('tour_name', sa.String(200), nullable=True),
        sa.Column('tour_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('advance_required', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('booking_status', sa.String(20), nullable=False, server_default='UNCONFIRMED'),
        sa.Column('payment_method', sa.String(30), nullable=True),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('bank_transfer_ref', sa.String(64), nullable=True),
        sa.Column('adults', sa.Integer, nullable=False, server_default='1'),
        sa.Column('children', sa.Integer, nullable=False, server_default='0'),
        sa.Column('preferred_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('marketing_consent', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount_paid >= 0', name='request_info_amount_paid_check'),
    )

    # Webhooks look requests up by Checkout Session id
    op.create_index('ix_request_info_stripe_session_id', 'request_info', ['stripe_session_id'])
    op.create_index('ix_request_info_email', 'request_info', ['email'])
    op.create_index('idx_request_info_created', 'request_info', ['created_at'])


def downgrade() -> None:
    """Drop booking tables."""
    op.drop_index('idx_request_info_created', table_name='request_info')
    op.drop_index('ix_request_info_email', table_name='request_info')
    op.drop_index('ix_request_info_stripe_session_id', table_name='request_info')
    op.drop_table('request_info')
    op.drop_index('idx_bookings_created', table_name='bookings')
    op.drop_index('idx_bookings_tour', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('customers')
