"""Create payments and stripe_webhook_events tables

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 00:04:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0004'
down_revision: str | None = '20261019_0003'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create payments and stripe_webhook_events tables."""
    op.create_table(
        'payments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('provider', sa.String(30), nullable=False),
        sa.Column('provider_reference', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(20), nullable=False, server_default='SUCCEEDED'),
        sa.Column('booking_id', sa.String(36), sa.ForeignKey('bookings.id'), nullable=True),
        sa.Column('request_info_id', sa.String(36), sa.ForeignKey('request_info.id'), nullable=True),
        sa.Column('inquiry_id', sa.String(36), sa.ForeignKey('inquiries.id'), nullable=True),
        sa.Column('note', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One ledger row per provider reference (Stripe session id, bank reference)
        sa.UniqueConstraint('provider', 'provider_reference', name='uq_payments_provider_reference'),
    )
    op.create_index('idx_payments_created', 'payments', ['created_at'])

    op.create_table(
        'stripe_webhook_events',
        sa.Column('event_id', sa.String(255), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('outcome', sa.String(20), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "outcome IN ('applied', 'ignored', 'logged')",
            name='stripe_webhook_events_outcome_check',
        ),
    )


def downgrade() -> None:
    """Drop payment tables."""
    op.drop_table('stripe_webhook_events')
    op.drop_index('idx_payments_created', table_name='payments')
    op.drop_table('payments')
