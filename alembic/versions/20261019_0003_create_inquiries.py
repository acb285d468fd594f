"""Create inquiries table

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 00:03:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0003'
down_revision: str | None = '20261019_0002'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create inquiries table."""
    op.create_table(
        'inquiries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('country', sa.String(80), nullable=True),
        sa.Column('travel_month', sa.String(40), nullable=True),
        sa.Column('group_size', sa.String(40), nullable=True),
        sa.Column('budget_range', sa.String(40), nullable=True),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('tour_id', sa.String(36), nullable=True),
        sa.Column('tour_name', sa.String(200), nullable=True),
        sa.Column('source', sa.String(40), nullable=False, server_default='website'),
        sa.Column('marketing_consent', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('lead_status', sa.String(20), nullable=False, server_default='NEW'),
        sa.Column('internal_notes', sa.Text, nullable=True),
        sa.Column('assigned_to', sa.String(100), nullable=True),
        sa.Column('quoted_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('quote_currency', sa.String(3), nullable=True),
        sa.Column('quote_valid_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('first_contact_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_contact_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_method', sa.String(30), nullable=True),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('stripe_payment_url', sa.Text, nullable=True),
        sa.Column('bank_transfer_ref', sa.String(64), nullable=True),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "lead_status IN ('NEW', 'CONTACTED', 'QUOTED', 'NEGOTIATING', 'WON', 'LOST', 'ON_HOLD')",
            name='inquiries_lead_status_check',
        ),
    )

    # CRM list: filter by status, newest first
    op.create_index('idx_inquiries_status', 'inquiries', ['lead_status', 'created_at'])
    op.create_index('ix_inquiries_email', 'inquiries', ['email'])
    op.create_index('ix_inquiries_stripe_session_id', 'inquiries', ['stripe_session_id'])


def downgrade() -> None:
    """Drop inquiries table."""
    op.drop_index('ix_inquiries_stripe_session_id', table_name='inquiries')
    op.drop_index('ix_inquiries_email', table_name='inquiries')
    op.drop_index('idx_inquiries_status', table_name='inquiries')
    op.drop_table('inquiries')
