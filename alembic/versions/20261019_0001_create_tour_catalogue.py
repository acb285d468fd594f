"""Create tour catalogue tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create tour_categories, tours, tour_dates, itinerary_days and price_tiers tables."""
    op.create_table(
        'tour_categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('slug', sa.String(160), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tours',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('days', sa.Integer, nullable=False),
        sa.Column('price_from', sa.Numeric(10, 2), nullable=False),
        sa.Column('main_image', sa.String(500), nullable=True),
        sa.Column('images', sa.JSON, nullable=False),
        sa.Column('includes', sa.JSON, nullable=False),
        sa.Column('excludes', sa.JSON, nullable=False),
        sa.Column('highlights', sa.JSON, nullable=False),
        sa.Column('location', sa.String(200), nullable=True),
        sa.Column('map_embed', sa.Text, nullable=True),
        sa.Column('is_featured', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('tour_categories.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('days >= 1', name='tours_days_check'),
        sa.CheckConstraint('price_from >= 0', name='tours_price_check'),
    )

    # Listing order: active first, featured, newest
    op.create_index('idx_tours_listing', 'tours', ['is_active', 'is_featured', 'created_at'])
    op.create_index('idx_tours_category', 'tours', ['category_id'])

    op.create_table(
        'tour_dates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tour_id', sa.String(36), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity', sa.Integer, nullable=False),
        sa.CheckConstraint('capacity >= 1', name='tour_dates_capacity_check'),
    )
    op.create_index('idx_tour_dates_tour', 'tour_dates', ['tour_id', 'start_date'])

    op.create_table(
        'itinerary_days',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tour_id', sa.String(36), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_number', sa.Integer, nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
    )

    op.create_table(
        'price_tiers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tour_id', sa.String(36), sa.ForeignKey('tours.id', ondelete='CASCADE'), nullable=False),
        sa.Column('min_pax', sa.Integer, nullable=False),
        sa.Column('max_pax', sa.Integer, nullable=True),
        sa.Column('price_per_person', sa.Numeric(10, 2), nullable=False),
    )


def downgrade() -> None:
    """Drop tour catalogue tables."""
    op.drop_table('price_tiers')
    op.drop_table('itinerary_days')
    op.drop_index('idx_tour_dates_tour', table_name='tour_dates')
    op.drop_table('tour_dates')
    op.drop_index('idx_tours_category', table_name='tours')
    op.drop_index('idx_tours_listing', table_name='tours')
    op.drop_table('tours')
    op.drop_table('tour_categories')
