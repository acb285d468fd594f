"""Create content tables

Revision ID: 20261019_0005
Revises: 20261019_0004
Create Date: 2026-10-19 00:05:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0005'
down_revision: str | None = '20261019_0004'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create blog, FAQ, page, team, testimonial and settings tables."""
    op.create_table(
        'blog_posts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('excerpt', sa.Text, nullable=True),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('cover_image', sa.String(500), nullable=True),
        sa.Column('author', sa.String(100), nullable=True),
        sa.Column('category', sa.String(80), nullable=True),
        sa.Column('tags', sa.JSON, nullable=False),
        sa.Column('is_published', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_blog_published', 'blog_posts', ['is_published', 'published_at'])

    op.create_table(
        'faqs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('question', sa.Text, nullable=False),
        sa.Column('answer', sa.Text, nullable=False),
        sa.Column('category', sa.String(80), nullable=False, server_default='general'),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'content_pages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('section', sa.String(80), nullable=True),
        sa.Column('parent_slug', sa.String(200), nullable=True),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_published', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('meta_title', sa.String(200), nullable=True),
        sa.Column('meta_description', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_content_section', 'content_pages', ['section', 'order'])

    op.create_table(
        'team_members',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(100), nullable=False),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('photo', sa.String(500), nullable=True),
        sa.Column('order', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'testimonials',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('country', sa.String(80), nullable=True),
        sa.Column('rating', sa.Integer, nullable=False, server_default='5'),
        sa.Column('text', sa.Text, nullable=False),
        sa.Column('tour_name', sa.String(200), nullable=True),
        sa.Column('photo', sa.String(500), nullable=True),
        sa.Column('is_approved', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_featured', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='testimonials_rating_check'),
    )

    op.create_table(
        'site_settings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('site_name', sa.String(120), nullable=False),
        sa.Column('tagline', sa.String(200), nullable=True),
        sa.Column('contact_email', sa.String(254), nullable=True),
        sa.Column('contact_phone', sa.String(30), nullable=True),
        sa.Column('address', sa.String(300), nullable=True),
        sa.Column('whatsapp', sa.String(30), nullable=True),
        sa.Column('social_links', sa.JSON, nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop content tables."""
    op.drop_table('site_settings')
    op.drop_table('testimonials')
    op.drop_table('team_members')
    op.drop_index('idx_content_section', table_name='content_pages')
    op.drop_table('content_pages')
    op.drop_table('faqs')
    op.drop_index('idx_blog_published', table_name='blog_posts')
    op.drop_table('blog_posts')
