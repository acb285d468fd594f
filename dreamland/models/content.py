"""Editorial content models: blog, FAQ, pages, team, testimonials, site settings."""

from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from dreamland.models.base import Base, new_id

# ========== SQLAlchemy ORM Models ==========


class BlogPostDB(Base):
    """SQLAlchemy model for blog_posts table."""

    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=False, default="")
    cover_image = Column(String(500), nullable=True)
    author = Column(String(100), nullable=True)
    category = Column(String(80), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_published = Column(Boolean, nullable=False, default=False, server_default="0")
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_blog_published", "is_published", "published_at"),)


class FAQDB(Base):
    """SQLAlchemy model for faqs table."""

    __tablename__ = "faqs"

    id = Column(String(36), primary_key=True, default=new_id)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String(80), nullable=False, default="general", server_default="general")
    order = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ContentPageDB(Base):
    """SQLAlchemy model for content_pages table."""

    __tablename__ = "content_pages"

    id = Column(String(36), primary_key=True, default=new_id)
    slug = Column(String(200), nullable=False, unique=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False, default="")
    section = Column(String(80), nullable=True)
    parent_slug = Column(String(200), nullable=True)
    order = Column(Integer, nullable=False, default=0, server_default="0")
    is_published = Column(Boolean, nullable=False, default=True, server_default="1")
    meta_title = Column(String(200), nullable=True)
    meta_description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_content_section", "section", "order"),)


class TeamMemberDB(Base):
    """SQLAlchemy model for team_members table."""

    __tablename__ = "team_members"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    role = Column(String(100), nullable=False)
    bio = Column(Text, nullable=True)
    photo = Column(String(500), nullable=True)
    order = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TestimonialDB(Base):
    """SQLAlchemy model for testimonials table."""

    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    country = Column(String(80), nullable=True)
    rating = Column(Integer, nullable=False, default=5)
    text = Column(Text, nullable=False)
    tour_name = Column(String(200), nullable=True)
    photo = Column(String(500), nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False, server_default="0")
    is_featured = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="testimonials_rating_check"),
    )


class SiteSettingsDB(Base):
    """SQLAlchemy model for site_settings table (single row)."""

    __tablename__ = "site_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    site_name = Column(String(120), nullable=False, default="Dreamland Travel")
    tagline = Column(String(200), nullable=True)
    contact_email = Column(String(254), nullable=True)
    contact_phone = Column(String(30), nullable=True)
    address = Column(String(300), nullable=True)
    whatsapp = Column(String(30), nullable=True)
    social_links = Column(JSON, nullable=False, default=dict)
    currency = Column(String(3), nullable=False, default="USD")
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


# ========== Pydantic Models ==========


class BlogPost(BaseModel):
    """Published blog post."""

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    cover_image: str | None = None
    author: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool
    published_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class BlogPostCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    slug: str = Field(..., min_length=3, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    excerpt: str | None = None
    content: str = Field(..., min_length=1)
    cover_image: str | None = None
    author: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = False


class FAQ(BaseModel):
    id: str
    question: str
    answer: str
    category: str
    order: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class FAQCreate(BaseModel):
    question: str = Field(..., min_length=5)
    answer: str = Field(..., min_length=1)
    category: str = "general"
    order: int = 0
    is_active: bool = True


class ContentPage(BaseModel):
    id: str
    slug: str
    title: str
    content: str
    section: str | None = None
    parent_slug: str | None = None
    order: int
    meta_title: str | None = None
    meta_description: str | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ContentPageCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:[-/][a-z0-9]+)*$")
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    section: str | None = None
    parent_slug: str | None = None
    order: int = 0
    is_published: bool = True
    meta_title: str | None = None
    meta_description: str | None = None


class TeamMember(BaseModel):
    id: str
    name: str
    role: str
    bio: str | None = None
    photo: str | None = None
    order: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TeamMemberCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    role: str = Field(..., min_length=2, max_length=100)
    bio: str | None = None
    photo: str | None = None
    order: int = 0
    is_active: bool = True


class Testimonial(BaseModel):
    id: str
    name: str
    country: str | None = None
    rating: int
    text: str
    tour_name: str | None = None
    photo: str | None = None
    is_approved: bool
    is_featured: bool
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestimonialSubmit(BaseModel):
    """Public testimonial submission; ratings outside 1..5 are clamped."""

    name: str = Field(..., min_length=2, max_length=100)
    country: str | None = Field(None, max_length=80)
    rating: int = 5
    text: str = Field(..., min_length=10, max_length=2000)
    tour_name: str | None = Field(None, alias="tourName", max_length=200)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class TestimonialModerate(BaseModel):
    is_approved: bool | None = None
    is_featured: bool | None = None


class SiteSettings(BaseModel):
    site_name: str
    tagline: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    whatsapp: str | None = None
    social_links: dict[str, str] = Field(default_factory=dict)
    currency: str = "USD"

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class SiteSettingsUpdate(BaseModel):
    site_name: str | None = Field(None, min_length=1, max_length=120)
    tagline: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    whatsapp: str | None = None
    social_links: dict[str, str] | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)


class ContactMessage(BaseModel):
    """Public contact form."""

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: str | None = Field(None, max_length=30)
    subject: str = Field("General enquiry", max_length=200)
    message: str = Field(..., min_length=5, max_length=5000)
