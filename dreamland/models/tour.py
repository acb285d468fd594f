"""Tour catalogue data models."""

from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from dreamland.models.base import Base, new_id

# ========== SQLAlchemy ORM Models ==========


class TourCategoryDB(Base):
    """SQLAlchemy model for tour_categories table."""

    __tablename__ = "tour_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    slug = Column(String(160), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    order = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    tours = relationship("TourDB", back_populates="category", passive_deletes=True)


class TourDB(Base):
    """SQLAlchemy model for tours table."""

    __tablename__ = "tours"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    days = Column(Integer, nullable=False, default=1)
    price_from = Column(Numeric(10, 2), nullable=False, default=0)
    main_image = Column(String(500), nullable=True)
    images = Column(JSON, nullable=False, default=list)
    includes = Column(JSON, nullable=False, default=list)
    excludes = Column(JSON, nullable=False, default=list)
    highlights = Column(JSON, nullable=False, default=list)
    location = Column(String(200), nullable=True)
    map_embed = Column(Text, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    category_id = Column(String(36), ForeignKey("tour_categories.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    category = relationship("TourCategoryDB", back_populates="tours")
    dates = relationship(
        "TourDateDB", cascade="all, delete-orphan", order_by="TourDateDB.start_date"
    )
    itinerary = relationship(
        "ItineraryDayDB", cascade="all, delete-orphan", order_by="ItineraryDayDB.day_number"
    )
    price_tiers = relationship(
        "PriceTierDB", cascade="all, delete-orphan", order_by="PriceTierDB.min_pax"
    )

    __table_args__ = (
        CheckConstraint("days >= 1", name="tours_days_check"),
        CheckConstraint("price_from >= 0", name="tours_price_check"),
        Index("idx_tours_listing", "is_active", "is_featured", "created_at"),
        Index("idx_tours_category", "category_id"),
    )


class TourDateDB(Base):
    """SQLAlchemy model for tour_dates table."""

    __tablename__ = "tour_dates"

    id = Column(String(36), primary_key=True, default=new_id)
    tour_id = Column(String(36), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="tour_dates_capacity_check"),
        Index("idx_tour_dates_tour", "tour_id", "start_date"),
    )


class ItineraryDayDB(Base):
    """SQLAlchemy model for itinerary_days table."""

    __tablename__ = "itinerary_days"

    id = Column(String(36), primary_key=True, default=new_id)
    tour_id = Column(String(36), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    day_number = Column(Integer, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)


class PriceTierDB(Base):
    """SQLAlchemy model for price_tiers table."""

    __tablename__ = "price_tiers"

    id = Column(String(36), primary_key=True, default=new_id)
    tour_id = Column(String(36), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False)
    min_pax = Column(Integer, nullable=False)
    max_pax = Column(Integer, nullable=True)
    price_per_person = Column(Numeric(10, 2), nullable=False)


# ========== Pydantic Models ==========


class CategorySummary(BaseModel):
    """Category reference embedded in tour payloads."""

    id: str
    name: str
    slug: str

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class Category(CategorySummary):
    """Tour category with the number of tours it holds."""

    description: str | None = None
    image: str | None = None
    order: int = 0
    tour_count: int = 0


class TourListItem(BaseModel):
    """Minimal tour shape for listing cards.

    Only the fields needed to render a card, keeping cached list pages small.
    """

    id: str
    title: str
    slug: str
    price_from: float
    days: int
    main_image: str | None = None
    description: str | None = None
    location: str | None = None
    is_featured: bool = False
    category: CategorySummary | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TourDate(BaseModel):
    """Scheduled departure."""

    id: str
    start_date: datetime
    end_date: datetime
    capacity: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ItineraryDay(BaseModel):
    """One day of a tour itinerary."""

    day_number: int
    title: str
    description: str | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class PriceTier(BaseModel):
    """Group-size dependent price."""

    min_pax: int
    max_pax: int | None = None
    price_per_person: float

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TourDetail(TourListItem):
    """Full tour record for the detail page."""

    images: list[str] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    map_embed: str | None = None
    is_active: bool = True
    category_id: str | None = None
    dates: list[TourDate] = Field(default_factory=list)
    itinerary: list[ItineraryDay] = Field(default_factory=list)
    price_tiers: list[PriceTier] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TourCreate(BaseModel):
    """Validated payload for creating or replacing a tour."""

    title: str = Field(..., min_length=3, max_length=200)
    slug: str = Field(..., min_length=3, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(..., min_length=10)
    days: int = Field(..., ge=1)
    price_from: float = Field(..., ge=0)
    main_image: str | None = None
    images: list[str] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    location: str | None = None
    map_embed: str | None = None
    is_featured: bool = False
    is_active: bool = True
    category_id: str | None = None


class TourUpdate(BaseModel):
    """Partial tour update; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=200)
    slug: str | None = Field(
        None, min_length=3, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
    )
    description: str | None = Field(None, min_length=10)
    days: int | None = Field(None, ge=1)
    price_from: float | None = Field(None, ge=0)
    main_image: str | None = None
    images: list[str] | None = None
    includes: list[str] | None = None
    excludes: list[str] | None = None
    highlights: list[str] | None = None
    location: str | None = None
    map_embed: str | None = None
    is_featured: bool | None = None
    is_active: bool | None = None
    category_id: str | None = None


class TourDateCreate(BaseModel):
    """Payload for scheduling a departure."""

    start_date: datetime
    end_date: datetime
    capacity: int = Field(..., ge=1)


class CategoryCreate(BaseModel):
    """Payload for creating or updating a category."""

    name: str = Field(..., min_length=2, max_length=120)
    slug: str = Field(..., min_length=2, max_length=160, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    image: str | None = None
    order: int = 0
    is_active: bool = True
