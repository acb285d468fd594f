"""Customer, booking and booking-request data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import (
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


class BookingStatus(str, Enum):
    """Lifecycle of a direct booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    """How much of the amount owed has been collected."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class RequestBookingStatus(str, Enum):
    """Confirmation state of a booking request."""

    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# ========== SQLAlchemy ORM Models ==========


class CustomerDB(Base):
    """SQLAlchemy model for customers table."""

    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, default="")
    email = Column(String(254), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BookingDB(Base):
    """SQLAlchemy model for bookings table."""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    tour_id = Column(String(36), ForeignKey("tours.id"), nullable=False)
    tour_date_id = Column(String(36), ForeignKey("tour_dates.id"), nullable=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        server_default=BookingStatus.PENDING.value,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    customer = relationship("CustomerDB")
    tour = relationship("TourDB")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="bookings_quantity_check"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')",
            name="bookings_status_check",
        ),
        Index("idx_bookings_tour", "tour_id"),
        Index("idx_bookings_created", "created_at"),
    )


class RequestInfoDB(Base):
    """SQLAlchemy model for request_info table.

    A booking request priced up front and paid by Stripe Checkout or bank
    transfer. Amounts are in USD.
    """

    __tablename__ = "request_info"

    id = Column(String(36), primary_key=True, default=new_id)
    full_name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    tour_id = Column(String(36), ForeignKey("tours.id"), nullable=True)
    tour_name = Column(String(200), nullable=True)
    tour_price = Column(Numeric(10, 2), nullable=False, default=0)
    advance_required = Column(Numeric(10, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    payment_status = Column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        server_default=PaymentStatus.PENDING.value,
    )
    booking_status = Column(
        String(20),
        nullable=False,
        default=RequestBookingStatus.UNCONFIRMED.value,
        server_default=RequestBookingStatus.UNCONFIRMED.value,
    )
    payment_method = Column(String(30), nullable=True)
    stripe_session_id = Column(String(255), nullable=True, index=True)
    bank_transfer_ref = Column(String(64), nullable=True)
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    preferred_start_date = Column(DateTime(timezone=True), nullable=True)
    message = Column(Text, nullable=True)
    marketing_consent = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount_paid >= 0", name="request_info_amount_paid_check"),
        Index("idx_request_info_created", "created_at"),
    )


# ========== Pydantic Models ==========


class Customer(BaseModel):
    """Customer contact record."""

    id: str
    name: str
    email: str
    phone: str | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class Booking(BaseModel):
    """Direct booking against a scheduled tour."""

    id: str
    tour_id: str
    tour_date_id: str | None = None
    customer_id: str
    quantity: int
    total_price: float
    status: BookingStatus
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class BookingWithRelations(Booking):
    """Booking joined with its customer and tour title for admin listings."""

    customer: Customer | None = None
    tour_title: str | None = None


class RequestInfo(BaseModel):
    """Booking request with its payment state."""

    id: str
    full_name: str
    email: str
    phone: str | None = None
    tour_id: str | None = None
    tour_name: str | None = None
    tour_price: float
    advance_required: float
    amount_paid: float
    payment_status: PaymentStatus
    booking_status: RequestBookingStatus
    payment_method: str | None = None
    stripe_session_id: str | None = None
    bank_transfer_ref: str | None = None
    adults: int
    children: int
    preferred_start_date: datetime | None = None
    message: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class CustomerInput(BaseModel):
    """Customer block of a booking submission."""

    name: str = ""
    email: str = ""
    phone: str = ""


class RequestInfoCreate(BaseModel):
    """Validated booking-request form."""

    full_name: str = Field(..., min_length=2, max_length=100, alias="fullName")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: str | None = Field(None, max_length=30)
    tour_id: str | None = Field(None, alias="tourId")
    tour_name: str | None = Field(None, alias="tourName")
    tour_price: float | None = Field(None, ge=0, alias="tourPrice")
    adults: int = Field(1, ge=1, le=50)
    children: int = Field(0, ge=0, le=50)
    preferred_start_date: datetime | None = Field(None, alias="preferredStartDate")
    message: str | None = Field(None, max_length=5000)
    marketing_consent: bool = Field(False, alias="marketingConsent")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
