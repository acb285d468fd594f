"""Sales inquiry (lead) data models."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from dreamland.models.base import Base, new_id
from dreamland.models.booking import PaymentStatus


class LeadStatus(str, Enum):
    """Position of an inquiry in the sales pipeline."""

    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUOTED = "QUOTED"
    NEGOTIATING = "NEGOTIATING"
    WON = "WON"
    LOST = "LOST"
    ON_HOLD = "ON_HOLD"


# ========== SQLAlchemy ORM Models ==========


class InquiryDB(Base):
    """SQLAlchemy model for inquiries table."""

    __tablename__ = "inquiries"

    id = Column(String(36), primary_key=True, default=new_id)
    full_name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    country = Column(String(80), nullable=True)
    travel_month = Column(String(40), nullable=True)
    group_size = Column(String(40), nullable=True)
    budget_range = Column(String(40), nullable=True)
    message = Column(Text, nullable=True)
    tour_id = Column(String(36), nullable=True)
    tour_name = Column(String(200), nullable=True)
    source = Column(String(40), nullable=False, default="website", server_default="website")
    marketing_consent = Column(Boolean, nullable=False, default=False, server_default="0")
    lead_status = Column(
        String(20), nullable=False, default=LeadStatus.NEW.value, server_default=LeadStatus.NEW.value
    )
    internal_notes = Column(Text, nullable=True)
    assigned_to = Column(String(100), nullable=True)
    quoted_price = Column(Numeric(10, 2), nullable=True)
    quote_currency = Column(String(3), nullable=True)
    quote_valid_until = Column(DateTime(timezone=True), nullable=True)
    first_contact_at = Column(DateTime(timezone=True), nullable=True)
    last_contact_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String(30), nullable=True)
    stripe_session_id = Column(String(255), nullable=True, index=True)
    stripe_payment_url = Column(Text, nullable=True)
    bank_transfer_ref = Column(String(64), nullable=True)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0, server_default="0")
    payment_status = Column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        server_default=PaymentStatus.PENDING.value,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_inquiries_status", "lead_status", "created_at"),
    )


# ========== Pydantic Models ==========


class Inquiry(BaseModel):
    """Inquiry as shown in the admin CRM."""

    id: str
    full_name: str
    email: str
    phone: str | None = None
    country: str | None = None
    travel_month: str | None = None
    group_size: str | None = None
    budget_range: str | None = None
    message: str | None = None
    tour_id: str | None = None
    tour_name: str | None = None
    source: str
    marketing_consent: bool
    lead_status: LeadStatus
    internal_notes: str | None = None
    assigned_to: str | None = None
    quoted_price: float | None = None
    quote_currency: str | None = None
    quote_valid_until: datetime | None = None
    first_contact_at: datetime | None = None
    last_contact_at: datetime | None = None
    payment_method: str | None = None
    stripe_payment_url: str | None = None
    bank_transfer_ref: str | None = None
    amount_paid: float = 0
    payment_status: PaymentStatus
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class InquiryCreate(BaseModel):
    """Public inquiry form."""

    full_name: str = Field(..., min_length=2, max_length=100, alias="fullName")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: str | None = Field(None, max_length=30)
    country: str | None = Field(None, max_length=80)
    travel_month: str | None = Field(None, max_length=40, alias="travelMonth")
    group_size: str | None = Field(None, max_length=40, alias="groupSize")
    budget_range: str | None = Field(None, max_length=40, alias="budgetRange")
    message: str | None = Field(None, max_length=5000)
    tour_id: str | None = Field(None, alias="tourId")
    tour_name: str | None = Field(None, alias="tourName")
    marketing_consent: bool = Field(False, alias="marketingConsent")
    source: str | None = Field(None, max_length=40)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class InquiryUpdate(BaseModel):
    """CRM update from the admin."""

    lead_status: LeadStatus | None = Field(None, alias="leadStatus")
    internal_notes: str | None = Field(None, alias="internalNotes")
    assigned_to: str | None = Field(None, alias="assignedTo")
    quoted_price: float | None = Field(None, ge=0, alias="quotedPrice")
    quote_valid_until: datetime | None = Field(None, alias="quoteValidUntil")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class PaymentLinkRequest(BaseModel):
    """Admin request to send a quote and payment instructions to a lead."""

    inquiry_id: str = Field(..., alias="inquiryId")
    amount: float = Field(..., gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    payment_method: Literal["stripe", "bank_transfer"] = Field("stripe", alias="paymentMethod")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
