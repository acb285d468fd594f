"""Payment ledger and Stripe webhook idempotency models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from dreamland.models.base import Base, new_id


class PaymentProvider(str, Enum):
    """Where a payment was collected."""

    STRIPE = "stripe"
    BANK_TRANSFER = "bank_transfer"
    MANUAL = "manual"


class PaymentRecordStatus(str, Enum):
    """State of a single payment attempt."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class WebhookOutcome(str, Enum):
    """What processing a webhook event did."""

    APPLIED = "applied"
    IGNORED = "ignored"
    LOGGED = "logged"


# ========== SQLAlchemy ORM Models ==========


class PaymentDB(Base):
    """SQLAlchemy model for payments table.

    Each row is one collected (or failed) payment. The unique
    (provider, provider_reference) pair stops the same Stripe session
    from being counted twice.
    """

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    provider = Column(String(30), nullable=False)
    provider_reference = Column(String(255), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD", server_default="USD")
    status = Column(
        String(20),
        nullable=False,
        default=PaymentRecordStatus.SUCCEEDED.value,
        server_default=PaymentRecordStatus.SUCCEEDED.value,
    )
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    request_info_id = Column(String(36), ForeignKey("request_info.id"), nullable=True)
    inquiry_id = Column(String(36), ForeignKey("inquiries.id"), nullable=True)
    note = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("provider", "provider_reference", name="uq_payments_provider_reference"),
        Index("idx_payments_created", "created_at"),
    )


class StripeWebhookEventDB(Base):
    """SQLAlchemy model for stripe_webhook_events table (append-only).

    Primary key on the Stripe event id; inserting a row claims the event.
    """

    __tablename__ = "stripe_webhook_events"

    event_id = Column(String(255), primary_key=True)
    event_type = Column(String(100), nullable=False)
    outcome = Column(String(20), nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


# ========== Pydantic Models ==========


class Payment(BaseModel):
    """Recorded payment."""

    id: str
    provider: PaymentProvider
    provider_reference: str | None = None
    amount: float
    currency: str
    status: PaymentRecordStatus
    booking_id: str | None = None
    request_info_id: str | None = None
    inquiry_id: str | None = None
    note: str | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
