"""Payment endpoints: Stripe checkout, PaymentIntents and payment status."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from dreamland.api.dependencies import get_booking_service
from dreamland.api.middleware.auth import require_admin
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.auth.admin_session import AdminSession
from dreamland.services.booking_service import BookingService

router = APIRouter(prefix="/api", tags=["payments"])


class CreatePaymentRequest(BaseModel):
    """Request schema for a Stripe Checkout payment."""

    full_name: str = Field(..., min_length=2, max_length=100, alias="fullName")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    phone: str | None = Field(None, max_length=30)
    tour_name: str | None = Field(None, alias="tourName")
    tour_id: str | None = Field(None, alias="tourId")
    total_price: float = Field(..., gt=0, alias="totalPrice")
    adults: int = Field(1, ge=1, le=50)
    children: int = Field(0, ge=0, le=50)
    preferred_start_date: datetime | None = Field(None, alias="preferredStartDate")
    message: str | None = Field(None, max_length=5000)
    pay_advance_only: bool = Field(True, alias="payAdvanceOnly")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class PaymentIntentRequest(BaseModel):
    """Amount in minor units (cents); validated by the service."""

    amount: int | float
    currency: str = Field("usd", min_length=3, max_length=3)


class ManualPaymentRequest(BaseModel):
    """Payment received outside Stripe, recorded by an admin."""

    request_id: str = Field(..., alias="requestId")
    amount_paid: float = Field(..., gt=0, alias="amountPaid")
    payment_method: str | None = Field(None, alias="paymentMethod")
    provider_id: str | None = Field(None, alias="providerId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


@router.post(
    "/stripe/create-payment",
    summary="Create a Stripe Checkout payment",
    dependencies=[Depends(rate_limit("stripe:create-payment", RateLimitTier.BOOKING))],
)
async def create_payment(
    request: CreatePaymentRequest,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    """Create a booking request and a 30-minute Checkout Session for it.

    Charges the 30% advance unless ``payAdvanceOnly`` is false.
    """
    return await service.create_stripe_payment(
        full_name=request.full_name,
        email=request.email,
        total_price=request.total_price,
        phone=request.phone,
        tour_id=request.tour_id,
        tour_name=request.tour_name,
        adults=request.adults,
        children=request.children,
        preferred_start_date=request.preferred_start_date,
        message=request.message,
        pay_advance_only=request.pay_advance_only,
    )


@router.post(
    "/payment",
    summary="Create a PaymentIntent",
    dependencies=[Depends(rate_limit("payment", RateLimitTier.SENSITIVE))],
)
async def create_payment_intent(
    request: PaymentIntentRequest,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    amount = request.amount
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return await service.create_payment_intent(amount, request.currency)


@router.get(
    "/payment-confirm",
    summary="Payment status of a booking request",
    dependencies=[Depends(rate_limit("payment-confirm", RateLimitTier.PUBLIC))],
)
async def payment_status(
    request_id: str | None = Query(None, alias="requestId"),
    session_id: str | None = Query(None),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return await service.payment_status(request_id=request_id, session_id=session_id)


@router.post("/payment-confirm", summary="Record a manual payment")
async def confirm_manual_payment(
    request: ManualPaymentRequest,
    admin: AdminSession = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    """Record a payment an admin received by other means.

    Raises:
        NotFoundError: If the booking request does not exist
        ConflictError: If the provider reference was already recorded
    """
    result = await service.confirm_manual_payment(
        request.request_id,
        request.amount_paid,
        payment_method=request.payment_method,
        provider_reference=request.provider_id,
    )
    return {"success": True, "message": "Payment confirmed", "data": result.to_dict()}
