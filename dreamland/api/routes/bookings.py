"""Public booking endpoints: direct bookings and priced booking requests."""

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from dreamland.api.dependencies import get_booking_service
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.models.booking import CustomerInput, RequestInfoCreate
from dreamland.services.booking_service import BookingService
from dreamland.services.i18n import DEFAULT_LOCALE, translate

router = APIRouter(prefix="/api", tags=["bookings"])


def honeypot_triggered(payload: dict) -> bool:
    """True when the hidden ``hp`` field was filled in, which only bots do."""
    value = payload.get("hp")
    return isinstance(value, str) and value.strip() != ""


class BookingRequest(BaseModel):
    """Request schema for a direct booking."""

    tour_id: str | None = Field(None, alias="tourId")
    tour_date_id: str | None = Field(None, alias="tourDateId")
    customer: CustomerInput = Field(default_factory=CustomerInput)
    quantity: int = 1

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


@router.post(
    "/booking",
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking",
    dependencies=[Depends(rate_limit("booking", RateLimitTier.BOOKING))],
)
async def create_booking(
    request: BookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    """Create a PENDING booking for a scheduled tour.

    Raises:
        BadRequestError: If email or tour is missing
        NotFoundError: If the tour does not exist
    """
    booking = await service.create_booking(
        request.tour_id,
        request.customer,
        quantity=request.quantity,
        tour_date_id=request.tour_date_id,
    )
    return {"ok": True, "data": booking}


@router.post(
    "/request-info",
    summary="Request a priced booking",
    dependencies=[Depends(rate_limit("request-info", RateLimitTier.FORM))],
)
async def request_info(
    payload: dict = Body(...),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    """Record a booking request and email payment instructions.

    A filled honeypot gets the normal success message and nothing is stored.
    """
    if honeypot_triggered(payload):
        return {"success": True, "message": translate(DEFAULT_LOCALE, "booking.received")}

    data = RequestInfoCreate.model_validate(payload)
    return await service.create_request_info(data)
