"""Public inquiry (lead capture) endpoint."""

from fastapi import APIRouter, Body, Depends

from dreamland.api.dependencies import get_inquiry_service
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.api.routes.bookings import honeypot_triggered
from dreamland.models.inquiry import InquiryCreate
from dreamland.services.i18n import DEFAULT_LOCALE, translate
from dreamland.services.inquiry_service import InquiryService

router = APIRouter(prefix="/api", tags=["inquiries"])


@router.post(
    "/inquiry",
    summary="Submit an inquiry",
    dependencies=[Depends(rate_limit("inquiry", RateLimitTier.FORM))],
)
async def create_inquiry(
    payload: dict = Body(...),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Capture a sales lead. No booking or payment is created."""
    if honeypot_triggered(payload):
        return {"success": True, "message": translate(DEFAULT_LOCALE, "inquiry.received")}

    data = InquiryCreate.model_validate(payload)
    return await service.create_inquiry(data)
