"""Admin sales endpoints: bookings, payments, bank transfers and the lead CRM."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from dreamland.api.dependencies import get_booking_service, get_inquiry_service
from dreamland.api.middleware.auth import require_admin
from dreamland.auth.admin_session import AdminSession
from dreamland.models.booking import BookingStatus
from dreamland.models.inquiry import InquiryUpdate, PaymentLinkRequest
from dreamland.services.booking_service import BookingService
from dreamland.services.inquiry_service import DEFAULT_INQUIRY_LIMIT, InquiryService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class BookingReference(BaseModel):
    id: str


class BankTransferConfirmation(BaseModel):
    """Received bank transfer; the amount defaults to the outstanding advance."""

    request_id: str = Field(..., alias="requestId")
    amount: float | None = Field(None, gt=0)
    reference: str | None = Field(None, max_length=255)
    note: str | None = Field(None, max_length=500)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


# ========== Bookings & payments ==========


@router.get("/bookings")
async def list_bookings(
    booking_status: BookingStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    status_value = booking_status.value if booking_status else None
    return {"bookings": await service.list_bookings(status_value, limit, offset)}


@router.post("/bookings/confirm")
async def confirm_booking(
    request: BookingReference,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    booking = await service.set_booking_status(request.id, BookingStatus.CONFIRMED)
    return {"ok": True, "data": booking}


@router.post("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> dict:
    booking = await service.set_booking_status(booking_id, BookingStatus.CANCELLED)
    return {"ok": True, "data": booking}


@router.get("/payments")
async def list_payments(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return {"payments": await service.list_payments(limit, offset)}


@router.get("/requests")
async def list_booking_requests(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    return {"requests": await service.list_request_infos(limit, offset)}


@router.get("/bank-transfers")
async def list_bank_transfers(service: BookingService = Depends(get_booking_service)) -> dict:
    """Booking requests expecting (or without any) payment provider."""
    return {"success": True, "data": await service.list_bank_transfer_candidates()}


@router.post("/bank-transfers/confirm")
async def confirm_bank_transfer(
    request: BankTransferConfirmation,
    admin: AdminSession = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> dict:
    """Record a received bank transfer and confirm the booking.

    Raises:
        NotFoundError: If the booking request does not exist
        BadRequestError: If no amount is given and nothing is outstanding
        ConflictError: If the transfer reference was already recorded
    """
    result = await service.confirm_bank_transfer(
        request.request_id,
        amount=request.amount,
        reference=request.reference,
        note=request.note or f"Confirmed by {admin.email}",
        confirmed_by=admin.email,
    )
    return {"success": True, "message": "Bank transfer confirmed", "data": result.to_dict()}


# ========== Inquiries ==========


@router.get("/inquiries")
async def list_inquiries(
    lead_status: str | None = Query(None, alias="status"),
    assigned_to: str | None = Query(None, alias="assignedTo"),
    search: str | None = Query(None, max_length=200),
    limit: int = Query(DEFAULT_INQUIRY_LIMIT),
    offset: int = Query(0),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    return await service.list_inquiries(lead_status, assigned_to, search, limit, offset)


@router.patch("/inquiries/{inquiry_id}")
async def update_inquiry(
    inquiry_id: str,
    update: InquiryUpdate,
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    inquiry = await service.update_inquiry(inquiry_id, update)
    return {"success": True, "message": "Inquiry updated successfully", "data": inquiry}


@router.post("/send-payment-link")
async def send_payment_link(
    request: PaymentLinkRequest,
    admin: AdminSession = Depends(require_admin),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Quote a lead and email Stripe or bank-transfer payment instructions."""
    return await service.send_payment_link(request, sent_by=admin.email)
