"""Sales lead pipeline: public inquiries and the admin CRM."""

import time
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dreamland.models.inquiry import (
    Inquiry,
    InquiryCreate,
    InquiryDB,
    InquiryUpdate,
    LeadStatus,
    PaymentLinkRequest,
)
from dreamland.models.payment import PaymentProvider
from dreamland.models.tour import TourDB
from dreamland.services.booking_service import resolve_tour_reference
from dreamland.services.email import Mailer, send_best_effort
from dreamland.services.errors import NotFoundError
from dreamland.services.i18n import DEFAULT_LOCALE, translate
from dreamland.services.pricing import to_money
from dreamland.services.security import escape_sql_like, sanitize_phone, sanitize_string
from dreamland.services.stripe_gateway import StripeGateway

logger = structlog.get_logger(__name__)

DEFAULT_INQUIRY_LIMIT = 50
MAX_INQUIRY_LIMIT = 200

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def bank_transfer_reference(inquiry_id: str, now_ms: int | None = None) -> str:
    """Reference customers quote on a bank transfer, e.g. ``UTM-LX3K9Q2A-7F3C``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"UTM-{to_base36(now_ms)}-{inquiry_id[-4:].upper()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InquiryService:
    """Service for capturing leads and working them through the pipeline."""

    def __init__(
        self,
        db_session: AsyncSession,
        mailer: Mailer | None = None,
        gateway: StripeGateway | None = None,
    ):
        self.db_session = db_session
        self.mailer = mailer
        self.gateway = gateway

    async def create_inquiry(self, data: InquiryCreate) -> dict:
        """Store a NEW lead and send the auto-reply and admin notification.

        No booking or payment is created; a sales agent follows up by hand.
        """
        tour_id = resolve_tour_reference(data.tour_id)
        tour_name = data.tour_name or None
        if tour_id:
            tour = await self.db_session.get(TourDB, tour_id)
            if tour is None:
                tour_id = None
            elif not tour_name:
                tour_name = tour.title

        inquiry = InquiryDB(
            full_name=sanitize_string(data.full_name.strip()),
            email=data.email.strip().lower(),
            phone=sanitize_phone(data.phone) or None,
            country=data.country or None,
            travel_month=data.travel_month or None,
            group_size=data.group_size or None,
            budget_range=data.budget_range or None,
            message=data.message or None,
            tour_id=tour_id,
            tour_name=tour_name,
            source=data.source or "website",
            marketing_consent=data.marketing_consent,
            lead_status=LeadStatus.NEW.value,
        )
        self.db_session.add(inquiry)
        await self.db_session.commit()
        await self.db_session.refresh(inquiry)

        logger.info("inquiry_created", inquiry_id=inquiry.id, tour_id=tour_id, source=inquiry.source)

        if self.mailer is not None:
            await send_best_effort(
                self.mailer.send_inquiry_auto_reply(to=inquiry.email, name=inquiry.full_name),
                "inquiry_auto_reply",
            )
            await send_best_effort(
                self.mailer.send_inquiry_admin_notification(inquiry=inquiry),
                "inquiry_admin",
            )

        return {
            "success": True,
            "id": inquiry.id,
            "message": translate(DEFAULT_LOCALE, "inquiry.received"),
        }

    async def list_inquiries(
        self,
        status: str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
        limit: int = DEFAULT_INQUIRY_LIMIT,
        offset: int = 0,
    ) -> dict:
        """List leads newest first with pagination and per-status counts.

        Args:
            status: Lead status filter; ``ALL`` or None disables it
            assigned_to: Only leads assigned to this agent
            search: Case-insensitive match on name, email or tour name
            limit: Page size (1..200)
            offset: Rows to skip

        Returns:
            Dict with ``data``, ``pagination`` and ``stats``
        """
        limit = max(1, min(limit, MAX_INQUIRY_LIMIT))
        offset = max(0, offset)

        conditions = []
        if status and status.upper() != "ALL":
            conditions.append(InquiryDB.lead_status == status.upper())
        if assigned_to:
            conditions.append(InquiryDB.assigned_to == assigned_to)
        if search:
            pattern = f"%{escape_sql_like(search.lower())}%"
            conditions.append(
                or_(
                    func.lower(InquiryDB.full_name).like(pattern, escape="\\"),
                    func.lower(InquiryDB.email).like(pattern, escape="\\"),
                    func.lower(InquiryDB.tour_name).like(pattern, escape="\\"),
                )
            )

        query = select(InquiryDB).where(*conditions)
        total = (
            await self.db_session.execute(select(func.count()).select_from(query.subquery()))
        ).scalar_one()
        result = await self.db_session.execute(
            query.order_by(InquiryDB.created_at.desc()).offset(offset).limit(limit)
        )
        inquiries = [Inquiry.model_validate(row).model_dump(mode="json") for row in result.scalars()]

        by_status = {
            lead_status: count
            for lead_status, count in (
                await self.db_session.execute(
                    select(InquiryDB.lead_status, func.count(InquiryDB.id)).group_by(
                        InquiryDB.lead_status
                    )
                )
            ).all()
        }

        return {
            "success": True,
            "data": inquiries,
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": offset + limit < total,
            },
            "stats": {"total": total, "byStatus": by_status},
        }

    async def update_inquiry(self, inquiry_id: str, update: InquiryUpdate) -> dict:
        """Apply a CRM update.

        Raises:
            NotFoundError: If the inquiry does not exist
        """
        inquiry = await self.db_session.get(InquiryDB, inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")

        changes = update.model_dump(exclude_unset=True)
        if "lead_status" in changes and changes["lead_status"] is not None:
            new_status = LeadStatus(changes.pop("lead_status")).value
            if new_status == LeadStatus.CONTACTED.value and inquiry.first_contact_at is None:
                inquiry.first_contact_at = _utcnow()
            if new_status != inquiry.lead_status:
                inquiry.last_contact_at = _utcnow()
            inquiry.lead_status = new_status
        else:
            changes.pop("lead_status", None)

        for field_name, value in changes.items():
            setattr(inquiry, field_name, value)

        await self.db_session.commit()
        await self.db_session.refresh(inquiry)
        logger.info("inquiry_updated", inquiry_id=inquiry_id, fields=sorted(update.model_fields_set))
        return Inquiry.model_validate(inquiry).model_dump(mode="json")

    async def send_payment_link(self, request: PaymentLinkRequest, sent_by: str | None = None) -> dict:
        """Quote a lead and send Stripe or bank-transfer payment instructions.

        The lead becomes WON with the quote stored; the payment itself is
        applied later by the webhook or a bank-transfer confirmation.

        Raises:
            NotFoundError: If the inquiry does not exist
            ConfigurationError: If Stripe is chosen but not configured
        """
        inquiry = await self.db_session.get(InquiryDB, request.inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry not found")

        amount = to_money(request.amount)
        currency = request.currency.upper()
        tour_label = inquiry.tour_name or translate(DEFAULT_LOCALE, "common.default_tour_name")
        payment_url = None
        payment_ref = None

        if request.payment_method == "stripe":
            checkout = await self.gateway.create_checkout_session(
                amount=amount,
                product_name=translate(DEFAULT_LOCALE, "inquiry.custom_line_item", tour=tour_label),
                description=f"Booking for {inquiry.full_name} | Ref: {inquiry.id[-8:].upper()}",
                customer_email=inquiry.email,
                metadata={
                    "inquiryId": inquiry.id,
                    "type": "inquiry_payment",
                    "generatedBy": sent_by or "",
                },
                reference_param="inquiry_id",
                reference=inquiry.id,
                currency=currency,
            )
            payment_url = checkout.url
            payment_ref = checkout.id
            inquiry.stripe_session_id = checkout.id
            inquiry.stripe_payment_url = checkout.url
            inquiry.payment_method = PaymentProvider.STRIPE.value
        else:
            payment_ref = bank_transfer_reference(inquiry.id)
            inquiry.bank_transfer_ref = payment_ref
            inquiry.payment_method = PaymentProvider.BANK_TRANSFER.value

        inquiry.quoted_price = amount
        inquiry.quote_currency = currency
        inquiry.lead_status = LeadStatus.WON.value
        inquiry.last_contact_at = _utcnow()
        await self.db_session.commit()

        logger.info(
            "payment_link_sent",
            inquiry_id=inquiry.id,
            payment_method=request.payment_method,
            amount=str(amount),
            currency=currency,
        )

        if self.mailer is not None:
            await send_best_effort(
                self.mailer.send_inquiry_payment_link(
                    to=inquiry.email,
                    name=inquiry.full_name,
                    tour=tour_label,
                    amount=amount,
                    currency=currency,
                    payment_url=payment_url,
                    bank_ref=payment_ref if request.payment_method == "bank_transfer" else None,
                ),
                "inquiry_payment_link",
            )

        return {
            "success": True,
            "message": f"Payment link sent to {inquiry.email}",
            "data": {
                "inquiryId": inquiry.id,
                "paymentMethod": request.payment_method,
                "amount": float(amount),
                "currency": currency,
                "paymentUrl": payment_url,
                "paymentRef": payment_ref,
            },
        }
