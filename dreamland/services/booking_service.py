"""Direct bookings, booking requests and their payment entry points."""

from decimal import Decimal

import stripe
import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dreamland.models.booking import (
    Booking,
    BookingDB,
    BookingStatus,
    BookingWithRelations,
    Customer,
    CustomerDB,
    CustomerInput,
    PaymentStatus,
    RequestBookingStatus,
    RequestInfo,
    RequestInfoCreate,
    RequestInfoDB,
)
from dreamland.models.payment import Payment, PaymentDB, PaymentProvider
from dreamland.models.tour import TourDateDB, TourDB
from dreamland.services.email import Mailer, send_best_effort
from dreamland.services.errors import BadRequestError, ConflictError, NotFoundError
from dreamland.services.i18n import DEFAULT_LOCALE, translate
from dreamland.services.id_encoder import decode_id
from dreamland.services.payment_reconciler import PaymentReconciler, ReconciliationResult
from dreamland.services.pricing import (
    advance_for,
    paid_percentage,
    quote_booking,
    to_money,
)
from dreamland.services.security import sanitize_email, sanitize_phone, sanitize_string
from dreamland.services.stripe_gateway import CHECKOUT_EXPIRY_MINUTES, StripeGateway

logger = structlog.get_logger(__name__)


def resolve_tour_reference(value: str | None) -> str | None:
    """Accept either an opaque public tour id or a raw database id."""
    if not value:
        return None
    return decode_id(value) or value


class BookingService:
    """Creates bookings and booking requests and exposes their payment state."""

    def __init__(
        self,
        db_session: AsyncSession,
        mailer: Mailer | None = None,
        gateway: StripeGateway | None = None,
    ):
        self.db_session = db_session
        self.mailer = mailer
        self.gateway = gateway

    # ========== Direct bookings ==========

    async def _upsert_customer(self, name: str, email: str, phone: str) -> CustomerDB:
        result = await self.db_session.execute(select(CustomerDB).where(CustomerDB.email == email))
        customer = result.scalar_one_or_none()
        if customer is None:
            customer = CustomerDB(name=name, email=email, phone=phone or None)
            self.db_session.add(customer)
        else:
            customer.name = name or customer.name
            customer.phone = phone or customer.phone
        await self.db_session.flush()
        return customer

    async def create_booking(
        self,
        tour_id: str | None,
        customer: CustomerInput,
        quantity: int = 1,
        tour_date_id: str | None = None,
    ) -> dict:
        """Create a PENDING booking priced at ``price_from x quantity``.

        Raises:
            BadRequestError: If the email or tour is missing, or quantity < 1
            NotFoundError: If the tour (or date) does not exist
        """
        name = sanitize_string(customer.name or "")[:100]
        email = sanitize_email(customer.email or "")
        phone = sanitize_phone(customer.phone or "")

        tour_id = resolve_tour_reference(tour_id)
        if not email or not tour_id:
            raise BadRequestError("Email and tour are required")
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        tour = await self.db_session.get(TourDB, tour_id)
        if tour is None:
            raise NotFoundError("Tour not found")
        if tour_date_id is not None:
            tour_date = await self.db_session.get(TourDateDB, tour_date_id)
            if tour_date is None or tour_date.tour_id != tour_id:
                raise NotFoundError("Tour date not found")

        customer_row = await self._upsert_customer(name, email, phone)
        booking = BookingDB(
            tour_id=tour_id,
            tour_date_id=tour_date_id,
            customer_id=customer_row.id,
            quantity=quantity,
            total_price=to_money(tour.price_from) * quantity,
            status=BookingStatus.PENDING.value,
        )
        self.db_session.add(booking)
        await self.db_session.commit()
        await self.db_session.refresh(booking)

        logger.info("booking_created", booking_id=booking.id, tour_id=tour_id, quantity=quantity)
        return Booking.model_validate(booking).model_dump(mode="json")

    # ========== Booking requests ==========

    async def _resolve_tour(self, tour_id: str | None, fallback_name: str | None, fallback_price):
        name = fallback_name or translate(DEFAULT_LOCALE, "common.default_tour_name")
        price = fallback_price or 0
        tour_id = resolve_tour_reference(tour_id)
        if tour_id:
            tour = await self.db_session.get(TourDB, tour_id)
            if tour is not None:
                return tour.id, tour.title, tour.price_from
            tour_id = None
        return tour_id, name, price

    async def create_request_info(self, data: RequestInfoCreate) -> dict:
        """Record a priced booking request and send payment instructions.

        Children pay 70% of the adult price and 30% of the total is due as an
        advance. When Stripe is configured a Checkout Session for the advance
        is attached; a Stripe failure leaves the request without a payment
        link rather than failing it.
        """
        tour_id, tour_name, adult_price = await self._resolve_tour(
            data.tour_id, data.tour_name, data.tour_price
        )
        quote = quote_booking(adult_price, data.adults, data.children)

        record = RequestInfoDB(
            full_name=sanitize_string(data.full_name.strip()),
            email=sanitize_email(data.email),
            phone=sanitize_phone(data.phone) or None,
            tour_id=tour_id,
            tour_name=tour_name,
            tour_price=quote.total,
            advance_required=quote.advance,
            amount_paid=Decimal("0.00"),
            payment_status=PaymentStatus.PENDING.value,
            booking_status=RequestBookingStatus.UNCONFIRMED.value,
            adults=data.adults,
            children=data.children,
            preferred_start_date=data.preferred_start_date,
            message=data.message or None,
            marketing_consent=data.marketing_consent,
        )
        self.db_session.add(record)
        await self.db_session.flush()

        payment_url = None
        if self.gateway is not None and self.gateway.configured and quote.advance > 0:
            try:
                checkout = await self.gateway.create_checkout_session(
                    amount=quote.advance,
                    product_name=translate(DEFAULT_LOCALE, "booking.advance_line_item", tour=tour_name),
                    description=f"Booking reference: {record.id}",
                    customer_email=record.email,
                    metadata={"requestId": record.id, "type": "advance_payment"},
                    reference_param="request_id",
                    reference=record.id,
                )
            except stripe.StripeError as exc:
                logger.error("stripe_checkout_failed", request_id=record.id, error=str(exc))
            else:
                record.stripe_session_id = checkout.id
                payment_url = checkout.url

        await self.db_session.commit()
        await self.db_session.refresh(record)
        logger.info(
            "request_info_created",
            request_id=record.id,
            tour_id=tour_id,
            total=str(quote.total),
            stripe_link=payment_url is not None,
        )

        if self.mailer is not None:
            await send_best_effort(
                self.mailer.send_payment_info(
                    to=record.email,
                    name=record.full_name,
                    tour=tour_name,
                    total=quote.total,
                    advance=quote.advance,
                    reference=record.id,
                    payment_url=payment_url,
                ),
                "payment_info",
            )
            await send_best_effort(
                self.mailer.send_internal_notification(request_info=record),
                "internal_notification",
            )

        return {
            "success": True,
            "id": record.id,
            "message": translate(DEFAULT_LOCALE, "booking.received"),
            "payment": {
                "totalPrice": float(quote.total),
                "advanceRequired": float(quote.advance),
                "stripePaymentUrl": payment_url,
            },
        }

    async def create_stripe_payment(
        self,
        *,
        full_name: str,
        email: str,
        total_price: float,
        phone: str | None = None,
        tour_id: str | None = None,
        tour_name: str | None = None,
        adults: int = 1,
        children: int = 0,
        preferred_start_date=None,
        message: str | None = None,
        pay_advance_only: bool = True,
    ) -> dict:
        """Create a booking request plus a 30-minute Checkout Session.

        Raises:
            ConfigurationError: If Stripe is not configured
            stripe.StripeError: If Stripe rejects the session
        """
        total = to_money(total_price)
        if total <= 0:
            raise BadRequestError("Total price must be greater than 0")
        advance = advance_for(total)
        amount_to_pay = advance if pay_advance_only else total

        tour_id = resolve_tour_reference(tour_id)
        if tour_id and await self.db_session.get(TourDB, tour_id) is None:
            tour_id = None
        tour_label = tour_name or translate(DEFAULT_LOCALE, "common.default_tour_name")

        record = RequestInfoDB(
            full_name=sanitize_string(full_name.strip()),
            email=sanitize_email(email),
            phone=sanitize_phone(phone) or None,
            tour_id=tour_id,
            tour_name=tour_label,
            tour_price=total,
            advance_required=advance,
            amount_paid=Decimal("0.00"),
            payment_status=PaymentStatus.PENDING.value,
            booking_status=RequestBookingStatus.UNCONFIRMED.value,
            payment_method=PaymentProvider.STRIPE.value,
            adults=adults,
            children=children,
            preferred_start_date=preferred_start_date,
            message=message or None,
        )
        self.db_session.add(record)
        await self.db_session.flush()

        line_item_key = "booking.advance_line_item" if pay_advance_only else "booking.full_line_item"
        checkout = await self.gateway.create_checkout_session(
            amount=amount_to_pay,
            product_name=translate(DEFAULT_LOCALE, line_item_key, tour=tour_label),
            description=f"{adults} adults" + (f", {children} children" if children else ""),
            customer_email=record.email,
            metadata={
                "requestId": record.id,
                "paymentType": "advance" if pay_advance_only else "full",
            },
            reference_param="request_id",
            reference=record.id,
            expires_in_minutes=CHECKOUT_EXPIRY_MINUTES,
        )
        record.stripe_session_id = checkout.id
        await self.db_session.commit()
        logger.info("stripe_payment_created", request_id=record.id, session_id=checkout.id)

        if self.mailer is not None and checkout.url:
            await send_best_effort(
                self.mailer.send_payment_link(
                    to=record.email,
                    name=record.full_name,
                    tour=tour_label,
                    amount=amount_to_pay,
                    currency="USD",
                    url=checkout.url,
                    reference=record.id,
                ),
                "payment_link",
            )

        return {
            "success": True,
            "sessionId": checkout.id,
            "paymentUrl": checkout.url,
            "requestId": record.id,
            "amountToPay": float(amount_to_pay),
            "currency": "USD",
        }

    async def create_payment_intent(self, amount: int, currency: str = "usd") -> dict:
        """Create a PaymentIntent for ``amount`` minor units."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise BadRequestError("Amount must be a positive integer in minor units")
        intent = await self.gateway.create_payment_intent(amount, currency)
        return {"clientSecret": intent["client_secret"], "status": intent["status"]}

    async def payment_status(self, request_id: str | None = None, session_id: str | None = None) -> dict:
        """Payment progress of a booking request, by id or Checkout Session id."""
        if not request_id and not session_id:
            raise BadRequestError("Request ID or Session ID is required")

        query = select(RequestInfoDB)
        if request_id:
            query = query.where(RequestInfoDB.id == request_id)
        else:
            query = query.where(RequestInfoDB.stripe_session_id == session_id)
        record = (await self.db_session.execute(query)).scalars().first()
        if record is None:
            raise NotFoundError("Request not found")

        tour_price = to_money(record.tour_price)
        amount_paid = to_money(record.amount_paid)
        return {
            "success": True,
            "data": {
                "id": record.id,
                "fullName": record.full_name,
                "email": record.email,
                "tourName": record.tour_name,
                "tourPrice": float(tour_price),
                "advanceRequired": float(to_money(record.advance_required)),
                "amountPaid": float(amount_paid),
                "paymentStatus": record.payment_status,
                "bookingStatus": record.booking_status,
                "paymentMethod": record.payment_method,
                "createdAt": record.created_at.isoformat() if record.created_at else None,
                "remainingAmount": float(max(tour_price - amount_paid, Decimal("0.00"))),
                "paidPercentage": paid_percentage(amount_paid, tour_price),
                "isConfirmed": record.booking_status == RequestBookingStatus.CONFIRMED.value,
            },
        }

    # ========== Admin ==========

    async def list_bookings(self, status: str | None = None, limit: int = 100, offset: int = 0) -> list[dict]:
        query = (
            select(BookingDB)
            .options(selectinload(BookingDB.customer), selectinload(BookingDB.tour))
            .order_by(BookingDB.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        if status:
            query = query.where(BookingDB.status == status)
        result = await self.db_session.execute(query)

        bookings = []
        for booking in result.scalars():
            item = BookingWithRelations.model_validate(booking)
            item.customer = Customer.model_validate(booking.customer) if booking.customer else None
            item.tour_title = booking.tour.title if booking.tour else None
            bookings.append(item.model_dump(mode="json"))
        return bookings

    async def set_booking_status(self, booking_id: str, status: BookingStatus) -> dict:
        """Confirm or cancel a direct booking.

        Raises:
            NotFoundError: If the booking does not exist
            ConflictError: If the booking is already cancelled or completed
        """
        booking = await self.db_session.get(BookingDB, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.status in (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value):
            raise ConflictError(f"Booking is already {booking.status.lower()}")

        booking.status = status.value
        await self.db_session.commit()
        await self.db_session.refresh(booking)
        logger.info("booking_status_changed", booking_id=booking_id, status=status.value)
        return Booking.model_validate(booking).model_dump(mode="json")

    async def list_payments(self, limit: int = 100, offset: int = 0) -> list[dict]:
        result = await self.db_session.execute(
            select(PaymentDB).order_by(PaymentDB.created_at.desc()).offset(offset).limit(limit)
        )
        return [Payment.model_validate(payment).model_dump(mode="json") for payment in result.scalars()]

    async def list_request_infos(self, limit: int = 100, offset: int = 0) -> list[dict]:
        result = await self.db_session.execute(
            select(RequestInfoDB).order_by(RequestInfoDB.created_at.desc()).offset(offset).limit(limit)
        )
        return [RequestInfo.model_validate(row).model_dump(mode="json") for row in result.scalars()]

    async def list_bank_transfer_candidates(self) -> list[dict]:
        """Requests paid (or payable) by bank transfer: explicit method, or no provider at all."""
        result = await self.db_session.execute(
            select(RequestInfoDB)
            .where(
                or_(
                    RequestInfoDB.payment_method.in_(["bank_transfer", "bank"]),
                    and_(
                        RequestInfoDB.payment_method.is_(None),
                        RequestInfoDB.stripe_session_id.is_(None),
                    ),
                )
            )
            .order_by(RequestInfoDB.created_at.desc())
        )
        return [RequestInfo.model_validate(row).model_dump(mode="json") for row in result.scalars()]

    async def confirm_bank_transfer(
        self,
        request_id: str,
        amount: float | None = None,
        reference: str | None = None,
        note: str | None = None,
        confirmed_by: str | None = None,
    ) -> ReconciliationResult:
        """Record a received bank transfer and confirm the booking.

        The amount defaults to whatever is still outstanding on the advance.
        """
        record = await self.db_session.get(RequestInfoDB, request_id)
        if record is None:
            raise NotFoundError("Booking request not found")

        if amount is None:
            outstanding = to_money(record.advance_required) - to_money(record.amount_paid)
            if outstanding <= 0:
                raise BadRequestError("Nothing outstanding on the advance; specify an amount")
            amount = outstanding
        elif to_money(amount) <= 0:
            raise BadRequestError("Amount must be greater than 0")

        transfer_ref = reference or record.bank_transfer_ref
        reconciler = PaymentReconciler(self.db_session, self.mailer, self.gateway)
        result = await reconciler.apply_to_request(
            request_id,
            amount,
            PaymentProvider.BANK_TRANSFER,
            transfer_ref,
            force_confirm=True,
            note=note,
        )
        if result.duplicate:
            raise ConflictError("This bank transfer reference was already recorded")
        await self.db_session.commit()
        await reconciler.send_notifications()
        if self.mailer is not None:
            await send_best_effort(
                self.mailer.send_bank_transfer_admin_notification(
                    request_info=record,
                    amount=result.amount,
                    paid=result.amount_paid,
                    transfer_ref=transfer_ref,
                    confirmed_by=confirmed_by,
                ),
                "bank_transfer_admin",
            )
        return result

    async def confirm_manual_payment(
        self,
        request_id: str,
        amount: float,
        payment_method: str | None = None,
        provider_reference: str | None = None,
    ) -> ReconciliationResult:
        """Record a payment an admin received outside Stripe."""
        if to_money(amount) <= 0:
            raise BadRequestError("Valid payment amount is required")
        provider = (
            PaymentProvider.BANK_TRANSFER
            if payment_method in ("bank", "bank_transfer")
            else PaymentProvider.MANUAL
        )

        reconciler = PaymentReconciler(self.db_session, self.mailer, self.gateway)
        result = await reconciler.apply_to_request(request_id, amount, provider, provider_reference)
        if result is None:
            raise NotFoundError("Request not found")
        if result.duplicate:
            raise ConflictError("This payment reference was already recorded")
        await self.db_session.commit()
        await reconciler.send_notifications()
        return result
