"""Applies collected payments to booking requests and inquiries.

Stripe webhooks, the admin bank-transfer confirmation and the admin manual
payment confirmation all go through :class:`PaymentReconciler`, so the
accounting rules live in one place:

* the paid amount is added to ``amount_paid``;
* ``payment_status`` is PAID once the amount due is covered, else PARTIAL;
* a booking request becomes CONFIRMED once the 30% advance is covered (or
  when an admin forces it);
* an inquiry paid against its quote becomes a WON lead;
* each payment is written to the ``payments`` ledger, whose unique
  (provider, provider_reference) pair stops one Stripe session from being
  counted twice.

Webhook idempotency is handled by :meth:`PaymentReconciler.process_event`,
which claims the Stripe event id in ``stripe_webhook_events`` inside the
same transaction as the state change.
"""

from dataclasses import dataclass, field
from decimal import Decimal

import stripe
import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dreamland.models.booking import RequestBookingStatus, RequestInfoDB
from dreamland.models.inquiry import InquiryDB, LeadStatus
from dreamland.models.payment import (
    PaymentDB,
    PaymentProvider,
    PaymentRecordStatus,
    StripeWebhookEventDB,
    WebhookOutcome,
)
from dreamland.services.email import Mailer, send_best_effort
from dreamland.services.i18n import DEFAULT_LOCALE, translate
from dreamland.services.pricing import from_minor_units, payment_status_for, to_money
from dreamland.services.stripe_gateway import StripeGateway

logger = structlog.get_logger(__name__)


@dataclass
class ReconciliationResult:
    """Outcome of applying one payment."""

    target: str
    record_id: str
    amount: Decimal
    amount_paid: Decimal
    payment_status: str
    confirmed: bool
    newly_confirmed: bool = False
    duplicate: bool = False
    booking_status: str | None = None
    lead_status: str | None = None

    def to_dict(self) -> dict:
        data = {
            "target": self.target,
            "recordId": self.record_id,
            "amount": float(self.amount),
            "totalAmountPaid": float(self.amount_paid),
            "paymentStatus": self.payment_status,
            "isConfirmed": self.confirmed,
            "duplicate": self.duplicate,
        }
        if self.booking_status is not None:
            data["bookingStatus"] = self.booking_status
        if self.lead_status is not None:
            data["leadStatus"] = self.lead_status
        return data


@dataclass
class EventResult:
    """Outcome of processing one webhook event."""

    event_id: str
    event_type: str
    outcome: WebhookOutcome
    duplicate: bool = False
    payment: ReconciliationResult | None = None
    pending_notifications: list = field(default_factory=list)

    def to_dict(self) -> dict:
        if self.duplicate:
            return {"received": True, "duplicate": True}
        data = {"received": True, "outcome": self.outcome.value}
        if self.payment is not None:
            data["payment"] = self.payment.to_dict()
        return data


class PaymentReconciler:
    """Payment accounting on top of a single database session.

    The caller owns the transaction: commit after a successful call, then
    call :meth:`send_notifications` so customers are only emailed about
    state that was actually persisted.
    """

    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer | None = None,
        gateway: StripeGateway | None = None,
    ):
        """Initialize reconciler.

        Args:
            session: Database session (transaction owned by the caller)
            mailer: Mailer for confirmation and reminder emails
            gateway: Stripe gateway, used to create top-up links in reminders
        """
        self.session = session
        self.mailer = mailer
        self.gateway = gateway
        self._notifications: list[tuple[str, object, ReconciliationResult]] = []

    async def _payment_exists(self, provider: PaymentProvider, reference: str | None) -> bool:
        if not reference:
            return False
        result = await self.session.execute(
            select(PaymentDB.id).where(
                PaymentDB.provider == provider.value,
                PaymentDB.provider_reference == reference,
            )
        )
        return result.scalar_one_or_none() is not None

    async def apply_to_request(
        self,
        request_id: str,
        amount,
        provider: PaymentProvider,
        provider_reference: str | None = None,
        *,
        force_confirm: bool = False,
        stripe_session_id: str | None = None,
        note: str | None = None,
    ) -> ReconciliationResult | None:
        """Record a payment against a booking request.

        Returns:
            The result, or None if the request does not exist
        """
        record = await self.session.get(RequestInfoDB, request_id, with_for_update=True)
        if record is None:
            return None

        amount = to_money(amount)
        if await self._payment_exists(provider, provider_reference):
            logger.info(
                "payment_already_recorded",
                request_id=request_id,
                provider=provider.value,
                reference=provider_reference,
            )
            return ReconciliationResult(
                target="request",
                record_id=record.id,
                amount=amount,
                amount_paid=to_money(record.amount_paid),
                payment_status=record.payment_status,
                confirmed=record.booking_status == RequestBookingStatus.CONFIRMED.value,
                duplicate=True,
                booking_status=record.booking_status,
            )

        was_confirmed = record.booking_status == RequestBookingStatus.CONFIRMED.value
        amount_paid = to_money(record.amount_paid) + amount

        record.amount_paid = amount_paid
        record.payment_status = payment_status_for(amount_paid, record.tour_price).value
        record.payment_method = provider.value
        if stripe_session_id:
            record.stripe_session_id = stripe_session_id

        covers_advance = amount_paid >= to_money(record.advance_required)
        if force_confirm or (
            covers_advance and record.booking_status != RequestBookingStatus.CANCELLED.value
        ):
            record.booking_status = RequestBookingStatus.CONFIRMED.value
        confirmed = record.booking_status == RequestBookingStatus.CONFIRMED.value

        self.session.add(
            PaymentDB(
                provider=provider.value,
                provider_reference=provider_reference,
                amount=amount,
                currency="USD",
                status=PaymentRecordStatus.SUCCEEDED.value,
                request_info_id=record.id,
                note=note,
            )
        )
        await self.session.flush()

        result = ReconciliationResult(
            target="request",
            record_id=record.id,
            amount=amount,
            amount_paid=amount_paid,
            payment_status=record.payment_status,
            confirmed=confirmed,
            newly_confirmed=confirmed and not was_confirmed,
            booking_status=record.booking_status,
        )
        self._notifications.append(("request", record, result))

        logger.info(
            "request_payment_applied",
            request_id=record.id,
            provider=provider.value,
            amount=str(amount),
            amount_paid=str(amount_paid),
            payment_status=record.payment_status,
            booking_status=record.booking_status,
        )
        return result

    async def apply_to_inquiry(
        self,
        inquiry_id: str,
        amount,
        provider: PaymentProvider,
        provider_reference: str | None = None,
        *,
        stripe_session_id: str | None = None,
        note: str | None = None,
    ) -> ReconciliationResult | None:
        """Record a payment against an inquiry's quote.

        Returns:
            The result, or None if the inquiry does not exist
        """
        record = await self.session.get(InquiryDB, inquiry_id, with_for_update=True)
        if record is None:
            return None

        amount = to_money(amount)
        if await self._payment_exists(provider, provider_reference):
            logger.info(
                "payment_already_recorded",
                inquiry_id=inquiry_id,
                provider=provider.value,
                reference=provider_reference,
            )
            return ReconciliationResult(
                target="inquiry",
                record_id=record.id,
                amount=amount,
                amount_paid=to_money(record.amount_paid),
                payment_status=record.payment_status,
                confirmed=record.lead_status == LeadStatus.WON.value,
                duplicate=True,
                lead_status=record.lead_status,
            )

        amount_paid = to_money(record.amount_paid) + amount
        amount_due = record.quoted_price if record.quoted_price is not None else amount_paid

        was_won = record.lead_status == LeadStatus.WON.value
        record.amount_paid = amount_paid
        record.payment_status = payment_status_for(amount_paid, amount_due).value
        record.payment_method = provider.value
        record.lead_status = LeadStatus.WON.value
        if stripe_session_id:
            record.stripe_session_id = stripe_session_id

        self.session.add(
            PaymentDB(
                provider=provider.value,
                provider_reference=provider_reference,
                amount=amount,
                currency=record.quote_currency or "USD",
                status=PaymentRecordStatus.SUCCEEDED.value,
                inquiry_id=record.id,
                note=note,
            )
        )
        await self.session.flush()

        result = ReconciliationResult(
            target="inquiry",
            record_id=record.id,
            amount=amount,
            amount_paid=amount_paid,
            payment_status=record.payment_status,
            confirmed=True,
            newly_confirmed=not was_won,
            lead_status=record.lead_status,
        )
        self._notifications.append(("inquiry", record, result))

        logger.info(
            "inquiry_payment_applied",
            inquiry_id=record.id,
            provider=provider.value,
            amount=str(amount),
            amount_paid=str(amount_paid),
            payment_status=record.payment_status,
        )
        return result

    # ========== Webhooks ==========

    async def process_event(self, event: dict) -> EventResult:
        """Process a verified Stripe event exactly once.

        The event id is claimed in the ledger before any state changes, in
        the same transaction. A second delivery, or a concurrent one that
        loses the insert race, is reported as a duplicate and changes
        nothing.

        Raises:
            Exception: Anything raised while applying the event; the caller
                must roll back so the event stays unclaimed and Stripe retries
        """
        event_id = event["id"]
        event_type = event.get("type", "")

        if await self.session.get(StripeWebhookEventDB, event_id) is not None:
            logger.info("stripe_event_duplicate", event_id=event_id, event_type=event_type)
            return EventResult(event_id, event_type, WebhookOutcome.IGNORED, duplicate=True)

        ledger_entry = StripeWebhookEventDB(
            event_id=event_id, event_type=event_type, outcome=WebhookOutcome.LOGGED.value
        )
        self.session.add(ledger_entry)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.info("stripe_event_claimed_concurrently", event_id=event_id)
            return EventResult(event_id, event_type, WebhookOutcome.IGNORED, duplicate=True)

        data_object = (event.get("data") or {}).get("object") or {}
        outcome = WebhookOutcome.LOGGED
        payment = None

        if event_type == "checkout.session.completed":
            outcome, payment = await self._checkout_completed(data_object)
        elif event_type == "checkout.session.expired":
            logger.info("stripe_checkout_expired", session_id=data_object.get("id"))
        elif event_type == "payment_intent.succeeded":
            logger.info(
                "stripe_payment_intent_succeeded",
                payment_intent_id=data_object.get("id"),
                amount=data_object.get("amount"),
            )
        elif event_type == "payment_intent.payment_failed":
            error = data_object.get("last_payment_error") or {}
            logger.warning(
                "stripe_payment_intent_failed",
                payment_intent_id=data_object.get("id"),
                error=error.get("message"),
            )
        else:
            logger.info("stripe_event_unhandled", event_id=event_id, event_type=event_type)

        ledger_entry.outcome = outcome.value
        return EventResult(event_id, event_type, outcome, payment=payment)

    async def _checkout_completed(
        self, checkout: dict
    ) -> tuple[WebhookOutcome, ReconciliationResult | None]:
        session_id = checkout.get("id")
        metadata = checkout.get("metadata") or {}
        request_id = metadata.get("requestId")
        inquiry_id = metadata.get("inquiryId")

        if checkout.get("payment_status") == "unpaid":
            logger.info("stripe_checkout_unpaid", session_id=session_id)
            return WebhookOutcome.LOGGED, None

        amount = from_minor_units(checkout.get("amount_total"))

        if request_id:
            result = await self.apply_to_request(
                request_id,
                amount,
                PaymentProvider.STRIPE,
                session_id,
                stripe_session_id=session_id,
            )
        elif inquiry_id:
            result = await self.apply_to_inquiry(
                inquiry_id,
                amount,
                PaymentProvider.STRIPE,
                session_id,
                stripe_session_id=session_id,
            )
        else:
            logger.warning("stripe_checkout_without_reference", session_id=session_id)
            return WebhookOutcome.IGNORED, None

        if result is None:
            logger.warning(
                "stripe_checkout_unknown_record",
                session_id=session_id,
                request_id=request_id,
                inquiry_id=inquiry_id,
            )
            return WebhookOutcome.IGNORED, None
        if result.duplicate:
            return WebhookOutcome.IGNORED, result
        return WebhookOutcome.APPLIED, result

    # ========== Notifications ==========

    async def send_notifications(self) -> None:
        """Email customers about payments applied in this unit of work.

        Call only after the transaction has committed. Failures are logged.
        """
        if self.mailer is None:
            self._notifications.clear()
            return

        pending, self._notifications = self._notifications, []
        for target, record, result in pending:
            if target == "request":
                await self._notify_request(record, result)
            else:
                await self._notify_inquiry(record, result)

    async def _notify_request(self, record: RequestInfoDB, result: ReconciliationResult) -> None:
        tour = record.tour_name or translate(DEFAULT_LOCALE, "common.default_tour_name")
        if result.newly_confirmed:
            await send_best_effort(
                self.mailer.send_booking_confirmation(
                    to=record.email,
                    name=record.full_name,
                    tour=tour,
                    total=record.tour_price,
                    paid=result.amount_paid,
                    reference=record.id,
                ),
                "booking_confirmation",
            )
        elif result.confirmed:
            await send_best_effort(
                self.mailer.send_payment_confirmation(
                    to=record.email,
                    name=record.full_name,
                    tour=tour,
                    amount=result.amount,
                    paid=result.amount_paid,
                    total=record.tour_price,
                    reference=record.id,
                ),
                "payment_confirmation",
            )
        else:
            outstanding = to_money(record.advance_required) - result.amount_paid
            payment_url = await self._top_up_link(record, outstanding, tour)
            await send_best_effort(
                self.mailer.send_payment_reminder(
                    to=record.email,
                    name=record.full_name,
                    tour=tour,
                    paid=result.amount_paid,
                    advance=record.advance_required,
                    reference=record.id,
                    payment_url=payment_url,
                ),
                "payment_reminder",
            )

    async def _notify_inquiry(self, record: InquiryDB, result: ReconciliationResult) -> None:
        await send_best_effort(
            self.mailer.send_payment_confirmation(
                to=record.email,
                name=record.full_name,
                tour=record.tour_name or translate(DEFAULT_LOCALE, "common.default_tour_name"),
                amount=result.amount,
                paid=result.amount_paid,
                total=record.quoted_price if record.quoted_price is not None else result.amount_paid,
                currency=record.quote_currency or "USD",
                reference=record.id,
            ),
            "payment_confirmation",
        )

    async def _top_up_link(self, record: RequestInfoDB, outstanding: Decimal, tour: str) -> str | None:
        if self.gateway is None or not self.gateway.configured or outstanding <= 0:
            return None
        try:
            checkout = await self.gateway.create_checkout_session(
                amount=outstanding,
                product_name=translate(DEFAULT_LOCALE, "booking.additional_line_item", tour=tour),
                description=f"Booking reference: {record.id}",
                customer_email=record.email,
                metadata={"requestId": record.id, "type": "additional_payment"},
                reference_param="request_id",
                reference=record.id,
            )
        except stripe.StripeError as exc:
            logger.error("stripe_top_up_link_failed", request_id=record.id, error=str(exc))
            return None
        return checkout.url
