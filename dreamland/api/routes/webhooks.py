"""Stripe webhook endpoint.

Deliveries are verified against ``STRIPE_WEBHOOK_SECRET`` and applied
through :class:`PaymentReconciler`, which makes redelivery safe: each event
id is claimed in a ledger in the same transaction as its effects.
"""

import structlog
import stripe
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from dreamland.api.dependencies import get_mailer, get_stripe_gateway
from dreamland.api.middleware.error_handler import ErrorResponse
from dreamland.services.database import get_db_session
from dreamland.services.email import Mailer
from dreamland.services.payment_reconciler import PaymentReconciler
from dreamland.services.stripe_gateway import StripeGateway

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["webhooks"])


@router.post("/webhook", summary="Stripe webhook receiver")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """Verify and apply one Stripe event.

    Returns:
        200 with ``{"received": true, ...}`` for applied, ignored and
        duplicate events; 400 for a bad signature or payload; 500 when
        processing fails so that Stripe retries

    Raises:
        ConfigurationError: If no webhook secret is configured (500)
    """
    payload = await request.body()

    if not gateway.webhook_secret:
        logger.error("stripe_webhook_secret_missing")
        return ErrorResponse.create(
            error_type="configuration_error",
            message="Webhook secret not configured",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    if not stripe_signature:
        return ErrorResponse.create(
            error_type="bad_request",
            message="Missing Stripe-Signature header",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        event = gateway.verify_webhook(payload, stripe_signature)
    except stripe.SignatureVerificationError:
        logger.warning("stripe_webhook_signature_invalid")
        return ErrorResponse.create(
            error_type="bad_request",
            message="Invalid signature",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except ValueError:
        logger.warning("stripe_webhook_payload_invalid")
        return ErrorResponse.create(
            error_type="bad_request",
            message="Invalid payload",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    reconciler = PaymentReconciler(db, mailer, gateway)
    try:
        result = await reconciler.process_event(event)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.error(
            "stripe_webhook_processing_failed",
            event_id=event.get("id"),
            event_type=event.get("type"),
            error=str(exc),
            exc_info=True,
        )
        return ErrorResponse.create(
            error_type="webhook_processing_failed",
            message="Webhook processing failed",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info(
        "stripe_webhook_processed",
        event_id=result.event_id,
        event_type=result.event_type,
        outcome=result.outcome.value,
        duplicate=result.duplicate,
    )
    await reconciler.send_notifications()
    return JSONResponse(status_code=status.HTTP_200_OK, content=result.to_dict())


@router.get("/webhook", summary="Webhook reachability probe")
async def stripe_webhook_probe() -> dict:
    return {"ok": True, "message": "Stripe webhook endpoint is reachable"}
