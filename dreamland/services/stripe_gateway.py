"""Thin async wrapper around the Stripe SDK."""

import json
import os
import time
from dataclasses import dataclass
from decimal import Decimal

import stripe
import structlog
from starlette.concurrency import run_in_threadpool

from dreamland.services.errors import ConfigurationError
from dreamland.services.pricing import to_minor_units

logger = structlog.get_logger(__name__)

CHECKOUT_EXPIRY_MINUTES = 30


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str | None


class StripeGateway:
    """Creates Checkout Sessions and PaymentIntents and verifies webhooks.

    The SDK is synchronous, so every API call runs in the threadpool. The API
    key is passed per call rather than set globally on the ``stripe`` module.
    """

    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        base_url: str | None = None,
    ):
        """Initialize Stripe gateway.

        Args:
            api_key: Secret key (defaults to STRIPE_SECRET_KEY env var)
            webhook_secret: Endpoint signing secret (defaults to STRIPE_WEBHOOK_SECRET)
            base_url: Public site URL for redirects (defaults to PUBLIC_BASE_URL)
        """
        self.api_key = api_key if api_key is not None else os.getenv("STRIPE_SECRET_KEY", "")
        self.webhook_secret = (
            webhook_secret
            if webhook_secret is not None
            else os.getenv("STRIPE_WEBHOOK_SECRET", "")
        )
        self.base_url = (
            base_url or os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")
        ).rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("Stripe is not configured")

    def success_url(self, reference_param: str, reference: str) -> str:
        return (
            f"{self.base_url}/payment/success"
            f"?session_id={{CHECKOUT_SESSION_ID}}&{reference_param}={reference}"
        )

    def cancel_url(self, reference_param: str, reference: str) -> str:
        return f"{self.base_url}/payment/cancel?{reference_param}={reference}"

    async def create_checkout_session(
        self,
        *,
        amount: Decimal,
        product_name: str,
        description: str,
        customer_email: str,
        metadata: dict[str, str],
        reference_param: str,
        reference: str,
        currency: str = "usd",
        expires_in_minutes: int | None = None,
    ) -> CheckoutSession:
        """Create a hosted Checkout Session for a one-off card payment.

        Args:
            amount: Amount to charge in major units
            product_name: Line item name shown on the Stripe page
            description: Line item description
            customer_email: Pre-filled email
            metadata: Values echoed back in webhooks (``requestId`` / ``inquiryId``)
            reference_param: Query parameter name for redirect URLs
            reference: Record ID placed in redirect URLs
            currency: ISO currency code
            expires_in_minutes: Session lifetime; Stripe's default when None

        Raises:
            ConfigurationError: If no API key is configured
            stripe.StripeError: If Stripe rejects the request
        """
        self._require_key()

        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "customer_email": customer_email,
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {"name": product_name, "description": description},
                        "unit_amount": to_minor_units(amount),
                    },
                    "quantity": 1,
                }
            ],
            "metadata": metadata,
            "success_url": self.success_url(reference_param, reference),
            "cancel_url": self.cancel_url(reference_param, reference),
        }
        if expires_in_minutes:
            params["expires_at"] = int(time.time()) + expires_in_minutes * 60

        session = await run_in_threadpool(
            stripe.checkout.Session.create, api_key=self.api_key, **params
        )
        logger.info("stripe_checkout_session_created", session_id=session.id, reference=reference)
        return CheckoutSession(id=session.id, url=session.url)

    async def create_payment_intent(
        self, amount_minor: int, currency: str = "usd", metadata: dict[str, str] | None = None
    ) -> dict:
        """Create a PaymentIntent for client-side confirmation.

        Returns:
            Dict with ``id``, ``client_secret`` and ``status``
        """
        self._require_key()

        intent = await run_in_threadpool(
            stripe.PaymentIntent.create,
            api_key=self.api_key,
            amount=amount_minor,
            currency=currency.lower(),
            metadata=metadata or {},
            automatic_payment_methods={"enabled": True},
        )
        return {"id": intent.id, "client_secret": intent.client_secret, "status": intent.status}

    def verify_webhook(self, payload: bytes, signature: str) -> dict:
        """Verify a webhook delivery and return the event as a plain dict.

        Raises:
            ConfigurationError: If no webhook secret is configured
            stripe.SignatureVerificationError: If the signature does not match
            ValueError: If the payload is not valid JSON
        """
        if not self.webhook_secret:
            raise ConfigurationError("Stripe webhook secret is not configured")

        stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        return json.loads(payload)
