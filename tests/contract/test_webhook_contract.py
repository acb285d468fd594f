"""Contract tests for the Stripe webhook endpoint."""

import pytest

from dreamland.api.dependencies import get_stripe_gateway
from dreamland.services.payment_reconciler import PaymentReconciler


@pytest.mark.contract
class TestWebhookContract:
    """Contract tests for webhook verification and responses."""

    @pytest.mark.asyncio
    async def test_reachability_check(self, client) -> None:
        """Test the GET reachability probe."""
        response = await client.get("/api/stripe/webhook")

        assert response.json()["ok"] is True

    @pytest.mark.asyncio
    async def test_missing_signature(self, client) -> None:
        """Test that unsigned deliveries are a 400."""
        response = await client.post("/api/stripe/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing Stripe-Signature header"

    @pytest.mark.asyncio
    async def test_bad_signature(self, post_webhook, stripe_event) -> None:
        """Test that a delivery signed with another secret is a 400."""
        response = await post_webhook(stripe_event("evt_1", "cs_1", 100, {}), secret="whsec_other")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid signature"

    @pytest.mark.asyncio
    async def test_bad_payload(self, client, stripe_signature) -> None:
        """Test that a correctly signed but unparsable body is a 400."""
        payload = "not json"

        response = await client.post(
            "/api/stripe/webhook",
            content=payload,
            headers={"Stripe-Signature": stripe_signature(payload)},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_secret(self, client, app_overrides, gateway) -> None:
        """Test that an unconfigured secret is a server error, not a silent accept."""
        app_overrides.dependency_overrides[get_stripe_gateway] = lambda: type(gateway)(webhook_secret="")

        response = await client.post(
            "/api/stripe/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=abc"}
        )

        assert response.status_code == 500
        assert response.json()["error"]["type"] == "configuration_error"

    @pytest.mark.asyncio
    async def test_unhandled_event_acknowledged(self, post_webhook) -> None:
        """Test that unknown event types are acknowledged and logged."""
        event = {"id": "evt_other", "object": "event", "type": "customer.created", "data": {"object": {}}}

        response = await post_webhook(event)

        assert response.status_code == 200
        assert response.json() == {"received": True, "outcome": "logged"}

    @pytest.mark.asyncio
    async def test_checkout_without_reference(self, post_webhook, stripe_event) -> None:
        """Test that a checkout not created by us is ignored."""
        response = await post_webhook(stripe_event("evt_1", "cs_1", 5000, {}))

        assert response.json() == {"received": True, "outcome": "ignored"}

    @pytest.mark.asyncio
    async def test_applied_then_duplicate(self, client, tour, post_webhook, stripe_event) -> None:
        """Test the applied response and the duplicate response on redelivery."""
        created = await client.post(
            "/api/request-info",
            json={"fullName": "Jane", "email": "jane@example.com", "tourId": tour.id},
        )
        event = stripe_event("evt_1", "cs_test_1", 30000, {"requestId": created.json()["id"]})

        first = await post_webhook(event)
        second = await post_webhook(event)

        body = first.json()
        assert body["outcome"] == "applied"
        assert body["payment"]["target"] == "request"
        assert body["payment"]["totalAmountPaid"] == 300.0
        assert body["payment"]["isConfirmed"] is True
        assert second.json() == {"received": True, "duplicate": True}

    @pytest.mark.asyncio
    async def test_processing_failure_returns_500(self, client, post_webhook, monkeypatch) -> None:
        """Test that a processing error rolls back and asks Stripe to retry."""
        async def explode(self, checkout):
            raise RuntimeError("database went away")

        monkeypatch.setattr(PaymentReconciler, "_checkout_completed", explode)
        event = {
            "id": "evt_fail",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {}}},
        }

        failed = await post_webhook(event)
        monkeypatch.undo()
        retried = await post_webhook(event)

        assert failed.status_code == 500
        assert failed.json()["error"]["type"] == "webhook_processing_failed"
        assert retried.json() == {"received": True, "outcome": "ignored"}
