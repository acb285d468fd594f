"""Contract tests for the public API surface.

These pin the response shapes the storefront depends on.
"""

import pytest

from dreamland.services.id_encoder import encode_id


@pytest.mark.contract
class TestHealthContract:
    """Contract tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client) -> None:
        """Test the health report shape."""
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": "healthy", "redis": "not_configured"}

    @pytest.mark.asyncio
    async def test_liveness(self, client) -> None:
        """Test the liveness probe."""
        response = await client.get("/api/liveness")

        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_security_headers(self, client) -> None:
        """Test that responses carry the hardening headers."""
        response = await client.get("/api/liveness")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers


@pytest.mark.contract
class TestTourCatalogueContract:
    """Contract tests for the tour catalogue."""

    @pytest.mark.asyncio
    async def test_list_hides_raw_ids(self, client, tour) -> None:
        """Test that listings expose encoded ids only."""
        response = await client.get("/api/tours/list")

        assert response.status_code == 200
        assert response.headers["Cache-Control"].startswith("public")
        body = response.json()
        assert body["totalCount"] == 1
        assert body["page"] == 1
        assert body["totalPages"] == 1
        item = body["tours"][0]
        assert "id" not in item
        assert item["encodedId"] != tour.id
        assert item["title"] == "Serengeti Explorer"

    @pytest.mark.asyncio
    async def test_list_clamps_pagination(self, client, tour) -> None:
        """Test that out-of-range paging is clamped rather than rejected."""
        response = await client.get("/api/tours/list", params={"page": 0, "pageSize": 500})

        assert response.status_code == 200
        assert response.json()["page"] == 1

    @pytest.mark.asyncio
    async def test_featured(self, client, tour) -> None:
        """Test the featured tours list."""
        response = await client.get("/api/tours/featured")

        assert [item["slug"] for item in response.json()["tours"]] == ["serengeti-explorer"]

    @pytest.mark.asyncio
    async def test_detail_by_encoded_id(self, client, tour) -> None:
        """Test that the encoded id from a listing resolves to the tour."""
        listing = await client.get("/api/tours/list")
        encoded = listing.json()["tours"][0]["encodedId"]

        response = await client.get(f"/api/tours/{encoded}")

        assert response.status_code == 200
        assert response.json()["slug"] == "serengeti-explorer"
        assert len(response.json()["dates"]) == 1

    @pytest.mark.asyncio
    async def test_detail_tampered_id(self, client, tour) -> None:
        """Test that a malformed id is a 400."""
        response = await client.get("/api/tours/not-a-real-token")

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "bad_request"

    @pytest.mark.asyncio
    async def test_detail_unknown_tour(self, client, tour) -> None:
        """Test that a valid token for a missing tour is a 404."""
        response = await client.get(f"/api/tours/{encode_id('00000000-0000-0000-0000-000000000000')}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_by_slug(self, client, tour) -> None:
        """Test lookup by slug."""
        found = await client.get("/api/tours/slug/serengeti-explorer")
        missing = await client.get("/api/tours/slug/nowhere")

        assert found.status_code == 200
        assert found.json()["title"] == "Serengeti Explorer"
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_categories(self, client, tour) -> None:
        """Test categories with their tour counts."""
        response = await client.get("/api/categories")

        category = response.json()["categories"][0]
        assert category["slug"] == "safari"
        assert category["tour_count"] == 1


@pytest.mark.contract
class TestBookingContract:
    """Contract tests for bookings and booking requests."""

    @pytest.mark.asyncio
    async def test_create_booking(self, client, tour) -> None:
        """Test that a booking is created PENDING at price times quantity."""
        response = await client.post(
            "/api/booking",
            json={
                "tourId": tour.id,
                "customer": {"name": "Jane", "email": "jane@example.com", "phone": "+1 555 0100"},
                "quantity": 2,
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert body["data"]["status"] == "PENDING"
        assert float(body["data"]["total_price"]) == 2000.0

    @pytest.mark.asyncio
    async def test_booking_accepts_encoded_tour_id(self, client, tour) -> None:
        """Test that the public encoded id can be used to book."""
        response = await client.post(
            "/api/booking",
            json={"tourId": encode_id(tour.id), "customer": {"email": "jane@example.com"}},
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_booking_requires_email(self, client, tour) -> None:
        """Test that a booking without email is rejected."""
        response = await client.post("/api/booking", json={"tourId": tour.id, "customer": {}})

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "bad_request"

    @pytest.mark.asyncio
    async def test_booking_unknown_tour(self, client, tour) -> None:
        """Test that booking an unknown tour is a 404."""
        response = await client.post(
            "/api/booking",
            json={"tourId": "missing", "customer": {"email": "jane@example.com"}},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_booking_rate_limited(self, client, tour) -> None:
        """Test that the sixth booking in a minute is refused with Retry-After."""
        payload = {"tourId": tour.id, "customer": {"email": "jane@example.com"}}
        for _ in range(5):
            response = await client.post("/api/booking", json=payload)
            assert response.status_code == 201

        response = await client.post("/api/booking", json=payload)

        assert response.status_code == 429
        assert response.json()["error"]["type"] == "rate_limited"
        assert int(response.headers["Retry-After"]) > 0

    @pytest.mark.asyncio
    async def test_request_info(self, client, tour, mailer, gateway) -> None:
        """Test the priced booking request and its payment instructions."""
        response = await client.post(
            "/api/request-info",
            json={
                "fullName": "Jane Traveller",
                "email": "jane@example.com",
                "tourId": tour.id,
                "adults": 2,
                "children": 1,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["payment"]["totalPrice"] == 2700.0
        assert body["payment"]["advanceRequired"] == 810.0
        assert body["payment"]["stripePaymentUrl"].startswith("https://checkout.stripe.test/")
        assert gateway.checkout_calls[0]["metadata"]["requestId"] == body["id"]
        assert mailer.templates() == ["payment_info", "internal_notification"]

    @pytest.mark.asyncio
    async def test_request_info_honeypot(self, client, tour, mailer) -> None:
        """Test that a filled honeypot looks successful and stores nothing."""
        response = await client.post(
            "/api/request-info",
            json={"fullName": "Bot", "email": "bot@example.com", "hp": "http://spam"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "id" not in response.json()
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_request_info_validation(self, client) -> None:
        """Test that an invalid email is a validation error."""
        response = await client.post(
            "/api/request-info", json={"fullName": "Jane", "email": "not-an-email"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"


@pytest.mark.contract
class TestPaymentContract:
    """Contract tests for payment endpoints."""

    @pytest.mark.asyncio
    async def test_payment_status_by_request(self, client, tour) -> None:
        """Test the payment progress of a fresh request."""
        created = await client.post(
            "/api/request-info",
            json={"fullName": "Jane", "email": "jane@example.com", "tourId": tour.id},
        )
        request_id = created.json()["id"]

        response = await client.get("/api/payment-confirm", params={"requestId": request_id})

        data = response.json()["data"]
        assert data["paymentStatus"] == "PENDING"
        assert data["remainingAmount"] == 1000.0
        assert data["paidPercentage"] == 0
        assert data["isConfirmed"] is False

    @pytest.mark.asyncio
    async def test_payment_status_by_session(self, client, tour) -> None:
        """Test lookup by Checkout Session id."""
        created = await client.post(
            "/api/request-info",
            json={"fullName": "Jane", "email": "jane@example.com", "tourId": tour.id},
        )

        response = await client.get("/api/payment-confirm", params={"session_id": "cs_test_1"})

        assert response.json()["data"]["id"] == created.json()["id"]

    @pytest.mark.asyncio
    async def test_payment_status_requires_reference(self, client) -> None:
        """Test that a lookup without any id is a 400."""
        response = await client.get("/api/payment-confirm")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_payment_intent(self, client, gateway) -> None:
        """Test PaymentIntent creation in minor units."""
        response = await client.post("/api/payment", json={"amount": 5000, "currency": "usd"})

        assert response.status_code == 200
        assert response.json()["clientSecret"].endswith("_secret_abc")
        assert gateway.intent_calls == [{"amount": 5000, "currency": "usd"}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -10, 12.5])
    async def test_payment_intent_rejects_bad_amounts(self, client, amount) -> None:
        """Test that non-positive or fractional amounts are refused."""
        response = await client.post("/api/payment", json={"amount": amount})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_checkout_payment(self, client, gateway, mailer) -> None:
        """Test the direct Checkout payment charges the advance by default."""
        response = await client.post(
            "/api/stripe/create-payment",
            json={"fullName": "Jane", "email": "jane@example.com", "totalPrice": 1000},
        )

        body = response.json()
        assert body["amountToPay"] == 300.0
        assert body["paymentUrl"] == f"https://checkout.stripe.test/pay/{body['sessionId']}"
        assert gateway.checkout_calls[0]["expires_in_minutes"] == 30
        assert mailer.templates() == ["payment_link"]


@pytest.mark.contract
class TestInquiryContract:
    """Contract tests for the inquiry form."""

    @pytest.mark.asyncio
    async def test_inquiry(self, client, mailer) -> None:
        """Test that an inquiry is stored and acknowledged."""
        response = await client.post(
            "/api/inquiry",
            json={"fullName": "Max Mustermann", "email": "Max@Example.de", "country": "Germany"},
        )

        body = response.json()
        assert body["success"] is True
        assert body["id"]
        assert mailer.templates() == ["inquiry_auto_reply", "inquiry_admin"]
        assert mailer.sent[0]["to"] == "max@example.de"

    @pytest.mark.asyncio
    async def test_inquiry_honeypot(self, client, mailer) -> None:
        """Test that bots get a success message and nothing else."""
        response = await client.post(
            "/api/inquiry",
            json={"fullName": "Bot", "email": "bot@example.com", "hp": "x"},
        )

        assert response.json()["success"] is True
        assert mailer.sent == []


@pytest.mark.contract
class TestContentContract:
    """Contract tests for public content."""

    @pytest.mark.asyncio
    async def test_blog_empty(self, client) -> None:
        """Test the blog listing envelope."""
        response = await client.get("/api/blog")

        body = response.json()
        assert body["posts"] == []
        assert "pagination" in body

    @pytest.mark.asyncio
    async def test_testimonial_submission_awaits_moderation(self, client) -> None:
        """Test that submitted testimonials are not published immediately."""
        submitted = await client.post(
            "/api/testimonials",
            json={"name": "Jane", "text": "An unforgettable safari, thank you!", "rating": 5},
        )
        listed = await client.get("/api/testimonials")

        assert submitted.status_code == 201
        assert submitted.json()["ok"] is True
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_contact(self, client, mailer) -> None:
        """Test that the contact form is forwarded to the admin."""
        response = await client.post(
            "/api/contact",
            json={
                "name": "Jane",
                "email": "jane@example.com",
                "subject": "Visa question",
                "message": "Do I need a visa for Tanzania?",
            },
        )

        assert response.json()["delivered"] is True
        assert mailer.sent[0]["subject"] == "Contact form: Visa question"
        assert mailer.sent[0]["reply_to"] == "jane@example.com"

    @pytest.mark.asyncio
    async def test_translations(self, client) -> None:
        """Test the message catalogue endpoint."""
        german = await client.get("/api/i18n/de")
        unknown = await client.get("/api/i18n/xx")

        assert german.json()["locale"] == "de"
        assert "nav" in german.json()["messages"]
        assert unknown.status_code == 404
