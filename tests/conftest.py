"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types: a
throwaway SQLite database, an in-process Redis, recording doubles for the
mailer and Stripe, and HTTP clients bound to the FastAPI app.
"""

import hashlib
import hmac
import itertools
import json
import time
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import fakeredis
import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient

from dreamland.api.dependencies import (
    get_cache,
    get_image_storage,
    get_mailer,
    get_stripe_gateway,
)
from dreamland.api.main import app
from dreamland.api.middleware.rate_limiter import rate_limiter
from dreamland.auth.admin_session import SESSION_COOKIE_NAME, get_session_signer
from dreamland.models.tour import TourCategoryDB, TourDateDB, TourDB
from dreamland.services.cache import CacheService
from dreamland.services.database import DatabaseManager, initialize_database, shutdown_database
from dreamland.services.email import Mailer
from dreamland.services.image_storage import ImageStorage
from dreamland.services.stripe_gateway import CheckoutSession, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"
ADMIN_EMAIL = "admin@dreamland.local"


class RecordingMailer(Mailer):
    """Mailer that keeps composed messages instead of talking SMTP."""

    def __init__(self):
        super().__init__(host="smtp.test", admin_email="ops@dreamland.test")
        self.sent: list[dict] = []

    async def send(self, to, subject, body, reply_to=None, template="custom") -> bool:
        if not to:
            return False
        self.sent.append(
            {"to": to, "subject": subject, "body": body, "reply_to": reply_to, "template": template}
        )
        return True

    def templates(self) -> list[str]:
        return [message["template"] for message in self.sent]


class FakeStripeGateway(StripeGateway):
    """Gateway that fabricates Checkout Sessions but verifies webhooks for real."""

    def __init__(self, webhook_secret: str = WEBHOOK_SECRET):
        super().__init__(
            api_key="sk_test_fake",
            webhook_secret=webhook_secret,
            base_url="http://localhost:3000",
        )
        self.checkout_calls: list[dict] = []
        self.intent_calls: list[dict] = []
        self._ids = itertools.count(1)

    async def create_checkout_session(self, **params) -> CheckoutSession:
        self._require_key()
        self.checkout_calls.append(params)
        session_id = f"cs_test_{next(self._ids)}"
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")

    async def create_payment_intent(self, amount_minor, currency="usd", metadata=None) -> dict:
        self._require_key()
        self.intent_calls.append({"amount": amount_minor, "currency": currency})
        intent_id = f"pi_test_{next(self._ids)}"
        return {
            "id": intent_id,
            "client_secret": f"{intent_id}_secret_abc",
            "status": "requires_payment_method",
        }


def sign_stripe_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_completed_event(
    event_id: str,
    session_id: str,
    amount_total: int,
    metadata: dict,
    payment_status: str = "paid",
) -> dict:
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "amount_total": amount_total,
                "currency": "usd",
                "payment_status": payment_status,
                "metadata": metadata,
            }
        },
    }


@pytest.fixture
def stripe_event() -> Callable[..., dict]:
    return checkout_completed_event


@pytest.fixture
def stripe_signature() -> Callable[..., str]:
    return sign_stripe_payload


@pytest.fixture
def post_webhook(client: AsyncClient) -> Callable:
    """Deliver a signed event to the webhook endpoint."""

    async def deliver(event: dict, secret: str = WEBHOOK_SECRET):
        payload = json.dumps(event)
        return await client.post(
            "/api/stripe/webhook",
            content=payload,
            headers={
                "Content-Type": "application/json",
                "Stripe-Signature": sign_stripe_payload(payload, secret),
            },
        )

    return deliver


# ========== Infrastructure ==========


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[DatabaseManager, None]:
    """Provide a fresh file-based SQLite database per test.

    File-based rather than in-memory because the async engine uses NullPool,
    so every session opens a new connection.
    """
    manager = initialize_database(f"sqlite+aiosqlite:///{tmp_path / 'dreamland_test.db'}")
    await manager.initialize_async()
    await manager.create_tables()

    yield manager

    await manager.drop_tables()
    await shutdown_database()


@pytest.fixture
async def db_session(database: DatabaseManager):
    """Provide an async database session for testing."""
    async with database.get_async_session() as session:
        yield session


@pytest.fixture
async def fake_redis():
    redis = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield redis
    await redis.aclose()


@pytest.fixture
def cache(fake_redis) -> CacheService:
    return CacheService(fake_redis)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def gateway() -> FakeStripeGateway:
    return FakeStripeGateway()


# ========== HTTP clients ==========


@pytest.fixture
async def app_overrides(database, cache, mailer, gateway):
    """Point the app's service dependencies at the test doubles."""
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    app.dependency_overrides[get_image_storage] = lambda: ImageStorage(
        cloud_name="", api_key="", api_secret=""
    )
    rate_limiter.redis = None
    rate_limiter.reset()

    yield app

    app.dependency_overrides.clear()
    rate_limiter.reset()


@pytest.fixture
async def client(app_overrides) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client."""
    async with AsyncClient(transport=ASGITransport(app=app_overrides), base_url="http://test") as http:
        yield http


@pytest.fixture
def admin_cookies() -> dict[str, str]:
    return {SESSION_COOKIE_NAME: get_session_signer().sign(ADMIN_EMAIL)}


@pytest.fixture
async def admin_client(app_overrides, admin_cookies) -> AsyncGenerator[AsyncClient, None]:
    """Client carrying a valid admin session cookie."""
    async with AsyncClient(
        transport=ASGITransport(app=app_overrides),
        base_url="http://test",
        cookies=admin_cookies,
    ) as http:
        yield http


# ========== Seed data ==========


@pytest.fixture
async def tour(database: DatabaseManager) -> TourDB:
    """An active, featured tour priced at 1000 with one departure."""
    async with database.get_async_session() as session:
        category = TourCategoryDB(name="Safari", slug="safari", order=1)
        start = datetime(2027, 3, 1, tzinfo=timezone.utc)
        tour = TourDB(
            title="Serengeti Explorer",
            slug="serengeti-explorer",
            description="Five days following the great migration.",
            days=5,
            price_from=Decimal("1000.00"),
            location="Tanzania",
            is_featured=True,
            is_active=True,
            images=[],
            includes=["Park fees"],
            excludes=["Flights"],
            highlights=["Big five"],
            category=category,
        )
        tour.dates.append(TourDateDB(start_date=start, end_date=start + timedelta(days=5), capacity=12))
        session.add(tour)
    return tour
