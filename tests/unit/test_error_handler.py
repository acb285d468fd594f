"""Unit tests for error envelopes and exception handlers."""

import json
from unittest.mock import MagicMock

import pytest
import stripe
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dreamland.api.middleware.error_handler import (
    ErrorResponse,
    dreamland_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    permission_exception_handler,
    stripe_exception_handler,
    validation_exception_handler,
)
from dreamland.services.errors import ConflictError, ImageStorageError, NotFoundError


@pytest.fixture
def mock_request() -> Request:
    """Provide a mocked request for handler calls."""
    request = MagicMock(spec=Request)
    request.url.path = "/api/test"
    return request


def body_of(response) -> dict:
    return json.loads(response.body)


@pytest.mark.unit
class TestErrorResponse:
    """Unit tests for the error envelope."""

    def test_envelope_without_details(self) -> None:
        """Test the minimal envelope shape."""
        response = ErrorResponse.create("not_found", "Tour not found", status_code=404)

        assert response.status_code == 404
        assert body_of(response) == {"error": {"type": "not_found", "message": "Tour not found"}}

    def test_envelope_with_details_and_headers(self) -> None:
        """Test that details and extra headers are carried."""
        response = ErrorResponse.create(
            "rate_limited",
            "Too many requests",
            details={"retry_after": 30},
            status_code=429,
            headers={"Retry-After": "30"},
        )

        assert body_of(response)["error"]["details"] == {"retry_after": 30}
        assert response.headers["Retry-After"] == "30"


@pytest.mark.unit
class TestExceptionHandlers:
    """Unit tests for the registered exception handlers."""

    @pytest.mark.asyncio
    async def test_domain_error(self, mock_request: Request) -> None:
        """Test that domain errors map to their own status and type."""
        response = await dreamland_exception_handler(mock_request, NotFoundError("Tour not found"))

        assert response.status_code == 404
        assert body_of(response)["error"] == {"type": "not_found", "message": "Tour not found"}

    @pytest.mark.asyncio
    async def test_domain_error_details(self, mock_request: Request) -> None:
        """Test that domain error details reach the client."""
        response = await dreamland_exception_handler(
            mock_request, ConflictError("Tour has bookings", details={"bookings": 2})
        )

        assert response.status_code == 409
        assert body_of(response)["error"]["details"] == {"bookings": 2}

    @pytest.mark.asyncio
    async def test_gateway_domain_error(self, mock_request: Request) -> None:
        """Test that upstream failures are reported as 502."""
        response = await dreamland_exception_handler(mock_request, ImageStorageError("Image upload failed"))

        assert response.status_code == 502
        assert body_of(response)["error"]["type"] == "image_storage_error"

    @pytest.mark.asyncio
    async def test_http_exception_keeps_headers(self, mock_request: Request) -> None:
        """Test that HTTPException headers survive wrapping."""
        exc = StarletteHTTPException(
            status_code=429, detail="Too many requests", headers={"Retry-After": "12"}
        )

        response = await http_exception_handler(mock_request, exc)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert body_of(response)["error"]["type"] == "rate_limited"

    @pytest.mark.asyncio
    async def test_http_exception_unknown_status(self, mock_request: Request) -> None:
        """Test the fallback error type for unmapped statuses."""
        response = await http_exception_handler(mock_request, StarletteHTTPException(status_code=418))

        assert body_of(response)["error"]["type"] == "http_error"

    @pytest.mark.asyncio
    async def test_validation_error(self, mock_request: Request) -> None:
        """Test that validation errors are listed in details."""
        exc = RequestValidationError(
            [{"loc": ("body", "email"), "msg": "Field required", "type": "missing"}]
        )

        response = await validation_exception_handler(mock_request, exc)

        assert response.status_code == 422
        body = body_of(response)
        assert body["error"]["type"] == "validation_error"
        assert body["error"]["details"][0]["loc"] == ["body", "email"]

    @pytest.mark.asyncio
    async def test_card_error(self, mock_request: Request) -> None:
        """Test that declined cards are a client error."""
        exc = stripe.CardError(
            "Your card was declined.",
            "number",
            "card_declined",
            json_body={"error": {"message": "Your card was declined.", "code": "card_declined"}},
        )

        response = await stripe_exception_handler(mock_request, exc)

        assert response.status_code == 400
        assert body_of(response)["error"] == {
            "type": "card_declined",
            "message": "Your card was declined.",
            "details": {"code": "card_declined"},
        }

    @pytest.mark.asyncio
    async def test_stripe_api_error(self, mock_request: Request) -> None:
        """Test that other Stripe failures are a gateway error without internals."""
        exc = stripe.APIConnectionError("Network is unreachable")

        response = await stripe_exception_handler(mock_request, exc)

        assert response.status_code == 502
        assert "unreachable" not in body_of(response)["error"]["message"]

    @pytest.mark.asyncio
    async def test_permission_error(self, mock_request: Request) -> None:
        """Test permission errors map to 403."""
        response = await permission_exception_handler(mock_request, PermissionError("Nope"))

        assert response.status_code == 403
        assert body_of(response)["error"]["type"] == "permission_denied"

    @pytest.mark.asyncio
    async def test_unexpected_error(self, mock_request: Request) -> None:
        """Test that unexpected errors become a generic 500."""
        response = await generic_exception_handler(mock_request, RuntimeError("db exploded"))

        assert response.status_code == 500
        assert body_of(response)["error"]["type"] == "internal_error"
        assert "details" not in body_of(response)["error"]
