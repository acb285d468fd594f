"""Error handling middleware and exception handlers."""

import logging

import stripe
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dreamland.services.errors import DreamlandError

logger = logging.getLogger(__name__)

_STATUS_ERROR_TYPES = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: "payload_too_large",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "validation_error",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
}


class ErrorResponse:
    """Standardized error response format."""

    @staticmethod
    def create(
        error_type: str,
        message: str,
        details: str | dict | list | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Create error response.

        Args:
            error_type: Error type identifier
            message: Human-readable error message
            details: Additional error details
            status_code: HTTP status code
            headers: Extra response headers (e.g. Retry-After)

        Returns:
            JSONResponse with error information
        """
        content = {
            "error": {
                "type": error_type,
                "message": message,
            }
        }

        if details:
            content["error"]["details"] = jsonable_encoder(details)

        return JSONResponse(
            status_code=status_code,
            content=content,
            headers=headers,
        )


async def validation_exception_handler(
    request: Request, exc: ValidationError | RequestValidationError
) -> JSONResponse:
    """Handle Pydantic and request validation errors."""
    logger.warning(f"Validation error on {request.url.path}: {exc}")

    return ErrorResponse.create(
        error_type="validation_error",
        message="Request validation failed",
        details=exc.errors(),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap HTTPException in the error envelope, keeping its headers."""
    if isinstance(exc.detail, str):
        message, details = exc.detail, None
    else:
        message, details = "Request failed", exc.detail

    return ErrorResponse.create(
        error_type=_STATUS_ERROR_TYPES.get(exc.status_code, "http_error"),
        message=message,
        details=details,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def dreamland_exception_handler(request: Request, exc: DreamlandError) -> JSONResponse:
    """Handle domain errors raised by services."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__}: {exc.message}")

    return ErrorResponse.create(
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
        status_code=exc.status_code,
    )


async def stripe_exception_handler(request: Request, exc: stripe.StripeError) -> JSONResponse:
    """Handle errors returned by the Stripe API.

    Card errors are the customer's to fix; everything else is a gateway fault.
    """
    if isinstance(exc, stripe.CardError):
        logger.info(f"Card declined: {exc.user_message}")
        return ErrorResponse.create(
            error_type="card_declined",
            message=exc.user_message or "The card was declined",
            details={"code": exc.code} if exc.code else None,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.error(f"Stripe API error: {exc}")
    return ErrorResponse.create(
        error_type="payment_provider_error",
        message="The payment provider could not process the request. Please try again later.",
        status_code=status.HTTP_502_BAD_GATEWAY,
    )


async def permission_exception_handler(request: Request, exc: PermissionError) -> JSONResponse:
    """Handle permission errors."""
    logger.warning(f"Permission denied: {exc}")

    return ErrorResponse.create(
        error_type="permission_denied",
        message=str(exc),
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Any exception

    Returns:
        JSON error response
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    return ErrorResponse.create(
        error_type="internal_error",
        message="An unexpected error occurred. Please try again later.",
        details=str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
