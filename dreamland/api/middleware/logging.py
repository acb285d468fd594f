"""Structured request logging with structlog."""

import logging
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Probes hit these every few seconds; they are logged at debug level only
QUIET_PATHS = frozenset({"/api/liveness", "/api/health"})


def _processors(renderer, timestamp_format: str = "iso") -> list:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt=timestamp_format),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _configure(renderer, timestamp_format: str = "iso") -> None:
    structlog.configure(
        processors=_processors(renderer, timestamp_format),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# JSON until setup_logging runs, so import-time log lines are still structured
_configure(structlog.processors.JSONRenderer())

logger = structlog.get_logger("dreamland.requests")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with a request id that is echoed back to the client."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        log = logger.bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        emit = log.debug if request.url.path in QUIET_PATHS else log.info

        # Query strings can carry Stripe session ids; log only the keys
        emit("request_received", query_keys=sorted(request.query_params.keys()))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000),
                exc_info=True,
            )
            raise

        emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000),
            admin=getattr(request.state, "admin_email", None),
        )
        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure stdlib logging and structlog for the process.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: ``json`` for production, ``console`` for local development
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
    )

    if log_format == "console":
        _configure(structlog.dev.ConsoleRenderer(), timestamp_format="%Y-%m-%d %H:%M:%S")
    else:
        _configure(structlog.processors.JSONRenderer())
