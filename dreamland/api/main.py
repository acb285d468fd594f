"""Dreamland Travel API application: middleware, error handlers and routers."""

import os
from contextlib import asynccontextmanager

import stripe
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dreamland import __version__
from dreamland.api.middleware.error_handler import (
    dreamland_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    permission_exception_handler,
    stripe_exception_handler,
    validation_exception_handler,
)
from dreamland.api.middleware.logging import LoggingMiddleware, setup_logging
from dreamland.api.middleware.rate_limiter import rate_limiter
from dreamland.api.middleware.security_headers import SecurityHeadersMiddleware
from dreamland.api.routes import (
    admin,
    admin_content,
    admin_sales,
    bookings,
    content,
    health,
    inquiries,
    payments,
    tours,
    upload,
    webhooks,
)
from dreamland.services.database import initialize_database, shutdown_database
from dreamland.services.errors import DreamlandError
from dreamland.services.redis_client import initialize_redis, shutdown_redis


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and open the database and Redis; close them on shutdown.

    Without DATABASE_URL the database is left uninitialised (tests install
    their own); without REDIS_URL caching is bypassed and rate limits are
    kept in memory.
    """
    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
    )

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        db_manager = initialize_database(database_url)
        await db_manager.initialize_async()

    # Cache and rate limiter share one client; both degrade gracefully without it
    rate_limiter.redis = initialize_redis()

    yield

    rate_limiter.redis = None
    await shutdown_redis()
    await shutdown_database()


app = FastAPI(
    title="Dreamland Travel API",
    description="Tour catalogue, bookings, Stripe payments and content for a travel agency",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ========== CORS Configuration ==========

allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Stripe-Signature", "X-Request-ID"],
    expose_headers=["X-Request-ID", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)

# ========== Custom Middleware ==========

app.add_middleware(SecurityHeadersMiddleware)

# Logging middleware (added last so it is outermost and logs every request)
app.add_middleware(LoggingMiddleware)

# ========== Exception Handlers ==========

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(DreamlandError, dreamland_exception_handler)
app.add_exception_handler(stripe.StripeError, stripe_exception_handler)
app.add_exception_handler(PermissionError, permission_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ========== Route Registration ==========

app.include_router(health.router)
app.include_router(tours.router)
app.include_router(bookings.router)
app.include_router(payments.router)
app.include_router(webhooks.router)
app.include_router(inquiries.router)
app.include_router(content.router)
app.include_router(upload.router)
app.include_router(admin.router)
app.include_router(admin_sales.router)
app.include_router(admin_content.router)


@app.get("/", tags=["root"], summary="API root")
async def root() -> dict:
    return {
        "service": "Dreamland Travel API",
        "version": __version__,
        "documentation": {
            "openapi": "/openapi.json",
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": {
            "liveness": "/api/liveness",
            "health": "/api/health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dreamland.api.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") != "production",
    )
