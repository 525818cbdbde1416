"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from stockroom.api.routes import api_router
from stockroom.core.config import settings
from stockroom.core.errors import ErrorCode, error_payload
from stockroom.core.logging_config import configure_logging
from stockroom.core.rate_limit import limiter
from stockroom.db.session import Database
from stockroom.services.billing_client import StripeClient

configure_logging(settings)

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its duration and a request id."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex[:12]
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        request_logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({duration_ms:.1f}ms) [{request_id}]"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and billing handles once, release them on shutdown."""
    logger.info("Starting Stockroom")

    database = Database(settings.database_url)
    if database.is_sqlite:
        # No migration tooling: SQLite dev databases get their schema here
        database.create_all()
        logger.info("Database tables created (SQLite mode)")
    app.state.db = database

    billing = None
    if settings.stripe_configured:
        billing = StripeClient(settings.stripe_secret_key, settings.stripe_webhook_secret)
    else:
        logger.info("Billing provider not configured")
    app.state.billing = billing

    yield

    if billing is not None:
        await billing.close()
    database.dispose()
    logger.info("Shutting down Stockroom")


app = FastAPI(
    title="Stockroom",
    description="Multi-tenant inventory API: teams, items, locations and stock movements",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_payload(ErrorCode.INTERNAL_ERROR))


app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - added last so it runs first (Starlette LIFO order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Request-ID", "Stripe-Signature"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/health/ready")
def readiness_check(request: Request):
    """Readiness check with a database round trip."""
    database: Database = request.app.state.db
    db = database.session()
    try:
        db.execute(text("SELECT 1"))
        status = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        status = "unhealthy"
    finally:
        db.close()
    return {
        "status": "ready" if status == "healthy" else "degraded",
        "checks": {"database": status},
    }
