"""
Main FastAPI application entry point.
Configures logging, exception handlers, middleware, and routers.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lms.api.dependencies import get_database, get_password_hasher
from lms.api.routers import (
    achievements_router,
    auth_router,
    billing_router,
    branding_router,
    health_router,
    notifications_router,
    profile_router,
    programs_router,
    progress_router,
    search_router,
    stripe_router,
    videos_router,
)
from lms.config import get_settings
from lms.config.logging import configure_logging, request_id_var, tenant_id_var
from lms.core.exceptions import AppException
from lms.core.telemetry import setup_telemetry
from lms.repositories.seed import load_demo_data


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger = logging.getLogger(__name__)
    settings = get_settings()

    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Base domain: {settings.BASE_DOMAIN}")

    db = get_database()
    if settings.SEED_DEMO_DATA and await db.tenants.count() == 0:
        await load_demo_data(db, get_password_hasher())

    if not settings.STRIPE_SECRET_KEY:
        logger.info("No fallback Stripe key configured, payments use tenant keys only")

    yield

    # Shutdown
    logger.info("Shutting down application")


# =============================================================================
# Middleware
# =============================================================================


async def request_context_middleware(request: Request, call_next):
    """Tag logs of the request with a request id, echoed back in X-Request-ID."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request_token = request_id_var.set(request_id)
    tenant_token = tenant_id_var.set(None)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(request_token)
        tenant_id_var.reset(tenant_token)

    response.headers["X-Request-ID"] = request_id
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """Handle custom application exceptions."""
    if exc.status_code >= 500:
        logging.getLogger(__name__).warning(
            f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions - return generic error."""
    logger = logging.getLogger(__name__)
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Configure structured logging
    configure_logging(debug=settings.DEBUG)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        Multi-Tenant LMS API

        Learning-management backend serving many organizations from one
        deployment. Every request is resolved to a tenant by header,
        cookie or hostname.

        ## Features
        - Tenant-aware branding with agency-owner fallback
        - Role hierarchy and tier-based dashboard permissions
        - Video and program catalog, comments, statistics and progress
        - Per-tenant Stripe checkout, payment intents and webhooks
        - Circuit breaker around the payment provider
        - Observability: JSON logs, Prometheus, OpenTelemetry
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.middleware("http")(request_context_middleware)

    # Include routers
    app.include_router(health_router)
    app.include_router(branding_router)
    app.include_router(auth_router)
    app.include_router(videos_router)
    app.include_router(programs_router)
    app.include_router(search_router)
    app.include_router(progress_router)
    app.include_router(achievements_router)
    app.include_router(notifications_router)
    app.include_router(profile_router)
    app.include_router(billing_router)
    app.include_router(stripe_router)

    # Setup Telemetry (Metrics & Tracing)
    setup_telemetry(app)

    return app


# Create application instance
app = create_app()


# =============================================================================
# Development Entry Point
# =============================================================================


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
