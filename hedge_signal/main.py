"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (signals, health)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, CORS, rate limiting)
- Logging configuration

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from hedge_signal.core.config import settings
from hedge_signal.interfaces.health import router as health_router
from hedge_signal.interfaces.signals.dependencies import (
    get_payment_gate,
    get_recommendation_engine,
)
from hedge_signal.interfaces.signals.router import RECEIPT_HEADER
from hedge_signal.interfaces.signals.router import router as signals_router
from hedge_signal.shared.errors.handlers import (
    PAYMENT_REQUIRED_HEADER,
    register_error_handlers,
)
from hedge_signal.shared.logging import configure_logging
from hedge_signal.shared.security.headers import SecurityHeadersMiddleware
from hedge_signal.shared.security.rate_limiting import (
    limiter,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the gate and engine at startup so misconfiguration is logged early."""
    gate = get_payment_gate()
    engine = get_recommendation_engine()
    logger.info(
        "%s %s started: model=%s payment_bypass=%s",
        settings.project_name,
        settings.version,
        "enabled" if engine.model_enabled else "fallback-only",
        gate.bypassed,
    )
    yield
    logger.info(
        "%s stopped after %d fallback signals",
        settings.project_name,
        engine.fallback_count,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", RECEIPT_HEADER],
        expose_headers=[PAYMENT_REQUIRED_HEADER],
    )

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(signals_router, prefix="/api/v1")

    return app


app = create_app()
