from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (settings check, shared components, middleware,
handlers, routers) so tests can build isolated apps with stub collaborators.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.forwarding.base import AbstractForwarder
from app.adapters.forwarding.factory import create_forwarder
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.rate_limit.sweeper import RateLimitSweeper
from app.api.routes import health_router, webhook_router
from app.core.config import Settings, ensure_startup_config
from app.core.config import settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, security_headers_middleware
from app.core.openapi import apply_openapi_customizations
from app.services.relay_service import RelayService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweeper: RateLimitSweeper = app.state.rate_limit_sweeper
    forwarder: AbstractForwarder = app.state.forwarder

    sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()
        await forwarder.aclose()
        logger.info("relay.stopped")


def create_app(
    cfg: Settings | None = None,
    *,
    forwarder: AbstractForwarder | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to use; defaults to the environment-loaded settings.
        forwarder: Destination client; built from settings when omitted.
        rate_limiter: Rate limit table; an in-memory one when omitted.
        configure_logs: Reconfigure the root logger (disabled by tests).

    Returns:
        Configured FastAPI app.

    Raises:
        ConfigurationAppError: If the destination URL or secret is missing.
    """
    cfg = cfg or default_settings
    ensure_startup_config(cfg)

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title=cfg.app.name,
        description=(
            "Relays signed GitHub webhooks from a public endpoint to a private "
            "destination. Verifies X-Hub-Signature-256 over the raw body, rate "
            "limits per client address and forwards the body unmodified."
        ),
        version=cfg.app.version,
        lifespan=_lifespan,
    )

    limiter = rate_limiter or InMemoryFixedWindowRateLimiter(
        limit=cfg.app.rate_limit_requests,
        window_seconds=cfg.app.rate_limit_window_seconds,
    )
    forwarder = forwarder or create_forwarder(cfg)
    secret = cfg.relay.webhook_secret.get_secret_value()  # checked by ensure_startup_config

    app.state.settings = cfg
    app.state.rate_limiter = limiter
    app.state.rate_limit_sweeper = RateLimitSweeper(
        limiter, interval_seconds=cfg.app.rate_limit_sweep_interval_seconds
    )
    app.state.forwarder = forwarder
    app.state.relay_service = RelayService(forwarder=forwarder, secret=secret)

    # Middleware (last registered runs first). The security header layer sits
    # inside request_id_middleware so the 500s it builds still get a request id.
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(webhook_router)

    apply_openapi_customizations(app)

    logger.info(
        "relay.starting",
        extra={
            "secret_configured": True,
            "rate_limit_requests": cfg.app.rate_limit_requests,
            "rate_limit_window_s": cfg.app.rate_limit_window_seconds,
            "timeout_s": cfg.relay.timeout_seconds,
        },
    )

    return app
