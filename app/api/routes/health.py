from __future__ import annotations

from fastapi import APIRouter, Request

from app.core.config import Settings
from app.schemas.relay import HealthResponse, ServiceInfoResponse

router = APIRouter(tags=["Health"])


@router.get("/", response_model=ServiceInfoResponse)
def service_info(request: Request) -> ServiceInfoResponse:
    """Static service metadata: name, version and public endpoints."""
    cfg: Settings = request.app.state.settings
    return ServiceInfoResponse(
        service=cfg.app.name,
        version=cfg.app.version,
        endpoints={"health": "/health", "webhook": "/webhook/github"},
    )


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and container orchestrators. Reports whether the
    destination and the secret are configured without revealing either.

    Returns:
        HealthResponse: status plus configuration flags.
    """
    cfg: Settings = request.app.state.settings
    secret = cfg.relay.webhook_secret
    return HealthResponse(
        status="ok",
        destination_configured=bool(cfg.relay.destination_url),
        secret_configured=secret is not None and bool(secret.get_secret_value()),
    )
