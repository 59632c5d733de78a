import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from app.adapters.forwarding.base import InboundWebhook
from app.core.config import Settings
from app.core.errors import ValidationAppError
from app.core.rate_limit import enforce_rate_limit
from app.core.request_body import (
    ensure_json_content_type,
    ensure_well_formed_json,
    read_body_limited,
)
from app.schemas.relay import RelayResponse
from app.services.relay_service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhook"])


def _require_header(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise ValidationAppError(
            code="missing_header",
            message=f"Missing required header: {name}",
            details={"header": name},
        )
    return value.strip()


@router.post(
    "/webhook/github",
    response_model=RelayResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def relay_github_webhook(
    request: Request,
    x_github_event: Annotated[str | None, Header(alias="X-GitHub-Event")] = None,
    x_github_delivery: Annotated[str | None, Header(alias="X-GitHub-Delivery")] = None,
    x_hub_signature_256: Annotated[str | None, Header(alias="X-Hub-Signature-256")] = None,
    user_agent: Annotated[str | None, Header(alias="User-Agent")] = None,
    content_type: Annotated[str | None, Header(alias="Content-Type")] = None,
) -> RelayResponse:
    """Verify a GitHub webhook and relay it to the private destination.

    Gates, in order (rate limiting already ran as a dependency):
    1. X-GitHub-Event and X-GitHub-Delivery present, JSON content type (400)
    2. Raw body captured within the size cap (413) and well-formed JSON (400)
    3. X-Hub-Signature-256 matches the raw body (401)
    4. Destination answers 2xx (502 otherwise, 500 if unreachable)

    Returns:
        RelayResponse: Delivery id and destination status.
    """
    cfg: Settings = request.app.state.settings
    service: RelayService = request.app.state.relay_service

    event = _require_header(x_github_event, "X-GitHub-Event")
    delivery_id = _require_header(x_github_delivery, "X-GitHub-Delivery")
    ensure_json_content_type(content_type)

    logger.info(
        "webhook.received",
        extra={"github_event": event, "delivery_id": delivery_id},
    )

    # Raw bytes first: the signature is computed over exactly what was sent.
    raw_body = await read_body_limited(request, cfg.app.max_body_bytes)
    ensure_well_formed_json(raw_body)

    webhook = InboundWebhook(
        event=event,
        delivery_id=delivery_id,
        signature=x_hub_signature_256,
        user_agent=user_agent,
        body=raw_body,
    )
    result = await service.relay(webhook)

    return RelayResponse(
        message="Webhook forwarded to destination",
        delivery_id=delivery_id,
        destination_status=result.status_code,
    )
