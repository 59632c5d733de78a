"""HTTP forwarder adapter backed by httpx."""

import time

import httpx

from app.adapters.forwarding.base import AbstractForwarder, ForwardResult, InboundWebhook
from app.core.errors import TransportAppError

# Only this curated set of inbound headers is relayed.
EVENT_HEADER = "x-github-event"
DELIVERY_HEADER = "x-github-delivery"
SIGNATURE_HEADER = "x-hub-signature-256"
USER_AGENT_HEADER = "user-agent"

BODY_EXCERPT_CHARS = 200


def build_forward_headers(webhook: InboundWebhook) -> dict[str, str]:
    """Build the outbound header set for a webhook.

    Args:
        webhook: Inbound delivery.

    Returns:
        Event, delivery id, signature and user-agent (when present) plus a
        fixed ``content-type: application/json``.
    """
    headers = {
        EVENT_HEADER: webhook.event,
        DELIVERY_HEADER: webhook.delivery_id,
    }
    if webhook.signature:
        headers[SIGNATURE_HEADER] = webhook.signature
    if webhook.user_agent:
        headers[USER_AGENT_HEADER] = webhook.user_agent
    headers["content-type"] = "application/json"
    return headers


class HttpxForwarder(AbstractForwarder):
    """POST verified webhooks to a fixed destination URL.

    One ``httpx.AsyncClient`` is shared by all requests so connections to
    the destination are pooled. No retries: the sender's own redelivery
    mechanism handles failures.
    """

    def __init__(
        self,
        destination_url: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the underlying async client.

        Args:
            destination_url: URL every webhook is POSTed to.
            timeout_seconds: Connect/read/write/pool timeout in seconds.
            transport: Optional transport override (tests use httpx.MockTransport).
        """
        self.destination_url = destination_url
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=False,
        )

    async def forward(self, webhook: InboundWebhook) -> ForwardResult:
        """POST the raw body with the curated headers.

        Raises:
            TransportAppError: On connection refusal, DNS failure, timeout
                or any other failure to obtain a response.
        """
        start = time.perf_counter()
        try:
            response = await self.client.post(
                self.destination_url,
                content=webhook.body,
                headers=build_forward_headers(webhook),
            )
        except httpx.HTTPError as exc:
            raise TransportAppError(
                code="upstream_unreachable",
                message="Failed to forward webhook to destination",
                details={"context": {"error_type": type(exc).__name__}},
            ) from exc

        return ForwardResult(
            status_code=response.status_code,
            body_excerpt=response.text[:BODY_EXCERPT_CHARS],
            elapsed_ms=(time.perf_counter() - start) * 1000,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
