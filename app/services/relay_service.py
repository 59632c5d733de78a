"""Relay service: verify a captured webhook and forward it to the destination.

This is the core of the relay. Given an ``InboundWebhook`` whose headers
were validated and whose body was captured verbatim, it:
- verifies the X-Hub-Signature-256 HMAC over the raw body
- forwards the delivery exactly once
- maps the destination's answer to success, upstream rejection or
  transport failure

Nothing is retried. The sender (GitHub) redelivers on its own schedule.
"""

import asyncio
import logging

from app.adapters.forwarding.base import AbstractForwarder, ForwardResult, InboundWebhook
from app.core.errors import AuthenticationAppError, TransportAppError, UpstreamAppError
from app.core.signature import verify_signature

logger = logging.getLogger(__name__)


class RelayService:
    """Signature verification plus single-shot forwarding."""

    def __init__(self, *, forwarder: AbstractForwarder, secret: str) -> None:
        self._forwarder = forwarder
        self._secret = secret
        self._in_flight: set[asyncio.Task] = set()

    def verify(self, webhook: InboundWebhook) -> None:
        """Check the webhook signature.

        Raises:
            AuthenticationAppError: If the signature is absent or wrong.
        """
        context = {"github_event": webhook.event, "delivery_id": webhook.delivery_id}

        if not webhook.signature:
            logger.warning(
                "webhook.signature_missing",
                extra={**context, "stage": "signature"},
            )
            raise AuthenticationAppError(
                code="missing_signature",
                message="Missing X-Hub-Signature-256 header",
            )

        if not verify_signature(webhook.body, self._secret, webhook.signature):
            logger.warning(
                "webhook.signature_invalid",
                extra={**context, "stage": "signature", "body_bytes": len(webhook.body)},
            )
            raise AuthenticationAppError(
                code="invalid_signature",
                message="Invalid signature",
            )

        logger.debug("webhook.signature_verified", extra=context)

    async def relay(self, webhook: InboundWebhook) -> ForwardResult:
        """Verify and forward a webhook.

        Forwarding, outcome classification and its logging run in one task
        shielded from cancellation: once a verified delivery is handed to the
        destination it runs to completion, and its outcome is logged, even if
        the caller disconnects.

        Args:
            webhook: Inbound delivery with raw body.

        Returns:
            ForwardResult for a 2xx destination response.

        Raises:
            AuthenticationAppError: Signature missing or mismatched (nothing forwarded).
            UpstreamAppError: Destination answered non-2xx.
            TransportAppError: Destination unreachable.
        """
        self.verify(webhook)

        task = asyncio.ensure_future(self._forward_and_record(webhook))
        self._in_flight.add(task)
        task.add_done_callback(self._forget)
        return await asyncio.shield(task)

    def _forget(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        # Already logged by _forward_and_record; retrieving it keeps asyncio
        # from reporting an unretrieved exception after a caller disconnect.
        if not task.cancelled():
            task.exception()

    async def _forward_and_record(self, webhook: InboundWebhook) -> ForwardResult:
        context = {"github_event": webhook.event, "delivery_id": webhook.delivery_id}
        try:
            result = await self._forwarder.forward(webhook)
        except TransportAppError as exc:
            logger.error(
                "webhook.transport_failed",
                extra={**context, "stage": "forward", "error_code": exc.code, "details": exc.details},
            )
            raise

        if not result.ok:
            logger.error(
                "webhook.upstream_rejected",
                extra={
                    **context,
                    "stage": "forward",
                    "upstream_status": result.status_code,
                    "upstream_excerpt": result.body_excerpt,
                    "elapsed_ms": round(result.elapsed_ms, 2),
                },
            )
            # The destination's body stays in the logs; it can reveal internal hosts.
            raise UpstreamAppError(
                code="upstream_rejected",
                message="Destination rejected the webhook",
            )

        logger.info(
            "webhook.forwarded",
            extra={
                **context,
                "upstream_status": result.status_code,
                "elapsed_ms": round(result.elapsed_ms, 2),
            },
        )
        return result
