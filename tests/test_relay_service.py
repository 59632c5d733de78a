"""Tests for RelayService: verification gate and outcome mapping."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from app.adapters.forwarding.base import ForwardResult, InboundWebhook
from app.core.errors import AuthenticationAppError, TransportAppError, UpstreamAppError
from app.core.signature import compute_signature
from app.services.relay_service import RelayService

SECRET = "relay-secret"
BODY = b'{"hook_id": 42}'


def _webhook(signature: str | None) -> InboundWebhook:
    return InboundWebhook(
        event="ping",
        delivery_id="delivery-1",
        signature=signature,
        user_agent="GitHub-Hookshot/abc",
        body=BODY,
    )


def _service(result: ForwardResult | None = None, error: Exception | None = None):
    forwarder = AsyncMock()
    if error is not None:
        forwarder.forward.side_effect = error
    else:
        forwarder.forward.return_value = result or ForwardResult(200, "ok", 1.0)
    return RelayService(forwarder=forwarder, secret=SECRET), forwarder


def test_valid_signature_is_forwarded():
    service, forwarder = _service(ForwardResult(202, "accepted", 3.0))
    webhook = _webhook(compute_signature(BODY, SECRET))

    result = asyncio.run(service.relay(webhook))

    assert result.status_code == 202
    forwarder.forward.assert_awaited_once_with(webhook)


@pytest.mark.parametrize(
    ("signature", "code"),
    [
        (None, "missing_signature"),
        ("", "missing_signature"),
        ("sha256=" + "0" * 64, "invalid_signature"),
        (compute_signature(b"{}", SECRET), "invalid_signature"),
    ],
)
def test_bad_signature_is_rejected_before_forwarding(signature, code):
    service, forwarder = _service()

    with pytest.raises(AuthenticationAppError) as exc_info:
        asyncio.run(service.relay(_webhook(signature)))

    assert exc_info.value.code == code
    forwarder.forward.assert_not_awaited()


@pytest.mark.parametrize("status_code", [301, 400, 404, 500, 503])
def test_non_2xx_raises_upstream_error(status_code):
    service, _ = _service(ForwardResult(status_code, "Bad Gateway on 10.0.0.2", 2.0))

    with pytest.raises(UpstreamAppError) as exc_info:
        asyncio.run(service.relay(_webhook(compute_signature(BODY, SECRET))))

    assert "10.0.0.2" not in exc_info.value.message
    assert exc_info.value.details is None


def test_transport_error_propagates():
    error = TransportAppError(code="upstream_unreachable", message="Failed to forward webhook")
    service, _ = _service(error=error)

    with pytest.raises(TransportAppError):
        asyncio.run(service.relay(_webhook(compute_signature(BODY, SECRET))))


def test_forward_outcome_is_logged_after_caller_cancels(caplog):
    service, forwarder = _service()

    async def slow_failure(webhook):
        await asyncio.sleep(0.05)
        raise TransportAppError(code="upstream_unreachable", message="Failed to forward webhook")

    forwarder.forward.side_effect = slow_failure

    async def scenario():
        caller = asyncio.create_task(service.relay(_webhook(compute_signature(BODY, SECRET))))
        await asyncio.sleep(0.01)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller
        # The shielded forward keeps running on its own.
        await asyncio.sleep(0.1)

    with caplog.at_level(logging.INFO, logger="app.services.relay_service"):
        asyncio.run(scenario())

    failures = [r for r in caplog.records if r.getMessage() == "webhook.transport_failed"]
    assert len(failures) == 1
    assert failures[0].delivery_id == "delivery-1"
    assert failures[0].stage == "forward"
    forwarder.forward.assert_awaited_once()
