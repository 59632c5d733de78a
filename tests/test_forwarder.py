"""Tests for the httpx-backed destination forwarder."""

import asyncio

import httpx
import pytest

from app.adapters.forwarding.base import InboundWebhook
from app.adapters.forwarding.factory import create_forwarder
from app.adapters.forwarding.httpx_client import HttpxForwarder, build_forward_headers
from app.core.config import RelaySettings, Settings
from app.core.errors import ConfigurationAppError, TransportAppError

WEBHOOK = InboundWebhook(
    event="pull_request",
    delivery_id="d-1",
    signature="sha256=abc",
    user_agent="GitHub-Hookshot/1",
    body=b'{"action":"opened"}',
)


def test_build_forward_headers_full_set():
    assert build_forward_headers(WEBHOOK) == {
        "x-github-event": "pull_request",
        "x-github-delivery": "d-1",
        "x-hub-signature-256": "sha256=abc",
        "user-agent": "GitHub-Hookshot/1",
        "content-type": "application/json",
    }


def test_build_forward_headers_skips_absent_optional_headers():
    webhook = InboundWebhook(event="ping", delivery_id="d-2", signature=None, user_agent=None, body=b"{}")

    assert build_forward_headers(webhook) == {
        "x-github-event": "ping",
        "x-github-delivery": "d-2",
        "content-type": "application/json",
    }


def test_forward_returns_destination_status_and_excerpt():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(418, text="x" * 1000)

    async def scenario():
        forwarder = HttpxForwarder("http://dest.local/hook", transport=httpx.MockTransport(handler))
        try:
            return await forwarder.forward(WEBHOOK)
        finally:
            await forwarder.aclose()

    result = asyncio.run(scenario())

    assert result.status_code == 418
    assert result.ok is False
    assert len(result.body_excerpt) == 200
    assert result.elapsed_ms >= 0
    assert seen[0].content == WEBHOOK.body
    assert seen[0].headers["x-github-event"] == "pull_request"


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("Connection refused"),
        httpx.ConnectTimeout("connect timed out"),
        httpx.ReadTimeout("read timed out"),
        httpx.RemoteProtocolError("peer closed connection"),
    ],
)
def test_transport_failures_raise_transport_error(error):
    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    async def scenario():
        forwarder = HttpxForwarder("http://dest.local/hook", transport=httpx.MockTransport(handler))
        try:
            await forwarder.forward(WEBHOOK)
        finally:
            await forwarder.aclose()

    with pytest.raises(TransportAppError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.code == "upstream_unreachable"
    assert exc_info.value.__cause__ is error


def test_factory_uses_configured_destination_and_timeout():
    cfg = Settings(
        relay=RelaySettings(
            destination_url="http://dest.local/hook",
            webhook_secret="s",
            timeout_seconds=3.5,
        )
    )

    forwarder = create_forwarder(cfg)

    assert isinstance(forwarder, HttpxForwarder)
    assert forwarder.destination_url == "http://dest.local/hook"
    assert forwarder.client.timeout.read == 3.5
    asyncio.run(forwarder.aclose())


def test_factory_requires_destination():
    cfg = Settings(relay=RelaySettings(destination_url=None, webhook_secret="s"))

    with pytest.raises(ConfigurationAppError):
        create_forwarder(cfg)
