"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment the settings module reads at import time, so that
``app.main`` can be imported, and provides a stub destination built on
``httpx.MockTransport`` that records every forwarded request.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("RELAY_DESTINATION_URL", "http://destination.internal/hooks/github")
os.environ.setdefault("RELAY_WEBHOOK_SECRET", "test-webhook-secret")

from typing import Callable, Iterator
from unittest.mock import Mock

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.forwarding.httpx_client import HttpxForwarder
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.app_factory import create_app
from app.core.config import AppSettings, RelaySettings, Settings
from app.core.signature import compute_signature

DESTINATION_URL = "http://destination.internal/hooks/github"
WEBHOOK_SECRET = "test-webhook-secret"


class StubDestination:
    """Fake private receiver: records requests and answers with a fixed status."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.response_body = b'{"message":"queued"}'
        self.error: Exception | None = None

    def _handle(self, request: httpx.Request) -> httpx.Response:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.response_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def refuse_connections(self) -> None:
        self.error = httpx.ConnectError("[Errno 111] Connection refused")


@pytest.fixture
def destination() -> StubDestination:
    return StubDestination()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with the test destination/secret and app overrides."""

    def _make(**app_overrides) -> Settings:
        return Settings(
            relay=RelaySettings(
                destination_url=DESTINATION_URL,
                webhook_secret=WEBHOOK_SECRET,
            ),
            app=AppSettings(**app_overrides),
        )

    return _make


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_000_000.0)


@pytest.fixture
def make_app(
    make_settings: Callable[..., Settings],
    destination: StubDestination,
    clock: Mock,
) -> Callable[..., FastAPI]:
    """Build an isolated app wired to the stub destination and a mock clock."""

    def _make(**app_overrides) -> FastAPI:
        cfg = make_settings(**app_overrides)
        limiter = InMemoryFixedWindowRateLimiter(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
            clock=clock,
        )
        forwarder = HttpxForwarder(DESTINATION_URL, transport=destination.transport)
        return create_app(
            cfg,
            forwarder=forwarder,
            rate_limiter=limiter,
            configure_logs=False,
        )

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> Iterator[TestClient]:
    """Test client for a default app (30 requests / 60 s)."""
    with TestClient(make_app()) as test_client:
        yield test_client


@pytest.fixture
def github_headers() -> Callable[..., dict[str, str]]:
    """Build a valid GitHub delivery header set for a body."""

    def _headers(body: bytes, *, secret: str = WEBHOOK_SECRET, **overrides: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-GitHub-Event": "push",
            "X-GitHub-Delivery": "72d3162e-cc78-11e3-81ab-4c9367dc0958",
            "X-Hub-Signature-256": compute_signature(body, secret),
            "User-Agent": "GitHub-Hookshot/044aadd",
        }
        headers.update(overrides)
        return headers

    return _headers
