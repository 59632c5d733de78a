"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import JsonFormatter, SensitiveDataFilter, clear_request_id, set_request_id
from app.core.signature import compute_signature


@pytest.fixture
def capture():
    """Logger wired to a JSON handler with redaction; yields (logger, stream)."""
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()


def test_redacts_secret_and_signature(capture):
    logger, stream = capture
    signature = compute_signature(b"{}", "super-secret-value")

    logger.info(
        "webhook.signature_invalid",
        extra={
            "webhook_secret": "super-secret-value",
            "signature": signature,
            "delivery_id": "abc-123",
        },
    )

    output = stream.getvalue()
    assert "super-secret-value" not in output
    assert signature not in output
    assert "[REDACTED]" in output
    assert "abc-123" in output


def test_redacts_nested_header_mappings_case_insensitively(capture):
    logger, stream = capture

    logger.info(
        "headers_dump",
        extra={
            "headers": {
                "X-Hub-Signature-256": "sha256=deadbeef",
                "Authorization": "Bearer t0ken",
                "User-Agent": "GitHub-Hookshot/044aadd",
            }
        },
    )

    output = stream.getvalue()
    assert "deadbeef" not in output
    assert "t0ken" not in output
    assert "GitHub-Hookshot/044aadd" in output


def test_redacts_raw_body(capture):
    logger, stream = capture

    logger.info("body_dump", extra={"body": '{"private": "repo contents"}', "body_bytes": 28})

    output = stream.getvalue()
    assert "repo contents" not in output
    assert '"body_bytes": 28' in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "webhook.forwarded",
        extra={
            "github_event": "push",
            "delivery_id": "72d3162e",
            "upstream_status": 200,
            "elapsed_ms": 12.5,
        },
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "webhook.forwarded"
    assert record["level"] == "info"
    assert record["github_event"] == "push"
    assert record["upstream_status"] == 200
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context_is_included(capture):
    logger, stream = capture
    set_request_id("req-789")
    try:
        logger.info("with_request_id")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-789"
