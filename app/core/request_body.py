"""Raw request body capture with a size cap."""
from __future__ import annotations

import json
import logging

from fastapi import Request
from starlette.requests import ClientDisconnect

from app.core.errors import PayloadTooLargeAppError, ValidationAppError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def ensure_json_content_type(content_type: str | None) -> None:
    """Accept ``application/json`` with optional parameters (e.g. charset).

    Raises:
        ValidationAppError: For any other or missing content type.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != JSON_MEDIA_TYPE:
        raise ValidationAppError(
            code="unsupported_content_type",
            message="Content-Type must be application/json",
            details={"content_type": media_type or "missing"},
        )


def _too_large(max_bytes: int) -> PayloadTooLargeAppError:
    return PayloadTooLargeAppError(
        code="payload_too_large",
        message=f"Request body too large. Maximum size: {max_bytes} bytes",
        details={"max_bytes": max_bytes},
    )


async def read_body_limited(request: Request, max_bytes: int) -> bytes:
    """Read the request body in chunks enforcing the max size limit.

    Rejects early on a declared Content-Length above the cap, then enforces
    the cap again while streaming since the header may be absent or wrong.

    Args:
        request: Incoming request; its body must not have been consumed.
        max_bytes: Largest accepted body.

    Returns:
        The body bytes exactly as received.

    Raises:
        PayloadTooLargeAppError: If the body exceeds the limit.
        ValidationAppError: If the client disconnects before the body ends.
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        logger.warning(
            "request_body.rejected_by_header",
            extra={"content_length": int(declared), "max_bytes": max_bytes},
        )
        raise _too_large(max_bytes)

    size = 0
    chunks: list[bytes] = []
    try:
        async for chunk in request.stream():
            size += len(chunk)
            if size > max_bytes:
                logger.warning(
                    "request_body.rejected_by_stream",
                    extra={"size": size, "max_bytes": max_bytes},
                )
                raise _too_large(max_bytes)
            chunks.append(chunk)
    except ClientDisconnect as exc:
        logger.info("request_body.client_disconnected", extra={"received_bytes": size})
        raise ValidationAppError(
            code="client_disconnected",
            message="Client disconnected before the request body was received",
        ) from exc

    return b"".join(chunks)


def ensure_well_formed_json(raw: bytes) -> None:
    """Check that the captured bytes parse as JSON.

    The parsed value is discarded; only the original bytes are forwarded.

    Raises:
        ValidationAppError: If the body is empty, not valid JSON, or nested
            deeper than the parser can follow.
    """
    if not raw:
        raise ValidationAppError(code="invalid_json", message="Request body is empty")
    try:
        json.loads(raw)
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body is not valid JSON",
        ) from exc
