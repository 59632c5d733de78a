"""HTTP middleware: request correlation and security headers.

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(security_headers_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

# Added to every response, including errors raised inside the app.
SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the configured request id header (X-Request-ID by
    default), that value is used. Otherwise, a new UUID is generated. GitHub
    deliveries are easier to trace by X-GitHub-Delivery, which the webhook
    route logs separately.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    request.state.request_id = request_id
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Set conservative security headers on every response.

    Unexpected exceptions are turned into the generic 500 here. The
    ``Exception`` handler registered on the app runs outside every http
    middleware, so its response would otherwise carry neither these headers
    nor the request id.
    """
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        response = await general_exception_handler(request, exc)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
