"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer. The limiter
instance lives on ``app.state.rate_limiter`` (set by the app factory), so
each app, and each test, gets its own table.

Rate limiting strategy:
- Fixed window per client network address.
- Runs before any header, body or signature work on the request.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.config import Settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)


def client_address(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Resolve the address requests are counted against.

    Args:
        request: FastAPI request.
        trust_forwarded_for: Use the left-most X-Forwarded-For entry when set.

    Returns:
        str: Client address, or "unknown" if the server did not report one.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first

    return request.client.host if request.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the client address for logging."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the per-client request quota.

    Consumes 1 unit from the client's budget. Rejected requests never reach
    signature verification or forwarding.

    Args:
        request: FastAPI request.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the quota is exceeded.
    """
    cfg: Settings = request.app.state.settings
    if not cfg.app.rate_limit_enabled:
        return

    limiter: AbstractRateLimiter = request.app.state.rate_limiter
    key = client_address(request, trust_forwarded_for=cfg.app.trust_forwarded_for)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": _hash_limiter_key(key),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_limiter_key(key),
            "limit": result.limit,
            "window_s": cfg.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if cfg.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise RateLimitAppError(
        code="rate_limited",
        message="Rate limit exceeded. Try again later.",
        details={"limit": result.limit, "retry_after": retry_after},
        headers=headers,
    )
