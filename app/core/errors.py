"""Application-level exception types.

This module defines the relay's error taxonomy, enabling consistent error
handling, logging, and API responses. HTTP status mapping lives in
``app.core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent without forcing every
    error to fill them all.
    """

    hint: str
    header: str
    content_type: str
    max_bytes: int
    limit: int
    retry_after: int
    stage: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised at startup when required configuration is missing or invalid."""


class ValidationAppError(AppError):
    """Raised when request headers, content type or body are invalid."""


class PayloadTooLargeAppError(ValidationAppError):
    """Raised when the request body exceeds the configured size cap."""


class AuthenticationAppError(AppError):
    """Raised when the webhook signature is missing or does not match."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exceeds its request quota.

    Attributes:
        headers: Response headers describing the limit (Retry-After, X-RateLimit-*).
    """

    headers: dict[str, str] = field(default_factory=dict)


class UpstreamAppError(AppError):
    """Raised when the destination answers with a non-2xx status."""


class TransportAppError(AppError):
    """Raised when the destination cannot be reached at all."""
