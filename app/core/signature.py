"""GitHub webhook signature verification.

GitHub signs each delivery with HMAC-SHA256 over the exact request body,
keyed with the shared webhook secret, and sends the result in the
``X-Hub-Signature-256`` header as ``sha256=<hex digest>``.

The digest must be computed over the raw bytes as received. Re-serializing
a parsed JSON body can change whitespace or key order and invalidate a
perfectly good signature.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(payload: bytes, secret: str) -> str:
    """Compute the expected signature header value for a payload.

    Args:
        payload: Raw request body bytes.
        secret: Shared webhook secret.

    Returns:
        ``"sha256=" + hex(HMAC-SHA256(secret, payload))``.

    Examples:
        >>> compute_signature(b"Hello, World!", "It's a Secret to Everybody")
        'sha256=757107ea0eb2509fc211221cce984b8a37570b6d7586c22c46f4379c8b043e17'
    """
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(payload: bytes, secret: str | None, signature: str | None) -> bool:
    """Check a presented signature against the payload, in constant time.

    Never raises: a missing secret or signature, a value without the
    ``sha256=`` prefix, non-ASCII input or a length mismatch all yield False.

    Args:
        payload: Raw request body bytes.
        secret: Shared webhook secret.
        signature: Value of the X-Hub-Signature-256 header.

    Returns:
        True only if the signature matches.
    """
    if not secret or not signature:
        return False
    if not signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_signature(payload, secret).encode("ascii")
    presented = signature.encode("utf-8", errors="replace")
    # compare_digest on bytes accepts unequal lengths and any byte values.
    return hmac.compare_digest(expected, presented)
