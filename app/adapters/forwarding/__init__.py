"""Forwarding adapter layer - delivers verified webhooks to the destination."""

from app.adapters.forwarding.base import AbstractForwarder, ForwardResult, InboundWebhook
from app.adapters.forwarding.factory import create_forwarder
from app.adapters.forwarding.httpx_client import HttpxForwarder

__all__ = [
    "AbstractForwarder",
    "ForwardResult",
    "HttpxForwarder",
    "InboundWebhook",
    "create_forwarder",
]
