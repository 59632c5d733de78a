"""Pydantic schemas for relay responses."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field


class ServiceInfoResponse(BaseModel):
    """Static service metadata returned on the root path."""

    service: str = Field(..., description="Service name.")
    version: str = Field(..., description="Service version.")
    endpoints: Dict[str, str] = Field(
        default_factory=dict,
        description="Public endpoints by purpose.",
    )


class HealthResponse(BaseModel):
    """Liveness and configuration status.

    Only reports whether the destination and secret are set, never their values.
    """

    status: str = Field("ok", description="Always 'ok' while the process serves requests.")
    destination_configured: bool = Field(..., description="Whether a destination URL is set.")
    secret_configured: bool = Field(..., description="Whether a webhook secret is set.")


class RelayResponse(BaseModel):
    """Returned to the sender when the destination accepted the webhook."""

    success: bool = Field(True, description="Always true; failures use the error schema.")
    message: str = Field(..., description="Human-readable outcome.")
    delivery_id: str = Field(..., description="Echo of X-GitHub-Delivery.")
    destination_status: int = Field(..., description="HTTP status returned by the destination.")
