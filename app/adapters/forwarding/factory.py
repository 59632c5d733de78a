"""Factory for the destination forwarder."""

from app.adapters.forwarding.base import AbstractForwarder
from app.adapters.forwarding.httpx_client import HttpxForwarder
from app.core.config import Settings
from app.core.errors import ConfigurationAppError


def create_forwarder(cfg: Settings) -> AbstractForwarder:
    """Build the forwarder for the configured destination.

    Args:
        cfg: Resolved settings.

    Returns:
        AbstractForwarder: Client posting to RELAY_DESTINATION_URL.

    Raises:
        ConfigurationAppError: If no destination URL is configured.
    """
    if not cfg.relay.destination_url:
        raise ConfigurationAppError(
            code="missing_destination_url",
            message="RELAY_DESTINATION_URL environment variable is required",
        )
    return HttpxForwarder(
        destination_url=cfg.relay.destination_url,
        timeout_seconds=cfg.relay.timeout_seconds,
    )
