"""Provider clients for the messaging account."""

from relaydesk.adapters.base import BaseProviderClient, ProviderEvent, ProviderEventKind
from relaydesk.adapters.gateway import GatewayProviderClient

__all__ = [
    "BaseProviderClient",
    "GatewayProviderClient",
    "ProviderEvent",
    "ProviderEventKind",
]
