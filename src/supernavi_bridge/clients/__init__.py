"""HTTP clients for the cloud API and the tunnelled edge agent."""

from supernavi_bridge.clients.base import BaseBridgeClient
from supernavi_bridge.clients.cloud_client import CloudClient
from supernavi_bridge.clients.edge_client import (
    UNAVAILABLE,
    EdgeClient,
    EdgeResponse,
    Unavailable,
)

__all__ = [
    "BaseBridgeClient",
    "CloudClient",
    "EdgeClient",
    "EdgeResponse",
    "UNAVAILABLE",
    "Unavailable",
]
