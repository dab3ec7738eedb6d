"""SuperNavi Bridge

Case status resolution for the SuperNavi digital-slide service: edge-first,
cloud-fallback source selection, TTL caching, and relevance-checked delivery
of results to the UI layer.
"""

__version__ = "0.1.0"

# Export shared models first (no dependencies)
from supernavi_bridge.models import (
    canonicalize_case_id, Provenance, SlideRef, StatusSnapshot,
    MutationOp, MutationResult, AuthInfo, MessageType, BridgeRequest, BridgeResult,
)

from supernavi_bridge.exceptions import (
    BridgeError,
    NotConfiguredError,
    ApiError,
    TransportError,
    InvalidCaseIdentifierError,
    InvalidPairingCodeError,
)

from supernavi_bridge.config import (
    BridgeConfig,
    BridgeSettings,
    ConfigStore,
    get_settings,
    reset_settings,
)


# Lazy import for the engine and coordinator: they pull in httpx and the
# clients, which plain model consumers do not need
def __getattr__(name):
    """Lazy import for ResolutionEngine and RequestCoordinator."""
    if name == "ResolutionEngine":
        from supernavi_bridge.engine import ResolutionEngine
        return ResolutionEngine
    if name == "RequestCoordinator":
        from supernavi_bridge.coordinator import RequestCoordinator
        return RequestCoordinator
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "canonicalize_case_id", "Provenance", "SlideRef", "StatusSnapshot",
    "MutationOp", "MutationResult", "AuthInfo", "MessageType",
    "BridgeRequest", "BridgeResult",
    # Errors
    "BridgeError", "NotConfiguredError", "ApiError", "TransportError",
    "InvalidCaseIdentifierError", "InvalidPairingCodeError",
    # Configuration
    "BridgeConfig", "BridgeSettings", "ConfigStore", "get_settings", "reset_settings",
    # Engine (lazy loaded)
    "ResolutionEngine", "RequestCoordinator",
]
