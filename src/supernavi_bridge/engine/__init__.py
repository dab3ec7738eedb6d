"""Case status resolution engine."""

from supernavi_bridge.engine.resolution import (
    PAIRING_CODE_LENGTH,
    ResolutionEngine,
    binding_cache_key,
    is_edge_confirmation,
    is_usable_edge_status,
    normalize_pairing_code,
)

__all__ = [
    "PAIRING_CODE_LENGTH",
    "ResolutionEngine",
    "binding_cache_key",
    "is_edge_confirmation",
    "is_usable_edge_status",
    "normalize_pairing_code",
]
