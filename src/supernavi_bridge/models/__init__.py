"""
Data models for the SuperNavi bridge.

Pydantic models shared by the clients, the resolution engine and the
coordinator.
"""

from supernavi_bridge.models.case import (
    PREFIX_ALIASES,
    canonicalize_case_id,
    Provenance,
    SlideRef,
    parse_slides,
    StatusSnapshot,
    MutationOp,
    MutationResult,
)
from supernavi_bridge.models.identity import (
    AuthInfo,
    DeviceInfo,
    UserInfo,
    PairingResult,
)
from supernavi_bridge.models.messages import (
    MessageType,
    CASE_SCOPED_TYPES,
    PatientData,
    BridgeRequest,
    BridgeResult,
    ErrorInfo,
)

__all__ = [
    # Cases and snapshots
    "PREFIX_ALIASES", "canonicalize_case_id", "Provenance", "SlideRef",
    "parse_slides", "StatusSnapshot", "MutationOp", "MutationResult",
    # Identity
    "AuthInfo", "DeviceInfo", "UserInfo", "PairingResult",
    # Messages
    "MessageType", "CASE_SCOPED_TYPES", "PatientData", "BridgeRequest",
    "BridgeResult", "ErrorInfo",
]
