"""Authentication utilities for the SuperNavi bridge.

Selects which single credential header outbound calls carry.
"""

from supernavi_bridge.auth.credentials import (
    DEVICE_TOKEN_HEADER,
    LEGACY_KEY_HEADER,
    AuthMode,
    DeviceToken,
    LegacyKey,
    select_auth,
)

__all__ = [
    "DEVICE_TOKEN_HEADER",
    "LEGACY_KEY_HEADER",
    "AuthMode",
    "DeviceToken",
    "LegacyKey",
    "select_auth",
]
