"""Credential selection for outbound calls."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from supernavi_bridge.config.settings import BridgeConfig

logger = logging.getLogger(__name__)

DEVICE_TOKEN_HEADER = "x-device-token"
LEGACY_KEY_HEADER = "x-supernavi-key"


@dataclass(frozen=True)
class DeviceToken:
    """Credential issued by pairing a device."""

    token: str
    mode: str = "device"

    def headers(self) -> Dict[str, str]:
        return {DEVICE_TOKEN_HEADER: self.token}


@dataclass(frozen=True)
class LegacyKey:
    """Static API key configured by hand."""

    key: str
    mode: str = "legacy"

    def headers(self) -> Dict[str, str]:
        return {LEGACY_KEY_HEADER: self.key}


AuthMode = Union[DeviceToken, LegacyKey]


def select_auth(config: BridgeConfig) -> Optional[AuthMode]:
    """Pick the active credential from persisted configuration.

    A device token always wins over a legacy key. Never raises; callers turn
    ``None`` into NotConfiguredError before touching the network.

    Args:
        config: Current persisted configuration

    Returns:
        DeviceToken, LegacyKey, or None when neither is set
    """
    if config.device_token:
        return DeviceToken(config.device_token)
    if config.api_key:
        return LegacyKey(config.api_key)
    logger.debug("No credential configured")
    return None
