"""Configuration Module

Environment-driven settings and the persisted bridge configuration.
"""

from .settings import (
    DEFAULT_API_BASE_URL,
    BridgeConfig,
    BridgeSettings,
    ConfigStore,
    get_settings,
    reset_settings,
)

__all__ = [
    "DEFAULT_API_BASE_URL",
    "BridgeConfig",
    "BridgeSettings",
    "ConfigStore",
    "get_settings",
    "reset_settings",
]
