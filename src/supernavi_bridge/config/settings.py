"""Bridge configuration.

Two layers:
- BridgeSettings: tunables and initial credentials, loaded from SUPERNAVI_*
  environment variables and/or a .env file.
- BridgeConfig / ConfigStore: the persisted configuration the bridge reads on
  every call and updates after pairing or identity lookups.
"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://cloud.supernavi.app"


def _strip_trailing_slashes(value: str) -> str:
    return value.rstrip("/") if value else value


class BridgeConfig(BaseModel):
    """Persisted configuration snapshot.

    Immutable: ConfigStore.update() replaces the whole snapshot.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    device_token: str = ""
    device_id: Optional[str] = None
    device_name: Optional[str] = None
    edge_agent_id: Optional[str] = None
    debug: bool = False

    @field_validator("api_base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        return _strip_trailing_slashes(v)


class BridgeSettings(BaseSettings):
    """Tunables and initial configuration loaded from the environment."""

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Cloud API base URL")
    api_key: str = Field(default="", description="Legacy API key (x-supernavi-key)")
    device_token: str = Field(default="", description="Paired device token (x-device-token)")
    device_id: Optional[str] = Field(default=None)
    device_name: Optional[str] = Field(default=None)
    edge_agent_id: Optional[str] = Field(default=None, description="Previously resolved edge agent")
    debug: bool = Field(default=False)

    cache_ttl_seconds: float = Field(default=30.0, gt=0, description="Case status cache TTL")
    edge_timeout_seconds: float = Field(default=3.0, gt=0, le=10, description="Hard bound on edge calls")
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Cloud request timeout")
    viewer_link_cooldown_seconds: float = Field(default=2.0, ge=0, description="Viewer-link debounce window")

    model_config = SettingsConfigDict(
        env_prefix="SUPERNAVI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        return _strip_trailing_slashes(v)

    def to_config(self) -> BridgeConfig:
        """Build the initial persisted configuration from these settings."""
        return BridgeConfig(
            api_base_url=self.api_base_url,
            api_key=self.api_key,
            device_token=self.device_token,
            device_id=self.device_id,
            device_name=self.device_name,
            edge_agent_id=self.edge_agent_id,
            debug=self.debug,
        )


ConfigListener = Callable[[BridgeConfig], None]


class ConfigStore:
    """Holds the current BridgeConfig and notifies listeners on change.

    Listeners are how an external persistence layer (browser storage, a file)
    receives updates; the bridge itself only keeps the config in memory.
    """

    def __init__(self, config: Optional[BridgeConfig] = None):
        self._config = config or BridgeConfig()
        self._listeners: List[ConfigListener] = []

    def load(self) -> BridgeConfig:
        return self._config

    def update(self, **changes) -> BridgeConfig:
        """Replace the current config with one that has ``changes`` applied.

        Returns:
            The new config snapshot

        Raises:
            pydantic.ValidationError: If a changed field is invalid
        """
        updated = BridgeConfig(**{**self._config.model_dump(), **changes})
        self._config = updated
        logger.debug(f"Config updated: fields={sorted(changes)}")
        for listener in self._listeners:
            listener(updated)
        return updated

    def subscribe(self, listener: ConfigListener) -> None:
        self._listeners.append(listener)


# Singleton settings for process-wide access
_settings_instance: Optional[BridgeSettings] = None


def get_settings() -> BridgeSettings:
    """Get or create the global BridgeSettings instance."""
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = BridgeSettings()

    return _settings_instance


def reset_settings() -> None:
    """Reset the global BridgeSettings instance.

    Used for testing or reconfiguration.
    """
    global _settings_instance
    _settings_instance = None
    logger.warning("BridgeSettings instance reset")
