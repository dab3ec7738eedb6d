"""Base HTTP client for calls to the SuperNavi cloud."""

import logging
from typing import Optional

import httpx

from supernavi_bridge.auth.credentials import AuthMode
from supernavi_bridge.config.settings import ConfigStore

logger = logging.getLogger(__name__)


class BaseBridgeClient:
    """Base class for SuperNavi HTTP clients.

    Configuration (base URL, credentials) is read from the ConfigStore on
    every call, so pairing or key changes take effect without rebuilding
    clients.

    Usage:
        class CloudClient(BaseBridgeClient):
            async def get_me(self) -> dict:
                async with self._get_client() as client:
                    response = await client.get(
                        f"{self.base_url}/api/ui-bridge/me",
                        headers=self._headers(auth),
                    )
                    ...
    """

    def __init__(
        self,
        config_store: ConfigStore,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            config_store: Source of the current persisted configuration
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.config_store = config_store
        self.timeout = timeout
        self._transport = transport

        logger.info(
            f"Initialized {self.__class__.__name__} with base_url={self.base_url}, timeout={timeout}s"
        )

    @property
    def base_url(self) -> str:
        return self.config_store.load().api_base_url

    def _headers(self, auth: Optional[AuthMode] = None) -> dict:
        """Generate request headers.

        Args:
            auth: Credential to attach; exactly one auth header is added

        Returns:
            Headers dict with Content-Type and at most one credential header
        """
        headers = {
            "Content-Type": "application/json",
        }

        if auth is not None:
            headers.update(auth.headers())

        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
