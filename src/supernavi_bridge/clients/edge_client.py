"""Client for the local edge agent, reached through the cloud tunnel."""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import httpx

from supernavi_bridge.auth.credentials import AuthMode, select_auth
from supernavi_bridge.clients.base import BaseBridgeClient
from supernavi_bridge.config.settings import ConfigStore
from supernavi_bridge.models import MutationOp

logger = logging.getLogger(__name__)


class Unavailable(Enum):
    """Marker for "the edge could not answer"; falsy so callers can test it."""

    UNAVAILABLE = "unavailable"

    def __bool__(self) -> bool:
        return False


UNAVAILABLE = Unavailable.UNAVAILABLE

EdgeResponse = Union[Dict[str, Any], Unavailable]


class EdgeClient(BaseBridgeClient):
    """Best-effort client for an edge agent.

    Requests go to {base_url}/api/ui-bridge/edge/{agent_id}/proxy{path} with
    the same credential header as the cloud. Each call is bounded by a short
    hard timeout and cancelled when it expires. try_fetch() never raises: a
    timeout, non-success status, transport error or malformed payload all
    come back as UNAVAILABLE.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config_store=config_store, timeout=timeout, transport=transport)

    def _tunnel_url(self, agent_id: str, path: str) -> str:
        return f"{self.base_url}/api/ui-bridge/edge/{quote(agent_id, safe='')}/proxy{path}"

    async def _request(
        self, method: str, url: str, json: Optional[Dict[str, Any]], auth: AuthMode
    ) -> httpx.Response:
        async with self._get_client() as client:
            return await client.request(method, url, json=json, headers=self._headers(auth))

    async def try_fetch(
        self,
        agent_id: Optional[str],
        path: str,
        method: str = "GET",
        json: Optional[Dict[str, Any]] = None,
    ) -> EdgeResponse:
        """Call the edge agent, collapsing every failure to UNAVAILABLE.

        Args:
            agent_id: Resolved edge agent identifier; None skips the call
            path: Agent-relative path (e.g., "/cases/AP000123/status")
            method: HTTP method
            json: Optional JSON body

        Returns:
            Decoded JSON object, or UNAVAILABLE
        """
        if not agent_id:
            return UNAVAILABLE

        auth = select_auth(self.config_store.load())
        if auth is None:
            return UNAVAILABLE

        url = self._tunnel_url(agent_id, path)
        logger.debug(f"Edge call: {method} {url}")

        try:
            response = await asyncio.wait_for(
                self._request(method, url, json, auth), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.debug(f"Edge call timed out after {self.timeout}s: {path}")
            return UNAVAILABLE
        except httpx.HTTPError as e:
            logger.debug(f"Edge transport error for {path}: {e}")
            return UNAVAILABLE

        if not response.is_success:
            logger.debug(f"Edge returned {response.status_code} for {path}")
            return UNAVAILABLE

        try:
            payload = response.json()
        except ValueError:
            logger.debug(f"Edge returned a non-JSON body for {path}")
            return UNAVAILABLE

        if not isinstance(payload, dict):
            return UNAVAILABLE
        return payload

    async def fetch_case_status(self, agent_id: Optional[str], case_id: str) -> EdgeResponse:
        return await self.try_fetch(agent_id, f"/cases/{quote(case_id, safe='')}/status")

    async def mutate_binding(
        self,
        agent_id: Optional[str],
        op: MutationOp,
        case_id: str,
        slide_id: str,
        patient_data: Optional[Dict[str, Any]] = None,
    ) -> EdgeResponse:
        body: Dict[str, Any] = {"slideId": slide_id}
        if patient_data:
            body["patientData"] = patient_data
        return await self.try_fetch(
            agent_id, f"/cases/{quote(case_id, safe='')}/{op.value}", method="POST", json=body
        )
