"""HTTP client for the SuperNavi cloud API."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from supernavi_bridge.auth.credentials import select_auth
from supernavi_bridge.clients.base import BaseBridgeClient
from supernavi_bridge.exceptions import ApiError, NotConfiguredError, TransportError
from supernavi_bridge.models import MutationOp, PairingResult

logger = logging.getLogger(__name__)


class CloudClient(BaseBridgeClient):
    """Async client for the authoritative cloud API.

    Every authenticated call carries exactly one credential header, chosen by
    select_auth(). Non-success statuses raise ApiError with the status code so
    callers can tell 404, 410 and 429 apart. Nothing is retried here.

    Usage:
        client = CloudClient(config_store)
        status = await client.get_case_status("AP000123")
    """

    async def call(
        self,
        path: str,
        method: str = "GET",
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Make a call to the cloud API.

        Args:
            path: Path below the base URL (e.g., "/api/ui-bridge/me")
            method: HTTP method
            json: Optional JSON body
            authenticated: Attach the active credential (pairing claims do not)

        Returns:
            Decoded JSON body ({} for an empty body)

        Raises:
            NotConfiguredError: If authenticated and no credential is configured
            ApiError: On any non-success HTTP status
            TransportError: On network failure, timeout or undecodable body
        """
        config = self.config_store.load()
        auth = None
        if authenticated:
            auth = select_auth(config)
            if auth is None:
                raise NotConfiguredError()

        url = f"{config.api_base_url}{path}"
        logger.debug(f"API call: {method} {url}")

        try:
            async with self._get_client() as client:
                response = await client.request(
                    method, url, json=json, headers=self._headers(auth)
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"Timed out calling {path}", cause=e) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Connection error calling {path}: {e}", cause=e) from e

        if not response.is_success:
            raise ApiError(response.status_code, response.text)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed response from {path}", cause=e) from e

    async def get_case_status(self, case_id: str) -> Dict[str, Any]:
        """Get raw status payload for a case.

        Args:
            case_id: Canonical case identifier

        Returns:
            Payload with readySlides, processingSlides, unconfirmedCandidates
        """
        payload = await self.call(f"/api/ui-bridge/cases/{quote(case_id, safe='')}/status")
        if not isinstance(payload, dict):
            raise TransportError(f"Malformed status payload for {case_id}")
        return payload

    async def mutate_binding(
        self,
        op: MutationOp,
        case_id: str,
        slide_id: str,
        patient_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Attach a slide to, or detach it from, a case."""
        body: Dict[str, Any] = {"slideId": slide_id}
        if patient_data:
            body["patientData"] = patient_data

        return await self.call(
            f"/api/ui-bridge/cases/{quote(case_id, safe='')}/{op.value}",
            method="POST",
            json=body,
        )

    async def create_viewer_link(
        self,
        slide_id: str,
        external_case_id: Optional[str] = None,
        patient_data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Request a navigable viewer URL for a slide.

        Returns:
            Opaque viewer URL
        """
        body: Dict[str, Any] = {"slideId": slide_id}
        if external_case_id:
            body["externalCaseId"] = external_case_id
        if patient_data:
            body["patientData"] = patient_data

        payload = await self.call("/api/ui-bridge/viewer-link", method="POST", json=body)
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise TransportError("Viewer link response did not include a url")
        return url

    async def get_me(self) -> Dict[str, Any]:
        """Get identity of the current credential (user, device, edge agent)."""
        return await self.call("/api/ui-bridge/me")

    async def claim_pairing_code(self, code: str) -> PairingResult:
        """Exchange a pairing code for device credentials.

        The claim is unauthenticated: the code itself is the proof.

        Raises:
            ApiError: 404 for an unknown code, 410 for an expired or used one
        """
        payload = await self.call(
            "/api/ui-bridge/pairing/claim",
            method="POST",
            json={"code": code},
            authenticated=False,
        )
        try:
            return PairingResult.model_validate(payload)
        except ValueError as e:
            raise TransportError("Malformed pairing response", cause=e) from e

    async def list_unlinked_slides(self) -> List[Dict[str, Any]]:
        """Slides not yet bound to any case."""
        payload = await self.call("/api/ui-bridge/slides/unlinked")
        if not isinstance(payload, dict):
            return []
        return payload.get("slides") or []

    async def list_ready_slides(self) -> List[Dict[str, Any]]:
        """READY slides available for binding."""
        payload = await self.call("/api/v1/slides/ready")
        if not isinstance(payload, dict):
            return []
        return payload.get("slides") or []

    async def get_bindings(self, pathoweb_ref: str) -> List[Dict[str, Any]]:
        """Slides bound to a PathoWeb case reference."""
        payload = await self.call(f"/api/v1/bindings/{quote(pathoweb_ref, safe='')}")
        if not isinstance(payload, dict):
            return []
        return payload.get("bindings") or []

    async def create_binding(self, pathoweb_ref: str, slide_id: str) -> Dict[str, Any]:
        """Bind a slide to a PathoWeb case reference.

        Returns:
            The created binding as reported by the cloud
        """
        payload = await self.call(
            "/api/v1/bindings",
            method="POST",
            json={"pathowebRef": pathoweb_ref, "slideId": slide_id},
        )
        logger.info(f"Binding created: {slide_id} -> {pathoweb_ref}")
        return payload if isinstance(payload, dict) else {}
