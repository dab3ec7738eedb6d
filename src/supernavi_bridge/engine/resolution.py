"""Case status resolution engine.

Decides which source answers a status query (edge agent first, cloud as the
authoritative fallback), caches the answer, and invalidates it when a slide
binding changes. The engine owns the status cache and the resolved edge-agent
identifier; nothing here is module-global.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from supernavi_bridge.auth.credentials import select_auth
from supernavi_bridge.cache.status_cache import Clock, StatusCache
from supernavi_bridge.clients.cloud_client import CloudClient
from supernavi_bridge.clients.edge_client import UNAVAILABLE, EdgeClient, EdgeResponse
from supernavi_bridge.config.settings import BridgeSettings, ConfigStore
from supernavi_bridge.logging_config import configure_logging
from supernavi_bridge.exceptions import (
    BridgeError,
    InvalidCaseIdentifierError,
    InvalidPairingCodeError,
    TransportError,
)
from supernavi_bridge.models import (
    AuthInfo,
    MutationOp,
    MutationResult,
    PairingResult,
    Provenance,
    StatusSnapshot,
    canonicalize_case_id,
)

logger = logging.getLogger(__name__)

PAIRING_CODE_LENGTH = 6


def is_usable_edge_status(payload: EdgeResponse) -> bool:
    """Whether an edge status payload can stand in for the cloud's answer.

    Usable means a JSON object whose readySlides is a list (an empty list
    counts) and which does not explicitly report ``ok: false``.
    """
    if payload is UNAVAILABLE or not isinstance(payload, dict):
        return False
    if payload.get("ok") is False:
        return False
    return isinstance(payload.get("readySlides"), list)


def is_edge_confirmation(payload: EdgeResponse) -> bool:
    """Whether an edge mutation response acknowledges the change."""
    if payload is UNAVAILABLE or not isinstance(payload, dict):
        return False
    return payload.get("ok") is not False and not payload.get("error")


def binding_cache_key(pathoweb_ref: str) -> str:
    """Status cache key for a PathoWeb reference.

    References that look like case identifiers share the case's key; any
    other reference is keyed by its uppercased form.
    """
    try:
        return canonicalize_case_id(pathoweb_ref)
    except InvalidCaseIdentifierError:
        return (pathoweb_ref or "").strip().upper()


def normalize_pairing_code(code: str) -> str:
    """Uppercase and strip non-alphanumerics; the result must be 6 characters.

    Raises:
        InvalidPairingCodeError: If the normalized code has the wrong length
    """
    normalized = re.sub(r"[^A-Z0-9]", "", (code or "").upper())
    if len(normalized) != PAIRING_CODE_LENGTH:
        raise InvalidPairingCodeError(
            f"Pairing code must be {PAIRING_CODE_LENGTH} letters or digits"
        )
    return normalized


class ResolutionEngine:
    """Resolves and mutates case slide status across edge and cloud sources.

    Usage:
        engine = ResolutionEngine.from_settings(get_settings())
        snapshot = await engine.resolve_status("ap000123")
        await engine.mutate(MutationOp.ATTACH, "AP000123", "s1")
    """

    def __init__(
        self,
        config_store: ConfigStore,
        cloud: CloudClient,
        edge: EdgeClient,
        cache: StatusCache,
    ):
        self.config_store = config_store
        self.cloud = cloud
        self.edge = edge
        self.cache = cache

        # Bumped on every invalidation; a fetch that started under an older
        # value must not write its result back
        self._invalidations: Dict[str, int] = {}
        self._clears = 0

        # Known only after an identity lookup names an agent (or it was persisted)
        self._edge_agent_id: Optional[str] = config_store.load().edge_agent_id

        logger.info(
            f"ResolutionEngine initialized: cache_ttl={cache.ttl_seconds}s, "
            f"edge_timeout={edge.timeout}s, edge_agent={self._edge_agent_id or 'unresolved'}"
        )

    @classmethod
    def from_settings(
        cls,
        settings: BridgeSettings,
        config_store: Optional[ConfigStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Clock] = None,
    ) -> "ResolutionEngine":
        """Build an engine and its collaborators from settings."""
        store = config_store or ConfigStore(settings.to_config())
        configure_logging(store.load().debug)
        store.subscribe(lambda config: configure_logging(config.debug))
        return cls(
            config_store=store,
            cloud=CloudClient(store, timeout=settings.request_timeout_seconds, transport=transport),
            edge=EdgeClient(store, timeout=settings.edge_timeout_seconds, transport=transport),
            cache=StatusCache(ttl_seconds=settings.cache_ttl_seconds, clock=clock),
        )

    # ------------------------------------------------------------------
    # Edge agent identity
    # ------------------------------------------------------------------

    @property
    def edge_agent_id(self) -> Optional[str]:
        return self._edge_agent_id

    def _set_edge_agent_id(self, agent_id: Optional[str]) -> None:
        if agent_id == self._edge_agent_id:
            return
        self._edge_agent_id = agent_id
        self.config_store.update(edge_agent_id=agent_id)
        if agent_id:
            logger.info(f"Edge agent resolved: {agent_id}")
        else:
            logger.info("Edge agent cleared")

    def reset(self) -> None:
        """Drop cached snapshots and forget the edge agent (test reset point)."""
        self._clear_cache()
        self._set_edge_agent_id(None)

    # ------------------------------------------------------------------
    # Cache invalidation
    # ------------------------------------------------------------------

    def _epoch(self, key: str) -> Tuple[int, int]:
        return self._clears, self._invalidations.get(key, 0)

    def _invalidate(self, key: str) -> None:
        self._invalidations[key] = self._invalidations.get(key, 0) + 1
        self.cache.invalidate(key)

    def _clear_cache(self) -> None:
        self._clears += 1
        self._invalidations.clear()
        self.cache.clear()

    # ------------------------------------------------------------------
    # Status resolution
    # ------------------------------------------------------------------

    async def resolve_status(self, case_id: str) -> StatusSnapshot:
        """Get the status snapshot for a case.

        Cache hit returns immediately. Otherwise the edge is tried first; a
        usable edge answer means the cloud is not called. If the edge is
        unavailable the cloud is called exactly once and its failure, if any,
        propagates. Failures are never cached.

        Args:
            case_id: Case identifier in any accepted spelling

        Returns:
            StatusSnapshot tagged with its provenance

        Raises:
            InvalidCaseIdentifierError: If case_id cannot be canonicalized
            NotConfiguredError: If no credential is configured
            ApiError: If the cloud answers with a non-success status
            TransportError: On cloud network failure or malformed payload
        """
        key = canonicalize_case_id(case_id)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        epoch = self._epoch(key)
        snapshot = await self._resolve_from_edge(key)
        if snapshot is None:
            snapshot = await self._resolve_from_cloud(key)

        if self._epoch(key) == epoch:
            self.cache.put(key, snapshot)
        else:
            logger.debug(f"{key} was invalidated while fetching, not caching the result")
        return snapshot

    async def _resolve_from_edge(self, key: str) -> Optional[StatusSnapshot]:
        payload = await self.edge.fetch_case_status(self._edge_agent_id, key)
        if not is_usable_edge_status(payload):
            if self._edge_agent_id:
                logger.debug(f"Edge unavailable for {key}, falling back to cloud")
            return None

        try:
            return StatusSnapshot.from_payload(key, payload, Provenance.EDGE)
        except ValidationError as e:
            logger.warning(f"Edge status payload for {key} is malformed, falling back to cloud: {e}")
            return None

    async def _resolve_from_cloud(self, key: str) -> StatusSnapshot:
        payload = await self.cloud.get_case_status(key)
        try:
            return StatusSnapshot.from_payload(key, payload, Provenance.CLOUD)
        except ValidationError as e:
            raise TransportError(f"Malformed status payload for {key}", cause=e) from e

    async def invalidate_and_refetch(self, case_id: str) -> StatusSnapshot:
        """Drop the cached snapshot for a case and resolve it again."""
        key = canonicalize_case_id(case_id)
        self._invalidate(key)
        return await self.resolve_status(key)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def mutate(
        self,
        op: MutationOp,
        case_id: str,
        slide_id: str,
        patient_data: Optional[Dict[str, Any]] = None,
    ) -> MutationResult:
        """Attach a slide to, or detach it from, a case.

        The edge is tried first; the mutation is then always mirrored to the
        cloud. The operation succeeds once either source confirms it. A cloud
        failure after an edge confirmation is logged, not raised. On success
        the case's cache entry is invalidated (never patched).

        Raises:
            InvalidCaseIdentifierError: If case_id cannot be canonicalized
            BridgeError: The cloud failure, when the edge did not confirm
        """
        key = canonicalize_case_id(case_id)
        confirmed_by: List[Provenance] = []

        edge_payload = await self.edge.mutate_binding(
            self._edge_agent_id, op, key, slide_id, patient_data
        )
        if is_edge_confirmation(edge_payload):
            confirmed_by.append(Provenance.EDGE)

        try:
            await self.cloud.mutate_binding(op, key, slide_id, patient_data)
            confirmed_by.append(Provenance.CLOUD)
        except BridgeError as e:
            if not confirmed_by:
                raise
            logger.warning(
                f"Cloud mirror of {op.value} {slide_id} -> {key} failed after edge success: {e}"
            )

        self._invalidate(key)
        logger.info(f"{op.value} {slide_id} -> {key} confirmed by {[p.value for p in confirmed_by]}")
        return MutationResult(
            op=op, case_id=key, slide_id=slide_id, confirmed_by=tuple(confirmed_by)
        )

    # ------------------------------------------------------------------
    # Identity, pairing, links and listings (cloud only)
    # ------------------------------------------------------------------

    async def get_auth_info(self) -> AuthInfo:
        """Look up the current identity; never raises.

        A successful lookup that names an edge agent makes it the agent used
        for subsequent edge attempts.

        Returns:
            AuthInfo; authenticated=False when unconfigured or on any failure
        """
        auth = select_auth(self.config_store.load())
        if auth is None:
            return AuthInfo(authenticated=False)

        try:
            payload = await self.cloud.get_me()
        except BridgeError as e:
            logger.warning(f"Auth info lookup failed: {e}")
            return AuthInfo(authenticated=False, mode=auth.mode)

        try:
            info = AuthInfo.from_payload(payload if isinstance(payload, dict) else {}, mode=auth.mode)
        except ValidationError as e:
            logger.warning(f"Auth info payload is malformed: {e}")
            return AuthInfo(authenticated=False, mode=auth.mode)

        if info.authenticated and info.edge_agent_id:
            self._set_edge_agent_id(info.edge_agent_id)

        return info.model_copy(update={"edge_agent_id": self._edge_agent_id})

    async def test_connection(self) -> AuthInfo:
        """Probe the configured credential against the identity endpoint.

        Raises:
            NotConfiguredError, ApiError, TransportError: as the cloud reports them
        """
        auth = select_auth(self.config_store.load())
        payload = await self.cloud.get_me()
        try:
            return AuthInfo.from_payload(
                payload if isinstance(payload, dict) else {},
                mode=auth.mode if auth else None,
            )
        except ValidationError as e:
            raise TransportError("Malformed identity payload", cause=e) from e

    async def claim_pairing_code(self, code: str) -> PairingResult:
        """Exchange a pairing code for device credentials and persist them.

        The new device may map to a different edge agent and see different
        data, so the cache and the resolved agent are dropped.

        Raises:
            InvalidPairingCodeError: If the code is not 6 letters or digits
            ApiError: 404 unknown code, 410 expired or already used
        """
        normalized = normalize_pairing_code(code)
        result = await self.cloud.claim_pairing_code(normalized)

        self.config_store.update(
            device_token=result.device_token,
            device_id=result.device_id,
            device_name=result.device_name,
        )
        self._clear_cache()
        self._set_edge_agent_id(None)

        logger.info(f"Device paired: {result.device_name or result.device_id}")
        return result

    async def request_viewer_link(
        self,
        slide_id: str,
        external_case_id: Optional[str] = None,
        patient_data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Get an opaque viewer URL for a slide."""
        return await self.cloud.create_viewer_link(slide_id, external_case_id, patient_data)

    async def list_unlinked_slides(self) -> List[Dict[str, Any]]:
        return await self.cloud.list_unlinked_slides()

    async def list_ready_slides(self) -> List[Dict[str, Any]]:
        return await self.cloud.list_ready_slides()

    async def get_bindings(self, pathoweb_ref: str) -> List[Dict[str, Any]]:
        return await self.cloud.get_bindings(pathoweb_ref)

    async def create_binding(self, pathoweb_ref: str, slide_id: str) -> Dict[str, Any]:
        """Bind a slide to a PathoWeb case reference.

        On success the status cache entry for the reference is invalidated,
        as for attach.

        Raises:
            NotConfiguredError, ApiError, TransportError: as the cloud reports them
        """
        created = await self.cloud.create_binding(pathoweb_ref, slide_id)
        self._invalidate(binding_cache_key(pathoweb_ref))
        return created
