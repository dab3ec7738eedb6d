"""Relay between UI-originated requests and the resolution engine.

The coordinator runs each request against the engine and hands the result to
the UI sink only if it is still relevant: results for a case the user has
navigated away from are dropped, and duplicate viewer-link requests inside the
cooldown window are suppressed. Failures are converted into failed results;
nothing is raised across this boundary.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, Optional, Set, Tuple

from supernavi_bridge.coordinator.debounce import Clock, PendingRequestState
from supernavi_bridge.coordinator.errors import describe_error
from supernavi_bridge.coordinator.pointer import CurrentCasePointer
from supernavi_bridge.engine.resolution import ResolutionEngine
from supernavi_bridge.exceptions import BridgeError
from supernavi_bridge.models import (
    BridgeRequest,
    BridgeResult,
    MessageType,
    MutationOp,
    canonicalize_case_id,
)

logger = logging.getLogger(__name__)

ResultSink = Callable[[BridgeResult], Awaitable[None]]
LinkOpener = Callable[[str], Awaitable[None]]

EXTERNAL_CASE_PREFIX = "pathoweb:"

DEFAULT_DEBOUNCED: FrozenSet[MessageType] = frozenset({MessageType.REQUEST_VIEWER_LINK})

# Payload a failed result still carries, so the UI can render an empty state
_FAILURE_PAYLOADS: Dict[MessageType, Dict[str, Any]] = {
    MessageType.GET_UNLINKED_SLIDES: {"slides": []},
    MessageType.GET_READY_SLIDES: {"slides": []},
    MessageType.GET_BINDINGS: {"bindings": []},
}


class RequestCoordinator:
    """Serializes UI requests into engine calls and routes results back.

    Usage:
        coordinator = RequestCoordinator(engine, sink=ui.receive, open_link=ui.open_tab)
        coordinator.set_current_case("AP000123")
        coordinator.dispatch(BridgeRequest(type=MessageType.RESOLVE_STATUS, case_id="AP000123"))
    """

    def __init__(
        self,
        engine: ResolutionEngine,
        sink: ResultSink,
        pointer: Optional[CurrentCasePointer] = None,
        open_link: Optional[LinkOpener] = None,
        viewer_link_cooldown_seconds: float = 2.0,
        debounced: Iterable[MessageType] = DEFAULT_DEBOUNCED,
        clock: Optional[Clock] = None,
    ):
        """Initialize coordinator.

        Args:
            engine: Long-lived engine that owns cache and edge-agent state
            sink: Async callable receiving every delivered result
            pointer: Current-case pointer shared with the detection layer
            open_link: Async callable that opens a viewer URL (e.g., a new tab)
            viewer_link_cooldown_seconds: Debounce window for debounced kinds
            debounced: Operation kinds whose duplicates are suppressed
            clock: Monotonic clock override (tests)
        """
        self.engine = engine
        self.pointer = pointer or CurrentCasePointer()
        self._sink = sink
        self._open_link = open_link
        self._debounced = frozenset(debounced)
        self._pending = PendingRequestState(viewer_link_cooldown_seconds, clock=clock)
        self._tasks: Set[asyncio.Task] = set()

    def set_current_case(self, case_id: Optional[str]) -> bool:
        """Update the current case; in-flight results for the old one will be dropped."""
        return self.pointer.set_current(case_id)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def dispatch(self, request: BridgeRequest) -> "asyncio.Task[Optional[BridgeResult]]":
        """Schedule a request without waiting for it (fire-and-forget relay)."""
        task = asyncio.ensure_future(self.handle(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every dispatched request to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def handle(self, request: BridgeRequest) -> Optional[BridgeResult]:
        """Run one request and deliver its result if still relevant.

        Returns:
            The delivered result, or None if it was suppressed or dropped
        """
        if request.type in self._debounced and not self._pending.try_begin(request.type.value):
            logger.debug(f"Suppressed duplicate {request.type.value} within cooldown")
            return None

        subject, generation = self._subject_for(request)

        try:
            payload = await self._execute(request)
            result = BridgeResult(
                request_id=request.request_id,
                type=request.type,
                success=True,
                subject=subject,
                generation=generation,
                payload=payload,
            )
        except BridgeError as e:
            logger.debug(f"{request.type.value} failed: {e}")
            result = BridgeResult(
                request_id=request.request_id,
                type=request.type,
                success=False,
                subject=subject,
                generation=generation,
                payload=self._failure_payload(request),
                error=describe_error(e, request.type),
            )

        delivered = await self._deliver(result)

        if request.type == MessageType.CLAIM_PAIRING_CODE and result.success:
            # New credentials: push fresh auth info to the UI as well
            info = await self.engine.get_auth_info()
            await self._deliver(BridgeResult(
                request_id=request.request_id,
                type=MessageType.GET_AUTH_INFO,
                success=True,
                payload=info.to_payload(),
            ))

        return delivered

    def _subject_for(self, request: BridgeRequest) -> Tuple[Optional[str], Optional[int]]:
        """Subject and pointer generation, captured at request time."""
        if request.type.is_case_scoped:
            try:
                subject = canonicalize_case_id(request.case_id)
            except BridgeError:
                subject = request.case_id
            return subject, self.pointer.generation
        return request.slide_id or request.pathoweb_ref, None

    def _failure_payload(self, request: BridgeRequest) -> Dict[str, Any]:
        payload = dict(_FAILURE_PAYLOADS.get(request.type, {}))
        if payload and request.pathoweb_ref:
            payload["pathowebRef"] = request.pathoweb_ref
        return payload

    async def _deliver(self, result: BridgeResult) -> Optional[BridgeResult]:
        if result.type.is_case_scoped and not self.pointer.is_still_current(
            result.subject, result.generation
        ):
            logger.debug(
                f"Dropping stale {result.type.value} for {result.subject} "
                f"(current={self.pointer.current})"
            )
            return None

        await self._sink(result)
        return result

    async def _execute(self, request: BridgeRequest) -> Dict[str, Any]:
        engine = self.engine
        kind = request.type
        patient_data = request.patient_data.to_payload() if request.patient_data else None

        if kind == MessageType.RESOLVE_STATUS:
            return (await engine.resolve_status(request.case_id)).to_payload()

        if kind == MessageType.REFRESH_STATUS:
            return (await engine.invalidate_and_refetch(request.case_id)).to_payload()

        if kind in (MessageType.ATTACH_SLIDE, MessageType.DETACH_SLIDE):
            op = MutationOp.ATTACH if kind == MessageType.ATTACH_SLIDE else MutationOp.DETACH
            result = await engine.mutate(op, request.case_id, request.slide_id, patient_data)
            return result.to_payload()

        if kind == MessageType.REQUEST_VIEWER_LINK:
            external_case_id = request.external_case_id
            if not external_case_id and self.pointer.current:
                external_case_id = f"{EXTERNAL_CASE_PREFIX}{self.pointer.current}"
            url = await engine.request_viewer_link(request.slide_id, external_case_id, patient_data)
            if self._open_link is not None:
                await self._open_link(url)
            return {"slideId": request.slide_id, "url": url}

        if kind == MessageType.GET_AUTH_INFO:
            return (await engine.get_auth_info()).to_payload()

        if kind == MessageType.CLAIM_PAIRING_CODE:
            paired = await engine.claim_pairing_code(request.code)
            return {"deviceId": paired.device_id, "deviceName": paired.device_name}

        if kind == MessageType.GET_UNLINKED_SLIDES:
            return {"slides": await engine.list_unlinked_slides()}

        if kind == MessageType.GET_READY_SLIDES:
            return {"slides": await engine.list_ready_slides()}

        if kind == MessageType.TEST_CONNECTION:
            return (await engine.test_connection()).to_payload()

        if kind == MessageType.GET_BINDINGS:
            bindings = await engine.get_bindings(request.pathoweb_ref)
            return {"pathowebRef": request.pathoweb_ref, "bindings": bindings}

        if kind == MessageType.CREATE_BINDING:
            created = await engine.create_binding(request.pathoweb_ref, request.slide_id)
            return {"pathowebRef": request.pathoweb_ref, "slideId": request.slide_id, **created}

        raise ValueError(f"Unhandled message type: {kind}")
