"""Request coordination between the UI layer and the engine."""

from supernavi_bridge.coordinator.coordinator import (
    DEFAULT_DEBOUNCED,
    EXTERNAL_CASE_PREFIX,
    LinkOpener,
    RequestCoordinator,
    ResultSink,
)
from supernavi_bridge.coordinator.debounce import PendingRequestState
from supernavi_bridge.coordinator.errors import describe_error
from supernavi_bridge.coordinator.pointer import CurrentCasePointer, is_relevant

__all__ = [
    "DEFAULT_DEBOUNCED",
    "EXTERNAL_CASE_PREFIX",
    "LinkOpener",
    "RequestCoordinator",
    "ResultSink",
    "PendingRequestState",
    "describe_error",
    "CurrentCasePointer",
    "is_relevant",
]
