"""Request/result messages exchanged between the UI layer and the coordinator.

Messages are transport-neutral: a request carries a request_id and the result
echoes it, so any relay (browser runtime messaging, a websocket, a queue) can
correlate them without closures.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MessageType(str, Enum):
    """Inbound operation kinds; results reuse the same value."""

    RESOLVE_STATUS = "resolveStatus"
    REFRESH_STATUS = "refreshStatus"
    ATTACH_SLIDE = "attachSlide"
    DETACH_SLIDE = "detachSlide"
    REQUEST_VIEWER_LINK = "requestViewerLink"
    GET_AUTH_INFO = "getAuthInfo"
    CLAIM_PAIRING_CODE = "claimPairingCode"
    GET_UNLINKED_SLIDES = "getUnlinkedSlides"
    GET_READY_SLIDES = "getReadySlides"
    TEST_CONNECTION = "testConnection"
    GET_BINDINGS = "getBindings"
    CREATE_BINDING = "createBinding"

    @property
    def is_case_scoped(self) -> bool:
        """Results of case-scoped requests are dropped once the case changes."""
        return self in CASE_SCOPED_TYPES


CASE_SCOPED_TYPES = frozenset({
    MessageType.RESOLVE_STATUS,
    MessageType.REFRESH_STATUS,
    MessageType.ATTACH_SLIDE,
    MessageType.DETACH_SLIDE,
})

REQUIRED_FIELDS: Dict[MessageType, Tuple[str, ...]] = {
    MessageType.RESOLVE_STATUS: ("case_id",),
    MessageType.REFRESH_STATUS: ("case_id",),
    MessageType.ATTACH_SLIDE: ("case_id", "slide_id"),
    MessageType.DETACH_SLIDE: ("case_id", "slide_id"),
    MessageType.REQUEST_VIEWER_LINK: ("slide_id",),
    MessageType.CLAIM_PAIRING_CODE: ("code",),
    MessageType.GET_BINDINGS: ("pathoweb_ref",),
    MessageType.CREATE_BINDING: ("pathoweb_ref", "slide_id"),
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PatientData(_CamelModel):
    """Patient metadata scraped from the page, forwarded to the viewer."""

    patient_name: Optional[str] = None
    patient_id: Optional[str] = None
    age: Optional[str] = None
    doctor: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BridgeRequest(_CamelModel):
    """One inbound operation request."""

    request_id: str = Field(default_factory=lambda: str(uuid4()))
    type: MessageType
    case_id: Optional[str] = None
    slide_id: Optional[str] = None
    external_case_id: Optional[str] = None
    patient_data: Optional[PatientData] = None
    code: Optional[str] = None
    pathoweb_ref: Optional[str] = None

    @model_validator(mode="after")
    def check_required_fields(self) -> "BridgeRequest":
        missing = [name for name in REQUIRED_FIELDS.get(self.type, ()) if not getattr(self, name)]
        if missing:
            raise ValueError(f"{self.type.value} requires: {', '.join(missing)}")
        return self


class ErrorInfo(_CamelModel):
    """Failure detail carried by an unsuccessful result."""

    kind: str  # not_configured | api_error | transport_error | invalid_input
    message: str
    status: Optional[int] = None


class BridgeResult(_CamelModel):
    """Outbound result, mirroring the request it answers."""

    request_id: str
    type: MessageType
    success: bool
    subject: Optional[str] = None
    generation: Optional[int] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[ErrorInfo] = None
