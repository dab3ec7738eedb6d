"""Case and slide status models.

Key Models:
- canonicalize_case_id: Normalizes case identifiers into cache keys
- SlideRef: One slide as reported by a source
- StatusSnapshot: Immutable view of a case's slides, tagged with provenance
- MutationResult: Outcome of an attach/detach operation
"""

import re
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from supernavi_bridge.exceptions import InvalidCaseIdentifierError


# ============================================================
# Case Identifiers
# ============================================================

# Distinct department prefixes that denote the same case series
PREFIX_ALIASES: Dict[str, str] = {
    "PA": "AP",
}

_CASE_ID_PATTERN = re.compile(r"^([A-Z]+)[\s\-_./]*(\d+)$")


def canonicalize_case_id(
    raw: str, aliases: Optional[Mapping[str, str]] = None
) -> str:
    """Normalize a case identifier into its canonical cache key.

    Uppercases, drops separators between prefix and number, and collapses
    aliased prefixes.

    Args:
        raw: Case identifier as found on the page (e.g., "ap-000123")
        aliases: Prefix alias mapping (default: PREFIX_ALIASES)

    Returns:
        Canonical identifier (e.g., "AP000123")

    Raises:
        InvalidCaseIdentifierError: If the text is not <letters><digits>

    Example:
        >>> canonicalize_case_id("pa 000123")
        'AP000123'
    """
    if not isinstance(raw, str):
        raise InvalidCaseIdentifierError(f"Case identifier must be a string, got {type(raw).__name__}")

    match = _CASE_ID_PATTERN.match(raw.strip().upper())
    if not match:
        raise InvalidCaseIdentifierError(f"Not a case identifier: {raw!r}")

    prefix, number = match.groups()
    alias_map = PREFIX_ALIASES if aliases is None else aliases
    prefix = alias_map.get(prefix, prefix)
    return f"{prefix}{number}"


# ============================================================
# Slides and Snapshots
# ============================================================

class Provenance(str, Enum):
    """Source that produced a snapshot."""

    EDGE = "edge"
    CLOUD = "cloud"


class SlideRef(BaseModel):
    """One slide reference from a status or listing payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    slide_id: str = Field(alias="slideId")
    filename: Optional[str] = None
    label: Optional[str] = None
    thumb_url: Optional[str] = Field(default=None, alias="thumbUrl")
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    score: Optional[float] = None

    @field_validator("slide_id", "label", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> Any:
        # Sources sometimes send numeric labels ("1" from AP26000230-1.svs)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


def parse_slides(items: Optional[Iterable[Any]]) -> Tuple[SlideRef, ...]:
    """Parse a list of slide dicts; None yields an empty tuple.

    Raises:
        pydantic.ValidationError: If an item is not a valid slide
    """
    if items is None:
        return ()
    return tuple(SlideRef.model_validate(item) for item in items)


class StatusSnapshot(BaseModel):
    """Resolved view of a case's slides.

    Frozen: an update is a new snapshot, never a mutation in place.
    """

    model_config = ConfigDict(frozen=True)

    case_id: str
    provenance: Provenance
    ready_slides: Tuple[SlideRef, ...] = ()
    processing_slides: Tuple[SlideRef, ...] = ()
    unconfirmed_candidates: Tuple[SlideRef, ...] = ()

    @classmethod
    def from_payload(
        cls, case_id: str, payload: Mapping[str, Any], provenance: Provenance
    ) -> "StatusSnapshot":
        """Map a source status payload into the common snapshot shape.

        Raises:
            pydantic.ValidationError: If the payload listings are malformed
        """
        return cls(
            case_id=case_id,
            provenance=provenance,
            ready_slides=parse_slides(payload.get("readySlides")),
            processing_slides=parse_slides(payload.get("processingSlides")),
            unconfirmed_candidates=parse_slides(payload.get("unconfirmedCandidates")),
        )

    @property
    def has_ready(self) -> bool:
        return len(self.ready_slides) > 0

    @property
    def has_processing(self) -> bool:
        return len(self.processing_slides) > 0

    @property
    def best_candidate(self) -> Optional[SlideRef]:
        """Highest scoring unconfirmed candidate, if any."""
        if not self.unconfirmed_candidates:
            return None
        return max(self.unconfirmed_candidates, key=lambda s: s.score or 0.0)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with the camelCase field names the UI layer expects."""

        def dump(slides: Tuple[SlideRef, ...]) -> List[Dict[str, Any]]:
            return [s.model_dump(by_alias=True, exclude_none=True) for s in slides]

        return {
            "caseBase": self.case_id,
            "provenance": self.provenance.value,
            "readySlides": dump(self.ready_slides),
            "processingSlides": dump(self.processing_slides),
            "unconfirmedCandidates": dump(self.unconfirmed_candidates),
        }


# ============================================================
# Mutations
# ============================================================

class MutationOp(str, Enum):
    """Slide-to-case binding operations."""

    ATTACH = "attach"
    DETACH = "detach"


class MutationResult(BaseModel):
    """Outcome of an attach/detach.

    confirmed_by lists every source that acknowledged the mutation; it is
    never empty for a returned result.
    """

    model_config = ConfigDict(frozen=True)

    op: MutationOp
    case_id: str
    slide_id: str
    confirmed_by: Tuple[Provenance, ...]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "op": self.op.value,
            "caseBase": self.case_id,
            "slideId": self.slide_id,
            "confirmedBy": [p.value for p in self.confirmed_by],
        }
