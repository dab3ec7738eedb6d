"""The case the UI currently cares about."""

import logging
from typing import Optional, Tuple

from supernavi_bridge.models import canonicalize_case_id

logger = logging.getLogger(__name__)


def is_relevant(
    subject: Optional[str],
    generation: Optional[int],
    current: Optional[str],
    current_generation: int,
) -> bool:
    """Whether a case-scoped result still concerns the current case.

    Relevant only if the result's subject is the current case and no case
    change happened since the request was issued.
    """
    return subject is not None and subject == current and generation == current_generation


class CurrentCasePointer:
    """Single mutable reference to the current case, with a generation counter.

    Owned by the UI-facing layer; the engine never mutates it. Every change of
    case bumps the generation, and results requested under an older
    generation are discarded.
    """

    def __init__(self, case_id: Optional[str] = None):
        self._case_id = canonicalize_case_id(case_id) if case_id else None
        self._generation = 0

    @property
    def current(self) -> Optional[str]:
        return self._case_id

    @property
    def generation(self) -> int:
        return self._generation

    def snapshot(self) -> Tuple[Optional[str], int]:
        return self._case_id, self._generation

    def set_current(self, case_id: Optional[str]) -> bool:
        """Point at a new case (None when the page shows no case).

        Returns:
            True if the case changed (and the generation advanced)

        Raises:
            InvalidCaseIdentifierError: If case_id cannot be canonicalized
        """
        new_case = canonicalize_case_id(case_id) if case_id else None
        if new_case == self._case_id:
            return False

        self._case_id = new_case
        self._generation += 1
        logger.debug(f"Current case -> {new_case} (generation {self._generation})")
        return True

    def is_still_current(self, subject: Optional[str], generation: Optional[int]) -> bool:
        return is_relevant(subject, generation, self._case_id, self._generation)
