"""Per-operation debounce state."""

import time
from typing import Callable, Dict, Optional

Clock = Callable[[], float]


class PendingRequestState:
    """Tracks when the last accepted request of each kind started.

    A request is accepted only if no request of the same kind started within
    the cooldown window. The window expires by time alone, whatever order the
    responses arrive in.
    """

    def __init__(self, cooldown_seconds: float = 2.0, clock: Optional[Clock] = None):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock or time.monotonic
        self._started: Dict[str, float] = {}

    def is_pending(self, kind: str) -> bool:
        started = self._started.get(kind)
        if started is None:
            return False
        if self._clock() - started >= self.cooldown_seconds:
            del self._started[kind]
            return False
        return True

    def try_begin(self, kind: str) -> bool:
        """Record a request start unless one is still inside the window.

        Returns:
            True if accepted, False if suppressed
        """
        if self.is_pending(kind):
            return False
        self._started[kind] = self._clock()
        return True

    def clear(self, kind: Optional[str] = None) -> None:
        if kind is None:
            self._started.clear()
        else:
            self._started.pop(kind, None)
