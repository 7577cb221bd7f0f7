"""
Rate-limited progress relay between the race engine and an observer.
"""

import time
import logging
from typing import Any, Callable, Dict, Optional

from racebench.common.records import BenchmarkRequest, ProgressEvent, RaceResult
from racebench.configuration import MS_PER_SECOND, PROGRESS_MIN_INTERVAL_MS

logger = logging.getLogger(__name__)

START = "start"
PHASE = "phase"
PROGRESS = "progress"
DONE = "done"
ERROR = "error"

# observer(event_name, payload)
Observer = Callable[[str, Dict[str, Any]], None]


class ProgressReporter:
    """Relays lifecycle markers and throttled progress events to an observer.

    Lifecycle markers (start, phase, done, error) and the terminal progress
    event of a pass are always delivered. Other progress events are dropped
    when less than ``min_interval_ms`` has passed since the last delivery.
    Nothing is buffered.

    An observer that raises is detached; the race itself is unaffected.
    """

    def __init__(
        self,
        observer: Optional[Observer] = None,
        min_interval_ms: float = PROGRESS_MIN_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._observer = observer
        self.min_interval_ms = min_interval_ms
        self._clock = clock
        self._last_sent: Optional[float] = None
        self.delivered = 0
        self.dropped = 0

    @property
    def detached(self) -> bool:
        return self._observer is None

    def start(self, request: BenchmarkRequest) -> None:
        self._send(START, request.to_dict(), always=True)

    def phase(self, phase: str) -> None:
        self._send(PHASE, {"phase": phase}, always=True)

    def progress(self, event: ProgressEvent) -> None:
        self._send(PROGRESS, event.to_dict(), always=event.is_terminal)

    def done(self, result: RaceResult) -> None:
        self._send(DONE, result.to_dict(), always=True)

    def error(self, message: str) -> None:
        self._send(ERROR, {"message": message}, always=True)

    def _send(self, event: str, payload: Dict[str, Any], always: bool) -> None:
        if self._observer is None:
            return

        now = self._clock()
        if (
            not always
            and self._last_sent is not None
            and (now - self._last_sent) * MS_PER_SECOND < self.min_interval_ms
        ):
            self.dropped += 1
            return

        self._last_sent = now
        try:
            self._observer(event, payload)
            self.delivered += 1
        except Exception as e:
            logger.warning(f"Observer failed on '{event}' event, detaching it: {e}")
            self._observer = None
