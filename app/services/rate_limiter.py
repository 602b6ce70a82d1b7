import threading
import time
from typing import Callable, Dict, List

from app.logging_config import get_logger

logger = get_logger("rate_limiter")


class RateLimiter:
    """Fixed-window admission control keyed by sender id.

    Each identifier keeps the timestamps of its admitted calls. Old entries are
    pruned lazily on the next call for that identifier, or in bulk by cleanup().
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, timestamps: List[float], now: float) -> List[float]:
        return [ts for ts in timestamps if now - ts < self.window_seconds]

    def is_allowed(self, identifier: str) -> bool:
        now = self._clock()
        with self._lock:
            valid = self._prune(self._requests.get(identifier, []), now)
            if len(valid) >= self.max_requests:
                return False
            valid.append(now)
            self._requests[identifier] = valid
            return True

    def cleanup(self) -> int:
        """Drop identifiers with no admissions left in the window."""
        now = self._clock()
        removed = 0
        with self._lock:
            for identifier in list(self._requests):
                valid = self._prune(self._requests[identifier], now)
                if valid:
                    self._requests[identifier] = valid
                else:
                    del self._requests[identifier]
                    removed += 1
        if removed:
            logger.info(
                "Rate limiter cleanup",
                extra={"context": {"removed": removed, "tracked": len(self._requests)}},
            )
        return removed

    def tracked_identifiers(self) -> int:
        with self._lock:
            return len(self._requests)
