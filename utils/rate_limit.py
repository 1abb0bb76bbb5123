"""
Sliding-window request counter shared by concurrent invocations.
"""
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

from utils.constants import RATE_LIMIT


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: Optional[int] = None


class RateLimiter:
    """
    Per-identity sliding window of request timestamps.

    Stale timestamps for an identity are pruned lazily, the next time that
    identity is seen. Identities that never return keep their entry.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT["MAX_REQUESTS"],
        window_seconds: float = RATE_LIMIT["WINDOW_SECONDS"],
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per identity inside one window
            window_seconds: Window length in seconds
            clock: Monotonic time source, injectable for tests
        """
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    @property
    def retry_after(self) -> int:
        return math.ceil(self.window_seconds)

    def acquire(self, identity: str) -> RateLimitDecision:
        """
        Record a request for ``identity`` unless its window is full.

        Returns:
            RateLimitDecision; ``retry_after`` is set when the request is refused
        """
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            timestamps = self._requests.get(identity)
            if timestamps is None:
                timestamps = self._requests[identity] = deque()

            while timestamps and timestamps[0] <= window_start:
                timestamps.popleft()

            if len(timestamps) >= self.max_requests:
                return RateLimitDecision(False, self.retry_after)

            timestamps.append(now)
            return RateLimitDecision(True)

    def tracked_identities(self) -> int:
        with self._lock:
            return len(self._requests)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
