"""
Fixed-window rate limiter for outbound provider calls.

Process-local: windows live in memory, are pruned lazily and reset on restart.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int


def get_client_ip(headers: Optional[Mapping[str, str]]) -> str:
    """First entry of X-Forwarded-For, else "unknown"."""
    if not headers:
        return "unknown"
    forwarded = headers.get("x-forwarded-for") or headers.get("X-Forwarded-For")
    if not forwarded:
        return "unknown"
    return str(forwarded).split(",")[0].strip() or "unknown"


class RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}

    def _prune(self, now: float):
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]

    def check_rate_limit(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        now = self._clock()
        self._prune(now)

        current = self._windows.get(key)
        if current is None:
            self._windows[key] = RateLimitWindow(count=1, reset_at=now + window_seconds)
            return RateLimitDecision(allowed=True, remaining=max(limit - 1, 0), retry_after_seconds=0)

        if current.count >= limit:
            retry_after = max(1, math.ceil(current.reset_at - now))
            logger.info(f"Rate limit exceeded for {key}, retry after {retry_after}s")
            return RateLimitDecision(allowed=False, remaining=0, retry_after_seconds=retry_after)

        current.count += 1
        return RateLimitDecision(
            allowed=True,
            remaining=max(limit - current.count, 0),
            retry_after_seconds=0
        )

    def limit_by_ip(self, client_ip: str, scope: str, limit: int, window_seconds: float) -> RateLimitDecision:
        return self.check_rate_limit(
            key=f"{scope}:{client_ip or 'unknown'}",
            limit=limit,
            window_seconds=window_seconds
        )

    def reset(self):
        self._windows.clear()
