"""Per-client fixed-window request limiter for the chat routes."""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from ..errors import GatewayError, GatewayErrorKind

RATE_LIMIT_MESSAGE = "Too many request from this IP in 1 hour"
WINDOW_SECONDS = 60 * 60


def client_address(request: Request, trust_proxy: bool) -> str:
    """Client IP, taken from the hop closest to us in X-Forwarded-For when behind a proxy."""
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
            if hops:
                return hops[-1]
    if request.client is not None:
        return request.client.host
    return "unknown"


class RateLimiter:
    """
    FastAPI dependency allowing max_request_per_hour requests per client per
    window. A budget of 0 disables the limiter.
    """

    def __init__(self, args, clock: Optional[Callable[[], float]] = None):
        self.max_requests = getattr(args, "max_request_per_hour", 0) or 0
        self.trust_proxy = getattr(args, "trust_proxy", True)
        self.window_seconds = WINDOW_SECONDS
        self._clock = clock or time.monotonic
        # client -> (window start, requests seen in window)
        self._windows: Dict[str, Tuple[float, int]] = {}

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def hit(self, key: str) -> bool:
        """Count one request for key; return False when it exceeds the budget."""
        if not self.enabled:
            return True
        now = self._clock()
        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[key] = (window_start, count)
        self._evict_expired(now)
        return count <= self.max_requests

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    async def __call__(self, request: Request) -> None:
        if not self.hit(client_address(request, self.trust_proxy)):
            raise GatewayError(GatewayErrorKind.RATE_LIMITED, RATE_LIMIT_MESSAGE)
