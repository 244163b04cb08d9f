# wecollab/middleware/rate_limiter.py
# Per-client request throttling with an in-memory sliding window counter

import logging
import time
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from wecollab.middleware.error_handler import RateLimitError, create_error_response

logger = logging.getLogger(__name__)

UNTHROTTLED_PREFIXES = ("/health", "/metrics")


class SlidingWindowCounter:
    """
    Sliding window approximation: the previous window's count is weighted by
    how much of it still overlaps the trailing window.
    """

    def __init__(self, window_size: int = 60, max_requests: int = 100):
        self.window_size = window_size  # seconds
        self.max_requests = max_requests
        # key -> (prev_count, curr_count, window_index)
        self._counters: Dict[str, Tuple[int, int, float]] = defaultdict(lambda: (0, 0, 0.0))

    def is_allowed(self, key: str, now: float = None) -> Tuple[bool, int]:
        """Register one request for key. Returns (is_allowed, remaining_requests)."""
        now = time.time() if now is None else now
        prev_count, curr_count, window = self._counters[key]
        current_window = now // self.window_size

        if window < current_window - 1:
            prev_count, curr_count = 0, 1
        elif window < current_window:
            prev_count, curr_count = curr_count, 1
        else:
            curr_count += 1
        self._counters[key] = (prev_count, curr_count, current_window)

        weight = (now % self.window_size) / self.window_size
        weighted_count = prev_count * (1 - weight) + curr_count

        remaining = max(0, int(self.max_requests - weighted_count))
        return weighted_count <= self.max_requests, remaining

    def cleanup_old_entries(self, max_age: int = 300, now: float = None):
        """Drop counters not touched for max_age seconds."""
        now = time.time() if now is None else now
        current_window = now // self.window_size
        stale = [
            key for key, (_, _, window) in self._counters.items()
            if current_window - window > max_age // self.window_size
        ]
        for key in stale:
            del self._counters[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Stricter limit for /api routes, looser one for everything else."""

    def __init__(self, app, api_limit: int = 120, general_limit: int = 300):
        super().__init__(app)
        self.api_limiter = SlidingWindowCounter(window_size=60, max_requests=api_limit)
        self.general_limiter = SlidingWindowCounter(window_size=60, max_requests=general_limit)
        self._last_cleanup = time.time()

    @staticmethod
    def client_key(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
        if request.client:
            return request.client.host
        return "unknown"

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith(UNTHROTTLED_PREFIXES):
            return await call_next(request)

        now = time.time()
        if now - self._last_cleanup > 300:
            self.api_limiter.cleanup_old_entries(now=now)
            self.general_limiter.cleanup_old_entries(now=now)
            self._last_cleanup = now

        key = self.client_key(request)
        limiter = self.api_limiter if path.startswith("/api/") else self.general_limiter
        allowed, remaining = limiter.is_allowed(key, now)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {path}")
            err = RateLimitError(retry_after=limiter.window_size)
            return create_error_response(
                error_code=err.error_code,
                message=err.message,
                status_code=err.status_code,
                details=err.details,
                headers={**err.headers, "X-RateLimit-Remaining": "0"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
        return response
