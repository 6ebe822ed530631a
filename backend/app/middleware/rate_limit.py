"""
Schools24 Backend — Rate Limiting Middleware
==============================================

What:  Per-client-IP token bucket that rejects excess requests with 429.
Why:   Protects the API (and the database pool behind it) from a single
       client flooding it.
How:   TokenBucketLimiter holds one bucket per IP; RateLimitMiddleware asks
       it before every request. The limiter is created by create_app(),
       stored on app.state.rate_limiter and handed to the middleware.

Algorithm: Token Bucket
    rate     = RATE_LIMIT_REQUESTS_PER_MIN / 60 tokens per second
    capacity = RATE_LIMIT_BURST
    - A new IP starts with a full bucket (capacity tokens)
    - Each request refills by elapsed × rate (capped at capacity), then
      spends one token; no token → rejected, never queued
    - Retry-After = seconds until one token is available, rounded up

Cleanup:
    Every RATE_LIMIT_CLEANUP_SECONDS all buckets are discarded. It happens
    lazily on the first request after the interval; there is no background
    task. A client whose bucket is dropped simply starts full again.

Thread Safety:
    One threading.Lock guards the bucket table. Buckets live in process
    memory, so each worker process enforces its own limit.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class TokenBucketLimiter:
    """
    Args:
        requests_per_min: sustained rate
        burst:            bucket capacity
        cleanup_seconds:  interval after which all buckets are discarded
        clock:            returns seconds (monotonic); tests inject a fake
    """

    def __init__(
        self,
        requests_per_min: Optional[int] = None,
        burst: Optional[int] = None,
        cleanup_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate = (requests_per_min or settings.rate_limit_requests_per_min) / 60.0
        self.capacity = float(burst or settings.rate_limit_burst)
        self.cleanup_seconds = cleanup_seconds or settings.rate_limit_cleanup_seconds
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def allow(self, key: str) -> Tuple[bool, int]:
        """
        Spend one token for `key`.

        Returns:
            (allowed, retry_after_seconds); retry_after is 0 when allowed
        """
        with self._lock:
            now = self._clock()
            if now - self._last_cleanup >= self.cleanup_seconds:
                dropped = len(self._buckets)
                self._buckets.clear()
                self._last_cleanup = now
                if dropped:
                    logger.debug("Rate limiter cleanup dropped %d buckets", dropped)

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(tokens=self.capacity, updated_at=now)
                self._buckets[key] = bucket
            else:
                elapsed = max(0.0, now - bucket.updated_at)
                bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.rate)
                bucket.updated_at = now

            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True, 0

            retry_after = max(1, math.ceil((1.0 - bucket.tokens) / self.rate))
            return False, retry_after

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests from clients whose bucket is empty.

    Excluded paths:
        /health and /ready: health checks must never be throttled
    """

    EXCLUDED_PATHS = {"/health", "/ready"}

    def __init__(self, app, limiter: TokenBucketLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's address unless uvicorn runs with --proxy-headers
        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        allowed, retry_after = self.limiter.allow(client_ip)
        if not allowed:
            logger.warning("Rate limit exceeded for IP %s", client_ip)
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content={"error": error.error_code, "message": error.message},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
