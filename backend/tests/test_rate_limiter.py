"""
Schools24 Backend — Rate Limiter Tests
========================================

What:  Token bucket arithmetic (burst, refill, Retry-After, cleanup) and the
       middleware's 429 response.
How:   A fake clock for the limiter; a tiny limiter swapped into a test app
       for the HTTP checks.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.middleware.rate_limit import RateLimitMiddleware, TokenBucketLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestTokenBucketLimiter:

    def setup_method(self):
        self.clock = FakeClock()
        # 60/min → one token per second
        self.limiter = TokenBucketLimiter(
            requests_per_min=60, burst=3, cleanup_seconds=600, clock=self.clock
        )

    def test_new_client_gets_full_burst(self):
        results = [self.limiter.allow("10.0.0.1")[0] for _ in range(3)]
        assert results == [True, True, True]

    def test_request_beyond_burst_rejected_with_retry_after(self):
        for _ in range(3):
            self.limiter.allow("10.0.0.1")
        allowed, retry_after = self.limiter.allow("10.0.0.1")
        assert allowed is False
        assert retry_after == 1

    def test_tokens_refill_over_time(self):
        for _ in range(3):
            self.limiter.allow("10.0.0.1")
        self.clock.now += 2.0
        assert self.limiter.allow("10.0.0.1")[0] is True
        assert self.limiter.allow("10.0.0.1")[0] is True
        assert self.limiter.allow("10.0.0.1")[0] is False

    def test_refill_capped_at_capacity(self):
        self.limiter.allow("10.0.0.1")
        self.clock.now += 3600
        results = [self.limiter.allow("10.0.0.1")[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_clients_have_independent_buckets(self):
        for _ in range(3):
            self.limiter.allow("10.0.0.1")
        assert self.limiter.allow("10.0.0.1")[0] is False
        assert self.limiter.allow("10.0.0.2")[0] is True

    def test_cleanup_discards_all_buckets(self):
        self.limiter.allow("10.0.0.1")
        self.limiter.allow("10.0.0.2")
        assert len(self.limiter) == 2

        self.clock.now += 600
        self.limiter.allow("10.0.0.3")
        assert len(self.limiter) == 1

    def test_slow_rate_retry_after_rounds_up(self):
        limiter = TokenBucketLimiter(requests_per_min=30, burst=1, cleanup_seconds=600, clock=self.clock)
        limiter.allow("k")
        self.clock.now += 0.5
        allowed, retry_after = limiter.allow("k")
        assert allowed is False
        # 0.25 tokens held at 0.5 tokens per second: 1.5s, rounded up
        assert retry_after == 2


def _limited_app(limiter: TokenBucketLimiter) -> FastAPI:
    application = FastAPI()
    application.add_middleware(RateLimitMiddleware, limiter=limiter)

    @application.get("/ping")
    async def ping():
        return {"pong": True}

    @application.get("/health")
    async def health():
        return {"status": "healthy"}

    return application


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_excess_request_gets_429(self):
        application = _limited_app(TokenBucketLimiter(requests_per_min=60, burst=2, cleanup_seconds=600))
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping")

        assert response.status_code == 429
        assert response.json() == {
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
        }
        assert int(response.headers["Retry-After"]) >= 1

    @pytest.mark.asyncio
    async def test_health_check_never_limited(self):
        application = _limited_app(TokenBucketLimiter(requests_per_min=60, burst=1, cleanup_seconds=600))
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(5)]
        assert statuses == [200] * 5

    @pytest.mark.asyncio
    async def test_app_factory_owns_its_limiter(self, app):
        assert isinstance(app.state.rate_limiter, TokenBucketLimiter)
