"""
Tests for in-memory rate limiter middleware.

Tests: RateLimiter class (sliding window, cleanup), rate_limit dependency on
the credential endpoints.
"""
import time

import pytest
from fastapi import status

from middleware.rate_limit import RateLimiter


class TestRateLimiter:
    """Tests for the RateLimiter class."""

    @pytest.mark.unit
    def test_allows_requests_under_limit(self):
        limiter = RateLimiter()
        for _ in range(5):
            assert limiter.check("testkey", max_requests=5, window_seconds=60) is True

    @pytest.mark.unit
    def test_blocks_requests_over_limit(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.check("testkey", max_requests=3, window_seconds=60)
        assert limiter.check("testkey", max_requests=3, window_seconds=60) is False

    @pytest.mark.unit
    def test_different_keys_independent(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.check("10.0.0.1:/auth/login", max_requests=3, window_seconds=60)
        assert limiter.check("10.0.0.1:/auth/login", max_requests=3, window_seconds=60) is False
        assert limiter.check("10.0.0.2:/auth/login", max_requests=3, window_seconds=60) is True

    @pytest.mark.unit
    def test_window_expiry(self):
        limiter = RateLimiter()
        for _ in range(2):
            limiter.check("testkey", max_requests=2, window_seconds=1)
        assert limiter.check("testkey", max_requests=2, window_seconds=1) is False
        time.sleep(1.1)
        assert limiter.check("testkey", max_requests=2, window_seconds=1) is True

    @pytest.mark.unit
    def test_remaining_count(self):
        limiter = RateLimiter()
        assert limiter.remaining("testkey", max_requests=5, window_seconds=60) == 5
        limiter.check("testkey", max_requests=5, window_seconds=60)
        assert limiter.remaining("testkey", max_requests=5, window_seconds=60) == 4

    @pytest.mark.unit
    def test_remaining_at_zero(self):
        """remaining() should return 0 when limit is reached, not negative."""
        limiter = RateLimiter()
        for _ in range(6):
            limiter.check("testkey", max_requests=5, window_seconds=60)
        assert limiter.remaining("testkey", max_requests=5, window_seconds=60) == 0

    @pytest.mark.unit
    def test_cleanup_removes_old_entries(self):
        limiter = RateLimiter()
        old_time = time.time() - 120
        limiter._requests["testkey"] = [old_time, old_time + 1, old_time + 2]
        limiter._cleanup("testkey", 60)
        assert "testkey" not in limiter._requests

    @pytest.mark.unit
    def test_idle_keys_do_not_accumulate(self):
        limiter = RateLimiter()
        old_time = time.time() - 120
        for i in range(50):
            limiter._requests[f"10.0.0.{i}:/auth/login"] = [old_time]
        for i in range(50):
            assert limiter.remaining(f"10.0.0.{i}:/auth/login", max_requests=5, window_seconds=60) == 5
        assert len(limiter._requests) == 0

    @pytest.mark.unit
    def test_reset_clears_all_keys(self):
        limiter = RateLimiter()
        limiter.check("a", max_requests=1, window_seconds=60)
        limiter.reset()
        assert limiter.check("a", max_requests=1, window_seconds=60) is True


@pytest.mark.api
@pytest.mark.asyncio
async def test_login_rate_limited_with_headers(client):
    """The 21st login attempt inside a minute is rejected with Retry-After."""
    body = {"email": "nobody@example.com", "password": "wrong-password"}
    for _ in range(20):
        resp = await client.post("/auth/login", json=body)
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    resp = await client.post("/auth/login", json=body)
    assert resp.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert resp.headers["Retry-After"] == "60"
    assert resp.headers["X-RateLimit-Limit"] == "20"
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert resp.json()["error"]["code"] == "rate_limited"
