"""
Tests for the fixed-window rate limiter
"""
import pytest

from crm_geo.services.rate_limiter import get_client_ip


@pytest.mark.unit
class TestRateLimiter:
    def test_allows_up_to_limit_then_denies(self, rate_limiter):
        decisions = [rate_limiter.check_rate_limit("geocode:1.2.3.4", limit=3, window_seconds=60) for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]
        assert decisions[3].retry_after_seconds == 60

    def test_retry_after_counts_down_and_is_at_least_one(self, rate_limiter, fake_clock):
        rate_limiter.check_rate_limit("k", limit=1, window_seconds=60)

        fake_clock.advance(30)
        assert rate_limiter.check_rate_limit("k", limit=1, window_seconds=60).retry_after_seconds == 30

        fake_clock.advance(29.5)
        assert rate_limiter.check_rate_limit("k", limit=1, window_seconds=60).retry_after_seconds == 1

    def test_new_window_after_expiry(self, rate_limiter, fake_clock):
        rate_limiter.check_rate_limit("k", limit=1, window_seconds=60)
        assert rate_limiter.check_rate_limit("k", limit=1, window_seconds=60).allowed is False

        fake_clock.advance(60)
        decision = rate_limiter.check_rate_limit("k", limit=1, window_seconds=60)
        assert decision.allowed is True
        assert decision.remaining == 0

    def test_expired_windows_are_pruned(self, rate_limiter, fake_clock):
        rate_limiter.check_rate_limit("a", limit=5, window_seconds=10)
        rate_limiter.check_rate_limit("b", limit=5, window_seconds=100)

        fake_clock.advance(11)
        rate_limiter.check_rate_limit("c", limit=5, window_seconds=10)

        assert set(rate_limiter._windows) == {"b", "c"}

    def test_scopes_and_ips_are_independent(self, rate_limiter):
        assert rate_limiter.limit_by_ip("1.1.1.1", "geocode", 1, 60).allowed
        assert not rate_limiter.limit_by_ip("1.1.1.1", "geocode", 1, 60).allowed
        assert rate_limiter.limit_by_ip("2.2.2.2", "geocode", 1, 60).allowed
        assert rate_limiter.limit_by_ip("1.1.1.1", "route", 1, 60).allowed

    def test_reset(self, rate_limiter):
        rate_limiter.check_rate_limit("k", limit=1, window_seconds=60)
        rate_limiter.reset()
        assert rate_limiter.check_rate_limit("k", limit=1, window_seconds=60).allowed is True


@pytest.mark.unit
class TestClientIp:
    @pytest.mark.parametrize("headers, expected", [
        ({"x-forwarded-for": "203.0.113.5, 10.0.0.1"}, "203.0.113.5"),
        ({"X-Forwarded-For": "198.51.100.7"}, "198.51.100.7"),
        ({"x-forwarded-for": " , 10.0.0.1"}, "unknown"),
        ({}, "unknown"),
        (None, "unknown"),
    ])
    def test_first_forwarded_entry(self, headers, expected):
        assert get_client_ip(headers) == expected
