from datetime import UTC, datetime

from src.adapters.clock import FixedClock
from src.app_shell.rate_limit import RateLimiter
from src.rules.models import RateLimitRules, RateLimitWindow


def _limiter(clock: FixedClock) -> RateLimiter:
    rules = RateLimitRules(
        login=RateLimitWindow(window_seconds=60, max_attempts=2),
        newsletter=RateLimitWindow(window_seconds=3600, max_requests=1),
        affiliate_track=RateLimitWindow(window_seconds=60, max_requests=30),
        phone_verification=RateLimitWindow(window_seconds=600, max_requests=3),
    )
    return RateLimiter(rules, clock)


def test_window_slides():
    clock = FixedClock(datetime(2026, 1, 1, tzinfo=UTC))
    limiter = _limiter(clock)

    assert limiter.check_login("1.2.3.4")
    clock.advance(seconds=30)
    assert limiter.check_login("1.2.3.4")
    assert not limiter.check_login("1.2.3.4")
    assert limiter.retry_after("login:1.2.3.4", 60) == 30

    clock.advance(seconds=31)
    assert limiter.check_login("1.2.3.4")


def test_keys_are_independent():
    limiter = _limiter(FixedClock(datetime(2026, 1, 1, tzinfo=UTC)))

    assert limiter.check_newsletter("1.1.1.1")
    assert not limiter.check_newsletter("1.1.1.1")
    assert limiter.check_newsletter("2.2.2.2")
    # Separate purpose, same client
    assert limiter.check_login("1.1.1.1")


def test_zero_limit_blocks_everything():
    limiter = _limiter(FixedClock(datetime(2026, 1, 1, tzinfo=UTC)))
    assert not limiter.allow_request("x", 60, 0)
    assert limiter.retry_after("x", 60) == 0
