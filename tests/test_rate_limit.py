import pytest

from tests.utils import ManualClock
from word_highlighter.errors import RateLimitExceeded
from word_highlighter.rate_limit import RateLimiter


def test_thirty_requests_pass_and_thirty_first_locks_out():
    """Within one window the 31st call fails with a 60 second retry."""
    clock = ManualClock()
    limiter = RateLimiter(clock=clock)
    for _ in range(30):
        limiter.check_limit()
    assert limiter.request_count == 30

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.check_limit()
    assert excinfo.value.retry_after == 60
    assert limiter.lockout_until == 60_000


def test_lockout_reports_remaining_seconds():
    """Calls during the lockout report the rounded-up time left."""
    clock = ManualClock()
    limiter = RateLimiter(clock=clock)
    for _ in range(30):
        limiter.check_limit()
    with pytest.raises(RateLimitExceeded):
        limiter.check_limit()

    clock.advance(20_500)
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.check_limit()
    assert excinfo.value.retry_after == 40
    assert limiter.request_count == 30


def test_call_after_lockout_expiry_resets_counter():
    """Once the lockout passes, a fresh window starts and the count becomes 1."""
    clock = ManualClock()
    limiter = RateLimiter(clock=clock)
    for _ in range(30):
        limiter.check_limit()
    with pytest.raises(RateLimitExceeded):
        limiter.check_limit()

    clock.advance(60_001)
    limiter.check_limit()
    assert limiter.request_count == 1
    assert limiter.lockout_until is None
    assert limiter.window_start == 60_001


def test_lockout_spans_a_full_window_from_violation():
    """A violation late in a window still locks out for the whole window length."""
    clock = ManualClock()
    limiter = RateLimiter(clock=clock)
    clock.advance(50_000)
    for _ in range(30):
        limiter.check_limit()
    with pytest.raises(RateLimitExceeded):
        limiter.check_limit()

    clock.advance(15_000)
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.check_limit()
    assert excinfo.value.retry_after == 45


def test_window_resets_without_lockout():
    """An expired window resets the counter even when no lockout happened."""
    clock = ManualClock()
    limiter = RateLimiter(max_requests=2, window_ms=1_000, clock=clock)
    limiter.check_limit()
    limiter.check_limit()
    clock.advance(1_001)
    limiter.check_limit()
    assert limiter.request_count == 1
