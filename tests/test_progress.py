"""
tests/test_progress.py
Progress percentage, windowed rate and the admission rate limiter.
"""
import pytest

from wordfuzz.core.progress import ProgressTracker, RateLimiter


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_percentage_and_errors():
    tracker = ProgressTracker(4, clock=FakeClock())

    tracker.record()
    tracker.record(error=True)

    assert tracker.percentage() == pytest.approx(50.0)
    assert tracker.state.completed == 2
    assert tracker.state.errors == 1


def test_rate_is_measured_over_the_window():
    clock = FakeClock()
    tracker = ProgressTracker(100, window=1.0, clock=clock)

    for _ in range(5):
        tracker.record()
    clock.advance(0.5)

    assert tracker.rate() == pytest.approx(10.0)


def test_rate_survives_window_reset():
    clock = FakeClock()
    tracker = ProgressTracker(100, window=1.0, clock=clock)

    for _ in range(8):
        tracker.record()
    clock.advance(2.0)

    # window rolled over with no new completions, last window rate is kept
    assert tracker.rate() == pytest.approx(4.0)
    assert tracker.state.window_completed == 0


def test_status_line_mentions_counts():
    tracker = ProgressTracker(10, clock=FakeClock())
    tracker.record()
    assert "[1/10]" in tracker.status_line()
    assert "Errors: 0" in tracker.status_line()


def test_rate_limiter_blocks_until_next_window():
    clock = FakeClock()
    limiter = RateLimiter(2, clock=clock)

    assert limiter.allow()
    limiter.admit()
    assert limiter.allow()
    limiter.admit()
    assert not limiter.allow()
    assert limiter.remaining() == pytest.approx(1.0)

    clock.advance(1.0)
    assert limiter.allow()


def test_rate_limiter_disabled():
    limiter = RateLimiter(0, clock=FakeClock())
    for _ in range(1000):
        assert limiter.allow()
        limiter.admit()


def test_fractional_rate_stretches_window():
    clock = FakeClock()
    limiter = RateLimiter(0.5, clock=clock)

    assert limiter.allow()
    limiter.admit()
    clock.advance(1.0)
    assert not limiter.allow()
    clock.advance(1.0)
    assert limiter.allow()


def test_fractional_ceiling_never_exceeds_its_rate():
    clock = FakeClock()
    limiter = RateLimiter(1.5, clock=clock)

    admitted = 0
    for _ in range(1000):
        if limiter.allow():
            limiter.admit()
            admitted += 1
        clock.advance(0.01)

    assert limiter.budget == 1
    assert limiter.window == pytest.approx(2 / 3)
    assert admitted <= 15
