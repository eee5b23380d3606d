"""Tests for the in-memory rate counter."""

from app.core.rate_limit import SWEEP_INTERVAL_SECONDS, _SlidingWindowCounter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_limit_applies_within_the_window():
    clock = FakeClock()
    counter = _SlidingWindowCounter(clock)
    assert counter.is_allowed("login:1.2.3.4", 2, 60)
    assert counter.is_allowed("login:1.2.3.4", 2, 60)
    assert not counter.is_allowed("login:1.2.3.4", 2, 60)
    clock.now += 61
    assert counter.is_allowed("login:1.2.3.4", 2, 60)


def test_cleanup_evicts_stale_keys_only():
    clock = FakeClock()
    counter = _SlidingWindowCounter(clock)
    counter.retain(60)
    counter.is_allowed("login:10.0.0.1", 10, 60)
    clock.now += 90
    counter.is_allowed("login:10.0.0.2", 10, 60)

    counter.cleanup()

    assert len(counter) == 1
    assert counter.is_allowed("login:10.0.0.2", 1, 60) is False


def test_cleanup_keeps_keys_for_the_longest_window():
    clock = FakeClock()
    counter = _SlidingWindowCounter(clock)
    counter.retain(60)
    counter.retain(900)
    counter.record("login_fail:admin")
    clock.now += 120

    counter.cleanup()
    assert counter.count("login_fail:admin", 900) == 1

    clock.now += 900
    counter.cleanup()
    assert len(counter) == 0


def test_cleanup_is_throttled():
    clock = FakeClock()
    counter = _SlidingWindowCounter(clock)
    counter.retain(10)
    counter.cleanup()
    counter.record("a")
    clock.now += SWEEP_INTERVAL_SECONDS - 1

    counter.cleanup()
    assert len(counter) == 1

    clock.now += 1
    counter.cleanup()
    assert len(counter) == 0


def test_count_drops_expired_keys():
    clock = FakeClock()
    counter = _SlidingWindowCounter(clock)
    counter.record("login_fail:bob")
    clock.now += 901
    assert counter.count("login_fail:bob", 900) == 0
    assert len(counter) == 0
