"""Tests for the sliding-window rate limiter."""

from fileshelf.core.ratelimit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test__hits_within_limit__are_allowed() -> None:
    limiter = RateLimiter(3, 60, clock=FakeClock())

    assert [limiter.check("a") for _ in range(4)] == [True, True, True, False]


def test__clients__are_counted_separately() -> None:
    limiter = RateLimiter(1, 60, clock=FakeClock())

    assert limiter.check("a")
    assert limiter.check("b")
    assert not limiter.check("a")


def test__window_expiry__allows_again() -> None:
    clock = FakeClock()
    limiter = RateLimiter(2, 10, clock=clock)
    limiter.check("a")
    limiter.check("a")

    clock.now += 10.5

    assert limiter.check("a")


def test__zero_limit__is_unlimited() -> None:
    limiter = RateLimiter(0, 60)

    assert all(limiter.check("a") for _ in range(100))
