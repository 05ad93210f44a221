"""
Cache layer test fixtures.

Cache tests drive expiry through a fake clock instead of sleeping.
"""
import pytest

from assessment_analytics.cache import CacheStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def cache(clock):
    """CacheStore with default TTLs on the fake clock."""
    return CacheStore(clock=clock)
