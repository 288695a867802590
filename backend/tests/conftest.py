from datetime import date

import pytest
from slot_discovery.services.cache import ResponseCache
from slot_discovery.services.discovery.probe import BookingProbe
from slot_discovery.services.discovery.slots import SlotFetcher
from slot_discovery.services.rate_limit import RateLimitedClient
from slot_discovery.services.zenoti.client import ZenotiClient
from slot_discovery.services.zenoti.config import ZenotiConfig

BASE_URL = "https://zenoti.test/v1"
ZENOTI_HOST = "zenoti.test"
# A Wednesday; its Sunday-start week begins 2025-10-05 and the 28-day horizon ends 2025-11-05
TODAY = date(2025, 10, 8)


class FakeSleep:
    """Records back-off delays instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def slots_payload(times: list[str], *, unavailable: list[str] = (), hints: dict[str, bool] | None = None) -> dict:
    """Zenoti-shaped slots response: available times, unavailable times, future_days hints."""
    slots = [{"Time": t, "Available": True} for t in times]
    slots += [{"Time": t, "Available": False} for t in unavailable]
    payload = {"slots": slots, "future_days": [], "next_available_day": None, "Error": None}
    for day, available in (hints or {}).items():
        payload["future_days"].append({"Day": f"{day}T00:00:00", "IsAvailable": available})
    return payload


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(300, clock=clock)


@pytest.fixture
def limiter(fake_sleep) -> RateLimitedClient:
    return RateLimitedClient(8, (1, 2, 5, 10), sleep=fake_sleep)


@pytest.fixture
def zenoti_client(limiter) -> ZenotiClient:
    return ZenotiClient(limiter, ZenotiConfig(api_key="test-key", base_url=BASE_URL))


@pytest.fixture
def probe(zenoti_client, cache) -> BookingProbe:
    return BookingProbe(zenoti_client, cache)


@pytest.fixture
def fetcher(zenoti_client, cache) -> SlotFetcher:
    return SlotFetcher(zenoti_client, cache)
