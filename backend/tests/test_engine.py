import asyncio
import json

import httpx
import pytest
import respx
from conftest import TODAY, ZENOTI_HOST, slots_payload
from slot_discovery.core.discovery_config import DiscoveryConfig
from slot_discovery.core.errors import ConfigurationError, ProbeError, SlotFetchError, ValidationError
from slot_discovery.services.discovery import DiscoveryEngine
from slot_discovery.services.discovery.slots import normalize_slots_response
from slot_discovery.services.providers import ProviderDirectory
from slot_discovery.services.providers.directory import Provider
from slot_discovery.services.zenoti.types import SlotsResult


def booking_id_for(center_id: str, day: str) -> str:
    return f"B-{center_id}-{day}"


class FakeProbe:
    """Hands out deterministic booking ids; (center, date) pairs in fail_on raise ProbeError."""

    def __init__(self, events: list, fail_on=(), configured: bool = True) -> None:
        self.events = events
        self.fail_on = set(fail_on)
        self.configured = configured
        self.calls: list[tuple[str, str]] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("missing key")

    async def probe(self, center_id, day, service_ids):
        self.calls.append((center_id, day))
        self.events.append(("probe", center_id, day))
        await asyncio.sleep(0)
        if (center_id, day) in self.fail_on:
            raise ProbeError("center closed")
        return booking_id_for(center_id, day)


class FakeFetcher:
    """Serves SlotsResult per booking id; missing ids get an empty result."""

    def __init__(self, events: list, results: dict | None = None, fail_on=()) -> None:
        self.events = events
        self.results = results or {}
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, bool]] = []

    async def fetch_slots(self, booking_id, include_future_hints=False):
        self.calls.append((booking_id, include_future_hints))
        await asyncio.sleep(0)
        self.events.append(("fetched", booking_id))
        if booking_id in self.fail_on:
            raise SlotFetchError("Zenoti API error: 404", status_code=404)
        return self.results.get(booking_id, SlotsResult())


def result_for(times, *, unavailable=(), hints=None) -> SlotsResult:
    return normalize_slots_response(slots_payload(list(times), unavailable=list(unavailable), hints=hints))


def make_engine(results=None, *, fail_probe=(), fail_slots=(), directory=None, configured=True, config=None):
    events: list = []
    probe = FakeProbe(events, fail_on=fail_probe, configured=configured)
    fetcher = FakeFetcher(events, results, fail_on=fail_slots)
    engine = DiscoveryEngine(
        probe, fetcher, directory=directory, config=config or DiscoveryConfig(), today=lambda: TODAY
    )
    return engine, probe, fetcher, events


@pytest.mark.asyncio
async def test_single_date_end_to_end():
    engine, probe, fetcher, _ = make_engine(
        {booking_id_for("C1", "2025-10-05"): result_for(["09:00", "09:15", "09:45"], unavailable=["09:30"])}
    )

    result = await engine.discover(["C1"], ["S1"], weeks=1)

    assert result.requested_dates == ["2025-10-05"]
    assert result.available_dates == ["2025-10-05"]
    assert result.generations == 1
    assert result.pairs_probed == 1
    day = result.date_availability["2025-10-05"]
    assert day.has_slots is True
    assert day.total_available_slots == 3
    [location] = day.locations
    assert location.id == "C1"
    assert location.count == 3
    assert location.booking_id == "B-C1-2025-10-05"
    assert [(b.hour, b.count) for b in location.hourly_buckets] == [("09:00", 3)]
    assert [w.to_dict() for w in result.weekly_availability] == [
        {"week_start": "2025-10-05", "week_label": "Current Week", "available_dates": ["2025-10-05"]}
    ]
    assert fetcher.calls == [("B-C1-2025-10-05", True)]


@pytest.mark.asyncio
async def test_hint_dates_become_next_generation_with_provenance():
    engine, probe, _, _ = make_engine(
        {
            booking_id_for("C1", "2025-10-05"): result_for(
                ["09:00"], hints={"2025-10-08": True, "2025-10-09": False}
            ),
            booking_id_for("C1", "2025-10-08"): result_for(["10:00", "10:30"]),
        }
    )

    result = await engine.discover(["C1"], ["S1"], weeks=1)

    assert probe.calls == [("C1", "2025-10-05"), ("C1", "2025-10-08")]
    assert result.generations == 2
    assert result.available_dates == ["2025-10-05", "2025-10-08"]
    discovered = result.date_availability["2025-10-08"].locations[0]
    assert discovered.provenance == (("2025-10-05", "B-C1-2025-10-05"),)
    payload = result.to_dict()["date_availability"]["2025-10-08"]["center_ids"][0]
    assert payload["is_future_booking"] is True
    assert payload["discovered_from"] == [["2025-10-05", "B-C1-2025-10-05"]]
    assert result.future_day_availability == {"C1": ["2025-10-08"]}


@pytest.mark.asyncio
async def test_no_pair_is_probed_twice():
    engine, probe, _, _ = make_engine(
        {
            booking_id_for("C1", "2025-10-05"): result_for(
                ["09:00"], hints={"2025-10-12": True, "2025-10-08": True}
            ),
            booking_id_for("C1", "2025-10-12"): result_for(["09:00"], hints={"2025-10-08": True}),
            booking_id_for("C1", "2025-10-08"): result_for(
                ["09:00"], hints={"2025-10-05": True, "2025-10-12": True, "2025-10-15": True}
            ),
            booking_id_for("C1", "2025-10-15"): result_for([], hints={"2025-10-08": True}),
        }
    )

    result = await engine.discover(["C1"], ["S1"], weeks=2)

    assert len(probe.calls) == len(set(probe.calls)) == 4
    assert set(probe.calls) == {("C1", d) for d in ("2025-10-05", "2025-10-12", "2025-10-08", "2025-10-15")}
    assert result.generations == 3
    assert result.pairs_probed == 4


@pytest.mark.asyncio
async def test_hints_outside_horizon_are_not_probed():
    engine, probe, _, _ = make_engine(
        {
            booking_id_for("C1", "2025-10-05"): result_for(
                ["09:00"], hints={"2025-12-01": True, "2025-10-01": True, "2025-11-05": True}
            ),
        }
    )

    result = await engine.discover(["C1"], ["S1"], weeks=1)

    assert ("C1", "2025-12-01") not in probe.calls
    assert ("C1", "2025-10-01") not in probe.calls
    # the horizon end itself is still inside the window
    assert ("C1", "2025-11-05") in probe.calls
    assert result.clamped_hints == 2


@pytest.mark.asyncio
async def test_pair_failures_are_recorded_not_raised():
    engine, _, _, _ = make_engine(
        {booking_id_for("C3", "2025-10-05"): result_for(["11:00"])},
        fail_probe=[("C1", "2025-10-05")],
        fail_slots=[booking_id_for("C2", "2025-10-05")],
    )

    result = await engine.discover(["C1", "C2", "C3"], ["S1"], weeks=1)

    assert {(f.center_id, f.stage) for f in result.failures} == {("C1", "probe"), ("C2", "slots")}
    slots_failure = next(f for f in result.failures if f.stage == "slots")
    assert slots_failure.booking_id == "B-C2-2025-10-05"
    assert [loc.id for loc in result.date_availability["2025-10-05"].locations] == ["C3"]
    data = result.to_dict()
    assert data["total_combinations"] == 3
    assert data["successful_combinations"] == 1


@pytest.mark.asyncio
async def test_failed_pair_is_not_retried_when_hinted_again():
    engine, probe, _, _ = make_engine(
        {booking_id_for("C1", "2025-10-12"): result_for(["09:00"], hints={"2025-10-05": True})},
        fail_probe=[("C1", "2025-10-05")],
    )

    await engine.discover(["C1"], ["S1"], weeks=2)

    assert probe.calls.count(("C1", "2025-10-05")) == 1


@pytest.mark.asyncio
async def test_locations_are_ordered_by_provider_priority():
    directory = ProviderDirectory([Provider("A", "Alpha", 1), Provider("B", "Beta", 2)])
    day = "2025-10-05"
    engine, _, _, _ = make_engine(
        {booking_id_for(c, day): result_for(["09:00"]) for c in ("X", "B", "A")},
        directory=directory,
    )

    result = await engine.discover(["X", "B", "A"], ["S1"], weeks=1)

    locations = result.date_availability[day].locations
    assert [loc.id for loc in locations] == ["A", "B", "X"]
    assert [loc.priority for loc in locations] == [1, 2, None]


@pytest.mark.asyncio
async def test_locations_without_slots_do_not_make_a_date_available():
    engine, _, _, _ = make_engine({booking_id_for("C1", "2025-10-05"): result_for([], unavailable=["09:00"])})

    result = await engine.discover(["C1"], ["S1"], weeks=1)

    day = result.date_availability["2025-10-05"]
    assert day.has_slots is False
    assert day.locations == []
    assert result.available_dates == []
    assert result.weekly_availability == []


@pytest.mark.asyncio
async def test_merged_hourly_buckets_sum_across_centers():
    day = "2025-10-05"
    engine, _, _, _ = make_engine(
        {
            booking_id_for("C1", day): result_for(["09:00", "09:15"]),
            booking_id_for("C2", day): result_for(["09:30", "10:00"]),
        }
    )

    result = await engine.discover(["C1", "C2"], ["S1"], weeks=1)

    merged = result.date_availability[day].merged_hourly_buckets
    assert [(b.hour, b.count) for b in merged] == [("09:00", 3), ("10:00", 1)]
    assert result.date_availability[day].total_available_slots == 4


@pytest.mark.parametrize(
    "centers, services, weeks",
    [
        ([], ["S1"], 1),
        (["C1"], [], 1),
        (None, ["S1"], 1),
        (["C1", ""], ["S1"], 1),
        (["C1"], ["S1"], 0),
        (["C1"], ["S1"], True),
        (["C1"], ["S1"], "2"),
    ],
)
@pytest.mark.asyncio
async def test_invalid_input_fails_before_any_probe(centers, services, weeks):
    engine, probe, _, _ = make_engine()

    with pytest.raises(ValidationError):
        await engine.discover(centers, services, weeks=weeks)
    assert probe.calls == []


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_any_probe():
    engine, probe, _, _ = make_engine(configured=False)

    with pytest.raises(ConfigurationError):
        await engine.discover(["C1"], ["S1"], weeks=1)
    assert probe.calls == []


@pytest.mark.asyncio
async def test_all_pairs_failing_is_an_empty_success():
    engine, _, _, _ = make_engine(fail_probe=[("C1", "2025-10-05"), ("C1", "2025-10-12")])

    result = await engine.discover(["C1"], ["S1"], weeks=2)

    assert result.date_availability == {}
    assert result.available_dates == []
    assert result.weekly_availability == []
    assert len(result.failures) == 2


@pytest.mark.asyncio
async def test_week_starts_past_the_horizon_are_dropped():
    engine, probe, _, _ = make_engine()

    result = await engine.discover(["C1"], ["S1"], weeks=6)

    assert result.requested_dates == ["2025-10-05", "2025-10-12", "2025-10-19", "2025-10-26", "2025-11-02"]
    assert len(probe.calls) == 5


@pytest.mark.asyncio
async def test_default_weeks_come_from_config():
    engine, probe, _, _ = make_engine(config=DiscoveryConfig(default_weeks=2))

    result = await engine.discover(["C1"], ["S1"])

    assert result.requested_dates == ["2025-10-05", "2025-10-12"]


@pytest.mark.asyncio
async def test_generation_completes_before_the_next_begins():
    engine, _, _, events = make_engine(
        {
            booking_id_for("C1", "2025-10-05"): result_for(["09:00"], hints={"2025-10-07": True}),
            booking_id_for("C2", "2025-10-05"): result_for(["09:00"], hints={"2025-10-09": True}),
        }
    )

    await engine.discover(["C1", "C2"], ["S1"], weeks=1)

    first_next_gen = events.index(("probe", "C1", "2025-10-07"))
    gen_one_done = [i for i, e in enumerate(events) if e[0] == "fetched" and e[1].endswith("2025-10-05")]
    assert len(gen_one_done) == 2
    assert max(gen_one_done) < first_next_gen


@pytest.mark.asyncio
@respx.mock
async def test_discovery_against_mocked_zenoti(probe, fetcher):
    def create_booking(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={"id": booking_id_for(body["center_id"], body["date"])})

    def get_slots(request: httpx.Request) -> httpx.Response:
        booking_id = request.url.path.split("/")[-2]
        if booking_id == "B-C1-2025-10-05":
            return httpx.Response(200, json=slots_payload(["09:00", "09:15"], hints={"2025-10-08": True}))
        if booking_id == "B-C1-2025-10-08":
            return httpx.Response(200, json=slots_payload(["14:00"]))
        return httpx.Response(429)

    respx.route(method="POST", host=ZENOTI_HOST, path="/v1/bookings").mock(side_effect=create_booking)
    respx.route(method="GET", host=ZENOTI_HOST, path__regex=r"^/v1/bookings/[^/]+/slots$").mock(side_effect=get_slots)
    engine = DiscoveryEngine(probe, fetcher, today=lambda: TODAY)

    result = await engine.discover(["C1", "C2"], ["S1"], weeks=1)

    assert result.available_dates == ["2025-10-05", "2025-10-08"]
    assert [loc.id for loc in result.date_availability["2025-10-05"].locations] == ["C1"]
    # C2's slots call is rate limited until the retries run out
    [failure] = result.failures
    assert (failure.center_id, failure.stage) == ("C2", "slots")
    assert "Rate limit exceeded" in failure.message


@pytest.mark.asyncio
async def test_unparseable_slot_times_do_not_abort_the_run():
    day = "2025-10-05"
    engine, _, _, _ = make_engine(
        {
            booking_id_for("C1", day): result_for(["²:00"]),
            booking_id_for("C2", day): result_for(["09:00"]),
        }
    )

    result = await engine.discover(["C1", "C2"], ["S1"], weeks=1)

    assert result.available_dates == [day]
    assert result.failures == []
    assert [(b.hour, b.count) for b in result.date_availability[day].merged_hourly_buckets] == [("09:00", 1)]


class BrokenFetcher(FakeFetcher):
    """Raises a plain RuntimeError for one booking id."""

    def __init__(self, events, results, broken_id):
        super().__init__(events, results)
        self.broken_id = broken_id

    async def fetch_slots(self, booking_id, include_future_hints=False):
        if booking_id == self.broken_id:
            raise RuntimeError("malformed payload")
        return await super().fetch_slots(booking_id, include_future_hints)


@pytest.mark.asyncio
async def test_unexpected_error_in_one_pair_is_recorded_and_others_complete():
    day = "2025-10-05"
    events: list = []
    fetcher = BrokenFetcher(
        events,
        {booking_id_for("C2", day): result_for(["09:00"]), booking_id_for("C3", day): result_for(["10:00"])},
        broken_id=booking_id_for("C1", day),
    )
    engine = DiscoveryEngine(FakeProbe(events), fetcher, today=lambda: TODAY)

    result = await engine.discover(["C1", "C2", "C3"], ["S1"], weeks=1)

    assert [loc.id for loc in result.date_availability[day].locations] == ["C2", "C3"]
    [failure] = result.failures
    assert (failure.center_id, failure.stage, failure.message) == ("C1", "slots", "malformed payload")
    assert failure.booking_id == "B-C1-2025-10-05"


@pytest.mark.asyncio
async def test_configuration_error_inside_a_pair_still_propagates():
    events: list = []

    class UnconfiguredFetcher(FakeFetcher):
        async def fetch_slots(self, booking_id, include_future_hints=False):
            raise ConfigurationError("missing key")

    engine = DiscoveryEngine(FakeProbe(events), UnconfiguredFetcher(events), today=lambda: TODAY)

    with pytest.raises(ConfigurationError):
        await engine.discover(["C1"], ["S1"], weeks=1)
