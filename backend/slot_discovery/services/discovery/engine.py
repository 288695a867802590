"""
Discovery engine: which dates have open slots for a set of centers and services.

Generation-based work queue:
- Generation 1 = centers x week-start dates (current week first), inside the horizon.
- Every pair in a generation is probed (provisional booking) and, on success, its slots
  are fetched with future-day hints; the whole generation runs under asyncio.gather and
  is bounded only by the shared RateLimitedClient.
- Available hint dates for the same center become the next generation, unless the
  (center, date) pair is already processed, already pending, or outside the horizon.
- Stop when a generation discovers nothing new.

(center, date) pairs are marked processed whether they succeed or fail, so each is
probed at most once per run and the number of generations is bounded by
centers x dates-in-horizon. Per-pair failures are recorded, never raised.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slot_discovery.core.discovery_config import DiscoveryConfig
from slot_discovery.core.errors import ConfigurationError, ProbeError, SlotFetchError, ValidationError
from slot_discovery.services.aggregation.hourly import HourlyBucket, aggregate, merge_across_locations
from slot_discovery.services.discovery.probe import BookingProbe
from slot_discovery.services.discovery.slots import SlotFetcher
from slot_discovery.services.discovery.weeks import WeekBucket, index_by_week, week_start, week_start_dates
from slot_discovery.services.providers.directory import UNKNOWN_PRIORITY, ProviderDirectory
from slot_discovery.services.zenoti.types import Slot

logger = logging.getLogger(__name__)

# Provenance: (date, booking_id) hops from a requested pair to a discovered one
Provenance = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class FrontierPair:
    center_id: str
    date: str
    provenance: Provenance = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.center_id, self.date)


@dataclass
class CenterDateAvailability:
    """Outcome of one successful (center, date) probe + slot fetch."""
    center_id: str
    date: str
    booking_id: str
    slots: list[Slot]
    hourly_buckets: list[HourlyBucket]
    available_count: int
    provenance: Provenance = ()
    future_hints: list[str] = field(default_factory=list)
    next_available_day: str | None = None

    @property
    def is_discovered(self) -> bool:
        return bool(self.provenance)

    @property
    def source_booking_id(self) -> str | None:
        return self.provenance[-1][1] if self.provenance else None


@dataclass
class PairFailure:
    center_id: str
    date: str
    stage: str  # "probe" or "slots"
    message: str
    booking_id: str | None = None
    provenance: Provenance = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "center_id": self.center_id,
            "date": self.date,
            "stage": self.stage,
            "error": self.message,
            "booking_id": self.booking_id,
            "discovered_from": [list(p) for p in self.provenance],
        }


@dataclass
class LocationAvailability:
    id: str
    count: int
    hourly_buckets: list[HourlyBucket]
    booking_id: str
    priority: int | None
    provenance: Provenance = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "no_of_slots": self.count,
            "hourly_slots": [b.to_dict() for b in self.hourly_buckets],
            "booking_id": self.booking_id,
            "priority": self.priority,
            "is_future_booking": bool(self.provenance),
            "discovered_from": [list(p) for p in self.provenance],
        }


@dataclass
class DateAvailability:
    date: str
    has_slots: bool
    total_available_slots: int
    locations: list[LocationAvailability]
    merged_hourly_buckets: list[HourlyBucket] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasSlots": self.has_slots,
            "centersWithAvailability": len(self.locations),
            "totalAvailableSlots": self.total_available_slots,
            "center_ids": [loc.to_dict() for loc in self.locations],
            "hourly_slots": [b.to_dict() for b in self.merged_hourly_buckets],
        }


@dataclass
class DiscoveryResult:
    date_availability: dict[str, DateAvailability] = field(default_factory=dict)
    available_dates: list[str] = field(default_factory=list)
    weekly_availability: list[WeekBucket] = field(default_factory=list)
    processing_time_ms: int = 0
    requested_dates: list[str] = field(default_factory=list)
    pairs_probed: int = 0
    generations: int = 0
    failures: list[PairFailure] = field(default_factory=list)
    clamped_hints: int = 0
    future_day_availability: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_availability": {d: da.to_dict() for d, da in self.date_availability.items()},
            "available_dates": list(self.available_dates),
            "weekly_availability": [w.to_dict() for w in self.weekly_availability],
            "processing_time_ms": self.processing_time_ms,
            "dates": list(self.requested_dates),
            "total_combinations": self.pairs_probed,
            "successful_combinations": self.pairs_probed - len(self.failures),
            "generations": self.generations,
            "failures": [f.to_dict() for f in self.failures],
            "clamped_hints": self.clamped_hints,
            "future_day_availability": [
                {"centerId": cid, "available_dates": dates}
                for cid, dates in self.future_day_availability.items()
            ],
        }


def _clean_ids(values: Any, name: str) -> list[str]:
    """Non-empty, stripped, de-duplicated ids in caller order."""
    if not isinstance(values, (list, tuple)) or not values:
        raise ValidationError(f"{name} array is required")
    out: list[str] = []
    for v in values:
        if v is None or isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValidationError(f"{name} must only contain ids")
        s = str(v).strip()
        if not s:
            raise ValidationError(f"{name} must not contain empty ids")
        if s not in out:
            out.append(s)
    return out


class DiscoveryEngine:
    def __init__(
        self,
        probe: BookingProbe,
        fetcher: SlotFetcher,
        *,
        directory: ProviderDirectory | None = None,
        config: DiscoveryConfig | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._probe = probe
        self._fetcher = fetcher
        self._directory = directory or ProviderDirectory()
        self._config = config or DiscoveryConfig()
        self._today = today or self._today_in_config_tz

    def _today_in_config_tz(self) -> date:
        try:
            tz = ZoneInfo(self._config.date_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown DISCOVERY_DATE_TIMEZONE %r; using UTC", self._config.date_timezone)
            tz = timezone.utc
        return datetime.now(tz).date()

    async def discover(
        self, locations: Sequence[str], services: Sequence[str], weeks: int | None = None
    ) -> DiscoveryResult:
        """Run discovery. Raises only ValidationError / ConfigurationError, before any network call."""
        centers = _clean_ids(locations, "centers")
        service_ids = _clean_ids(services, "services")
        if weeks is None:
            weeks = self._config.default_weeks
        if isinstance(weeks, bool) or not isinstance(weeks, int) or weeks < 1:
            raise ValidationError("weeks must be a positive integer")
        self._probe.ensure_configured()

        started = time.monotonic()
        today = self._today()
        window_start = week_start(today)
        window_end = today + timedelta(days=self._config.horizon_days)
        requested = [d.isoformat() for d in week_start_dates(today, weeks) if window_start <= d <= window_end]
        result = DiscoveryResult(requested_dates=requested)
        if not requested:
            logger.info("No week start dates within %s days of %s; nothing to probe", self._config.horizon_days, today)
            return result

        def in_horizon(iso: str) -> bool:
            d = date.fromisoformat(iso)
            return window_start <= d <= window_end

        processed: set[tuple[str, str]] = set()
        pending: set[tuple[str, str]] = set()
        hints: dict[str, set[str]] = {}
        successes: list[CenterDateAvailability] = []
        frontier: list[FrontierPair] = []

        def enqueue(pair: FrontierPair) -> None:
            if pair.key in processed or pair.key in pending:
                return
            pending.add(pair.key)
            frontier.append(pair)

        for center_id in centers:
            for d in requested:
                enqueue(FrontierPair(center_id, d))

        logger.info(
            "Discovery start: %s centers x %s dates (%s weeks), services=%s",
            len(centers), len(requested), weeks, ",".join(service_ids),
        )
        while frontier:
            batch, frontier = frontier, []
            result.generations += 1
            logger.info("Discovery generation %s: %s pairs", result.generations, len(batch))
            outcomes = await asyncio.gather(*(self._process_pair(pair, service_ids) for pair in batch))
            for pair, outcome in zip(batch, outcomes):
                pending.discard(pair.key)
                processed.add(pair.key)
                result.pairs_probed += 1
                if isinstance(outcome, PairFailure):
                    result.failures.append(outcome)
                    continue
                successes.append(outcome)
                for hint in outcome.future_hints:
                    hints.setdefault(pair.center_id, set()).add(hint)
                    if (pair.center_id, hint) in processed or (pair.center_id, hint) in pending:
                        continue
                    if not in_horizon(hint):
                        result.clamped_hints += 1
                        continue
                    enqueue(FrontierPair(pair.center_id, hint, pair.provenance + ((pair.date, outcome.booking_id),)))

        self._assemble(result, successes)
        result.future_day_availability = {cid: sorted(ds) for cid, ds in hints.items()}
        result.processing_time_ms = int(round((time.monotonic() - started) * 1000))
        logger.info(
            "Discovery done: %s pairs in %s generations, %s failed, %s dates available, %sms",
            result.pairs_probed, result.generations, len(result.failures),
            len(result.available_dates), result.processing_time_ms,
        )
        return result

    async def _process_pair(self, pair: FrontierPair, service_ids: list[str]) -> CenterDateAvailability | PairFailure:
        try:
            booking_id = await self._probe.probe(pair.center_id, pair.date, service_ids)
        except ProbeError as e:
            logger.warning("Failed to create booking for center %s, date %s: %s", pair.center_id, pair.date, e)
            return PairFailure(pair.center_id, pair.date, "probe", str(e), provenance=pair.provenance)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.exception("Unexpected error creating booking for center %s, date %s", pair.center_id, pair.date)
            return PairFailure(pair.center_id, pair.date, "probe", str(e), provenance=pair.provenance)
        try:
            slots = await self._fetcher.fetch_slots(booking_id, include_future_hints=True)
            return CenterDateAvailability(
                center_id=pair.center_id,
                date=pair.date,
                booking_id=booking_id,
                slots=slots.slots,
                hourly_buckets=aggregate(slots.slots),
                available_count=slots.available_count,
                provenance=pair.provenance,
                future_hints=slots.future_date_hints,
                next_available_day=slots.next_available_day,
            )
        except SlotFetchError as e:
            logger.warning("Failed to fetch slots for booking %s (%s, %s): %s", booking_id, pair.center_id, pair.date, e)
            return PairFailure(pair.center_id, pair.date, "slots", str(e), booking_id=booking_id, provenance=pair.provenance)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.exception("Unexpected error handling slots for booking %s (%s, %s)", booking_id, pair.center_id, pair.date)
            return PairFailure(pair.center_id, pair.date, "slots", str(e), booking_id=booking_id, provenance=pair.provenance)

    def _assemble(self, result: DiscoveryResult, successes: list[CenterDateAvailability]) -> None:
        by_date: dict[str, list[CenterDateAvailability]] = {}
        for item in successes:
            by_date.setdefault(item.date, []).append(item)
        for d in sorted(by_date):
            entries = by_date[d]
            locations = [
                LocationAvailability(
                    id=e.center_id,
                    count=e.available_count,
                    hourly_buckets=e.hourly_buckets,
                    booking_id=e.booking_id,
                    priority=self._directory.priority(e.center_id),
                    provenance=e.provenance,
                )
                for e in entries
                if e.available_count > 0
            ]
            # sort is stable: equal priorities keep encounter order
            locations.sort(key=lambda loc: loc.priority if loc.priority is not None else UNKNOWN_PRIORITY)
            result.date_availability[d] = DateAvailability(
                date=d,
                has_slots=bool(locations),
                total_available_slots=sum(e.available_count for e in entries),
                locations=locations,
                merged_hourly_buckets=merge_across_locations(loc.hourly_buckets for loc in locations),
            )
        result.available_dates = [d for d, da in result.date_availability.items() if da.has_slots]
        result.weekly_availability = index_by_week(result.available_dates)
