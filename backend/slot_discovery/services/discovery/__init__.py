"""
Discovery: which dates have open slots across centers for a set of services.

- probe: provisional booking per (center, date, services), cached.
- slots: slot + future-day hint fetch per booking, cached and normalized.
- engine: generation-based expansion over (center, date) pairs.
- weeks: Sunday-start week helpers and weekly indexing of available dates.
"""
from slot_discovery.services.discovery.engine import (
    CenterDateAvailability,
    DateAvailability,
    DiscoveryEngine,
    DiscoveryResult,
    FrontierPair,
    LocationAvailability,
    PairFailure,
)
from slot_discovery.services.discovery.probe import BookingProbe, ProbeOutcome, probe_cache_key, services_key
from slot_discovery.services.discovery.slots import SlotFetcher, normalize_slots_response, slots_cache_key
from slot_discovery.services.discovery.weeks import WeekBucket, index_by_week, to_iso_date, week_start, week_start_dates

__all__ = [
    "BookingProbe",
    "CenterDateAvailability",
    "DateAvailability",
    "DiscoveryEngine",
    "DiscoveryResult",
    "FrontierPair",
    "LocationAvailability",
    "PairFailure",
    "ProbeOutcome",
    "SlotFetcher",
    "WeekBucket",
    "index_by_week",
    "normalize_slots_response",
    "probe_cache_key",
    "services_key",
    "slots_cache_key",
    "to_iso_date",
    "week_start",
    "week_start_dates",
]
