"""
Slot fetcher: slots (and optionally future-day hints) for a provisional booking.

Raw Zenoti payloads are normalized here, once, into SlotsResult so nothing
downstream needs to know about "Time" vs "time" vs "start_time" and friends.
"""
import logging
from typing import Any

from slot_discovery.core.errors import ConfigurationError, DiscoveryError, SlotFetchError
from slot_discovery.services.cache import ResponseCache
from slot_discovery.services.discovery.weeks import to_iso_date
from slot_discovery.services.zenoti.client import ZenotiClient
from slot_discovery.services.zenoti.types import FutureDay, Slot, SlotsResult

logger = logging.getLogger(__name__)

_TIME_KEYS = ("Time", "time", "start_time")
_AVAILABLE_KEYS = ("Available", "available")
_FUTURE_DAYS_KEYS = ("future_days", "futureDays")
_DAY_KEYS = ("Day", "day", "date")
_DAY_AVAILABLE_KEYS = ("IsAvailable", "isAvailable")
_NEXT_DAY_KEYS = ("next_available_day", "nextAvailableDay")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return None


def slots_cache_key(booking_id: str, include_future_hints: bool) -> str:
    return f"slots-{booking_id}-{'future' if include_future_hints else 'current'}"


def normalize_slot(raw: Any) -> Slot | None:
    if not isinstance(raw, dict):
        return None
    time_val = _first(raw, _TIME_KEYS)
    time_str = time_val.strip() if isinstance(time_val, str) and time_val.strip() else None
    return Slot(time=time_str, available=_first(raw, _AVAILABLE_KEYS) is True, raw=raw)


def normalize_future_day(raw: Any) -> FutureDay | None:
    if not isinstance(raw, dict):
        return None
    day = _first(raw, _DAY_KEYS)
    if not day:
        return None
    try:
        day_str = to_iso_date(day)
    except ValueError:
        return None
    return FutureDay(day=day_str, available=_first(raw, _DAY_AVAILABLE_KEYS) is True)


def normalize_slots_response(raw: dict[str, Any]) -> SlotsResult:
    """Collapse the raw slots payload into SlotsResult; malformed entries are skipped."""
    raw_slots = raw.get("slots") if isinstance(raw.get("slots"), list) else []
    raw_days = _first(raw, _FUTURE_DAYS_KEYS)
    raw_days = raw_days if isinstance(raw_days, list) else []
    slots = [s for s in (normalize_slot(r) for r in raw_slots) if s is not None]
    future_days = [d for d in (normalize_future_day(r) for r in raw_days) if d is not None]
    next_day = _first(raw, _NEXT_DAY_KEYS)
    error = _first(raw, ("Error", "error"))
    if isinstance(error, dict):
        error = error.get("message") or str(error)
    return SlotsResult(
        slots=slots,
        future_days=future_days,
        next_available_day=str(next_day) if next_day else None,
        error=str(error) if error else None,
    )


class SlotFetcher:
    def __init__(self, client: ZenotiClient, cache: ResponseCache) -> None:
        self._client = client
        self._cache = cache

    async def fetch_slots(self, booking_id: str, include_future_hints: bool = False) -> SlotsResult:
        """Normalized slots for booking_id; raises SlotFetchError on upstream failure."""
        key = slots_cache_key(booking_id, include_future_hints)
        raw = self._cache.get(key)
        if raw is not None:
            logger.debug("Cache hit for slots: %s", key)
            return normalize_slots_response(raw)
        try:
            raw = await self._client.get_slots(booking_id, include_future_hints)
        except ConfigurationError:
            raise
        except DiscoveryError as e:
            raise SlotFetchError(str(e), status_code=getattr(e, "status_code", None), detail=getattr(e, "detail", None)) from e
        self._cache.set(key, raw)
        return normalize_slots_response(raw)
