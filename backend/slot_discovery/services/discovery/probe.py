"""
Booking probe: create a provisional booking for (center, date, services) to test
whether the center can take those services that day. Raw responses are cached so
the same triple is only sent upstream once per TTL window.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from slot_discovery.core.errors import ConfigurationError, DiscoveryError, ProbeError
from slot_discovery.services.cache import ResponseCache
from slot_discovery.services.discovery.weeks import to_iso_date
from slot_discovery.services.zenoti.client import ZenotiClient

logger = logging.getLogger(__name__)


def services_key(service_ids: Sequence[str]) -> str:
    """Stable cache-key fragment for a service set: sorted, stripped, comma-joined."""
    return ",".join(sorted(str(s).strip() for s in service_ids))


def probe_cache_key(center_id: str, date_str: str, service_ids: Sequence[str]) -> str:
    return f"booking-{center_id}-{date_str}-{services_key(service_ids)}"


def _extract_booking_id(raw: dict[str, Any]) -> str:
    error = raw.get("error") or raw.get("Error")
    if error:
        msg = error.get("message") if isinstance(error, dict) else str(error)
        raise ProbeError(msg or "Zenoti returned an error creating booking", detail=error)
    booking_id = raw.get("id")
    if not booking_id:
        raise ProbeError("Zenoti booking response has no id", detail=raw)
    return str(booking_id)


@dataclass
class ProbeOutcome:
    """One center's result from probe_many."""
    center_id: str
    booking_id: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.booking_id is not None


class BookingProbe:
    def __init__(self, client: ZenotiClient, cache: ResponseCache) -> None:
        self._client = client
        self._cache = cache

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when upstream credentials are missing."""
        self._client.ensure_configured()

    async def probe(self, center_id: str, day: str | date, service_ids: Sequence[str]) -> str:
        """Return the provisional booking id; raises ProbeError on any failure."""
        try:
            date_str = to_iso_date(day)
        except ValueError as e:
            raise ProbeError(str(e)) from e
        services = [str(s).strip() for s in service_ids]
        if not services:
            raise ProbeError("at least one service id is required")
        key = probe_cache_key(center_id, date_str, services)
        raw = self._cache.get(key)
        if raw is not None:
            logger.debug("Cache hit for booking: %s", key)
            return _extract_booking_id(raw)
        try:
            raw = await self._client.create_booking(center_id, date_str, services)
        except (ConfigurationError, ProbeError):
            raise
        except DiscoveryError as e:
            raise ProbeError(str(e), status_code=getattr(e, "status_code", None), detail=getattr(e, "detail", None)) from e
        booking_id = _extract_booking_id(raw)
        self._cache.set(key, raw)
        logger.debug("Cached booking %s for center %s on %s", booking_id, center_id, date_str)
        return booking_id

    async def probe_many(
        self, center_ids: Sequence[str], day: str | date, service_ids: Sequence[str]
    ) -> list[ProbeOutcome]:
        """Probe every center for one date concurrently; outcomes keep center order."""

        async def one(center_id: str) -> ProbeOutcome:
            try:
                return ProbeOutcome(center_id=center_id, booking_id=await self.probe(center_id, day, service_ids))
            except ProbeError as e:
                logger.warning("Failed to create booking for center %s: %s", center_id, e)
                return ProbeOutcome(center_id=center_id, error=str(e))

        return list(await asyncio.gather(*(one(cid) for cid in center_ids)))
