"""
Typed definitions for Zenoti booking API payloads, plus the normalized shapes
the rest of the service works with.

The slots endpoint (GET /bookings/{id}/slots) is not consistent about key casing:
"Time"/"time"/"start_time", "Available"/"available", "future_days"/"futureDays",
"Day"/"day"/"date", "IsAvailable"/"isAvailable". Raw variants are described here
and collapsed into Slot / FutureDay / SlotsResult by services.discovery.slots.
"""
from dataclasses import dataclass, field
from typing import Any, TypedDict


class ZenotiBookingItem(TypedDict):
    item: dict[str, str]  # {"id": service_id}


class ZenotiBookingGuest(TypedDict):
    id: str | None  # None for a provisional (probe) booking
    items: list[ZenotiBookingItem]


class ZenotiBookingPayload(TypedDict):
    """Body for POST /bookings?is_double_booking_enabled=false."""
    center_id: str
    date: str  # YYYY-MM-DD
    guests: list[ZenotiBookingGuest]


class ZenotiRawSlot(TypedDict, total=False):
    """One slot from slots[]; only one of the time keys is present."""
    Time: str  # e.g. "2025-10-05T09:00:00" or "09:00:00"
    time: str
    start_time: str
    Available: bool
    available: bool


class ZenotiRawFutureDay(TypedDict, total=False):
    """One entry from future_days[] (only when check_future_day_availability=true)."""
    Day: str  # e.g. "2025-10-08T00:00:00"
    day: str
    date: str
    IsAvailable: bool
    isAvailable: bool


class ZenotiSlotsResponse(TypedDict, total=False):
    slots: list[ZenotiRawSlot]
    future_days: list[ZenotiRawFutureDay]
    futureDays: list[ZenotiRawFutureDay]
    next_available_day: str | None
    nextAvailableDay: str | None
    Error: Any


@dataclass
class Slot:
    """A normalized slot. time is None when the upstream sent no usable time."""
    time: str | None
    available: bool
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "available": self.available}


@dataclass(frozen=True)
class FutureDay:
    day: str  # YYYY-MM-DD
    available: bool


@dataclass
class SlotsResult:
    """Normalized output of one slot fetch."""
    slots: list[Slot] = field(default_factory=list)
    future_days: list[FutureDay] = field(default_factory=list)
    next_available_day: str | None = None
    error: str | None = None

    @property
    def future_date_hints(self) -> list[str]:
        """Hint dates the upstream marks as available, in upstream order, de-duplicated."""
        seen: set[str] = set()
        out: list[str] = []
        for fd in self.future_days:
            if fd.available and fd.day not in seen:
                seen.add(fd.day)
                out.append(fd.day)
        return out

    @property
    def available_count(self) -> int:
        return sum(1 for s in self.slots if s.available)
