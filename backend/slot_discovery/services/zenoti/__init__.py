"""Zenoti booking API: client (wire calls), config (credentials) and payload types."""
from slot_discovery.services.zenoti.client import ZenotiClient, build_booking_payload
from slot_discovery.services.zenoti.config import ZenotiConfig
from slot_discovery.services.zenoti.types import (
    FutureDay,
    Slot,
    SlotsResult,
    ZenotiBookingPayload,
    ZenotiRawFutureDay,
    ZenotiRawSlot,
    ZenotiSlotsResponse,
)

__all__ = [
    "FutureDay",
    "Slot",
    "SlotsResult",
    "ZenotiBookingPayload",
    "ZenotiClient",
    "ZenotiConfig",
    "ZenotiRawFutureDay",
    "ZenotiRawSlot",
    "ZenotiSlotsResponse",
    "build_booking_payload",
]
