"""
Slots: unified multi-center discovery and per-booking slot lookup.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slot_discovery.api.deps import get_services
from slot_discovery.services import ServiceContainer
from slot_discovery.services.aggregation import aggregate

router = APIRouter()
logger = logging.getLogger(__name__)


class UnifiedSlotsRequest(BaseModel):
    centers: list[str] | None = None
    services: list[str] | None = None
    weeks: int | None = None


@router.post("/slots/unified", response_model=dict)
async def unified_slots(body: UnifiedSlotsRequest, svc: ServiceContainer = Depends(get_services)):
    """Discover available dates (current week onward, within the horizon) across centers."""
    result = await svc.engine.discover(body.centers or [], body.services or [], body.weeks)
    data = result.to_dict()
    data["centers"] = body.centers
    data["services"] = body.services
    data["mode"] = "week_based"
    return {
        "success": True,
        "data": data,
        "message": (
            f"Retrieved availability for {result.pairs_probed} center/date booking combinations "
            f"in {result.processing_time_ms}ms."
        ),
    }


@router.get("/bookings/{booking_id}/slots", response_model=dict)
async def booking_slots(
    booking_id: str,
    check_future_day_availability: bool = True,
    svc: ServiceContainer = Depends(get_services),
):
    """Slots for one booking, with hourly buckets; future days included unless disabled."""
    svc.probe.ensure_configured()
    result = await svc.fetcher.fetch_slots(booking_id, check_future_day_availability)
    return {
        "success": True,
        "data": {
            "slots": [s.to_dict() for s in result.slots],
            "hourly_buckets": [b.to_dict() for b in aggregate(result.slots)],
            "future_days": [{"day": fd.day, "is_available": fd.available} for fd in result.future_days],
            "next_available_day": result.next_available_day,
            "error": result.error,
        },
        "message": (
            f"Retrieved slots for booking {booking_id}"
            + (" (including future days)" if check_future_day_availability else " (current day only)")
        ),
        "check_future_day_availability": check_future_day_availability,
    }
