"""
Bookings: provisional bookings for one date across one or more centers.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from slot_discovery.api.deps import get_services
from slot_discovery.core.errors import ValidationError
from slot_discovery.services import ServiceContainer
from slot_discovery.services.discovery.weeks import to_iso_date
from slot_discovery.services.providers.directory import UNKNOWN_PRIORITY

router = APIRouter()
logger = logging.getLogger(__name__)


class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str | None = None
    centers: list[str] | None = None
    center_id: str | None = Field(default=None, alias="centerId")
    service_ids: list[str] | None = Field(default=None, alias="serviceIds")
    service_id: str | None = Field(default=None, alias="serviceId")


@router.post("/bookings", response_model=dict)
async def create_bookings(body: BookingRequest, svc: ServiceContainer = Depends(get_services)):
    """Probe every requested center for one date; successful bookings sorted by center priority."""
    if not body.date:
        raise ValidationError("date is required")
    try:
        date_str = to_iso_date(body.date)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    services = body.service_ids or ([body.service_id] if body.service_id else [])
    if not services:
        raise ValidationError("Either serviceId or serviceIds array is required")
    centers = body.centers or ([body.center_id] if body.center_id else [])
    if not centers:
        raise ValidationError("Either centerId or centers array is required")
    svc.probe.ensure_configured()

    outcomes = await svc.probe.probe_many(centers, date_str, services)
    bookings = []
    for o in outcomes:
        provider = svc.directory.get(o.center_id)
        bookings.append({
            "centerId": o.center_id,
            "centerName": provider.name if provider else "Unknown Provider",
            "priority": provider.priority if provider else UNKNOWN_PRIORITY,
            "bookingId": o.booking_id,
            "success": o.success,
            "error": o.error,
        })
    successful = sorted((b for b in bookings if b["success"]), key=lambda b: b["priority"])
    failed = [b for b in bookings if not b["success"]]
    logger.info("Created %s successful bookings, %s failed for %s", len(successful), len(failed), date_str)
    return {
        "success": True,
        "data": {
            "bookings": bookings,
            "successfulBookings": successful,
            "failedBookings": failed,
            "summary": {
                "totalCenters": len(centers),
                "successful": len(successful),
                "failed": len(failed),
                "date": date_str,
                "services": services,
            },
        },
        "message": f"Created bookings for {len(successful)}/{len(centers)} centers on {date_str}",
    }
