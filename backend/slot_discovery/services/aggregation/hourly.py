"""
Hourly aggregation: 15-minute slots -> 1-hour buckets, and merging bucket lists
across centers. Labels are "HH:00" so string order is chronological order.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from slot_discovery.services.zenoti.types import Slot

logger = logging.getLogger(__name__)


@dataclass
class HourlyBucket:
    hour: str  # "HH:00"
    count: int = 0
    slots: list[Slot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.hour, "available": self.count > 0, "count": self.count}


def hour_of(time_str: str | None) -> int | None:
    """
    Hour 0-23 from "HH:MM[:SS]" or a date-time ("YYYY-MM-DDTHH:MM:SS" / "YYYY-MM-DD HH:MM:SS").
    None when the string has no usable hour.
    """
    if not time_str or not isinstance(time_str, str):
        return None
    s = time_str.strip()
    if "T" in s:
        s = s.split("T", 1)[1].strip()
    elif " " in s:
        date_part, rest = s.split(" ", 1)
        # "YYYY-MM-DD HH:MM"; "9:00 AM" keeps its leading hour
        if "-" in date_part:
            s = rest.strip()
    head = s.split(":", 1)[0].split(" ", 1)[0].strip()
    if not head.isdecimal():
        return None
    try:
        hour = int(head)
    except ValueError:
        return None
    if hour < 0 or hour > 23:
        return None
    return hour


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


def aggregate(slots: Iterable[Slot]) -> list[HourlyBucket]:
    """Available slots grouped by clock hour, ascending. Unparseable or out-of-range times are dropped."""
    buckets: dict[str, HourlyBucket] = {}
    for slot in slots:
        if not slot.available:
            continue
        hour = hour_of(slot.time)
        if hour is None:
            logger.debug("Dropping slot with invalid time: %r", slot.time)
            continue
        label = hour_label(hour)
        bucket = buckets.setdefault(label, HourlyBucket(hour=label))
        bucket.count += 1
        bucket.slots.append(slot)
    return [buckets[k] for k in sorted(buckets)]


def merge_across_locations(bucket_lists: Iterable[Iterable[HourlyBucket]]) -> list[HourlyBucket]:
    """Sum counts and concatenate member slots per hour label across centers."""
    merged: dict[str, HourlyBucket] = {}
    for buckets in bucket_lists:
        for b in buckets:
            target = merged.setdefault(b.hour, HourlyBucket(hour=b.hour))
            target.count += b.count
            target.slots.extend(b.slots)
    return [merged[k] for k in sorted(merged)]
