"""
Calendar helpers for discovery: ISO date canonicalization, Sunday-start weeks,
week-start frontier dates and grouping of available dates by week.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable

CURRENT_WEEK_LABEL = "Current Week"


def to_iso_date(value: Any) -> str:
    """YYYY-MM-DD from a date, datetime or ISO string (time part ignored). Raises ValueError."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    s = str(value or "").strip()
    if not s:
        raise ValueError("date is required")
    s = s.split("T", 1)[0].split(" ", 1)[0]
    try:
        return date.fromisoformat(s).isoformat()
    except ValueError as e:
        raise ValueError(f"invalid date {value!r}; use YYYY-MM-DD") from e


def week_start(d: date) -> date:
    """Sunday on or before d."""
    # date.weekday(): Monday=0 .. Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_start_dates(today: date, weeks: int) -> list[date]:
    """Sunday of the current week followed by the next weeks-1 Sundays."""
    first = week_start(today)
    return [first + timedelta(days=7 * i) for i in range(max(0, weeks))]


def week_label(index: int) -> str:
    return CURRENT_WEEK_LABEL if index == 0 else f"Week {index + 1}"


@dataclass
class WeekBucket:
    week_start: str
    label: str
    available_dates: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "week_start": self.week_start,
            "week_label": self.label,
            "available_dates": list(self.available_dates),
        }


def index_by_week(dates: Iterable[str | date]) -> list[WeekBucket]:
    """
    Group dates into Sunday-start week buckets, ascending. The first bucket is
    "Current Week", the rest "Week 2", "Week 3", ... by position. Unparseable
    dates are skipped; duplicates collapse.
    """
    by_week: dict[date, set[str]] = {}
    for raw in dates:
        try:
            iso = to_iso_date(raw)
        except ValueError:
            continue
        by_week.setdefault(week_start(date.fromisoformat(iso)), set()).add(iso)
    return [
        WeekBucket(week_start=ws.isoformat(), label=week_label(i), available_dates=sorted(by_week[ws]))
        for i, ws in enumerate(sorted(by_week))
    ]
