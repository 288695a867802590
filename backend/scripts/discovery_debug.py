#!/usr/bin/env python3
"""Run one discovery and print a per-date summary.

Run from backend: python scripts/discovery_debug.py --centers C1,C2 --services S1 --weeks 2

Or with backend running:
  curl -s -X POST http://127.0.0.1:8000/api/slots/unified \
    -H 'Content-Type: application/json' -d '{"centers":["C1"],"services":["S1"],"weeks":2}' | jq
"""
import argparse
import asyncio
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from slot_discovery.config import settings
from slot_discovery.core.discovery_config import get_discovery_config
from slot_discovery.core.errors import DiscoveryError
from slot_discovery.services import build_services


def _csv(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


async def run(centers: list[str], services: list[str], weeks: int) -> int:
    container = build_services(settings, get_discovery_config())
    try:
        result = await container.engine.discover(centers, services, weeks)
    except DiscoveryError as e:
        print(f"Discovery failed: {e}")
        return 1
    finally:
        await container.aclose()

    print("Discovery debug")
    print("===============")
    print(f"Requested dates: {', '.join(result.requested_dates) or 'none'}")
    print(f"Pairs probed:    {result.pairs_probed} in {result.generations} generations")
    print(f"Failures:        {len(result.failures)}")
    print(f"Clamped hints:   {result.clamped_hints}")
    print(f"Took:            {result.processing_time_ms}ms")
    print()
    for week in result.weekly_availability:
        print(f"{week.label} ({week.week_start}):")
        for d in week.available_dates:
            da = result.date_availability[d]
            centers_str = ", ".join(f"{loc.id}={loc.count}" for loc in da.locations)
            print(f"  - {d}  total={da.total_available_slots}  [{centers_str}]")
    if result.failures:
        print()
        print("Failures (center, date, stage, error):")
        for f in result.failures:
            print(f"  - {f.center_id}  {f.date}  {f.stage}  {f.message}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--centers", required=True, help="comma-separated center ids")
    parser.add_argument("--services", required=True, help="comma-separated service ids")
    parser.add_argument("--weeks", type=int, default=get_discovery_config().default_weeks)
    args = parser.parse_args()
    return asyncio.run(run(_csv(args.centers), _csv(args.services), args.weeks))


if __name__ == "__main__":
    sys.exit(main())
