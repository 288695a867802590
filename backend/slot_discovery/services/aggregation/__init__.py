from slot_discovery.services.aggregation.hourly import (
    HourlyBucket,
    aggregate,
    hour_label,
    hour_of,
    merge_across_locations,
)

__all__ = ["HourlyBucket", "aggregate", "hour_label", "hour_of", "merge_across_locations"]
