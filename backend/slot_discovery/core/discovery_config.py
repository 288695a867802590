"""
Discovery workload config. .env is the source of truth; these defaults apply only when
the env var is unset. All values read at import time.

Env vars: DISCOVERY_MAX_CONCURRENT_REQUESTS, DISCOVERY_CACHE_TTL_SECONDS,
DISCOVERY_HORIZON_DAYS, DISCOVERY_DEFAULT_WEEKS, DISCOVERY_RETRY_DELAYS_SECONDS,
DISCOVERY_DATE_TIMEZONE, ZENOTI_REQUEST_TIMEOUT_SECONDS.

Verify with GET /health (includes discovery config).
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load backend/.env so discovery config sees env vars regardless of entry point
# (scripts and tests import this module without going through main.py)
_backend_dir = Path(__file__).resolve().parent.parent.parent
_env_path = _backend_dir / ".env"
_env_paths = [_env_path]
if Path.cwd() != _backend_dir:
    _env_paths.extend([Path.cwd() / ".env", Path.cwd() / "backend" / ".env"])
for _p in _env_paths:
    if _p.exists():
        load_dotenv(_p, override=False)
        break
else:
    load_dotenv(_env_path, override=False)  # load_dotenv no-ops if file missing

_log = logging.getLogger(__name__)


def _int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = os.environ.get(key)
    if raw is None:
        v = default
    else:
        try:
            v = int(raw.strip())
        except ValueError:
            v = default
    if min_val is not None and v < min_val:
        v = min_val
    if max_val is not None and v > max_val:
        v = max_val
    return v


def _list_int(key: str, default: List[int]) -> List[int]:
    raw = os.environ.get(key)
    if not raw:
        return default
    out = []
    for s in raw.split(","):
        s = s.strip()
        if not s:
            continue
        try:
            v = int(s)
        except ValueError:
            continue
        if v >= 0:
            out.append(v)
    return out if out else default


# -----------------------------------------------------------------------------
# Outbound requests: concurrency, retry schedule, timeout
# -----------------------------------------------------------------------------
DISCOVERY_MAX_CONCURRENT_REQUESTS = _int("DISCOVERY_MAX_CONCURRENT_REQUESTS", 8, min_val=1, max_val=64)
# Seconds to wait before retry N after a 429; Retry-After from the upstream wins when present
DISCOVERY_RETRY_DELAYS_SECONDS = _list_int("DISCOVERY_RETRY_DELAYS_SECONDS", [1, 2, 5, 10])
ZENOTI_REQUEST_TIMEOUT_SECONDS = _int("ZENOTI_REQUEST_TIMEOUT_SECONDS", 20, min_val=1, max_val=120)

# -----------------------------------------------------------------------------
# Cache and discovery window
# -----------------------------------------------------------------------------
DISCOVERY_CACHE_TTL_SECONDS = _int("DISCOVERY_CACHE_TTL_SECONDS", 300, min_val=1, max_val=3600)
# Probing never goes past today + horizon (inclusive); discovered hint dates are clamped to it
DISCOVERY_HORIZON_DAYS = _int("DISCOVERY_HORIZON_DAYS", 28, min_val=1, max_val=90)
DISCOVERY_DEFAULT_WEEKS = _int("DISCOVERY_DEFAULT_WEEKS", 4, min_val=1, max_val=13)
DISCOVERY_DATE_TIMEZONE = os.environ.get("DISCOVERY_DATE_TIMEZONE", "UTC").strip() or "UTC"

# Log effective config at import so each environment can verify env vars are applied
_log.info(
    "Discovery config (from env): max_concurrent_requests=%s retry_delays=%s cache_ttl_sec=%s "
    "horizon_days=%s default_weeks=%s timezone=%s",
    DISCOVERY_MAX_CONCURRENT_REQUESTS,
    DISCOVERY_RETRY_DELAYS_SECONDS,
    DISCOVERY_CACHE_TTL_SECONDS,
    DISCOVERY_HORIZON_DAYS,
    DISCOVERY_DEFAULT_WEEKS,
    DISCOVERY_DATE_TIMEZONE,
)


@dataclass(frozen=True)
class DiscoveryConfig:
    """Snapshot of discovery config for passing around (e.g. tests)."""
    max_concurrent_requests: int = 8
    retry_delays_seconds: tuple[int, ...] = (1, 2, 5, 10)
    request_timeout_seconds: int = 20
    cache_ttl_seconds: int = 300
    horizon_days: int = 28
    default_weeks: int = 4
    date_timezone: str = "UTC"

    def as_dict(self) -> dict:
        return {
            "max_concurrent_requests": self.max_concurrent_requests,
            "retry_delays_seconds": list(self.retry_delays_seconds),
            "request_timeout_seconds": self.request_timeout_seconds,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "horizon_days": self.horizon_days,
            "default_weeks": self.default_weeks,
            "date_timezone": self.date_timezone,
        }


def get_discovery_config() -> DiscoveryConfig:
    return DiscoveryConfig(
        max_concurrent_requests=DISCOVERY_MAX_CONCURRENT_REQUESTS,
        retry_delays_seconds=tuple(DISCOVERY_RETRY_DELAYS_SECONDS),
        request_timeout_seconds=ZENOTI_REQUEST_TIMEOUT_SECONDS,
        cache_ttl_seconds=DISCOVERY_CACHE_TTL_SECONDS,
        horizon_days=DISCOVERY_HORIZON_DAYS,
        default_weeks=DISCOVERY_DEFAULT_WEEKS,
        date_timezone=DISCOVERY_DATE_TIMEZONE,
    )
