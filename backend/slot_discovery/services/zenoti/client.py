"""Zenoti API client: lowest level, sends requests only. No caching, no normalization."""
import logging
from typing import Any, Sequence

import httpx

from slot_discovery.core.errors import MSG_CREDENTIALS_MISSING, ConfigurationError, UpstreamError
from slot_discovery.services.rate_limit import RateLimitedClient
from slot_discovery.services.zenoti.config import ZenotiConfig
from slot_discovery.services.zenoti.types import ZenotiBookingPayload

logger = logging.getLogger(__name__)


def build_booking_payload(
    center_id: str, date_str: str, service_ids: Sequence[str], guest_id: str | None = None
) -> ZenotiBookingPayload:
    """Booking body with one guest; service order is kept as given."""
    return {
        "center_id": center_id,
        "date": date_str,
        "guests": [
            {
                "id": guest_id,
                "items": [{"item": {"id": str(sid).strip()}} for sid in service_ids],
            }
        ],
    }


class ZenotiClient:
    """Zenoti booking and slots client. All calls go through the shared RateLimitedClient."""

    def __init__(
        self,
        limiter: RateLimitedClient,
        config: ZenotiConfig | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._config = config or ZenotiConfig()
        self._limiter = limiter
        self.http = http or httpx.AsyncClient(timeout=timeout)

    @property
    def config(self) -> ZenotiConfig:
        return self._config

    async def aclose(self) -> None:
        await self.http.aclose()

    def ensure_configured(self) -> None:
        if not self._config.is_configured():
            raise ConfigurationError(MSG_CREDENTIALS_MISSING)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.ensure_configured()
        url = f"{self._config.base_url}{path}"

        async def send() -> httpx.Response:
            return await self.http.request(
                method, url, params=params, json=json_body, headers=self._config.headers()
            )

        try:
            r = await self._limiter.execute(send)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Zenoti request failed: {e}") from e
        if not r.is_success:
            detail = r.text[:500] if r.text else None
            logger.warning("Zenoti API error %s for %s %s: %s", r.status_code, method, path, detail)
            raise UpstreamError(f"Zenoti API error: {r.status_code}", status_code=r.status_code, detail=detail)
        if not r.content:
            return {}
        try:
            data = r.json()
        except ValueError:
            return {"_raw_body": r.text[:2000]}
        return data if isinstance(data, dict) else {"_raw_body": data}

    async def create_booking(
        self, center_id: str, date_str: str, service_ids: Sequence[str]
    ) -> dict[str, Any]:
        """Create a provisional booking (no guest) to test availability. Returns the raw response."""
        payload = build_booking_payload(center_id, date_str, service_ids)
        return await self._request(
            "POST",
            "/bookings",
            params={"is_double_booking_enabled": "false"},
            json_body=dict(payload),
        )

    async def get_slots(self, booking_id: str, check_future_day_availability: bool = False) -> dict[str, Any]:
        """GET slots for a booking; with check_future_day_availability the response carries future_days."""
        params = {"check_future_day_availability": "true"} if check_future_day_availability else None
        return await self._request("GET", f"/bookings/{booking_id}/slots", params=params)
