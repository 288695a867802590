"""Zenoti API config. Credentials from Settings (ZENOTI_API_KEY, ZENOTI_BASE_URL) or ZenotiConfig args."""
from slot_discovery.config import settings

DEFAULT_BASE_URL = "https://api.zenoti.com/v1"


class ZenotiConfig:
    """API key and base URL for Zenoti."""

    __slots__ = ("api_key", "base_url")

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.zenoti_api_key).strip()
        self.base_url = (base_url or settings.zenoti_base_url or DEFAULT_BASE_URL).strip().rstrip("/")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"apikey {self.api_key}",
            "Content-Type": "application/json",
        }
