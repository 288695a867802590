"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of slot_discovery/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    # Zenoti: ZENOTI_API_KEY in .env; ZENOTI_BASE_URL only when pointing at a sandbox
    zenoti_api_key: str = ""
    zenoti_base_url: str = "https://api.zenoti.com/v1"
    # JSON list of {provider_id, name, priority, status}; used for per-date location ordering
    providers_file: str = ""
    # Comma-separated extra CORS origins for the frontend
    cors_origins: str = ""

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("zenoti_api_key", "zenoti_base_url", "providers_file", mode="after")
    @classmethod
    def strip_values(cls, v: str) -> str:
        return (v or "").strip()


settings = Settings()
