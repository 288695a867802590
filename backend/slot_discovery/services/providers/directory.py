"""
Static provider (center) directory. Only priority and display name matter to discovery:
lower priority = preferred center when several have the same date open.

Loaded from the JSON file at PROVIDERS_FILE: a list of
{"provider_id": "...", "name": "...", "priority": 1, "status": "active"}.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)

UNKNOWN_PRIORITY = 999


@dataclass(frozen=True)
class Provider:
    provider_id: str
    name: str
    priority: int
    status: str = "active"

    def to_dict(self) -> dict[str, Any]:
        return {"provider_id": self.provider_id, "name": self.name, "priority": self.priority, "status": self.status}


def _parse_provider(raw: Any) -> Provider | None:
    if not isinstance(raw, dict):
        return None
    pid = raw.get("provider_id") or raw.get("id")
    if not pid:
        return None
    try:
        priority = int(raw.get("priority", UNKNOWN_PRIORITY))
    except (TypeError, ValueError):
        priority = UNKNOWN_PRIORITY
    return Provider(
        provider_id=str(pid),
        name=str(raw.get("name") or "Unknown Provider"),
        priority=priority,
        status=str(raw.get("status") or "active"),
    )


class ProviderDirectory:
    """Lookup of providers by id."""

    def __init__(self, providers: Iterable[Provider] = ()) -> None:
        self._by_id: dict[str, Provider] = {}
        for p in providers:
            self._by_id[p.provider_id] = p

    def get(self, provider_id: str) -> Provider | None:
        return self._by_id.get(str(provider_id))

    def priority(self, provider_id: str) -> int | None:
        """Provider priority, or None when the id is not in the directory."""
        p = self.get(provider_id)
        return p.priority if p is not None else None

    def list_active(self) -> list[Provider]:
        return sorted((p for p in self._by_id.values() if p.status == "active"), key=lambda p: p.priority)

    def __len__(self) -> int:
        return len(self._by_id)


def load_provider_directory(path: str | Path | None) -> ProviderDirectory:
    """Directory from a JSON file; empty (every priority unknown) when path is unset or unreadable."""
    if not path:
        return ProviderDirectory()
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load providers file %s: %s", p, e)
        return ProviderDirectory()
    items = data.get("providers") if isinstance(data, dict) else data
    providers = [pr for pr in (_parse_provider(r) for r in (items or [])) if pr is not None]
    logger.info("Loaded %s providers from %s", len(providers), p)
    return ProviderDirectory(providers)
