"""
Service wiring. One ServiceContainer per process: a single cache and a single
rate limiter shared by every discovery run and passthrough route.
"""
from dataclasses import dataclass

import httpx

from slot_discovery.config import Settings
from slot_discovery.core.discovery_config import DiscoveryConfig
from slot_discovery.services.cache import ResponseCache
from slot_discovery.services.discovery.engine import DiscoveryEngine
from slot_discovery.services.discovery.probe import BookingProbe
from slot_discovery.services.discovery.slots import SlotFetcher
from slot_discovery.services.providers.directory import ProviderDirectory, load_provider_directory
from slot_discovery.services.rate_limit import RateLimitedClient
from slot_discovery.services.zenoti.client import ZenotiClient
from slot_discovery.services.zenoti.config import ZenotiConfig


@dataclass
class ServiceContainer:
    config: DiscoveryConfig
    cache: ResponseCache
    limiter: RateLimitedClient
    client: ZenotiClient
    directory: ProviderDirectory
    probe: BookingProbe
    fetcher: SlotFetcher
    engine: DiscoveryEngine

    async def aclose(self) -> None:
        await self.client.aclose()


def build_services(
    settings: Settings,
    config: DiscoveryConfig,
    *,
    http: httpx.AsyncClient | None = None,
    directory: ProviderDirectory | None = None,
) -> ServiceContainer:
    cache = ResponseCache(config.cache_ttl_seconds)
    limiter = RateLimitedClient(config.max_concurrent_requests, config.retry_delays_seconds)
    client = ZenotiClient(
        limiter,
        ZenotiConfig(api_key=settings.zenoti_api_key, base_url=settings.zenoti_base_url),
        http=http,
        timeout=config.request_timeout_seconds,
    )
    if directory is None:
        directory = load_provider_directory(settings.providers_file)
    probe = BookingProbe(client, cache)
    fetcher = SlotFetcher(client, cache)
    engine = DiscoveryEngine(probe, fetcher, directory=directory, config=config)
    return ServiceContainer(
        config=config,
        cache=cache,
        limiter=limiter,
        client=client,
        directory=directory,
        probe=probe,
        fetcher=fetcher,
        engine=engine,
    )
