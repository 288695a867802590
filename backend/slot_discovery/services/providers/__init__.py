from slot_discovery.services.providers.directory import (
    UNKNOWN_PRIORITY,
    Provider,
    ProviderDirectory,
    load_provider_directory,
)

__all__ = ["UNKNOWN_PRIORITY", "Provider", "ProviderDirectory", "load_provider_directory"]
