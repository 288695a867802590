"""
Admin: cache and rate limiter status, cache clear, provider directory listing and lookup.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from slot_discovery.api.deps import get_services
from slot_discovery.services import ServiceContainer

router = APIRouter()


@router.get("/rate-limit/status", response_model=dict)
def rate_limit_status(svc: ServiceContainer = Depends(get_services)):
    return {
        "success": True,
        "data": {
            "cache_size": svc.cache.size,
            "cache_ttl_seconds": svc.cache.ttl_seconds,
            "max_concurrent_requests": svc.limiter.max_concurrency,
            "in_flight_requests": svc.limiter.in_flight,
            "retry_delays_seconds": list(svc.limiter.retry_delays),
        },
        "message": "Rate limit status retrieved successfully",
    }


@router.post("/cache/clear", response_model=dict)
def clear_cache(svc: ServiceContainer = Depends(get_services)):
    removed = svc.cache.clear()
    return {
        "success": True,
        "message": f"Cache cleared successfully. Removed {removed} entries.",
        "cache_size_before": removed,
        "cache_size_after": svc.cache.size,
    }


@router.get("/providers", response_model=dict)
def list_providers(svc: ServiceContainer = Depends(get_services)):
    """Active providers from the static directory, by priority (lowest first)."""
    providers = [p.to_dict() for p in svc.directory.list_active()]
    return {"success": True, "data": providers, "count": len(providers)}


@router.get("/providers/{provider_id}", response_model=dict)
def get_provider(provider_id: str, svc: ServiceContainer = Depends(get_services)):
    provider = svc.directory.get(provider_id)
    if provider is None:
        return JSONResponse(status_code=404, content={"success": False, "error": f"Provider {provider_id} not found"})
    return {"success": True, "data": provider.to_dict()}
