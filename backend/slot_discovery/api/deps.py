from fastapi import Request

from slot_discovery.services import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Process-wide services built in the app lifespan."""
    return request.app.state.services
