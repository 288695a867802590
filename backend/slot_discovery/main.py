"""
FastAPI app entrypoint.

Primary: unified slot discovery across centers (POST /api/slots/unified).
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from slot_discovery.api.routes import admin, bookings, slots
from slot_discovery.config import settings
from slot_discovery.core.discovery_config import get_discovery_config
from slot_discovery.core.errors import DiscoveryError, discovery_error_body, discovery_error_status
from slot_discovery.services import ServiceContainer, build_services

logger = logging.getLogger(__name__)


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Build the app. Tests pass a prebuilt ServiceContainer; otherwise one is built from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = services or build_services(settings, get_discovery_config())
        app.state.services = container
        if not container.client.config.is_configured():
            logger.warning("ZENOTI_API_KEY is not set; discovery requests will fail with a configuration error")
        logger.info("Backend ready (providers loaded: %s)", len(container.directory))
        yield
        await container.aclose()

    app = FastAPI(title="Center Slot Discovery", version="0.1.0", lifespan=lifespan)

    # CORS: dev origins + optional CORS_ORIGINS (comma-separated) for the production frontend
    cors_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_extra = settings.cors_origins or os.getenv("CORS_ORIGINS", "")
    if cors_extra:
        cors_origins.extend(o.strip() for o in cors_extra.split(",") if o.strip())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DiscoveryError)
    async def discovery_error_handler(request: Request, exc: DiscoveryError):
        status_code = discovery_error_status(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content=discovery_error_body(exc))

    app.include_router(slots.router, prefix="/api", tags=["slots"])
    app.include_router(bookings.router, prefix="/api", tags=["bookings"])
    app.include_router(admin.router, prefix="/api", tags=["admin"])

    @app.get("/", include_in_schema=False)
    def root():
        """Root: point to API docs and health."""
        return {"message": "Center Slot Discovery API", "docs": "/docs", "health": "/health"}

    @app.get("/health")
    def health(request: Request) -> dict:
        container: ServiceContainer = request.app.state.services
        return {
            "status": "ok",
            "zenoti_configured": container.client.config.is_configured(),
            "discovery": container.config.as_dict(),
        }

    return app


app = create_app()
