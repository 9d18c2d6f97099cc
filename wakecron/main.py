"""
FastAPI application: liveness endpoint plus the in-process cron scheduler.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from wakecron.config import get_settings
from wakecron.schemas import HealthStatus
from wakecron.services.wakeup import cancel_pending
from wakecron.tasks.schedule import start_scheduler, stop_scheduler


logger = logging.getLogger(__name__)

PLACEHOLDER_BODY = "Hello from wakecron: cron & wake-up service!"

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Startup
    settings = get_settings()
    logger.info("🚀 [SERVER] Listening on http://%s:%s", settings.HOST, settings.PORT)
    logger.info("   Health endpoint: GET /health")

    scheduler = start_scheduler(settings)

    yield

    # Shutdown
    stop_scheduler(scheduler)
    await cancel_pending()
    logger.info("👋 [SERVER] Shutting down...")


app = FastAPI(
    title="wakecron",
    version="0.1.0",
    description="Cron-driven wake-up pings and job triggers",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


# === Health Check ===

@app.get("/health", response_model=HealthStatus)
async def health_check():
    """Liveness probe. Always ok while the process serves requests."""
    return HealthStatus(status="ok")


# === Everything else ===

@app.api_route("/{path:path}", methods=ALL_METHODS, response_class=PlainTextResponse)
async def placeholder(path: str):
    return PlainTextResponse(PLACEHOLDER_BODY, status_code=200)
