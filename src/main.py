"""babcia - room scans, task verification and scheduled re-scans."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import constants, settings
from src.core.db_client import close_connection, init_db
from src.core.errors import BabciaError
from src.core.image_store import FileImageStore
from src.core.logging import configure_logfire, instrument_fastapi, instrument_httpx
from src.core.scheduler import APSchedulerHost
from src.domain.settings import AppSettings
from src.interface.gemini_client import GeminiClient
from src.interface.home_assistant_client import HomeAssistantClient
from src.interface.rooms_router import babcia_error_handler, router as rooms_router
from src.services.room_controller import RoomController
from src.services.room_repository import SqliteRoomRepository
from src.services.scan_scheduler import ScanSchedulerService


logger = logging.getLogger(__name__)


def log_startup_configuration(app_settings: AppSettings) -> None:
    """Report which integrations are configured. Missing ones can be set later via /settings."""
    logger.info(
        "startup_validation",
        extra={
            "service": "gemini",
            "status": "ok" if app_settings.gemini_api_key else "missing_credential",
        },
    )
    logger.info(
        "startup_validation",
        extra={
            "service": "home_assistant",
            "status": "ok" if app_settings.has_bridge_credentials else "not_configured",
        },
    )


def build_controller(host: APSchedulerHost) -> RoomController:
    """Wire the production collaborators into a controller."""
    return RoomController(
        repository=SqliteRoomRepository(),
        analysis=GeminiClient(),
        camera_bridge=HomeAssistantClient(),
        image_store=FileImageStore(),
        scheduler=ScanSchedulerService(host),
        settings=AppSettings.from_settings(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so startup logs are captured
    configure_logfire()
    instrument_httpx()

    await init_db()
    logger.info("Database initialized")

    host = APSchedulerHost(notifications_enabled=settings.enable_reminders)
    controller = build_controller(host)
    log_startup_configuration(controller.settings)
    host.register_wake_handler(controller.run_auto_scans)
    host.start()
    await controller.load()

    app.state.controller = controller
    app.state.scheduler_host = host
    yield
    host.shutdown()
    await close_connection()


app = FastAPI(
    title="babcia",
    description="Room scans, task verification and scheduled re-scans",
    version="0.1.0",
    lifespan=lifespan,
)

instrument_fastapi(app)

app.add_exception_handler(BabciaError, babcia_error_handler)
app.include_router(rooms_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Background wake status: next run time and last reported result."""
    host: APSchedulerHost | None = getattr(app.state, "scheduler_host", None)
    if host is None:
        return JSONResponse(content={"status": "not_started"}, status_code=503)

    wake_job = host.scheduler.get_job(constants.BACKGROUND_WAKE_JOB_ID)
    return JSONResponse(
        content={
            "status": "healthy",
            "next_wake": wake_job.next_run_time.isoformat() if wake_job and wake_job.next_run_time else None,
            "last_wake_result": host.last_wake_result,
            "scheduled_jobs": len(host.scheduler.get_jobs()),
        },
        status_code=200,
    )
