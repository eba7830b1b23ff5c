"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime

import pytest

from src.domain.persona import Persona
from src.domain.room import Room, RoomImageSource
from src.domain.schedule import ScanCadence, ScanSchedule
from src.domain.settings import AppSettings
from src.domain.task import CleaningTask
from src.services.room_controller import RoomController
from src.services.scan_scheduler import ScanSchedulerService
from tests.unit.mocks import (
    FakeAnalysisService,
    FakeCameraBridge,
    InMemoryImageStore,
    InMemoryRoomRepository,
    InMemorySchedulerHost,
)


NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def analysis(png_bytes) -> FakeAnalysisService:
    return FakeAnalysisService(stylized=png_bytes)


@pytest.fixture
def image_store() -> InMemoryImageStore:
    return InMemoryImageStore()


@pytest.fixture
def camera_bridge(jpeg_bytes) -> FakeCameraBridge:
    return FakeCameraBridge(snapshot=jpeg_bytes)


@pytest.fixture
def scheduler_host() -> InMemorySchedulerHost:
    return InMemorySchedulerHost()


@pytest.fixture
def room() -> Room:
    """A room with three pending tasks."""
    return Room(
        name="Kitchen",
        tasks=[
            CleaningTask(title="Wash the dishes"),
            CleaningTask(title="Wipe the counter"),
            CleaningTask(title="Take out the bin"),
        ],
    )


@pytest.fixture
def camera_room() -> Room:
    """A room that can be scanned unattended, due for a daily scan."""
    return Room(
        name="Living Room",
        image_source=RoomImageSource.HOME_ASSISTANT,
        camera_identifier="camera.living_room",
        scan_schedule=ScanSchedule(cadence=ScanCadence.DAILY, enabled=True, next_run=NOW),
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        gemini_api_key="test-key",
        home_assistant_url="http://ha.local:8123",
        home_assistant_token="ha-token",
        selected_persona=Persona.CLASSIC,
    )


@pytest.fixture
def build_controller(analysis, camera_bridge, image_store, scheduler_host, app_settings):
    """Factory for a controller over in-memory collaborators, preloaded with rooms."""

    async def _build(*rooms: Room, settings: AppSettings | None = None) -> tuple[RoomController, InMemoryRoomRepository]:
        repository = InMemoryRoomRepository(list(rooms))
        controller = RoomController(
            repository=repository,
            analysis=analysis,
            camera_bridge=camera_bridge,
            image_store=image_store,
            scheduler=ScanSchedulerService(scheduler_host),
            settings=settings or app_settings,
        )
        await controller.load()
        return controller, repository

    return _build
