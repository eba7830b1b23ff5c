"""Protocols for the external collaborators the scan pipeline consumes."""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

from src.domain.camera import Camera
from src.domain.persona import Persona
from src.domain.room import Room
from src.domain.task import CleaningTask
from src.domain.verification import RoomAnalysis, RoomVerificationResult


WakeHandler = Callable[[], Awaitable[bool]]


class AnalysisService(Protocol):
    """Vision-capable analysis service (Gemini in production)."""

    async def analyze(self, image: bytes, persona: Persona, credential: str) -> RoomAnalysis:
        """Return task titles and advisory text for a room photo."""
        ...

    async def stylize(self, image: bytes, persona: Persona, credential: str) -> bytes:
        """Return a stylized 'dream vision' rendering of the room as PNG bytes."""
        ...

    async def verify(
        self,
        before_image: bytes | None,
        after_image: bytes,
        tasks: list[CleaningTask],
        persona: Persona,
        credential: str,
    ) -> RoomVerificationResult:
        """Return per-task verdicts comparing the before and after images."""
        ...

    async def test_credential(self, credential: str) -> bool:
        """Return True if the credential is accepted."""
        ...


class CameraBridge(Protocol):
    """Smart-camera bridge (Home Assistant in production)."""

    async def list_cameras(self, base_url: str, token: str) -> list[Camera]: ...

    async def snapshot(self, base_url: str, token: str, camera_id: str) -> bytes: ...

    async def test_connection(self, base_url: str, token: str) -> bool: ...


class ImageStore(Protocol):
    """Raw image bytes stored by generated file name."""

    def save_image(self, data: bytes, filename: str) -> None: ...

    def load_image(self, filename: str) -> bytes | None: ...

    def delete_image(self, filename: str) -> None: ...


class RoomRepository(Protocol):
    """Durable storage for the full room collection."""

    async def load_rooms(self) -> list[Room]: ...

    async def save_rooms(self, rooms: list[Room]) -> None: ...


class SchedulerHost(Protocol):
    """Platform primitives for background wakes and local reminders."""

    def register_wake_handler(self, handler: WakeHandler) -> None: ...

    def schedule_background_wake(self, at: datetime) -> None: ...

    def cancel_background_wake(self) -> None: ...

    async def request_notification_permission(self) -> bool: ...

    async def schedule_reminder(self, reminder_id: str, title: str, body: str, at: datetime) -> None: ...

    async def cancel_all_reminders(self) -> None: ...
