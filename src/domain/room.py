"""Room domain model, scan history and capture audit trail."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from src.domain.persona import Persona
from src.domain.schedule import ScanSchedule
from src.domain.task import CleaningTask, TaskVerificationState


MANUAL_OVERRIDE_MIN_ATTEMPTS = 2  # Failed verifications before manual override is offered


class RoomImageSource(StrEnum):
    """Where a room's images come from."""

    CAMERA = "camera"  # Local device camera
    PHOTO_LIBRARY = "photo_library"
    HOME_ASSISTANT = "home_assistant"  # Smart-camera bridge, supports unattended capture
    STREAM = "stream"

    @property
    def supports_unattended_capture(self) -> bool:
        return self is RoomImageSource.HOME_ASSISTANT


class CaptureSource(StrEnum):
    """Tag recorded with each raw captured image."""

    SCAN = "scan"
    VERIFY = "verify"
    MANUAL = "manual"
    HOME_ASSISTANT = "home_assistant"
    CAMERA = "camera"


class ScanHistory(BaseModel):
    """Immutable snapshot of a previous scan's vision image, tasks and advice."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique history entry ID")
    date: datetime = Field(..., description="When the scan was archived")
    dream_vision_path: str = Field(..., description="Stylized image file of the archived scan")
    tasks: list[CleaningTask] = Field(default_factory=list, description="Task list at archive time")
    advice: str | None = Field(default=None, description="Advisory text at archive time")

    @property
    def completed_task_count(self) -> int:
        return sum(1 for task in self.tasks if task.is_completed)


class UserCapture(BaseModel):
    """Raw captured image record (append-only audit trail)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique capture ID")
    room_id: str = Field(..., description="Room the capture belongs to")
    date: datetime = Field(..., description="Capture time")
    path: str = Field(..., description="Stored image file name")
    source: CaptureSource = Field(..., description="What produced the capture")


class Room(BaseModel):
    """A tracked room with its current task list and gamification state."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique room ID")
    name: str = Field(..., description="Display name")
    persona: Persona = Field(default=Persona.CLASSIC, description="Persona assigned to this room")
    image_source: RoomImageSource = Field(default=RoomImageSource.CAMERA, description="Image source kind")
    camera_identifier: str | None = Field(default=None, description="Camera entity ID on the bridge")

    dream_vision_path: str | None = Field(default=None, description="Current stylized image file")
    tasks: list[CleaningTask] = Field(default_factory=list)
    advice: str | None = Field(default=None, description="Persona reaction from the last scan")
    scan_history: list[ScanHistory] = Field(default_factory=list)
    user_captures: list[UserCapture] = Field(default_factory=list)
    last_verified_scan_path: str | None = Field(default=None, description="Image used as the next 'before'")
    last_verified_at: datetime | None = Field(default=None)
    verification_attempts: int = Field(default=0, ge=0)

    streak: int = Field(default=0, ge=0, description="Consecutive active days")
    total_xp: int = Field(default=0, ge=0)
    last_activity_date: datetime | None = Field(default=None)
    last_scan_date: datetime | None = Field(default=None)

    scan_schedule: ScanSchedule | None = Field(default=None)

    @property
    def completed_task_count(self) -> int:
        return sum(1 for task in self.tasks if task.is_completed)

    @property
    def pending_task_count(self) -> int:
        """Tasks not yet verified (manual completions still count as pending)."""
        return sum(1 for task in self.tasks if task.verification_state != TaskVerificationState.VERIFIED)

    @property
    def manual_override_available(self) -> bool:
        return self.pending_task_count > 0 and self.verification_attempts >= MANUAL_OVERRIDE_MIN_ATTEMPTS

    def find_task(self, task_id: str) -> CleaningTask | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def archive_current_scan(self, at: datetime) -> ScanHistory | None:
        """Append the current vision scan to history; no-op without a vision image."""
        if self.dream_vision_path is None:
            return None
        entry = ScanHistory(
            date=at,
            dream_vision_path=self.dream_vision_path,
            tasks=[task.model_copy(deep=True) for task in self.tasks],
            advice=self.advice,
        )
        self.scan_history.append(entry)
        return entry

    def image_paths(self) -> list[str]:
        """Every stored image file referenced by this room."""
        paths = [capture.path for capture in self.user_captures]
        paths.extend(entry.dream_vision_path for entry in self.scan_history)
        for path in (self.dream_vision_path, self.last_verified_scan_path):
            if path:
                paths.append(path)
        return list(dict.fromkeys(paths))
