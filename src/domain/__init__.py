"""Domain models for rooms, tasks, schedules and verification results."""

from src.domain.camera import Camera
from src.domain.persona import Persona
from src.domain.room import CaptureSource, Room, RoomImageSource, ScanHistory, UserCapture
from src.domain.schedule import ScanCadence, ScanSchedule
from src.domain.settings import AppSettings
from src.domain.task import CleaningTask, TaskVerificationState
from src.domain.verification import (
    RoomAnalysis,
    RoomVerificationOutcome,
    RoomVerificationResult,
    TaskVerificationResult,
    TaskVerificationStatus,
)


__all__ = [
    "AppSettings",
    "Camera",
    "CaptureSource",
    "CleaningTask",
    "Persona",
    "Room",
    "RoomAnalysis",
    "RoomImageSource",
    "RoomVerificationOutcome",
    "RoomVerificationResult",
    "ScanCadence",
    "ScanHistory",
    "ScanSchedule",
    "TaskVerificationResult",
    "TaskVerificationState",
    "TaskVerificationStatus",
    "UserCapture",
]
