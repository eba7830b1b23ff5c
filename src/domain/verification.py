"""Analysis and verification result value types."""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.domain.room import Room


class TaskVerificationStatus(StrEnum):
    """Per-task verdict returned by the analysis service."""

    VERIFIED = "verified"
    NOT_DONE = "not_done"
    UNCLEAR = "unclear"


class TaskVerificationResult(BaseModel):
    """Verdict for one task."""

    task_id: str = Field(..., description="ID of the task the verdict refers to")
    status: TaskVerificationStatus
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    note: str | None = None


class RoomVerificationResult(BaseModel):
    """Verdicts for a room plus the service's summary and rescan flag."""

    tasks: list[TaskVerificationResult]
    summary: str = ""
    needs_rescan: bool = False


class RoomAnalysis(BaseModel):
    """Task titles and advisory text extracted from a scan."""

    tasks: list[str]
    advice: str


class RoomVerificationOutcome(BaseModel):
    """Updated room returned by the verify use case."""

    room: Room
    needs_rescan: bool
    summary: str
    gained_xp: int = 0
