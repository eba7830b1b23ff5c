"""Cleaning task domain model."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


DEFAULT_XP_REWARD = 10


class TaskVerificationState(StrEnum):
    """How a task's completion has been established."""

    PENDING = "pending"
    MANUAL = "manual"
    VERIFIED = "verified"


class CleaningTask(BaseModel):
    """A single tidying task produced by a room scan."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique task ID")
    title: str = Field(..., description="Task title (e.g., 'Fold the towels')")
    is_completed: bool = Field(default=False, description="Whether the task is marked done")
    verification_state: TaskVerificationState | None = Field(
        default=None,
        description="Stored verification state; absent means derive from is_completed",
    )
    verification_confidence: float | None = Field(default=None, ge=0.0, le=1.0, description="Confidence 0-1")
    verification_note: str | None = Field(default=None, description="Free-text verification note")
    xp_reward: int = Field(default=DEFAULT_XP_REWARD, ge=0, description="XP granted when verified")
    completed_at: datetime | None = Field(default=None, description="When the task was completed")

    @property
    def resolved_verification_state(self) -> TaskVerificationState:
        """Stored state, or `manual`/`pending` derived from the completion flag."""
        if self.verification_state is not None:
            return self.verification_state
        return TaskVerificationState.MANUAL if self.is_completed else TaskVerificationState.PENDING

    @property
    def is_locked(self) -> bool:
        """Verified tasks are immutable to further manual or verification edits."""
        return self.verification_state == TaskVerificationState.VERIFIED
