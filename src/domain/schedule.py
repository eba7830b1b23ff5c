"""Per-room scan cadence."""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field


class ScanCadence(StrEnum):
    """How often a room should be re-scanned."""

    HOURLY = "hourly"
    DAILY = "daily"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def interval(self) -> timedelta:
        if self is ScanCadence.HOURLY:
            return timedelta(hours=1)
        return timedelta(days=1)


class ScanSchedule(BaseModel):
    """Scan cadence state for one room."""

    cadence: ScanCadence = Field(default=ScanCadence.DAILY, description="Re-scan cadence")
    enabled: bool = Field(default=False, description="Whether periodic re-scans are active")
    last_run: datetime | None = Field(default=None, description="When the schedule last ran")
    next_run: datetime | None = Field(default=None, description="When the schedule is next due")

    def refresh_next_run(self, from_time: datetime) -> None:
        """Set next_run one cadence interval after from_time."""
        self.next_run = from_time + self.cadence.interval

    def mark_ran(self, at: datetime) -> None:
        """Record a successful run and advance next_run by one interval."""
        self.last_run = at
        self.refresh_next_run(at)

    def is_due(self, now: datetime) -> bool:
        """A schedule without next_run is treated as due."""
        return self.next_run is None or self.next_run <= now
