"""Schedule planning: which rooms get an unattended wake and which get a reminder."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from src.core.capabilities import SchedulerHost
from src.core.config import constants
from src.core.logging import span
from src.domain.room import Room
from src.domain.schedule import ScanCadence, ScanSchedule
from src.domain.settings import AppSettings


logger = logging.getLogger(__name__)

REMINDER_BODY = "Time for a fresh room scan."


@dataclass(frozen=True)
class ScanReminder:
    """A local reminder for a room that cannot be scanned unattended."""

    reminder_id: str
    title: str
    body: str
    at: datetime


@dataclass(frozen=True)
class SchedulePlan:
    """Result of recomputing scheduling from the room collection."""

    reminders: list[ScanReminder] = field(default_factory=list)
    wake_at: datetime | None = None


def is_eligible(room: Room, settings: AppSettings) -> bool:
    """True when the room can be captured with nobody present."""
    return (
        room.image_source.supports_unattended_capture
        and settings.has_bridge_credentials
        and bool(room.camera_identifier)
    )


def plan_schedule(rooms: list[Room], settings: AppSettings, now: datetime) -> SchedulePlan:
    """Compute reminders and the single background wake time.

    Enabled schedules without a next run are planned one interval from now. Eligible rooms
    contribute to the earliest wake; the rest get a reminder at their next run. Overdue
    eligible rooms are woken after the retry delay instead of immediately.
    """
    reminders: list[ScanReminder] = []
    wake_at: datetime | None = None
    earliest_wake = now + timedelta(seconds=constants.WAKE_RETRY_DELAY_SECONDS)

    for room in rooms:
        schedule = room.scan_schedule
        if schedule is None or not schedule.enabled:
            continue
        next_run = schedule.next_run or now + schedule.cadence.interval
        if is_eligible(room, settings):
            room_wake = earliest_wake if next_run <= now else next_run
            if wake_at is None or room_wake < wake_at:
                wake_at = room_wake
        else:
            reminders.append(
                ScanReminder(
                    reminder_id=room.id,
                    title=f"Scan {room.name}",
                    body=REMINDER_BODY,
                    at=next_run,
                )
            )

    return SchedulePlan(reminders=reminders, wake_at=wake_at)


def update_schedule(schedule: ScanSchedule | None, *, enabled: bool, cadence: ScanCadence, now: datetime) -> ScanSchedule:
    """Return a copy with the new cadence and enablement applied."""
    updated = schedule.model_copy(deep=True) if schedule is not None else ScanSchedule()
    updated.cadence = cadence
    updated.enabled = enabled
    if enabled:
        if updated.next_run is None:
            updated.refresh_next_run(now)
    else:
        updated.next_run = None
    return updated


def normalize_schedules(rooms: list[Room], now: datetime) -> bool:
    """Fill a missing next run on enabled schedules. Returns True if anything changed."""
    changed = False
    for room in rooms:
        schedule = room.scan_schedule
        if schedule is not None and schedule.enabled and schedule.next_run is None:
            schedule.refresh_next_run(now)
            changed = True
    return changed


class ScanSchedulerService:
    """Applies a schedule plan to a scheduler host."""

    def __init__(self, host: SchedulerHost) -> None:
        self._host = host

    async def reschedule(self, rooms: list[Room], settings: AppSettings, now: datetime | None = None) -> SchedulePlan:
        """Tear down all reminders and the wake, then re-arm from the current rooms.

        Failures scheduling a single reminder or the wake are logged and skipped.
        """
        with span("scan_scheduler.reschedule"):
            now = now or datetime.now(UTC)
            plan = plan_schedule(rooms, settings, now)

            permitted = await self._host.request_notification_permission()
            await self._host.cancel_all_reminders()
            self._host.cancel_background_wake()

            if permitted:
                for reminder in plan.reminders:
                    try:
                        await self._host.schedule_reminder(
                            reminder.reminder_id, reminder.title, reminder.body, reminder.at
                        )
                    except Exception:
                        logger.exception("reminder_schedule_failed", extra={"room_id": reminder.reminder_id})
            elif plan.reminders:
                logger.info("reminders_not_permitted", extra={"skipped": len(plan.reminders)})

            if plan.wake_at is not None:
                try:
                    self._host.schedule_background_wake(plan.wake_at)
                except Exception:
                    logger.exception("background_wake_schedule_failed", extra={"wake_at": plan.wake_at.isoformat()})

            logger.info(
                "schedule_recomputed",
                extra={
                    "reminders": len(plan.reminders),
                    "wake_at": plan.wake_at.isoformat() if plan.wake_at else None,
                },
            )
            return plan
