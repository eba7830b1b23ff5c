"""APScheduler-backed host for background scan wakes and scan reminders."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from src.core.capabilities import WakeHandler
from src.core.config import constants


logger = logging.getLogger(__name__)

ReminderSink = Callable[[str, str, str], Awaitable[None]]


async def log_reminder(reminder_id: str, title: str, body: str) -> None:
    """Default reminder delivery: a structured log line."""
    logger.info("scan_reminder", extra={"reminder_id": reminder_id, "title": title, "body": body})


class APSchedulerHost:
    """Owns one AsyncIOScheduler with a single wake job and one job per reminder."""

    def __init__(
        self,
        *,
        scheduler: AsyncIOScheduler | None = None,
        reminder_sink: ReminderSink = log_reminder,
        notifications_enabled: bool = True,
        wake_expiry_seconds: float = constants.BACKGROUND_WAKE_EXPIRY_SECONDS,
    ) -> None:
        self.scheduler = scheduler or AsyncIOScheduler()
        self._reminder_sink = reminder_sink
        self._notifications_enabled = notifications_enabled
        self._wake_expiry_seconds = wake_expiry_seconds
        self._wake_handler: WakeHandler | None = None
        self.last_wake_result: bool | None = None

    def start(self) -> None:
        """Start the scheduler. Call during FastAPI startup."""
        logger.info("Starting scheduler")
        self.scheduler.start()

    def shutdown(self) -> None:
        """Stop the scheduler. Call during FastAPI shutdown."""
        logger.info("Stopping scheduler")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def register_wake_handler(self, handler: WakeHandler) -> None:
        self._wake_handler = handler

    def schedule_background_wake(self, at: datetime) -> None:
        self.cancel_background_wake()
        self.scheduler.add_job(
            self._run_wake,
            trigger=DateTrigger(run_date=at),
            id=constants.BACKGROUND_WAKE_JOB_ID,
            name="Unattended room scans",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info("background_wake_scheduled", extra={"wake_at": at.isoformat()})

    def cancel_background_wake(self) -> None:
        if self.scheduler.get_job(constants.BACKGROUND_WAKE_JOB_ID) is not None:
            self.scheduler.remove_job(constants.BACKGROUND_WAKE_JOB_ID)

    async def request_notification_permission(self) -> bool:
        return self._notifications_enabled

    async def schedule_reminder(self, reminder_id: str, title: str, body: str, at: datetime) -> None:
        job_id = f"{constants.REMINDER_JOB_PREFIX}{reminder_id}"
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)
        self.scheduler.add_job(
            self._reminder_sink,
            trigger=DateTrigger(run_date=at),
            args=[reminder_id, title, body],
            id=job_id,
            name=title,
            replace_existing=True,
            misfire_grace_time=None,
        )

    async def cancel_all_reminders(self) -> None:
        for job in self.scheduler.get_jobs():
            if job.id.startswith(constants.REMINDER_JOB_PREFIX):
                job.remove()

    async def _run_wake(self) -> None:
        """Run the wake handler under the expiry budget and record its result."""
        if self._wake_handler is None:
            logger.warning("background_wake_without_handler")
            self.last_wake_result = False
            return

        try:
            self.last_wake_result = await asyncio.wait_for(self._wake_handler(), timeout=self._wake_expiry_seconds)
        except TimeoutError:
            logger.warning("background_wake_expired", extra={"expiry_seconds": self._wake_expiry_seconds})
            self.last_wake_result = False
        except Exception:
            logger.exception("background_wake_failed")
            self.last_wake_result = False
        else:
            logger.info("background_wake_complete", extra={"did_scan": self.last_wake_result})
