"""Auto-sync as an explicit APScheduler interval job owned by the application."""

from typing import Callable, Optional

import structlog
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from shared_types import SyncStatus

from .models import SyncRecord

logger = structlog.get_logger().bind(source="auto_sync")

JOB_ID = "preference_auto_sync"


class AutoSyncScheduler:
    """Runs ``service.sync_now()`` on an interval, only while the profile is pending."""

    def __init__(
        self,
        service,
        interval_minutes: float = 5,
        on_error: Optional[Callable] = None,
    ):
        self.service = service
        self.interval_minutes = interval_minutes
        self.on_error = on_error
        self.scheduler = BackgroundScheduler()

    def tick(self) -> Optional[SyncRecord]:
        """One scheduled run. No-op unless there are unsynced changes."""
        if self.service.closed:
            return None
        self.service.refresh()
        if self.service.sync_status != SyncStatus.PENDING:
            return None
        record = self.service.sync_now()
        logger.info("auto_sync.ran", status=str(record.status), changes=record.changes_applied)
        return record

    def _error_handler(self, event):
        logger.error(
            "job_error",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        if self.on_error:
            try:
                self.on_error(event)
            except Exception as e:
                logger.error("auto_sync.on_error_failed", error=str(e))

    def start(self):
        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.add_listener(self._error_handler, EVENT_JOB_ERROR)
        self.scheduler.start()
        logger.info("auto_sync.scheduled", interval_minutes=self.interval_minutes)

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    @property
    def running(self) -> bool:
        return self.scheduler.running
