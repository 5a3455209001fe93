from __future__ import annotations

import datetime as dt
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from packages.core.digest.sync import ThreadSyncService, run_sync_safely


logger = logging.getLogger("thread_digest.scheduler")


def start_scheduler(service: ThreadSyncService, interval_hours: int = 24) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_sync_safely,
        "interval",
        hours=interval_hours,
        args=[service],
        id="thread_sync",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=dt.datetime.now(dt.timezone.utc),
    )
    scheduler.start()
    logger.info("sync_scheduler_started interval_hours=%s", interval_hours)
    return scheduler
