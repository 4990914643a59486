"""
app/scheduler/jobs.py

APScheduler wiring for scheduled report jobs.

Schedule
--------
  poll_scheduled_reports: every SCHEDULER_POLL_INTERVAL_SECONDS (default 60)

The poll itself does no report work: it asks the ScheduledJobRunner to claim
due jobs (``is_active`` and ``next_run <= now``) and hand them to the worker
pool, then returns. A poll that overlaps a still-running one is skipped
(``max_instances=1``); jobs already in flight are skipped by the runner.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown, then shut the
runner's worker pool down. Both happen in the ``lifespan`` context in
main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import SchedulerSettings, get_scheduler_settings
from app.services.job_runner import get_job_runner

logger = logging.getLogger(__name__)

POLL_JOB_ID = "poll_scheduled_reports"


def poll_scheduled_reports() -> None:
    """
    One scheduler tick. Failures are logged so the interval job keeps firing.
    """

    try:
        submitted = get_job_runner().poll_due_jobs()
    except Exception:
        logger.exception("Scheduler: poll for due report jobs failed")
        return
    logger.debug("Scheduler: poll submitted=%s", submitted)


def build_scheduler(settings: SchedulerSettings | None = None) -> BackgroundScheduler:
    """
    Build the scheduler with the due-job poll registered.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """

    settings = settings or get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        poll_scheduled_reports,
        trigger="interval",
        seconds=settings.poll_interval_seconds,
        id=POLL_JOB_ID,
        name="Poll due scheduled report jobs",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=settings.poll_interval_seconds,
    )
    return scheduler
