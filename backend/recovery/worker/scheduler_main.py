"""Dedicated APScheduler worker that ticks daily reminders."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from recovery.core.config import settings
from recovery.core.context import correlation_scope
from recovery.core.logging import configure_logging
from recovery.core.timeutils import local_now
from recovery.db.session import SessionLocal
from recovery.services.job_runner import run_reminder_tick


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Reminder worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        _register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running reminder tick once on startup")
            _run_reminder_tick_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Reminder worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def _register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        _run_reminder_tick_job,
        trigger="interval",
        seconds=settings.reminder_tick_seconds,
        id="reminder_tick_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        "Registered reminder tick every %ss (%s)",
        settings.reminder_tick_seconds,
        settings.scheduler_timezone,
    )


def _run_reminder_tick_job() -> None:
    session = SessionLocal()
    try:
        with correlation_scope("tick") as tick_id:
            result = run_reminder_tick(session, local_now(settings.scheduler_timezone), request_id=tick_id)
        if result.prompts_fired or result.reminders_expired:
            logger.info(
                "Reminder tick complete: checked=%s, fired=%s, expired=%s",
                result.reminders_checked,
                result.prompts_fired,
                result.reminders_expired,
            )
    except Exception:  # pragma: no cover - keep the worker alive between ticks
        session.rollback()
        logger.exception("Reminder tick job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
