"""APScheduler setup: periodic incremental matching."""

import logging
import traceback

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import sessionmaker

from job_ingest.config import AppConfig
from job_ingest.matching.engine import run_scheduled_matching
from job_ingest.matching.matcher import Scorer

logger = logging.getLogger("job_ingest.scheduler")

MATCHING_JOB_ID = "scheduled_matching"

_scheduler: BackgroundScheduler | None = None


def _job_listener(event):
    """Log scheduler job events."""
    if event.exception:
        logger.error("Scheduled job %s FAILED: %s", event.job_id, event.exception)
        logger.error("Traceback: %s", event.traceback)
    elif event.code == EVENT_JOB_MISSED:
        logger.warning("Scheduled job %s MISSED its fire time", event.job_id)
    else:
        logger.info("Scheduled job %s executed successfully", event.job_id)


def init_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        return
    _scheduler = BackgroundScheduler()
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED)
    _scheduler.start()
    logger.info("APScheduler started")


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("APScheduler stopped")


def _run_matching_wrapper(session_factory: sessionmaker, config: AppConfig, scorer: Scorer | None) -> None:
    """Entry/exit logging around a scheduled run."""
    logger.info("=== SCHEDULER FIRING matching run ===")
    try:
        run = run_scheduled_matching(session_factory, config, scorer=scorer)
        logger.info("=== SCHEDULER COMPLETED matching run: %s ===", run.status if run else "not recorded")
    except Exception:
        logger.error("=== SCHEDULER FAILED matching run ===\n%s", traceback.format_exc())
        raise


def schedule_matching(session_factory: sessionmaker, config: AppConfig, scorer: Scorer | None = None) -> bool:
    """Add, replace, or remove the periodic matching job. Returns whether it is scheduled."""
    global _scheduler
    if _scheduler is None:
        init_scheduler()

    if _scheduler.get_job(MATCHING_JOB_ID):
        _scheduler.remove_job(MATCHING_JOB_ID)
        logger.info("Removed existing matching schedule")

    if not config.matching.schedule_enabled or config.matching.interval_hours <= 0:
        return False

    trigger = IntervalTrigger(hours=config.matching.interval_hours)
    _scheduler.add_job(
        _run_matching_wrapper,
        trigger=trigger,
        args=[session_factory, config, scorer],
        id=MATCHING_JOB_ID,
        name="Incremental matching",
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
        replace_existing=True,
    )
    logger.info("Scheduled matching every %dh", config.matching.interval_hours)
    return True


def get_next_run_time():
    """Next fire time of the matching job, or None."""
    if _scheduler is None:
        return None
    job = _scheduler.get_job(MATCHING_JOB_ID)
    return job.next_run_time if job else None


def get_scheduler_info() -> dict:
    """Diagnostic info about the scheduler state."""
    if _scheduler is None:
        return {"running": False, "jobs": []}
    jobs = []
    for job in _scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if job.next_run_time else None,
            "trigger": str(job.trigger),
        })
    return {
        "running": _scheduler.running,
        "jobs": jobs,
    }
