"""
Background Job Scheduler

Provides scheduled task execution using APScheduler with AsyncIO support.
Handles job registration, execution, and graceful shutdown.

Design Principles:
- Jobs are idempotent (safe to run multiple times)
- Failed jobs are logged but don't crash the scheduler
- Jobs can be triggered manually for testing
- Scheduler integrates with FastAPI lifespan

Usage:
    from request_manager.core.scheduler import hourly_schedule, start_scheduler, stop_scheduler

    # Register before starting:
    hourly_schedule.on_every_hour("my_job", my_job)

    # In FastAPI lifespan:
    async def lifespan(app):
        await start_scheduler()
        yield
        await stop_scheduler()
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]

# Global scheduler instance
_scheduler: AsyncIOScheduler | None = None

# Job registry for manual triggering and deferred registration
_job_registry: dict[str, tuple[JobFunc, BaseTrigger]] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    # Default timezone for job scheduling
    TIMEZONE = "UTC"

    # Job execution settings
    JOB_COALESCE = True  # Combine multiple missed executions into one
    JOB_MAX_INSTANCES = 1  # Only one instance of each job can run at a time
    JOB_MISFIRE_GRACE_TIME = 60 * 5  # 5 minutes grace time for missed jobs

    JOB_DEFAULTS = {
        "coalesce": JOB_COALESCE,
        "max_instances": JOB_MAX_INSTANCES,
        "misfire_grace_time": JOB_MISFIRE_GRACE_TIME,
    }


class HourlySchedule(Protocol):
    """Port for jobs that fire once per hour at minute 0."""

    def on_every_hour(self, job_id: str, callback: JobFunc) -> None: ...


class APSchedulerHourlySchedule:
    """HourlySchedule backed by the global APScheduler instance."""

    def on_every_hour(self, job_id: str, callback: JobFunc) -> None:
        register_job(
            job_id=job_id,
            func=callback,
            trigger=CronTrigger(minute=0, timezone=SchedulerConfig.TIMEZONE),
        )


hourly_schedule = APSchedulerHourlySchedule()


def _job_listener(event: JobExecutionEvent) -> None:
    """
    Listener for job execution events.

    Logs job execution results for monitoring and debugging.
    """
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now(UTC).isoformat()}")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the global scheduler instance, or None if not initialized."""
    return _scheduler


async def start_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the background scheduler.

    Jobs registered before this call are added to the new scheduler.

    Returns:
        The started scheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )

    # Add event listeners for monitoring
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    register_jobs_from_registry()

    _scheduler.start()

    logger.info("Background job scheduler started successfully")
    return _scheduler


async def stop_scheduler() -> None:
    """
    Stop the background scheduler gracefully.

    Waits for currently running jobs to complete before shutting down.
    """
    global _scheduler

    if _scheduler is None:
        logger.debug("Scheduler not initialized, nothing to stop")
        return

    if not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        _scheduler = None
        return

    logger.info("Stopping background job scheduler...")

    _scheduler.shutdown(wait=True)

    logger.info("Background job scheduler stopped")
    _scheduler = None


def register_job(
    job_id: str,
    func: JobFunc,
    trigger: BaseTrigger,
    replace_existing: bool = True,
) -> None:
    """
    Register a job with the scheduler.

    If the scheduler is not running yet, the job is kept in the registry and
    added when start_scheduler() is called.

    Args:
        job_id: Unique identifier for the job
        func: Async function to execute
        trigger: APScheduler trigger (CronTrigger, IntervalTrigger, etc.)
        replace_existing: Whether to replace an existing job with the same ID
    """
    _job_registry[job_id] = (func, trigger)

    if _scheduler is None:
        logger.debug(f"Scheduler not initialized, job {job_id} will be registered later")
        return

    _scheduler.add_job(
        func,
        trigger=trigger,
        id=job_id,
        replace_existing=replace_existing,
    )
    logger.info(f"Registered job: {job_id}")


def register_jobs_from_registry() -> None:
    """Add every job from the registry to the scheduler."""
    if _scheduler is None:
        logger.warning("Cannot register jobs: scheduler not initialized")
        return

    logger.info(f"Registering {len(_job_registry)} jobs from registry...")

    for job_id, (func, trigger) in _job_registry.items():
        _scheduler.add_job(func, trigger=trigger, id=job_id, replace_existing=True)
        logger.info(f"Registered job: {job_id}")


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Trigger a job manually for testing or maintenance purposes.

    This bypasses the scheduler and runs the job function directly.

    Returns:
        Dict with job_id, status ("success" or "error"), executed_at, and
        either the job's own result or the error message

    Raises:
        ValueError: If job_id is not found in the registry
    """
    if job_id not in _job_registry:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry.keys())}"
        )

    func, _trigger = _job_registry[job_id]
    executed_at = datetime.now(UTC)

    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await func()
        logger.info(f"Manual execution of job {job_id} completed successfully")
        return {
            "job_id": job_id,
            "status": "success",
            "executed_at": executed_at.isoformat(),
            "result": result,
        }
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }


def list_registered_jobs() -> list[dict[str, Any]]:
    """List all registered jobs with next run time and pause status."""
    jobs = []

    for job_id in _job_registry:
        job_info: dict[str, Any] = {
            "job_id": job_id,
            "registered": True,
        }

        if _scheduler is not None:
            scheduled_job = _scheduler.get_job(job_id)
            if scheduled_job:
                job_info["next_run_time"] = (
                    scheduled_job.next_run_time.isoformat() if scheduled_job.next_run_time else None
                )
                job_info["is_paused"] = scheduled_job.next_run_time is None
            else:
                job_info["next_run_time"] = None
                job_info["is_paused"] = True

        jobs.append(job_info)

    return jobs


def pause_job(job_id: str) -> bool:
    """Pause a scheduled job. Returns False if the job is not found."""
    if _scheduler is None:
        logger.warning("Cannot pause job: scheduler not initialized")
        return False

    if _scheduler.get_job(job_id):
        _scheduler.pause_job(job_id)
        logger.info(f"Paused job: {job_id}")
        return True

    logger.warning(f"Job not found for pausing: {job_id}")
    return False


def resume_job(job_id: str) -> bool:
    """Resume a paused job. Returns False if the job is not found."""
    if _scheduler is None:
        logger.warning("Cannot resume job: scheduler not initialized")
        return False

    if _scheduler.get_job(job_id):
        _scheduler.resume_job(job_id)
        logger.info(f"Resumed job: {job_id}")
        return True

    logger.warning(f"Job not found for resuming: {job_id}")
    return False
