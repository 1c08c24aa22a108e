"""
Cleanup Scheduler Service

Sweeps capture files left behind by a crashed or killed worker. Requests
release their own temp files; this job only catches orphans older than
the configured TTL. Uses APScheduler for interval execution.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

JOB_ID = "sweep_stale_captures"
CAPTURE_PREFIX = "capture-"


async def sweep_stale_captures(temp_dir: str, ttl_hours: int) -> dict:
    """
    Delete capture files older than ttl_hours from temp_dir.

    Only files named with the capture prefix are considered.

    Returns:
        dict: Summary of cleanup operation with counts
    """
    cutoff = datetime.now() - timedelta(hours=ttl_hours)
    summary = {
        "files_scanned": 0,
        "files_deleted": 0,
        "errors": 0,
    }

    dir_path = Path(temp_dir)
    if not dir_path.exists():
        logger.debug(f"Capture directory does not exist: {temp_dir}")
        return summary

    try:
        for path in dir_path.iterdir():
            if not path.is_file() or not path.name.startswith(CAPTURE_PREFIX):
                continue

            summary["files_scanned"] += 1
            try:
                mtime = datetime.fromtimestamp(path.stat().st_mtime)
                if mtime < cutoff:
                    path.unlink()
                    summary["files_deleted"] += 1
                    logger.info(f"Swept stale capture file: {path}")

            except OSError as e:
                summary["errors"] += 1
                logger.error(f"Failed to sweep {path}: {e}")

    except OSError as e:
        summary["errors"] += 1
        logger.error(f"Failed to scan directory {temp_dir}: {e}")

    logger.info(
        f"Sweep completed: {summary['files_deleted']} files deleted, "
        f"{summary['errors']} errors"
    )
    return summary


def create_cleanup_scheduler(
    temp_dir: str, ttl_hours: int, interval_hours: int
) -> AsyncIOScheduler:
    """Build a scheduler carrying the sweep job. Start it with start_cleanup_scheduler()."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        sweep_stale_captures,
        "interval",
        hours=interval_hours,
        id=JOB_ID,
        name="Sweep stale capture files",
        replace_existing=True,
        kwargs={"temp_dir": temp_dir, "ttl_hours": ttl_hours},
    )
    logger.info(
        f"Scheduled capture sweep: every {interval_hours} hour(s), TTL: {ttl_hours} hours"
    )
    return scheduler


def start_cleanup_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Start the scheduler. Safe to call multiple times."""
    if scheduler.running:
        logger.debug("Scheduler already running")
        return

    scheduler.start()
    logger.info("Cleanup scheduler started")


def stop_cleanup_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Stop the cleanup scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Cleanup scheduler stopped")


def get_scheduler_status(scheduler: AsyncIOScheduler) -> dict:
    """
    Get current scheduler status for health checks.

    Returns:
        dict: Scheduler status including running state and job info
    """
    job = scheduler.get_job(JOB_ID)
    next_run = getattr(job, "next_run_time", None) if job else None
    return {
        "running": scheduler.running,
        "job_scheduled": job is not None,
        "next_run": str(next_run) if next_run else None,
    }
