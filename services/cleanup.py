"""
Periodic sweep of stale working files left behind by abandoned or failed jobs.
Uses APScheduler on the API's event loop.
"""

import asyncio
import os
import time
from typing import Iterable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import get_settings
from core.logger import logger


def sweep_stale_files(directories: Iterable[str], max_age_seconds: float, now: Optional[float] = None) -> int:
    """
    Delete regular files older than `max_age_seconds` in the given directories.

    Returns:
        Number of files deleted
    """
    now = time.time() if now is None else now
    removed = 0

    for directory in directories:
        try:
            entries = list(os.scandir(directory))
        except FileNotFoundError:
            continue

        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                if now - entry.stat().st_mtime <= max_age_seconds:
                    continue
                os.remove(entry.path)
                removed += 1
                logger.info(f"Cleaned up old file: {entry.name}")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Error cleaning up {entry.path}: {e}")

    return removed


class CleanupScheduler:
    """Runs the stale file sweep on a fixed interval."""

    def __init__(self):
        self.settings = get_settings()
        self.scheduler = AsyncIOScheduler(timezone=self.settings.scheduler_timezone)
        self.directories: List[str] = [self.settings.upload_dir, self.settings.segments_dir]
        self.max_age_seconds = self.settings.cleanup_max_age_hours * 3600

    def start(self) -> None:
        """Register the sweep and start the scheduler. Must run inside the event loop."""
        self.scheduler.add_job(
            self.cleanup_stale_files,
            trigger=IntervalTrigger(seconds=self.settings.cleanup_interval_seconds),
            id="cleanup_stale_files",
            name="Cleanup stale uploads and segments",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            f"Added job: cleanup_stale_files (every {self.settings.cleanup_interval_seconds}s, "
            f"max age {self.settings.cleanup_max_age_hours}h)"
        )

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Cleanup scheduler shutdown")

    async def cleanup_stale_files(self) -> int:
        """Job: sweep the upload and segment directories."""
        try:
            removed = await asyncio.get_running_loop().run_in_executor(
                None, sweep_stale_files, self.directories, self.max_age_seconds
            )
        except Exception as e:
            logger.error(f"Cleanup sweep failed: {e}")
            return 0

        logger.debug(f"Cleanup sweep removed {removed} files")
        return removed
