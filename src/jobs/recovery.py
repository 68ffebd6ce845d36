"""
Recovery of runs interrupted by a process restart.

A job whose background unit died with the previous process stays RUNNING
forever. On startup (when enabled) every RUNNING job without a live unit is
resumed: it finishes its processing delay, becomes COMPLETED and sends its
webhook. Status never moves backwards.

Recovery is idempotent: running it again does not start a second unit for a
job that already has one.
"""

import logging

from .engine import ExecutionEngine
from .entities import JobStatus
from .persistence import JobRepository


logger = logging.getLogger(__name__)


class RecoveryManager:
    """Resumes orphaned RUNNING jobs on startup."""

    def __init__(self, repository: JobRepository, engine: ExecutionEngine):
        self.repository = repository
        self.engine = engine

    def recover_on_startup(self) -> dict:
        """
        Resume every RUNNING job that has no live background unit.

        Returns:
            Recovery statistics
        """
        stats = {
            "resumed": [],
            "errors": [],
        }

        logger.info("Starting interrupted-run recovery...")

        try:
            running_jobs = self.repository.find_many(status=JobStatus.RUNNING)
        except Exception as e:
            logger.error(f"Error listing RUNNING jobs: {e}")
            stats["errors"].append(f"Listing: {e}")
            return stats

        for job in running_jobs:
            try:
                if self.engine.resume(job.job_id):
                    stats["resumed"].append(job.job_id)
            except Exception as e:
                logger.error(f"Error resuming job {job.job_id}: {e}")
                stats["errors"].append(f"{job.job_id}: {e}")

        logger.info(
            f"Recovery complete: {len(stats['resumed'])} job(s) resumed, "
            f"{len(stats['errors'])} error(s)"
        )

        return stats
