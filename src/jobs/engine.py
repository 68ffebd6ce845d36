"""
Job execution engine.

Owns the job state machine:

    pending --run()--> running --(processing delay)--> completed --> webhook

- run() claims the job (pending -> running) with an atomic conditional
  update and returns at once; the rest happens on a background thread
- At most one background unit exists per job: a second run() loses the
  claim and gets AlreadyRunningError (or InvalidTransitionError once the
  job is completed)
- Per job the writes happen strictly in order: running, completed,
  webhook_log
- Nothing raised on the background thread escapes it; failures are logged
  and webhook failures are stored as the job's webhook_log

What the engine MUST NOT do:
- Validate submissions (JobService's responsibility)
- Retry webhook deliveries
- Cancel in-flight runs
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .entities import (
    CompletionNotification,
    Job,
    JobStatus,
)
from .errors import (
    AlreadyRunningError,
    ConcurrencyViolationError,
    InvalidTransitionError,
    JobNotFoundError,
)
from .persistence import JobRepository


logger = logging.getLogger(__name__)

# Simulated processing time per run, in seconds
DEFAULT_PROCESSING_SECONDS = 3.0


class Notifier(Protocol):
    """Protocol for completion webhook delivery."""

    def deliver(self, notification: CompletionNotification) -> str:
        """
        Deliver a notification once.

        Returns:
            Outcome string ("Success: <code>" or "Error: <reason>")
        """
        ...


@dataclass
class RunAcknowledgment:
    """Returned by ExecutionEngine.run() once the job is RUNNING."""

    job_id: str
    status: JobStatus
    message: str = "Job started successfully"


class ExecutionEngine:
    """
    Runs jobs in the background and reports completion by webhook.

    One daemon thread per accepted run, no pool and no upper bound.
    """

    def __init__(
        self,
        repository: JobRepository,
        notifier: Notifier,
        processing_seconds: float = DEFAULT_PROCESSING_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize ExecutionEngine.

        Args:
            repository: Job storage
            notifier: Completion webhook notifier
            processing_seconds: Simulated processing time per run
            sleep: Sleep function, replaceable in tests
        """
        self.repository = repository
        self.notifier = notifier
        self.processing_seconds = processing_seconds
        self._sleep = sleep

        self._threads: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Run
    # =========================================================================

    def run(self, job_id: str) -> RunAcknowledgment:
        """
        Start a PENDING job.

        Transitions the job to RUNNING and returns without waiting for
        completion.

        Raises:
            JobNotFoundError: If job doesn't exist
            AlreadyRunningError: If job is RUNNING
            InvalidTransitionError: If job is COMPLETED
        """
        try:
            job = self.repository.compare_and_set_status(
                job_id, JobStatus.PENDING, JobStatus.RUNNING
            )
        except ConcurrencyViolationError as e:
            if e.actual_status == JobStatus.RUNNING.value:
                raise AlreadyRunningError(job_id) from e
            raise InvalidTransitionError(
                job_id, e.actual_status, JobStatus.RUNNING.value
            ) from e

        logger.info(f"Starting job {job_id} ({job.task_name})...")
        self._launch(job)

        return RunAcknowledgment(job_id=job.job_id, status=job.status)

    def resume(self, job_id: str) -> bool:
        """
        Continue a RUNNING job that has no live background unit.

        Used after a restart, when the thread that owned the run is gone.

        Returns:
            True if a background unit was started, False if one is alive

        Raises:
            JobNotFoundError: If job doesn't exist
            InvalidTransitionError: If job is not RUNNING
        """
        job = self.repository.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        if job.status != JobStatus.RUNNING:
            raise InvalidTransitionError(job_id, job.status.value, JobStatus.COMPLETED.value)

        with self._lock:
            thread = self._threads.get(job_id)
            if thread is not None and thread.is_alive():
                return False

        logger.info(f"Resuming interrupted job {job_id} ({job.task_name})")
        self._launch(job)
        return True

    def _launch(self, job: Job) -> threading.Thread:
        """Spawn the background unit for a RUNNING job."""
        thread = threading.Thread(
            target=self._execute,
            args=(job.job_id,),
            name=f"job-run-{job.job_id}",
            daemon=True,  # Daemon thread won't prevent process exit
        )
        with self._lock:
            self._threads[job.job_id] = thread
        thread.start()
        return thread

    # =========================================================================
    # Background unit
    # =========================================================================

    def _execute(self, job_id: str) -> None:
        """Processing delay, completion, webhook, outcome. Never raises."""
        try:
            self._sleep(self.processing_seconds)

            job = self.repository.compare_and_set_status(
                job_id, JobStatus.RUNNING, JobStatus.COMPLETED
            )
            logger.info(f"Job {job_id} completed. Triggering webhook...")

            outcome = self._deliver(job)

            self.repository.update(job_id, webhook_log=outcome)
            logger.info(f"Webhook outcome for job {job_id}: {outcome}")

        except Exception:
            logger.exception(f"Background run for job {job_id} failed")

        finally:
            with self._lock:
                if self._threads.get(job_id) is threading.current_thread():
                    del self._threads[job_id]

    def _deliver(self, job: Job) -> str:
        """Call the notifier; anything it raises becomes an error outcome."""
        try:
            notification = CompletionNotification.from_job(job)
            return self.notifier.deliver(notification)
        except Exception as e:
            logger.exception(f"Webhook delivery for job {job.job_id} raised")
            return f"Error: {e}"

    # =========================================================================
    # Introspection and shutdown
    # =========================================================================

    def in_flight(self) -> list[str]:
        """IDs of jobs whose background unit is still alive."""
        with self._lock:
            return [job_id for job_id, t in self._threads.items() if t.is_alive()]

    def wait(self, job_id: str, timeout: Optional[float] = None) -> bool:
        """
        Wait for a job's background unit to finish.

        Returns:
            True if no unit is alive for the job when this returns
        """
        with self._lock:
            thread = self._threads.get(job_id)

        if thread is None:
            return True

        thread.join(timeout)
        return not thread.is_alive()

    def shutdown(self, timeout: float = 5.0) -> list[str]:
        """
        Wait up to ``timeout`` seconds for all in-flight runs.

        Runs are not cancelled; whatever is still alive afterwards is
        abandoned with the process.

        Returns:
            IDs of jobs still running when the timeout expired
        """
        deadline = time.monotonic() + timeout

        with self._lock:
            threads = list(self._threads.items())

        for job_id, thread in threads:
            remaining = max(0.0, deadline - time.monotonic())
            thread.join(remaining)

        still_running = [job_id for job_id, thread in threads if thread.is_alive()]
        if still_running:
            logger.warning(
                f"Shutdown with {len(still_running)} run(s) in flight: {', '.join(still_running)}"
            )
        return still_running
