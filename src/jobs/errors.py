"""
Job lifecycle exceptions.

Errors raised before a run is acknowledged reach the caller. Webhook delivery
failures are never raised: they are recorded in ``Job.webhook_log``.
"""

from typing import Optional


class JobError(Exception):
    """Base exception for all job lifecycle errors."""
    pass


class InvalidInputError(JobError):
    """
    Raised when a submission or query is malformed.

    Examples:
    - Empty task name
    - Payload that is not valid JSON
    - Unknown priority or status value
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class JobNotFoundError(JobError):
    """Raised when a requested job does not exist."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class InvalidTransitionError(JobError):
    """
    Raised when a run is requested for a job that is not PENDING.

    A COMPLETED job is never run again.
    """

    def __init__(self, job_id: str, current_status: str, requested_status: str = "running"):
        self.job_id = job_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(self._message())

    def _message(self) -> str:
        return (
            f"Cannot transition job {self.job_id} from "
            f"'{self.current_status}' to '{self.requested_status}'"
        )


class AlreadyRunningError(InvalidTransitionError):
    """Raised when a run is requested for a job that is already RUNNING."""

    def __init__(self, job_id: str):
        super().__init__(job_id, current_status="running", requested_status="running")

    def _message(self) -> str:
        return f"Job is already running: {self.job_id}"


class ConcurrencyViolationError(JobError):
    """
    Raised when a conditional status update finds an unexpected status.

    Used for atomic claim operations where the job was already claimed
    by another caller.
    """

    def __init__(self, job_id: str, expected_status: str, actual_status: str):
        self.job_id = job_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        super().__init__(
            f"Concurrency violation for job {job_id}: "
            f"expected status '{expected_status}', got '{actual_status}'"
        )
