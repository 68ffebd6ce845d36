"""
Job lifecycle core.

- entities: Job, statuses, priorities, completion notification
- persistence: JobRepository protocol and SQLite implementation
- engine: state machine and background execution
- service: validated submission, queries, run requests
- recovery: resume runs interrupted by a restart
"""

from .entities import (
    JobStatus,
    JobPriority,
    Job,
    CompletionNotification,
)
from .errors import (
    JobError,
    InvalidInputError,
    JobNotFoundError,
    InvalidTransitionError,
    AlreadyRunningError,
    ConcurrencyViolationError,
)
from .persistence import JobRepository, SqliteJobRepository
from .engine import ExecutionEngine, Notifier, RunAcknowledgment
from .service import JobService, JobSubmission
from .recovery import RecoveryManager

__all__ = [
    # Entities
    "JobStatus",
    "JobPriority",
    "Job",
    "CompletionNotification",
    # Errors
    "JobError",
    "InvalidInputError",
    "JobNotFoundError",
    "InvalidTransitionError",
    "AlreadyRunningError",
    "ConcurrencyViolationError",
    # Persistence
    "JobRepository",
    "SqliteJobRepository",
    # Engine
    "ExecutionEngine",
    "Notifier",
    "RunAcknowledgment",
    # Service
    "JobService",
    "JobSubmission",
    # Recovery
    "RecoveryManager",
]
