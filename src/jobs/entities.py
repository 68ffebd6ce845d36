"""
Job domain entities.

- Job: a unit of submitted work tracked through pending -> running -> completed
- CompletionNotification: body of the webhook sent after a job completes

Mutability rules:
- job_id, task_name, payload, priority, created_at: Immutable
- status: Written by the execution engine, forward-only
- webhook_log: Written by the execution engine once, after completion
- updated_at: Refreshed on every write
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import json
import uuid


class JobStatus(str, Enum):
    """
    Job lifecycle status.

    - PENDING: Created, waiting for a run request
    - RUNNING: Run accepted, background work in progress
    - COMPLETED: Terminal, webhook delivery follows
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


class JobPriority(str, Enum):
    """Advisory priority. Does not affect execution order."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Allowed forward transitions. COMPLETED is terminal.
ALLOWED_TRANSITIONS: dict[JobStatus, JobStatus] = {
    JobStatus.PENDING: JobStatus.RUNNING,
    JobStatus.RUNNING: JobStatus.COMPLETED,
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Return True if ``current -> target`` is a legal status transition."""
    return ALLOWED_TRANSITIONS.get(current) == target


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO format string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def escape_surrogates(text: str) -> str:
    """
    Escape lone surrogates in JSON text as ``\\uXXXX``.

    A lone surrogate can only sit inside a JSON string, where the escaped
    form is valid JSON and decodes to the same string.
    """
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def canonical_json(value: Any) -> str:
    """Serialize a parsed JSON value to its stored canonical text."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return escape_surrogates(text)


@dataclass
class Job:
    """
    Single unit of submitted work.

    ``payload`` holds JSON text, validated once at creation.
    """

    job_id: str
    task_name: str
    payload: str
    priority: JobPriority
    status: JobStatus = JobStatus.PENDING
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    webhook_log: Optional[str] = None

    @classmethod
    def create(
        cls,
        task_name: str,
        payload: str,
        priority: JobPriority,
    ) -> "Job":
        """Create a new Job with generated ID and PENDING status."""
        now = now_iso()
        return cls(
            job_id=generate_uuid(),
            task_name=task_name,
            payload=payload,
            priority=priority,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
        )


@dataclass
class CompletionNotification:
    """
    Webhook body sent once a job reaches COMPLETED.

    ``payload`` is the job's stored JSON text and is embedded in the body
    unchanged, so numbers keep their exact text.
    """

    job_id: str
    task_name: str
    priority: JobPriority
    payload: str
    completed_at: str

    @classmethod
    def from_job(cls, job: Job) -> "CompletionNotification":
        """
        Build the notification for a completed job.

        The completion time is the job's ``updated_at`` as written by the
        COMPLETED transition.
        """
        return cls(
            job_id=job.job_id,
            task_name=job.task_name,
            priority=job.priority,
            payload=job.payload,
            completed_at=job.updated_at,
        )

    def to_json(self) -> str:
        """
        Wire format of the webhook body.

        {"jobId", "taskName", "priority", "payload", "completedAt"}
        """
        job_id = json.dumps(self.job_id)
        task_name = json.dumps(self.task_name)
        priority = json.dumps(self.priority.value)
        completed_at = json.dumps(self.completed_at)
        return (
            f'{{"jobId":{job_id},"taskName":{task_name},"priority":{priority},'
            f'"payload":{self.payload},"completedAt":{completed_at}}}'
        )
