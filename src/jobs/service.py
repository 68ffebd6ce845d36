"""
Job submission and query service.

Thin façade over the repository. Validates submissions into a typed
``JobSubmission`` before anything is persisted and hands run requests to the
execution engine.
"""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from .engine import ExecutionEngine, RunAcknowledgment
from .entities import (
    Job,
    JobPriority,
    JobStatus,
    canonical_json,
    escape_surrogates,
)
from .errors import InvalidInputError, JobNotFoundError
from .persistence import JobRepository


logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity by default; they are not valid JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def _load_exact(text: str) -> Any:
    """Parse JSON text keeping every number exact (no overflow, no digit limit)."""
    return json.loads(
        text,
        parse_float=Decimal,
        parse_int=Decimal,
        parse_constant=_reject_constant,
    )


def _canonical_text(text: str, exact: Any) -> str:
    """
    Canonical form of validated JSON text.

    Falls back to the text itself when canonicalizing would change a number
    (out of float range, beyond the int digit limit, or losing precision).
    """
    try:
        canonical = canonical_json(json.loads(text))
        if _load_exact(canonical) == exact:
            return canonical
    except (ValueError, RecursionError):
        pass
    return escape_surrogates(text)


def _require_container(parsed: Any) -> None:
    if not isinstance(parsed, (dict, list)):
        raise InvalidInputError("Payload must be a JSON object or array", field="payload")


def parse_priority(value: Any) -> JobPriority:
    """Parse a priority value, raising InvalidInputError if unknown."""
    if isinstance(value, JobPriority):
        return value
    try:
        return JobPriority(value)
    except ValueError:
        allowed = ", ".join(p.value for p in JobPriority)
        raise InvalidInputError(
            f"Invalid priority: {value!r} (expected one of: {allowed})",
            field="priority",
        ) from None


def parse_status(value: Any) -> JobStatus:
    """Parse a status value, raising InvalidInputError if unknown."""
    if isinstance(value, JobStatus):
        return value
    try:
        return JobStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in JobStatus)
        raise InvalidInputError(
            f"Invalid status: {value!r} (expected one of: {allowed})",
            field="status",
        ) from None


def parse_payload(value: Any) -> str:
    """
    Validate a payload and return the JSON text to store.

    Accepts JSON text or an already-parsed object/array. The document must
    be a JSON object or array. Text is stored in canonical form unless that
    would change one of its numbers, in which case it is kept as sent.
    """
    if value is None:
        raise InvalidInputError("Missing required field: payload", field="payload")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError("Missing required field: payload", field="payload")
        try:
            parsed = _load_exact(text)
        except RecursionError:
            raise InvalidInputError("Payload is nested too deeply", field="payload") from None
        except ValueError:
            raise InvalidInputError("Payload must be valid JSON", field="payload") from None

        _require_container(parsed)
        return _canonical_text(text, parsed)

    _require_container(value)
    try:
        return canonical_json(value)
    except RecursionError:
        raise InvalidInputError("Payload is nested too deeply", field="payload") from None
    except ValueError:
        raise InvalidInputError(
            "Payload numbers must be finite (send the payload as JSON text to keep "
            "numbers outside floating-point range)",
            field="payload",
        ) from None
    except TypeError:
        raise InvalidInputError("Payload must be valid JSON", field="payload") from None


@dataclass(frozen=True)
class JobSubmission:
    """A validated job creation request."""

    task_name: str
    payload: str
    priority: JobPriority

    @classmethod
    def parse(cls, task_name: Any, payload: Any, priority: Any) -> "JobSubmission":
        """
        Validate raw submission fields.

        Raises:
            InvalidInputError: On the first invalid field
        """
        if not isinstance(task_name, str) or not task_name.strip():
            raise InvalidInputError("Missing required field: taskName", field="taskName")
        try:
            task_name.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidInputError("taskName must be valid Unicode text", field="taskName") from None

        if priority is None or priority == "":
            raise InvalidInputError("Missing required field: priority", field="priority")

        return cls(
            task_name=task_name.strip(),
            payload=parse_payload(payload),
            priority=parse_priority(priority),
        )


class JobService:
    """
    Entry point for job operations.

    Provides:
    - Validated job creation
    - Lookup and filtered listing
    - Run requests (delegated to ExecutionEngine)
    """

    def __init__(self, repository: JobRepository, engine: ExecutionEngine):
        self.repository = repository
        self.engine = engine

    def create(self, task_name: Any, payload: Any, priority: Any) -> Job:
        """
        Create a PENDING job.

        Raises:
            InvalidInputError: If any field is missing or malformed
        """
        submission = JobSubmission.parse(task_name, payload, priority)

        job = Job.create(
            task_name=submission.task_name,
            payload=submission.payload,
            priority=submission.priority,
        )
        job = self.repository.create(job)

        logger.info(f"Created job {job.job_id} ({job.task_name}, priority={job.priority.value})")
        return job

    def get(self, job_id: str) -> Job:
        """
        Get a job by ID.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = self.repository.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(
        self,
        status: Optional[Any] = None,
        priority: Optional[Any] = None,
    ) -> list[Job]:
        """
        List jobs, newest first.

        Empty or None filters are ignored; given filters must all match.

        Raises:
            InvalidInputError: If a filter value is unknown
        """
        status_filter = parse_status(status) if status else None
        priority_filter = parse_priority(priority) if priority else None

        return self.repository.find_many(status=status_filter, priority=priority_filter)

    def run(self, job_id: str) -> RunAcknowledgment:
        """Start a PENDING job. See ExecutionEngine.run()."""
        return self.engine.run(job_id)
