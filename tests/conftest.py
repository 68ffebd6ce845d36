"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from src.infra.config import Settings
from src.jobs import (
    CompletionNotification,
    ExecutionEngine,
    Job,
    JobPriority,
    JobService,
    JobStatus,
    SqliteJobRepository,
)


# Environment variables read by load_settings()
CONFIG_ENV_VARS = (
    "HOST",
    "PORT",
    "JOB_DB_PATH",
    "JOB_PROCESSING_SECONDS",
    "WEBHOOK_URL",
    "WEBHOOK_TIMEOUT_SECONDS",
    "RESUME_INTERRUPTED_RUNS",
    "SHUTDOWN_GRACE_SECONDS",
    "LOG_LEVEL",
    "LOG_DIR",
)


@pytest.fixture(autouse=True, scope="function")
def reset_config_env():
    """
    Reset configuration environment before each test.

    Tests start from defaults unless they set a variable themselves.
    """
    original = {key: os.environ.get(key) for key in CONFIG_ENV_VARS}
    for key in CONFIG_ENV_VARS:
        os.environ.pop(key, None)

    yield

    for key, value in original.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture(autouse=True, scope="function")
def reset_service_state():
    """Drop the API job service singleton after each test."""
    yield

    from src.api._service_state import shutdown_job_service
    shutdown_job_service(timeout=5.0)


class RecordingNotifier:
    """
    Fake notifier for testing.

    Records every notification instead of sending HTTP requests.
    """

    def __init__(self, outcome: str = "Success: 200"):
        self.outcome = outcome
        self.notifications: list[CompletionNotification] = []
        self.error: Optional[Exception] = None
        self.on_deliver: Optional[Callable[[CompletionNotification], None]] = None
        self._lock = threading.Lock()

    def deliver(self, notification: CompletionNotification) -> str:
        with self._lock:
            self.notifications.append(notification)
        if self.on_deliver is not None:
            self.on_deliver(notification)
        if self.error is not None:
            raise self.error
        return self.outcome

    def delivered_ids(self) -> list[str]:
        with self._lock:
            return [n.job_id for n in self.notifications]


class Gate:
    """
    Sleep replacement that blocks until opened.

    Keeps a run in RUNNING for as long as a test needs.
    """

    def __init__(self):
        self._event = threading.Event()
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self._event.wait(timeout=10)

    def open(self) -> None:
        self._event.set()


def no_sleep(seconds: float) -> None:
    """Sleep replacement that returns immediately."""
    return None


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    # Also cleanup WAL and SHM files
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def repository(temp_db_path: str) -> SqliteJobRepository:
    """Create a fresh SqliteJobRepository with empty database."""
    return SqliteJobRepository(temp_db_path)


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Create a recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def gate() -> Generator[Gate, None, None]:
    """Create a gate; always opened on teardown so no run stays blocked."""
    g = Gate()
    yield g
    g.open()


@pytest.fixture
def engine(repository: SqliteJobRepository, notifier: RecordingNotifier) -> ExecutionEngine:
    """Create an ExecutionEngine without processing delay."""
    return ExecutionEngine(
        repository=repository,
        notifier=notifier,
        processing_seconds=3.0,
        sleep=no_sleep,
    )


@pytest.fixture
def gated_engine(
    repository: SqliteJobRepository,
    notifier: RecordingNotifier,
    gate: Gate,
) -> ExecutionEngine:
    """Create an ExecutionEngine whose runs block until the gate opens."""
    return ExecutionEngine(
        repository=repository,
        notifier=notifier,
        processing_seconds=3.0,
        sleep=gate,
    )


@pytest.fixture
def service(repository: SqliteJobRepository, engine: ExecutionEngine) -> JobService:
    """Create a JobService over the test repository and engine."""
    return JobService(repository=repository, engine=engine)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for Settings pointing at temporary paths."""

    def _make(**overrides) -> Settings:
        values = dict(
            host="127.0.0.1",
            port=5000,
            db_path=tmp_path / "jobs.db",
            processing_seconds=0.0,
            webhook_url="http://webhook.test/hook",
            webhook_timeout_seconds=1.0,
            resume_interrupted_runs=False,
            shutdown_grace_seconds=1.0,
            log_level="INFO",
            log_dir=tmp_path / "logs",
        )
        values.update(overrides)
        return Settings(**values)

    return _make


# =============================================================================
# Job Factory Fixtures
# =============================================================================


@pytest.fixture
def create_job(repository: SqliteJobRepository) -> Callable:
    """
    Factory fixture for creating jobs.

    Returns a function that creates jobs with specified parameters.
    """

    def _create(
        task_name: str = "Send Report",
        payload: str = '{"key":"value"}',
        priority: JobPriority = JobPriority.MEDIUM,
        status: JobStatus = JobStatus.PENDING,
    ) -> Job:
        job = Job.create(task_name=task_name, payload=payload, priority=priority)
        job = repository.create(job)

        # Walk forward to the requested status
        if status in (JobStatus.RUNNING, JobStatus.COMPLETED):
            job = repository.compare_and_set_status(
                job.job_id, JobStatus.PENDING, JobStatus.RUNNING
            )
        if status == JobStatus.COMPLETED:
            job = repository.compare_and_set_status(
                job.job_id, JobStatus.RUNNING, JobStatus.COMPLETED
            )

        return job

    return _create


# =============================================================================
# Assertion Helpers
# =============================================================================


def assert_job_status(repository: SqliteJobRepository, job_id: str, expected: JobStatus):
    """Assert a job has the expected status."""
    job = repository.get_by_id(job_id)
    assert job is not None, f"Job {job_id} not found"
    assert job.status == expected, f"Expected {expected}, got {job.status}"
