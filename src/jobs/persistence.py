"""
Job repository.

The execution engine and the submission service depend on the narrow
``JobRepository`` protocol. ``SqliteJobRepository`` is the production
implementation:
- SQLite with WAL mode, one connection per operation
- Conditional UPDATE for status claims, so a check-and-set is atomic
  across threads and processes sharing the database file
- Listing ordered by created_at DESC (newest first)
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol

from .entities import (
    Job,
    JobPriority,
    JobStatus,
    can_transition,
    now_iso,
)
from .errors import (
    ConcurrencyViolationError,
    InvalidTransitionError,
    JobNotFoundError,
)


# Seconds a connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30.0


class JobRepository(Protocol):
    """Storage contract used by the job service and execution engine."""

    def create(self, job: Job) -> Job:
        ...

    def get_by_id(self, job_id: str) -> Optional[Job]:
        ...

    def find_many(
        self,
        status: Optional[JobStatus] = None,
        priority: Optional[JobPriority] = None,
    ) -> list[Job]:
        ...

    def update(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        webhook_log: Optional[str] = None,
    ) -> Job:
        ...

    def compare_and_set_status(
        self,
        job_id: str,
        expected: JobStatus,
        new: JobStatus,
    ) -> Job:
        ...


class SqliteJobRepository:
    """
    SQLite-based job storage.

    - Does NOT contain business logic beyond the status transition table
    - Every public method runs in its own transaction
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize the repository and create the schema if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path, timeout=SQLITE_BUSY_TIMEOUT)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for read-only database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    job_id TEXT PRIMARY KEY,
                    task_name TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    priority TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    webhook_log TEXT
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_status_priority
                ON jobs (status, priority, created_at DESC)
            """)

    # =========================================================================
    # Job Operations
    # =========================================================================

    def create(self, job: Job) -> Job:
        """Persist a new job."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO jobs
                (job_id, task_name, payload, priority, status, created_at, updated_at, webhook_log)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.job_id,
                    job.task_name,
                    job.payload,
                    job.priority.value,
                    job.status.value,
                    job.created_at,
                    job.updated_at,
                    job.webhook_log,
                ),
            )
        return job

    def get_by_id(self, job_id: str) -> Optional[Job]:
        """Get a job by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM jobs WHERE job_id = ?",
                (job_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_job(row)

    def _row_to_job(self, row: sqlite3.Row) -> Job:
        """Convert a database row to a Job entity."""
        return Job(
            job_id=row["job_id"],
            task_name=row["task_name"],
            payload=row["payload"],
            priority=JobPriority(row["priority"]),
            status=JobStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            webhook_log=row["webhook_log"],
        )

    def find_many(
        self,
        status: Optional[JobStatus] = None,
        priority: Optional[JobPriority] = None,
    ) -> list[Job]:
        """
        List jobs matching all given filters, newest first.

        Jobs created within the same timestamp keep insertion order
        (newest first) via rowid.
        """
        clauses = []
        values = []

        if status is not None:
            clauses.append("status = ?")
            values.append(status.value)
        if priority is not None:
            clauses.append("priority = ?")
            values.append(priority.value)

        query = "SELECT * FROM jobs"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC, rowid DESC"

        with self._connection() as conn:
            rows = conn.execute(query, values).fetchall()

        return [self._row_to_job(row) for row in rows]

    def update(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        webhook_log: Optional[str] = None,
    ) -> Job:
        """
        Partially update a job and refresh updated_at.

        Creation fields cannot be updated. A status write must be a legal
        forward transition or a rewrite of the current value.

        Raises:
            JobNotFoundError: If job doesn't exist
            InvalidTransitionError: If status would move backwards
        """
        job = self.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        if status is not None and status != job.status and not can_transition(job.status, status):
            raise InvalidTransitionError(job_id, job.status.value, status.value)

        updates = ["updated_at = ?"]
        values: list = [now_iso()]

        if status is not None:
            updates.append("status = ?")
            values.append(status.value)
        if webhook_log is not None:
            updates.append("webhook_log = ?")
            values.append(webhook_log)

        values.append(job_id)
        with self._transaction() as conn:
            conn.execute(
                f"UPDATE jobs SET {', '.join(updates)} WHERE job_id = ?",
                values,
            )

        return self.get_by_id(job_id)

    def compare_and_set_status(
        self,
        job_id: str,
        expected: JobStatus,
        new: JobStatus,
    ) -> Job:
        """
        Atomically transition a job from ``expected`` to ``new``.

        Raises:
            InvalidTransitionError: If expected -> new is not a legal transition
            JobNotFoundError: If job doesn't exist
            ConcurrencyViolationError: If job is not in ``expected`` status
        """
        if not can_transition(expected, new):
            raise InvalidTransitionError(job_id, expected.value, new.value)

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE jobs
                SET status = ?, updated_at = ?
                WHERE job_id = ? AND status = ?
                """,
                (new.value, now_iso(), job_id, expected.value),
            )

            if cursor.rowcount == 0:
                # Either job doesn't exist or another caller got there first
                row = conn.execute(
                    "SELECT status FROM jobs WHERE job_id = ?",
                    (job_id,),
                ).fetchone()

                if row is None:
                    raise JobNotFoundError(job_id)

                raise ConcurrencyViolationError(
                    job_id,
                    expected_status=expected.value,
                    actual_status=row["status"],
                )

            row = conn.execute(
                "SELECT * FROM jobs WHERE job_id = ?",
                (job_id,),
            ).fetchone()

        return self._row_to_job(row)

