"""
Job service state management for API integration.

Provides singleton access to the JobService instance and its execution
engine. Initialized during FastAPI lifespan.

Usage:
    from ._service_state import get_job_service, init_job_service

    # In lifespan:
    init_job_service(settings)

    # In routers:
    service = get_job_service()
"""

from typing import Callable, Optional

from src.infra.config import Settings
from src.infra.webhook import WebhookNotifier
from src.jobs.engine import ExecutionEngine, Notifier
from src.jobs.persistence import SqliteJobRepository
from src.jobs.service import JobService


# Global job service instance
_job_service: Optional[JobService] = None


def init_job_service(
    settings: Settings,
    notifier: Optional[Notifier] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> JobService:
    """
    Initialize the job service singleton.

    Called during FastAPI lifespan startup. Returns the existing instance if
    one is already initialized.

    Args:
        settings: Resolved configuration
        notifier: Webhook notifier (default: WebhookNotifier for settings.webhook_url)
        sleep: Sleep function for the processing delay (default: time.sleep)

    Returns:
        Initialized JobService
    """
    global _job_service

    if _job_service is not None:
        return _job_service

    repository = SqliteJobRepository(settings.db_path)

    if notifier is None:
        notifier = WebhookNotifier(
            url=settings.webhook_url,
            timeout=settings.webhook_timeout_seconds,
        )

    engine_kwargs = {"sleep": sleep} if sleep is not None else {}
    engine = ExecutionEngine(
        repository=repository,
        notifier=notifier,
        processing_seconds=settings.processing_seconds,
        **engine_kwargs,
    )

    _job_service = JobService(repository=repository, engine=engine)
    return _job_service


def get_job_service() -> JobService:
    """
    Get the job service singleton.

    Raises:
        RuntimeError: If job service not initialized
    """
    if _job_service is None:
        raise RuntimeError(
            "Job service not initialized. "
            "Ensure init_job_service() is called during startup."
        )

    return _job_service


def shutdown_job_service(timeout: float = 5.0) -> list[str]:
    """
    Shutdown the job service.

    Called during FastAPI lifespan shutdown. Waits up to ``timeout`` seconds
    for in-flight runs.

    Returns:
        IDs of jobs still running when the timeout expired
    """
    global _job_service

    still_running: list[str] = []
    if _job_service is not None:
        still_running = _job_service.engine.shutdown(timeout)
        _job_service = None

    return still_running
