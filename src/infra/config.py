"""
Runtime configuration for the job service.

All settings come from environment variables, optionally loaded from a
``.env`` file in the working directory.

Environment Variables:
- HOST: Bind address for the API server (default: 127.0.0.1)
- PORT: API server port (default: 5000)
- JOB_DB_PATH: SQLite database path, relative paths resolve against the
  project root (default: jobs.db)
- JOB_PROCESSING_SECONDS: Simulated processing time per run (default: 3)
- WEBHOOK_URL: Completion webhook endpoint
  (default: the local /webhook-test receiver)
- WEBHOOK_TIMEOUT_SECONDS: Timeout for one webhook delivery (default: 10)
- RESUME_INTERRUPTED_RUNS: Resume jobs left RUNNING by a previous process
  on startup (default: false)
- SHUTDOWN_GRACE_SECONDS: How long shutdown waits for in-flight runs
  (default: 5)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_DIR: Directory for daily log files (default: logs)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


# =============================================================================
# Environment helpers
# =============================================================================

def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Config] Invalid integer for {key}: {val}, using default: {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return float(val)
        except ValueError:
            logger.warning(f"[Config] Invalid number for {key}: {val}, using default: {default}")
    return default


def get_project_root() -> Path:
    """
    Get the project root directory.

    File is at src/infra/config.py, so project root is 2 levels up.
    """
    return Path(__file__).parent.parent.parent.resolve()


# =============================================================================
# Settings
# =============================================================================

DEFAULT_PORT = 5000
DEFAULT_PROCESSING_SECONDS = 3.0
DEFAULT_WEBHOOK_TIMEOUT_SECONDS = 10.0


@dataclass
class Settings:
    """Resolved service configuration."""

    host: str
    port: int
    db_path: Path
    processing_seconds: float
    webhook_url: str
    webhook_timeout_seconds: float
    resume_interrupted_runs: bool
    shutdown_grace_seconds: float
    log_level: str
    log_dir: Path


def _resolve_path(value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = get_project_root() / path
    return path


def load_settings(webhook_url: Optional[str] = None) -> Settings:
    """
    Read settings from the environment.

    Args:
        webhook_url: Explicit webhook URL, overrides WEBHOOK_URL

    Returns:
        Settings instance
    """
    port = _get_env_int("PORT", DEFAULT_PORT)

    url = webhook_url or os.getenv("WEBHOOK_URL") or f"http://localhost:{port}/webhook-test"

    processing_seconds = _get_env_float("JOB_PROCESSING_SECONDS", DEFAULT_PROCESSING_SECONDS)
    if processing_seconds < 0:
        logger.warning(
            f"[Config] JOB_PROCESSING_SECONDS must not be negative: {processing_seconds}, "
            f"using default: {DEFAULT_PROCESSING_SECONDS}"
        )
        processing_seconds = DEFAULT_PROCESSING_SECONDS

    webhook_timeout = _get_env_float("WEBHOOK_TIMEOUT_SECONDS", DEFAULT_WEBHOOK_TIMEOUT_SECONDS)
    if webhook_timeout <= 0:
        logger.warning(
            f"[Config] WEBHOOK_TIMEOUT_SECONDS must be positive: {webhook_timeout}, "
            f"using default: {DEFAULT_WEBHOOK_TIMEOUT_SECONDS}"
        )
        webhook_timeout = DEFAULT_WEBHOOK_TIMEOUT_SECONDS

    return Settings(
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        db_path=_resolve_path(os.getenv("JOB_DB_PATH", "jobs.db")),
        processing_seconds=processing_seconds,
        webhook_url=url,
        webhook_timeout_seconds=webhook_timeout,
        resume_interrupted_runs=_get_env_bool("RESUME_INTERRUPTED_RUNS", False),
        shutdown_grace_seconds=_get_env_float("SHUTDOWN_GRACE_SECONDS", 5.0),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=_resolve_path(os.getenv("LOG_DIR", "logs")),
    )
