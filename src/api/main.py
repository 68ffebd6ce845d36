"""
FastAPI application entry point.

Job submission, background execution and completion webhooks.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src import __version__
from src.infra.config import load_settings
from src.infra.logging_config import setup_logging
from src.jobs.recovery import RecoveryManager
from .routers import jobs, webhook_test
from ._service_state import init_job_service, shutdown_job_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: logging, job service, optional resume of interrupted runs.
    Shutdown: wait (bounded) for in-flight runs.
    """
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_dir)

    service = init_job_service(settings)
    logger.info(
        f"Job service ready (db={settings.db_path}, webhook={settings.webhook_url}, "
        f"processing={settings.processing_seconds}s)"
    )

    if settings.resume_interrupted_runs:
        RecoveryManager(service.repository, service.engine).recover_on_startup()

    yield

    shutdown_job_service(settings.shutdown_grace_seconds)


# Tag metadata for Swagger UI
tags_metadata = [
    {
        "name": "jobs",
        "description": "Job creation, listing and non-blocking execution with completion webhooks",
    },
    {
        "name": "webhook",
        "description": "Local webhook receiver for testing completion notifications",
    },
]

app = FastAPI(
    title="JobHook API",
    lifespan=lifespan,
    description="""
## JobHook API

Submit jobs, run them in the background and get notified by webhook.

### Lifecycle
`pending` → `running` → `completed`. A job runs at most once. After
completion one webhook is sent to `WEBHOOK_URL`; its outcome is stored in
the job's `webhookLog` (`Success: <code>` or `Error: <reason>`).

### Usage
```bash
# Start server
uvicorn src.api.main:app --host 127.0.0.1 --port 5000

# Create a job
curl -X POST http://localhost:5000/jobs \\
  -H "Content-Type: application/json" \\
  -d '{"taskName": "Send Report", "payload": {"key": "value"}, "priority": "High"}'

# Run it
curl -X POST http://localhost:5000/run-job/<id>
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


app.include_router(jobs.router, tags=["jobs"])
app.include_router(webhook_test.router, tags=["webhook"])


if __name__ == "__main__":
    import uvicorn
    settings = load_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
