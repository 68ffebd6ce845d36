"""
Job API schemas.

Field names on the wire are camelCase (taskName, createdAt, webhookLog, ...).
Request fields accept any JSON value. JobService validates them and the
router answers 400 with its message.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobCreateRequest(CamelModel):
    """Request to create a job."""

    task_name: Any = Field(
        default=None,
        description="Descriptive task name (non-empty)",
        json_schema_extra={"examples": ["Send Report"]},
    )
    payload: Any = Field(
        default=None,
        description="JSON object or array, or its JSON text",
        json_schema_extra={"examples": [{"key": "value"}, '{"key": "value"}']},
    )
    priority: Any = Field(
        default=None,
        description="Low, Medium or High",
        json_schema_extra={"examples": ["High"]},
    )


class JobResponse(CamelModel):
    """A job record."""

    id: str
    task_name: str
    payload: str = Field(..., description="Canonical JSON text")
    priority: str
    status: str = Field(..., description="pending, running or completed")
    created_at: str
    updated_at: str
    webhook_log: Optional[str] = Field(
        default=None,
        description="Outcome of the completion webhook: 'Success: <code>' or 'Error: <reason>'",
    )


class JobRunResponse(CamelModel):
    """Response from run-job endpoint."""

    message: str = Field(default="Job started successfully")
    job_id: str
    status: str
