"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .jobs import (
    JobCreateRequest,
    JobResponse,
    JobRunResponse,
)

__all__ = [
    "JobCreateRequest",
    "JobResponse",
    "JobRunResponse",
]
