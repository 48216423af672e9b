"""
Pydantic v2 request and response schemas for the court-watch API.

Schemas are separate from the core dataclasses in ``court_watch.core``
to provide a stable, explicit API contract.  Internal representations may
change without affecting the API surface.

Naming convention:
    - Request schemas:  ``<Resource>Request`` (e.g. ``AnalysisRequest``)
    - Response schemas: ``<Resource>Response`` or ``<Resource>Schema``

All datetime strings are ISO 8601.  The analysis endpoint itself streams
``ProgressEvent`` JSON objects as server-sent events rather than
returning a schema.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Shared / error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """
    Structured error response returned for all 4xx and 5xx responses.

    Matches the CLI error format (error type, human message, optional hint).
    """

    error: str = Field(..., description="Machine-readable error type")
    message: str = Field(..., description="Human-readable error description")
    details: str | None = Field(None, description="Additional technical context")
    hint: str | None = Field(None, description="Suggested remediation action")


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class AnalysisRequest(BaseModel):
    """Request body for ``POST /api/court-analysis``."""

    query: str = Field(..., min_length=1, max_length=200, description="Search text")
    case_count: int | None = Field(
        None,
        ge=1,
        le=10,
        description="Number of latest filings to analyse (default from settings)",
    )

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be blank")
        return v


class JobSchema(BaseModel):
    """A queued, running, or recently finished pipeline run."""

    job_id: str
    label: str
    state: str
    error: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class JobListResponse(BaseModel):
    """Response for ``GET /api/court-analysis/jobs``."""

    pending: int = Field(..., ge=0)
    running: int = Field(..., ge=0)
    concurrency: int = Field(..., ge=1)
    jobs: list[JobSchema] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


class SubscriptionRequest(BaseModel):
    """Request body for ``POST /api/subscriptions``."""

    query: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("query must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("email must look like name@domain.tld")
        return v


class SubscriptionResponse(BaseModel):
    """A created subscription. The token only appears in the link."""

    id: int
    query: str
    email: str
    is_active: bool
    created_at: str
    unsubscribe_url: str


class UnsubscribeResponse(BaseModel):
    """Response for ``GET /api/unsubscribe/{token}``."""

    message: str
    query: str
