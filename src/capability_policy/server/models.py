"""Pydantic request/response models for the capability-policy HTTP server."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from capability_policy import __version__


class CallerRequest(BaseModel):
    """Verified caller claims, as forwarded by the authenticating proxy."""

    subject: str
    project_id: str
    roles: list[str] = Field(default_factory=list)


class AuthorizeRequest(CallerRequest):
    """Request body for POST /capabilities/authorize."""

    capability: str


class DiscoverResponse(BaseModel):
    """Response body for POST /capabilities/discover."""

    classification: str
    capabilities: list[str] = Field(default_factory=list)


class AuthorizeResponse(BaseModel):
    """Response body for a successful POST /capabilities/authorize."""

    allowed: bool = True
    capability: str
    project_id: str
    classification: str
    origin: str


class PolicyResponse(BaseModel):
    """Response body for GET/PUT /projects/{id}/policy."""

    project_id: str
    configured: bool
    developer: dict[str, bool] = Field(default_factory=dict)
    user: dict[str, bool] = Field(default_factory=dict)
    agent_tools: dict[str, bool] = Field(default_factory=dict)
    updated_at: Optional[str] = None
    user_capabilities: list[str] = Field(default_factory=list)
    administrator_capabilities: list[str] = Field(default_factory=list)
    agent_capabilities: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "capability-policy"
    version: str = __version__
    capability_count: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str = ""
    code: str = ""
    details: dict[str, object] = Field(default_factory=dict)


__all__ = [
    "AuthorizeRequest",
    "AuthorizeResponse",
    "CallerRequest",
    "DiscoverResponse",
    "ErrorResponse",
    "HealthResponse",
    "PolicyResponse",
]
