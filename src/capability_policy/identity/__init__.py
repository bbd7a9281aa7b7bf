"""Caller identity: claims, classification, and request context."""
from __future__ import annotations

from capability_policy.identity.classification import (
    AGENT_SUBJECT,
    CallerClassification,
    Claims,
    classify,
    effective_role,
)
from capability_policy.identity.context import (
    ClaimsSource,
    ContextClaimsSource,
    RequestContext,
)

__all__ = [
    "AGENT_SUBJECT",
    "CallerClassification",
    "Claims",
    "ClaimsSource",
    "ContextClaimsSource",
    "RequestContext",
    "classify",
    "effective_role",
]
