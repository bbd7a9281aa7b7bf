"""Tenant policy configuration model and storage."""
from __future__ import annotations

from capability_policy.config.policy import (
    AgentToolsToggles,
    DeveloperToggles,
    PolicyUpdate,
    TenantPolicyConfiguration,
    UserToggles,
    apply_update,
)
from capability_policy.config.store import (
    FilesystemPolicyConfigStore,
    InMemoryPolicyConfigStore,
    PolicyConfigStore,
    PolicyStoreError,
)

__all__ = [
    "AgentToolsToggles",
    "DeveloperToggles",
    "FilesystemPolicyConfigStore",
    "InMemoryPolicyConfigStore",
    "PolicyConfigStore",
    "PolicyStoreError",
    "PolicyUpdate",
    "TenantPolicyConfiguration",
    "UserToggles",
    "apply_update",
]
