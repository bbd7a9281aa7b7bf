"""Access decisions: checker, per-request guard, discovery filter, parameters.

Quick start
-----------
::

    from capability_policy.access import CapabilityGuard, DiscoveryFilter, PolicyDependencies

    deps = PolicyDependencies(resources=provider, config_store=store)
    names = DiscoveryFilter(deps).names(ctx)

    with CapabilityGuard(deps).access(ctx, "query") as grant:
        run_query(grant.context)
"""
from __future__ import annotations

from capability_policy.access.checker import (
    AGENT_LOADOUTS,
    accessible_capabilities,
    enabling_loadouts,
    is_accessible,
)
from capability_policy.access.discovery import DiscoveryFilter, describe_policy
from capability_policy.access.guard import (
    AccessGrant,
    CapabilityGuard,
    PolicyDependencies,
    origin_for,
    parse_tenant_id,
)
from capability_policy.access.params import ParameterReader

__all__ = [
    "AGENT_LOADOUTS",
    "AccessGrant",
    "CapabilityGuard",
    "DiscoveryFilter",
    "ParameterReader",
    "PolicyDependencies",
    "accessible_capabilities",
    "describe_policy",
    "enabling_loadouts",
    "is_accessible",
    "origin_for",
    "parse_tenant_id",
]
