"""capability-policy — per-tenant capability access and write arbitration.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import capability_policy
>>> capability_policy.__version__
'0.1.0'

Quick start
-----------
::

    from capability_policy import (
        CapabilityGuard, DiscoveryFilter, PolicyDependencies,
        InMemoryPolicyConfigStore, InMemoryResourceProvider,
        Claims, RequestContext,
    )

    deps = PolicyDependencies(
        resources=InMemoryResourceProvider(),
        config_store=InMemoryPolicyConfigStore(),
    )
    ctx = RequestContext(claims=Claims(subject="u-1", project_id=str(project), roles=("admin",)))

    DiscoveryFilter(deps).names(ctx)
    with CapabilityGuard(deps).access(ctx, "query") as grant:
        ...
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Catalog
# ------------------------------------------------------------------
from capability_policy.catalog import CapabilityCatalog, CapabilitySpec, LoadoutID

# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------
from capability_policy.config import (
    FilesystemPolicyConfigStore,
    InMemoryPolicyConfigStore,
    PolicyConfigStore,
    PolicyStoreError,
    PolicyUpdate,
    TenantPolicyConfiguration,
    apply_update,
)

# ------------------------------------------------------------------
# Identity and resolution
# ------------------------------------------------------------------
from capability_policy.identity import CallerClassification, Claims, RequestContext, classify
from capability_policy.resolver import GroupState, resolve

# ------------------------------------------------------------------
# Access decisions
# ------------------------------------------------------------------
from capability_policy.access import (
    AccessGrant,
    CapabilityGuard,
    DiscoveryFilter,
    ParameterReader,
    PolicyDependencies,
    describe_policy,
    is_accessible,
)

# ------------------------------------------------------------------
# Write arbitration
# ------------------------------------------------------------------
from capability_policy.arbitration import (
    InMemoryMetadataStore,
    MetadataRecord,
    MetadataStore,
    MetadataWriter,
    Origin,
    can_overwrite,
    require_overwrite,
)

# ------------------------------------------------------------------
# Errors and collaborators
# ------------------------------------------------------------------
from capability_policy.errors import (
    CapabilityAccessError,
    CapabilityNotEnabled,
    ConfigurationUnavailable,
    InvalidParameter,
    InvalidTenant,
    PrecedenceBlocked,
    ResourceUnavailable,
    Unauthorized,
)
from capability_policy.providers import InMemoryResourceProvider, StaticIntegrationOracle

__all__ = [
    "__version__",
    # catalog
    "CapabilityCatalog",
    "CapabilitySpec",
    "LoadoutID",
    # configuration
    "FilesystemPolicyConfigStore",
    "InMemoryPolicyConfigStore",
    "PolicyConfigStore",
    "PolicyStoreError",
    "PolicyUpdate",
    "TenantPolicyConfiguration",
    "apply_update",
    # identity / resolution
    "CallerClassification",
    "Claims",
    "GroupState",
    "RequestContext",
    "classify",
    "resolve",
    # access
    "AccessGrant",
    "CapabilityGuard",
    "DiscoveryFilter",
    "ParameterReader",
    "PolicyDependencies",
    "describe_policy",
    "is_accessible",
    # arbitration
    "InMemoryMetadataStore",
    "MetadataRecord",
    "MetadataStore",
    "MetadataWriter",
    "Origin",
    "can_overwrite",
    "require_overwrite",
    # errors
    "CapabilityAccessError",
    "CapabilityNotEnabled",
    "ConfigurationUnavailable",
    "InvalidParameter",
    "InvalidTenant",
    "PrecedenceBlocked",
    "ResourceUnavailable",
    "Unauthorized",
    # collaborators
    "InMemoryResourceProvider",
    "StaticIntegrationOracle",
]
