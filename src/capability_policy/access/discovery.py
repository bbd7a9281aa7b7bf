"""Discovery filter — which capabilities a caller may see.

:class:`DiscoveryFilter` runs the same claims, tenant, configuration, and
resolution steps as :class:`~capability_policy.access.guard.CapabilityGuard`
and applies the same :func:`~capability_policy.access.checker.is_accessible`
to every catalog entry. A capability is listed exactly when invoking it
would be authorized.

Unlike the guard, a missing identity or malformed tenant is not an error
here: the caller is treated as unauthenticated and sees only the default
capability.
"""
from __future__ import annotations

import logging
from typing import Optional

from capability_policy.access.checker import accessible_capabilities
from capability_policy.access.guard import (
    PolicyDependencies,
    acquire_handle,
    parse_tenant_id,
    resolve_for_request,
)
from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.catalog.loadout import CapabilitySpec
from capability_policy.config.policy import TenantPolicyConfiguration
from capability_policy.errors import InvalidTenant
from capability_policy.identity.classification import CallerClassification, classify
from capability_policy.identity.context import TENANT_SCOPE_KEY, RequestContext
from capability_policy.resolver.group_state import UNAUTHENTICATED_STATE, resolve

logger = logging.getLogger(__name__)


class DiscoveryFilter:
    """Filters the catalog down to what the current caller may invoke.

    Parameters
    ----------
    deps:
        The same collaborators the guard uses.
    """

    def __init__(self, deps: PolicyDependencies) -> None:
        self._deps = deps

    def filter(
        self,
        ctx: RequestContext,
        catalog: Optional[CapabilityCatalog] = None,
    ) -> list[CapabilitySpec]:
        """Return the accessible capabilities, in catalog order.

        Parameters
        ----------
        ctx:
            The request context.
        catalog:
            Catalog to filter (defaults to the dependencies' catalog).

        Raises
        ------
        ResourceUnavailable, ConfigurationUnavailable
            Infrastructure failures propagate; the guard would fail the
            same way for every capability.
        """
        full = catalog or self._deps.catalog
        claims = self._deps.claims_source.claims_from(ctx)
        if claims is None:
            return accessible_capabilities(full, UNAUTHENTICATED_STATE, False)

        try:
            tenant_id = parse_tenant_id(claims.project_id)
        except InvalidTenant:
            logger.debug("Malformed project ID %r, listing default capability only", claims.project_id)
            return accessible_capabilities(full, UNAUTHENTICATED_STATE, False)

        who = classify(claims)
        handle = acquire_handle(self._deps, ctx, tenant_id)
        try:
            state = resolve_for_request(
                self._deps, ctx.with_value(TENANT_SCOPE_KEY, handle), tenant_id, who
            )
        finally:
            handle.release()
        return accessible_capabilities(full, state, who.is_agent)

    def names(self, ctx: RequestContext) -> list[str]:
        """Return just the names of :meth:`filter`'s result."""
        return [spec.name for spec in self.filter(ctx)]


def describe_policy(
    config: Optional[TenantPolicyConfiguration],
    catalog: Optional[CapabilityCatalog] = None,
    integration_installed: bool = False,
) -> dict[str, list[str]]:
    """Return the capability names each authenticated classification would see.

    Used by configuration screens to preview the effect of the toggles.

    Returns
    -------
    dict[str, list[str]]
        Keys ``"user"``, ``"administrator"``, ``"agent"``; names in catalog order.
    """
    full = catalog or CapabilityCatalog.default()
    result: dict[str, list[str]] = {}
    for who in (
        CallerClassification.USER,
        CallerClassification.ADMINISTRATOR,
        CallerClassification.AGENT,
    ):
        state = resolve(config, who, integration_installed=integration_installed)
        result[who.value] = [
            spec.name for spec in accessible_capabilities(full, state, who.is_agent)
        ]
    return result


__all__ = ["DiscoveryFilter", "describe_policy"]
