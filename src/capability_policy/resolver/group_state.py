"""Group-state resolver.

Turns a tenant's policy configuration and the caller's classification into
the set of enabled loadouts. :func:`resolve` is a pure function of its inputs:
it reads no stores and keeps no state, so the guard and the discovery filter
get the same answer for the same request.

Resolution rules, in priority order:

1. Unauthenticated callers get ``{default}``. Not configurable.
2. Agents get ``{default}`` plus ``{agent_tools}`` when agent tools are
   enabled. Nothing else, whatever the other toggles say. Agents are not
   defaulted on: an unconfigured project gives agents ``{default}`` only.
3. Users get ``{default, query}``, plus ontology maintenance when
   ``user.allow_ontology_maintenance`` is set, plus ontology questions
   whenever maintenance was added, plus data liaison when the integration
   is installed.
4. Administrators get the user resolution plus, while the developer group
   is enabled, developer core, query, and (independently of the user
   toggle) ontology maintenance with ontology questions. A disabled
   developer group leaves its sub-toggles without effect.
"""
from __future__ import annotations

from typing import Optional

from capability_policy.catalog.loadout import LoadoutID
from capability_policy.config.policy import TenantPolicyConfiguration
from capability_policy.identity.classification import CallerClassification

GroupState = frozenset[LoadoutID]

UNAUTHENTICATED_STATE: GroupState = frozenset({LoadoutID.DEFAULT})


def _resolve_user(
    config: TenantPolicyConfiguration, integration_installed: bool
) -> set[LoadoutID]:
    loadouts = {LoadoutID.DEFAULT, LoadoutID.QUERY}
    if config.user.allow_ontology_maintenance:
        loadouts.add(LoadoutID.ONTOLOGY_MAINTENANCE)
    if integration_installed:
        loadouts.add(LoadoutID.DATA_LIAISON)
    return loadouts


def _resolve_administrator(
    config: TenantPolicyConfiguration, integration_installed: bool
) -> set[LoadoutID]:
    loadouts = _resolve_user(config, integration_installed)
    developer = config.developer
    if not developer.enabled:
        return loadouts
    # Sub-toggles only count while the developer group is on.
    loadouts.add(LoadoutID.DEVELOPER_CORE)
    if developer.add_query_tools:
        loadouts.add(LoadoutID.QUERY)
    if developer.add_ontology_maintenance:
        loadouts.add(LoadoutID.ONTOLOGY_MAINTENANCE)
    return loadouts


def resolve(
    config: Optional[TenantPolicyConfiguration],
    who: CallerClassification,
    *,
    integration_installed: bool = False,
) -> GroupState:
    """Return the loadouts enabled for *who* under *config*.

    Parameters
    ----------
    config:
        The stored policy record, or ``None`` for an unconfigured project
        (resolved through :meth:`TenantPolicyConfiguration.defaults`).
    who:
        The caller's classification.
    integration_installed:
        Whether the data liaison integration is present for this tenant.
        Ignored for unauthenticated callers and agents.

    Returns
    -------
    GroupState
        An immutable set of loadout identifiers; always contains ``DEFAULT``.
    """
    if who is CallerClassification.UNAUTHENTICATED:
        return UNAUTHENTICATED_STATE

    effective = config if config is not None else TenantPolicyConfiguration.defaults()

    if who is CallerClassification.AGENT:
        if effective.agent_tools.enabled:
            return frozenset({LoadoutID.DEFAULT, LoadoutID.AGENT_TOOLS})
        return UNAUTHENTICATED_STATE

    if who is CallerClassification.USER:
        loadouts = _resolve_user(effective, integration_installed)
    else:
        loadouts = _resolve_administrator(effective, integration_installed)

    # Questions are never offered without maintenance.
    if LoadoutID.ONTOLOGY_MAINTENANCE in loadouts:
        loadouts.add(LoadoutID.ONTOLOGY_QUESTIONS)
    return frozenset(loadouts)


__all__ = ["GroupState", "UNAUTHENTICATED_STATE", "resolve"]
