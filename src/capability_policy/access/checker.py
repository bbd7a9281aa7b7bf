"""Access checker — the single allow/deny decision for one capability.

Both discovery and invocation call :func:`is_accessible`; there is no other
decision path.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.catalog.loadout import CapabilitySpec, LoadoutID

AGENT_LOADOUTS: frozenset[LoadoutID] = frozenset({LoadoutID.DEFAULT, LoadoutID.AGENT_TOOLS})


def enabling_loadouts(
    spec: CapabilitySpec, state: Iterable[LoadoutID], is_agent: bool
) -> frozenset[LoadoutID]:
    """Return the loadouts in *state* that enable *spec*.

    For agents only ``default`` and ``agent_tools`` count, even if the state
    handed in contains more.
    """
    enabled = spec.loadouts & frozenset(state)
    if is_agent:
        enabled &= AGENT_LOADOUTS
    return enabled


def is_accessible(
    capability_name: str,
    state: Iterable[LoadoutID],
    is_agent: bool,
    catalog: Optional[CapabilityCatalog] = None,
) -> bool:
    """Return True if *capability_name* is enabled under *state*.

    Parameters
    ----------
    capability_name:
        The capability being discovered or invoked.
    state:
        The resolved group state.
    is_agent:
        Whether the caller is an automated agent.
    catalog:
        The catalog to look the name up in (defaults to the built-in one).

    Returns
    -------
    bool
        False for names not in the catalog.
    """
    spec = (catalog or CapabilityCatalog.default()).get(capability_name)
    if spec is None:
        return False
    return bool(enabling_loadouts(spec, state, is_agent))


def accessible_capabilities(
    catalog: CapabilityCatalog,
    state: Iterable[LoadoutID],
    is_agent: bool,
) -> list[CapabilitySpec]:
    """Apply :func:`is_accessible` to every catalog entry, preserving order."""
    frozen_state = frozenset(state)
    return [
        spec
        for spec in catalog
        if is_accessible(spec.name, frozen_state, is_agent, catalog=catalog)
    ]


__all__ = ["AGENT_LOADOUTS", "accessible_capabilities", "enabling_loadouts", "is_accessible"]
