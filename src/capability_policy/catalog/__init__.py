"""Capability catalog and loadout model."""
from __future__ import annotations

from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.catalog.loadout import CapabilitySpec, LoadoutID

__all__ = ["CapabilityCatalog", "CapabilitySpec", "LoadoutID"]
