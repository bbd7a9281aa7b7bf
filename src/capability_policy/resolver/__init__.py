"""Group-state resolution."""
from __future__ import annotations

from capability_policy.resolver.group_state import UNAUTHENTICATED_STATE, GroupState, resolve

__all__ = ["GroupState", "UNAUTHENTICATED_STATE", "resolve"]
