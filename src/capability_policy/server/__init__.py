"""HTTP server mode for capability-policy.

Provides a lightweight stdlib-based HTTP API for previewing and editing
tenant policy and for checking capability access, without requiring any
additional web framework dependencies.
"""
from __future__ import annotations

from capability_policy.server.app import CapabilityPolicyHandler, create_server, run_server

__all__ = ["CapabilityPolicyHandler", "create_server", "run_server"]
