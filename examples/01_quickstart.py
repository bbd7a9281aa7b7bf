#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates discovery and authorization for the three kinds of
authenticated caller on a freshly created (unconfigured) project.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install capability-policy
"""
from __future__ import annotations

import uuid

import capability_policy
from capability_policy import (
    CapabilityGuard,
    CapabilityNotEnabled,
    Claims,
    DiscoveryFilter,
    InMemoryPolicyConfigStore,
    InMemoryResourceProvider,
    PolicyDependencies,
    RequestContext,
)


def main() -> None:
    print(f"capability-policy version: {capability_policy.__version__}")

    project = str(uuid.uuid4())
    deps = PolicyDependencies(
        resources=InMemoryResourceProvider(),
        config_store=InMemoryPolicyConfigStore(),
    )
    discovery = DiscoveryFilter(deps)
    guard = CapabilityGuard(deps)

    callers = {
        "administrator": Claims(subject="alice", project_id=project, roles=("admin",)),
        "user": Claims(subject="bob", project_id=project, roles=("user",)),
        "agent": Claims(subject="agent", project_id=project),
    }

    # Step 1: What does each caller see?
    for label, claims in callers.items():
        names = discovery.names(RequestContext(claims=claims))
        print(f"{label:<14} sees {len(names):>2} capabilities")

    # Step 2: Invoke through the guard
    for label, claims in callers.items():
        try:
            with guard.access(RequestContext(claims=claims), "execute") as grant:
                print(f"{label:<14} may run 'execute' (origin={grant.origin.value})")
        except CapabilityNotEnabled as exc:
            print(f"{label:<14} denied: {exc.message}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
