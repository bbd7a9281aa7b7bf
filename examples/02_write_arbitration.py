#!/usr/bin/env python3
"""Example: Write Arbitration

Demonstrates how an agent enabled for approved queries is kept from
overwriting a description that a person wrote by hand.

Usage:
    python examples/02_write_arbitration.py

Requirements:
    pip install capability-policy
"""
from __future__ import annotations

import uuid

import capability_policy
from capability_policy import (
    CapabilityGuard,
    Claims,
    InMemoryMetadataStore,
    InMemoryPolicyConfigStore,
    InMemoryResourceProvider,
    MetadataWriter,
    PolicyDependencies,
    PolicyUpdate,
    PrecedenceBlocked,
    RequestContext,
    apply_update,
)


def main() -> None:
    print(f"capability-policy version: {capability_policy.__version__}")

    tenant_id = uuid.uuid4()
    store = InMemoryPolicyConfigStore()

    # Step 1: Opt the project in to agent tools
    store.save(RequestContext(), tenant_id, apply_update(None, PolicyUpdate(agent_tools_enabled=True)))
    guard = CapabilityGuard(
        PolicyDependencies(resources=InMemoryResourceProvider(), config_store=store)
    )
    writer = MetadataWriter(InMemoryMetadataStore())
    key = "column:orders.status"

    # Step 2: A person documents a column
    human = RequestContext(claims=Claims(subject="bob", project_id=str(tenant_id)))
    with guard.access(human, "update_column") as grant:
        record = writer.write(grant.context, key, "Lifecycle state of the order", grant.origin)
        print(f"bob wrote {key!r} (origin={record.origin.value})")

    # Step 3: An agent tries to replace it
    agent = RequestContext(claims=Claims(subject="agent", project_id=str(tenant_id)))
    with guard.access(agent, "execute_approved_query") as grant:
        try:
            writer.write(grant.context, key, "status", grant.origin)
        except PrecedenceBlocked as exc:
            print(f"agent blocked: {exc.message}")

    print("\nArbitration example complete.")


if __name__ == "__main__":
    main()
