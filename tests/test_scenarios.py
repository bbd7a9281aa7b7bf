"""End-to-end scenarios through the public capability_policy API."""
from __future__ import annotations

import uuid

import pytest

from capability_policy import (
    CapabilityCatalog,
    CapabilityGuard,
    Claims,
    DiscoveryFilter,
    InMemoryMetadataStore,
    InMemoryPolicyConfigStore,
    LoadoutID,
    MetadataWriter,
    PolicyDependencies,
    PolicyUpdate,
    RequestContext,
    apply_update,
)
from capability_policy.errors import PrecedenceBlocked
from capability_policy.providers import InMemoryResourceProvider, StaticIntegrationOracle


@pytest.fixture()
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def deps(tenant_id: uuid.UUID) -> PolicyDependencies:
    store = InMemoryPolicyConfigStore()
    store.save(
        RequestContext(),
        tenant_id,
        apply_update(
            None,
            PolicyUpdate(
                add_query_tools=True,
                add_ontology_maintenance=True,
                agent_tools_enabled=False,
            ),
        ),
    )
    return PolicyDependencies(
        resources=InMemoryResourceProvider(),
        config_store=store,
        integration_oracle=StaticIntegrationOracle(),
    )


def _names_in(loadout: LoadoutID) -> set[str]:
    return {spec.name for spec in CapabilityCatalog.default().capabilities_in(loadout)}


def test_administrator_sees_union_without_data_liaison(
    deps: PolicyDependencies, tenant_id: uuid.UUID
) -> None:
    ctx = RequestContext(claims=Claims(subject="admin-1", project_id=str(tenant_id), roles=("admin",)))
    names = set(DiscoveryFilter(deps).names(ctx))
    assert len(names) >= 35
    assert names.isdisjoint(_names_in(LoadoutID.DATA_LIAISON))


def test_agent_sees_exactly_default(deps: PolicyDependencies, tenant_id: uuid.UUID) -> None:
    ctx = RequestContext(claims=Claims(subject="agent", project_id=str(tenant_id)))
    assert DiscoveryFilter(deps).names(ctx) == ["health"]


def test_user_sees_query_and_maintenance_not_developer_core(
    deps: PolicyDependencies, tenant_id: uuid.UUID
) -> None:
    ctx = RequestContext(claims=Claims(subject="user-1", project_id=str(tenant_id), roles=("user",)))
    names = set(DiscoveryFilter(deps).names(ctx))
    assert _names_in(LoadoutID.QUERY) <= names
    assert _names_in(LoadoutID.ONTOLOGY_MAINTENANCE) <= names
    assert "echo" not in names
    assert "execute" not in names


def test_agent_write_cannot_clobber_human_annotation(tenant_id: uuid.UUID) -> None:
    store = InMemoryPolicyConfigStore()
    store.save(RequestContext(), tenant_id, apply_update(None, PolicyUpdate(agent_tools_enabled=True)))
    deps = PolicyDependencies(resources=InMemoryResourceProvider(), config_store=store)
    guard = CapabilityGuard(deps)
    writer = MetadataWriter(InMemoryMetadataStore())

    human = RequestContext(claims=Claims(subject="bob", project_id=str(tenant_id), roles=("user",)))
    with guard.access(human, "update_column") as grant:
        writer.write(grant.context, "column:orders.status", "Order lifecycle state", grant.origin)

    # Automated writes over manual values are refused regardless of capability.
    agent = RequestContext(claims=Claims(subject="agent", project_id=str(tenant_id)))
    with guard.access(agent, "list_approved_queries") as grant:
        with pytest.raises(PrecedenceBlocked):
            writer.write(grant.context, "column:orders.status", "status", grant.origin)
