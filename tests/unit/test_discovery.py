"""Tests for capability_policy.access.discovery — DiscoveryFilter and describe_policy."""
from __future__ import annotations

import uuid
from typing import Optional

import pytest

from capability_policy.access.discovery import DiscoveryFilter, describe_policy
from capability_policy.access.guard import CapabilityGuard, PolicyDependencies
from capability_policy.catalog import CapabilityCatalog, CapabilitySpec, LoadoutID
from capability_policy.config import (
    InMemoryPolicyConfigStore,
    PolicyUpdate,
    TenantPolicyConfiguration,
    apply_update,
)
from capability_policy.errors import (
    CapabilityNotEnabled,
    ConfigurationUnavailable,
    ResourceUnavailable,
)
from capability_policy.identity import AGENT_SUBJECT, Claims, RequestContext
from capability_policy.providers import InMemoryResourceProvider, StaticIntegrationOracle


class BrokenStore(InMemoryPolicyConfigStore):
    def get(self, ctx: RequestContext, tenant_id: uuid.UUID) -> Optional[TenantPolicyConfiguration]:
        raise OSError("database offline")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def provider() -> InMemoryResourceProvider:
    return InMemoryResourceProvider()


@pytest.fixture()
def store() -> InMemoryPolicyConfigStore:
    return InMemoryPolicyConfigStore()


@pytest.fixture()
def oracle() -> StaticIntegrationOracle:
    return StaticIntegrationOracle()


@pytest.fixture()
def deps(
    provider: InMemoryResourceProvider,
    store: InMemoryPolicyConfigStore,
    oracle: StaticIntegrationOracle,
) -> PolicyDependencies:
    return PolicyDependencies(resources=provider, config_store=store, integration_oracle=oracle)


@pytest.fixture()
def discovery(deps: PolicyDependencies) -> DiscoveryFilter:
    return DiscoveryFilter(deps)


def _caller(kind: str, tenant: uuid.UUID | str) -> RequestContext:
    if kind == "unauthenticated":
        return RequestContext()
    if kind == "agent":
        return RequestContext(claims=Claims(subject=AGENT_SUBJECT, project_id=str(tenant)))
    return RequestContext(claims=Claims(subject="alice", project_id=str(tenant), roles=(kind,)))


CALLERS = ["unauthenticated", "agent", "user", "admin"]

CONFIGS: list[Optional[TenantPolicyConfiguration]] = [
    None,
    TenantPolicyConfiguration.all_disabled(),
    apply_update(None, PolicyUpdate(agent_tools_enabled=True)),
    apply_update(None, PolicyUpdate(developer_enabled=False, allow_ontology_maintenance=False)),
    apply_update(None, PolicyUpdate(allow_ontology_maintenance=False, add_ontology_maintenance=True)),
]


# ---------------------------------------------------------------------------
# Floors and ceilings
# ---------------------------------------------------------------------------


class TestUnauthenticatedFloor:
    def test_no_claims(self, discovery: DiscoveryFilter, provider: InMemoryResourceProvider) -> None:
        assert discovery.names(RequestContext()) == ["health"]
        assert provider.acquired_total == 0

    def test_malformed_tenant_degrades(self, discovery: DiscoveryFilter) -> None:
        assert discovery.names(_caller("admin", "not-a-uuid")) == ["health"]

    def test_floor_is_independent_of_config(
        self, discovery: DiscoveryFilter, store: InMemoryPolicyConfigStore, tenant_id: uuid.UUID
    ) -> None:
        store.save(RequestContext(), tenant_id, TenantPolicyConfiguration.all_disabled())
        assert discovery.names(RequestContext()) == ["health"]


class TestAgentCeiling:
    def test_unconfigured_agent_sees_health_only(
        self, discovery: DiscoveryFilter, tenant_id: uuid.UUID
    ) -> None:
        assert discovery.names(_caller("agent", tenant_id)) == ["health"]

    def test_enabled_agent(
        self,
        discovery: DiscoveryFilter,
        store: InMemoryPolicyConfigStore,
        oracle: StaticIntegrationOracle,
        tenant_id: uuid.UUID,
    ) -> None:
        oracle.install(tenant_id)
        store.save(RequestContext(), tenant_id, apply_update(None, PolicyUpdate(agent_tools_enabled=True)))
        assert discovery.names(_caller("agent", tenant_id)) == [
            "health",
            "list_approved_queries",
            "execute_approved_query",
        ]


class TestDefaultOn:
    def test_new_tenant_user(self, discovery: DiscoveryFilter, tenant_id: uuid.UUID) -> None:
        names = discovery.names(_caller("user", tenant_id))
        assert "health" in names
        assert "query" in names
        assert "update_column" in names
        assert "resolve_ontology_question" in names

    def test_new_tenant_admin(self, discovery: DiscoveryFilter, tenant_id: uuid.UUID) -> None:
        names = discovery.names(_caller("admin", tenant_id))
        assert "echo" in names
        assert "execute" in names
        assert len(names) == 1 + 2 + 19 + 22 + 5


# ---------------------------------------------------------------------------
# Behaviour
# ---------------------------------------------------------------------------


class TestFilterBehaviour:
    def test_catalog_order_preserved(self, discovery: DiscoveryFilter, tenant_id: uuid.UUID) -> None:
        specs = discovery.filter(_caller("admin", tenant_id))
        positions = [CapabilityCatalog.default().order_of(spec.name) for spec in specs]
        assert positions == sorted(positions)

    def test_releases_handle(
        self, discovery: DiscoveryFilter, provider: InMemoryResourceProvider, tenant_id: uuid.UUID
    ) -> None:
        discovery.filter(_caller("user", tenant_id))
        assert provider.acquired_total == 1
        assert provider.outstanding == 0

    def test_config_failure_propagates_and_releases(
        self, provider: InMemoryResourceProvider, tenant_id: uuid.UUID
    ) -> None:
        discovery = DiscoveryFilter(PolicyDependencies(resources=provider, config_store=BrokenStore()))
        with pytest.raises(ConfigurationUnavailable):
            discovery.filter(_caller("user", tenant_id))
        assert provider.outstanding == 0

    def test_resource_failure_propagates(
        self, store: InMemoryPolicyConfigStore, tenant_id: uuid.UUID
    ) -> None:
        provider = InMemoryResourceProvider(fail_with=RuntimeError("no pool"))
        discovery = DiscoveryFilter(PolicyDependencies(resources=provider, config_store=store))
        with pytest.raises(ResourceUnavailable):
            discovery.filter(_caller("user", tenant_id))

    def test_custom_catalog_argument(self, discovery: DiscoveryFilter, tenant_id: uuid.UUID) -> None:
        custom = CapabilityCatalog(
            [
                CapabilitySpec("ping", frozenset({LoadoutID.DEFAULT})),
                CapabilitySpec("run", frozenset({LoadoutID.DEVELOPER_CORE})),
            ]
        )
        user = [spec.name for spec in discovery.filter(_caller("user", tenant_id), custom)]
        admin = [spec.name for spec in discovery.filter(_caller("admin", tenant_id), custom)]
        assert user == ["ping"]
        assert admin == ["ping", "run"]


# ---------------------------------------------------------------------------
# Consistency with the guard
# ---------------------------------------------------------------------------


class TestConsistencyWithGuard:
    @pytest.mark.parametrize("caller", CALLERS)
    @pytest.mark.parametrize("config_index", range(len(CONFIGS)))
    @pytest.mark.parametrize("installed", [False, True])
    def test_listed_iff_authorized(
        self,
        deps: PolicyDependencies,
        store: InMemoryPolicyConfigStore,
        oracle: StaticIntegrationOracle,
        provider: InMemoryResourceProvider,
        tenant_id: uuid.UUID,
        caller: str,
        config_index: int,
        installed: bool,
    ) -> None:
        config = CONFIGS[config_index]
        if config is not None:
            store.save(RequestContext(), tenant_id, config)
        if installed:
            oracle.install(tenant_id)

        ctx = _caller(caller, tenant_id)
        listed = set(DiscoveryFilter(deps).names(ctx))
        if caller == "unauthenticated":
            assert listed == {"health"}
            return

        guard = CapabilityGuard(deps)
        for spec in CapabilityCatalog.default():
            if spec.name in listed:
                guard.authorize(ctx, spec.name).release()
            else:
                with pytest.raises(CapabilityNotEnabled):
                    guard.authorize(ctx, spec.name)
        assert provider.outstanding == 0


# ---------------------------------------------------------------------------
# describe_policy
# ---------------------------------------------------------------------------


class TestDescribePolicy:
    def test_keys(self) -> None:
        preview = describe_policy(None)
        assert set(preview) == {"user", "administrator", "agent"}

    def test_defaults(self) -> None:
        preview = describe_policy(None)
        assert preview["agent"] == ["health"]
        assert "echo" in preview["administrator"]
        assert "echo" not in preview["user"]

    def test_integration_installed(self) -> None:
        preview = describe_policy(None, integration_installed=True)
        assert "suggest_query_update" in preview["user"]
        assert "suggest_query_update" not in preview["agent"]

    def test_matches_discovery(
        self,
        discovery: DiscoveryFilter,
        store: InMemoryPolicyConfigStore,
        tenant_id: uuid.UUID,
    ) -> None:
        config = apply_update(None, PolicyUpdate(agent_tools_enabled=True, developer_enabled=False))
        store.save(RequestContext(), tenant_id, config)
        preview = describe_policy(config)
        assert preview["user"] == discovery.names(_caller("user", tenant_id))
        assert preview["administrator"] == discovery.names(_caller("admin", tenant_id))
        assert preview["agent"] == discovery.names(_caller("agent", tenant_id))
