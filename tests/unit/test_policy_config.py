"""Tests for capability_policy.config — policy records, updates, and stores."""
from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from capability_policy.config import (
    FilesystemPolicyConfigStore,
    InMemoryPolicyConfigStore,
    PolicyStoreError,
    PolicyUpdate,
    TenantPolicyConfiguration,
    apply_update,
)
from capability_policy.identity import RequestContext


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ctx() -> RequestContext:
    return RequestContext()


@pytest.fixture()
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def fs_store(tmp_path: Path) -> FilesystemPolicyConfigStore:
    return FilesystemPolicyConfigStore(tmp_path / "policies")


# ---------------------------------------------------------------------------
# TenantPolicyConfiguration
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_documented_defaults(self) -> None:
        config = TenantPolicyConfiguration.defaults()
        assert config.developer.enabled is True
        assert config.developer.add_query_tools is True
        assert config.developer.add_ontology_maintenance is True
        assert config.user.allow_ontology_maintenance is True
        assert config.agent_tools.enabled is False
        assert config.updated_at is None

    def test_all_disabled(self) -> None:
        config = TenantPolicyConfiguration.all_disabled()
        assert config.developer.enabled is False
        assert config.developer.add_query_tools is False
        assert config.developer.add_ontology_maintenance is False
        assert config.user.allow_ontology_maintenance is False
        assert config.agent_tools.enabled is False

    def test_records_are_immutable(self) -> None:
        config = TenantPolicyConfiguration.defaults()
        with pytest.raises(ValidationError):
            config.updated_at = datetime.now(timezone.utc)  # type: ignore[misc]


class TestWireFormat:
    def test_to_json_uses_camel_case(self) -> None:
        data = json.loads(TenantPolicyConfiguration.defaults().to_json())
        assert "agentTools" in data
        assert "addQueryTools" in data["developer"]
        assert "allowOntologyMaintenance" in data["user"]

    def test_from_json_accepts_camel_case(self) -> None:
        raw = json.dumps(
            {
                "developer": {"enabled": False, "addQueryTools": False},
                "user": {"allowOntologyMaintenance": False},
                "agentTools": {"enabled": True},
            }
        )
        config = TenantPolicyConfiguration.from_json(raw)
        assert config.developer.enabled is False
        assert config.developer.add_query_tools is False
        assert config.developer.add_ontology_maintenance is True
        assert config.user.allow_ontology_maintenance is False
        assert config.agent_tools.enabled is True

    def test_missing_groups_fall_back_to_defaults(self) -> None:
        config = TenantPolicyConfiguration.from_json("{}")
        assert config == TenantPolicyConfiguration.defaults()

    def test_json_preserves_timestamp(self) -> None:
        stamp = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        config = apply_update(None, PolicyUpdate(agent_tools_enabled=True), now=stamp)
        restored = TenantPolicyConfiguration.from_json(config.to_json())
        assert restored.updated_at == stamp
        assert restored.agent_tools.enabled is True


# ---------------------------------------------------------------------------
# PolicyUpdate / apply_update
# ---------------------------------------------------------------------------


class TestPolicyUpdate:
    def test_empty_update(self) -> None:
        assert PolicyUpdate().is_empty()

    def test_explicit_false_is_not_empty(self) -> None:
        assert not PolicyUpdate(developer_enabled=False).is_empty()

    def test_accepts_camel_case_body(self) -> None:
        update = PolicyUpdate.model_validate({"agentToolsEnabled": True})
        assert update.agent_tools_enabled is True
        assert update.developer_enabled is None

    def test_rejects_non_boolean(self) -> None:
        with pytest.raises(ValidationError):
            PolicyUpdate.model_validate({"agentToolsEnabled": "maybe"})


class TestApplyUpdate:
    def test_creates_record_from_defaults(self) -> None:
        updated = apply_update(None, PolicyUpdate(agent_tools_enabled=True))
        assert updated.agent_tools.enabled is True
        assert updated.developer.enabled is True
        assert updated.updated_at is not None

    def test_unsent_fields_are_preserved(self) -> None:
        existing = TenantPolicyConfiguration.all_disabled()
        updated = apply_update(existing, PolicyUpdate(add_query_tools=True))
        assert updated.developer.add_query_tools is True
        assert updated.developer.enabled is False
        assert updated.user.allow_ontology_maintenance is False

    def test_explicit_false_overrides(self) -> None:
        updated = apply_update(None, PolicyUpdate(allow_ontology_maintenance=False))
        assert updated.user.allow_ontology_maintenance is False

    def test_existing_is_not_modified(self) -> None:
        existing = TenantPolicyConfiguration.defaults()
        apply_update(existing, PolicyUpdate(developer_enabled=False))
        assert existing.developer.enabled is True
        assert existing.updated_at is None

    def test_uses_supplied_timestamp(self) -> None:
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        updated = apply_update(None, PolicyUpdate(developer_enabled=False), now=stamp)
        assert updated.updated_at == stamp


# ---------------------------------------------------------------------------
# InMemoryPolicyConfigStore
# ---------------------------------------------------------------------------


class TestInMemoryStore:
    def test_unconfigured_returns_none(self, ctx: RequestContext, tenant_id: uuid.UUID) -> None:
        assert InMemoryPolicyConfigStore().get(ctx, tenant_id) is None

    def test_save_then_get(self, ctx: RequestContext, tenant_id: uuid.UUID) -> None:
        store = InMemoryPolicyConfigStore()
        config = TenantPolicyConfiguration.all_disabled()
        store.save(ctx, tenant_id, config)
        assert store.get(ctx, tenant_id) == config
        assert len(store) == 1

    def test_tenants_are_isolated(self, ctx: RequestContext, tenant_id: uuid.UUID) -> None:
        store = InMemoryPolicyConfigStore()
        store.save(ctx, tenant_id, TenantPolicyConfiguration.all_disabled())
        assert store.get(ctx, uuid.uuid4()) is None

    def test_delete(self, ctx: RequestContext, tenant_id: uuid.UUID) -> None:
        store = InMemoryPolicyConfigStore()
        store.save(ctx, tenant_id, TenantPolicyConfiguration.defaults())
        assert store.delete(tenant_id) is True
        assert store.delete(tenant_id) is False
        assert store.get(ctx, tenant_id) is None


# ---------------------------------------------------------------------------
# FilesystemPolicyConfigStore
# ---------------------------------------------------------------------------


class TestFilesystemStore:
    def test_creates_base_dir(self, tmp_path: Path) -> None:
        FilesystemPolicyConfigStore(tmp_path / "nested" / "dir")
        assert (tmp_path / "nested" / "dir").is_dir()

    def test_unconfigured_returns_none(
        self, fs_store: FilesystemPolicyConfigStore, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> None:
        assert fs_store.get(ctx, tenant_id) is None

    def test_save_then_get(
        self, fs_store: FilesystemPolicyConfigStore, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> None:
        config = apply_update(None, PolicyUpdate(agent_tools_enabled=True))
        fs_store.save(ctx, tenant_id, config)
        loaded = fs_store.get(ctx, tenant_id)
        assert loaded is not None
        assert loaded.agent_tools.enabled is True
        assert loaded.updated_at == config.updated_at

    def test_file_uses_camel_case(
        self,
        fs_store: FilesystemPolicyConfigStore,
        tmp_path: Path,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
    ) -> None:
        fs_store.save(ctx, tenant_id, TenantPolicyConfiguration.defaults())
        raw = json.loads((tmp_path / "policies" / f"{tenant_id}.json").read_text())
        assert "agentTools" in raw

    def test_corrupt_record_raises_store_error(
        self,
        fs_store: FilesystemPolicyConfigStore,
        tmp_path: Path,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
    ) -> None:
        (tmp_path / "policies" / f"{tenant_id}.json").write_text("{not json")
        with pytest.raises(PolicyStoreError) as exc_info:
            fs_store.get(ctx, tenant_id)
        assert exc_info.value.tenant_id == tenant_id

    def test_delete(
        self, fs_store: FilesystemPolicyConfigStore, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> None:
        fs_store.save(ctx, tenant_id, TenantPolicyConfiguration.defaults())
        assert fs_store.delete(tenant_id) is True
        assert fs_store.delete(tenant_id) is False

    def test_list_projects(
        self, fs_store: FilesystemPolicyConfigStore, ctx: RequestContext
    ) -> None:
        first, second = uuid.uuid4(), uuid.uuid4()
        fs_store.save(ctx, first, TenantPolicyConfiguration.defaults())
        fs_store.save(ctx, second, TenantPolicyConfiguration.defaults())
        assert set(fs_store.list_projects()) == {str(first), str(second)}
