"""Policy configuration storage — abstract interface and two backends.

:class:`PolicyConfigStore` defines the storage contract consumed by the
guard and the discovery filter. :class:`InMemoryPolicyConfigStore` backs
tests and the development server; :class:`FilesystemPolicyConfigStore`
persists one JSON document per project and backs the CLI.

Backends never cache: every :meth:`PolicyConfigStore.get` reads the current
record so that administrator changes take effect on the very next request.
"""
from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from capability_policy.config.policy import TenantPolicyConfiguration
from capability_policy.identity.context import RequestContext

logger = logging.getLogger(__name__)


class PolicyStoreError(Exception):
    """Raised when a backend cannot read or write a policy record.

    Parameters
    ----------
    tenant_id:
        The project whose record was being accessed.
    reason:
        Human-readable cause.
    """

    def __init__(self, tenant_id: uuid.UUID, reason: str) -> None:
        self.tenant_id = tenant_id
        self.reason = reason
        super().__init__(f"Policy store error for project {tenant_id}: {reason}")


class PolicyConfigStore(ABC):
    """Abstract base class for policy configuration backends."""

    @abstractmethod
    def get(
        self, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> Optional[TenantPolicyConfiguration]:
        """Return the stored record, or ``None`` when the project is unconfigured.

        Raises
        ------
        PolicyStoreError
            If the backend fails to read the record.
        """

    @abstractmethod
    def save(
        self,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
        config: TenantPolicyConfiguration,
    ) -> None:
        """Create or replace the record for *tenant_id*."""

    @abstractmethod
    def delete(self, tenant_id: uuid.UUID) -> bool:
        """Remove the record together with its owning project.

        Returns
        -------
        bool
            True when a record existed.
        """


class InMemoryPolicyConfigStore(PolicyConfigStore):
    """Thread-safe dict-backed store."""

    def __init__(self) -> None:
        self._records: dict[uuid.UUID, TenantPolicyConfiguration] = {}
        self._lock = threading.Lock()

    def get(
        self, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> Optional[TenantPolicyConfiguration]:
        with self._lock:
            return self._records.get(tenant_id)

    def save(
        self,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
        config: TenantPolicyConfiguration,
    ) -> None:
        with self._lock:
            self._records[tenant_id] = config

    def delete(self, tenant_id: uuid.UUID) -> bool:
        with self._lock:
            return self._records.pop(tenant_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class FilesystemPolicyConfigStore(PolicyConfigStore):
    """Filesystem-backed store.

    Records are stored under *base_dir* as ``<project-id>.json`` using the
    camelCase wire format.

    Parameters
    ----------
    base_dir:
        Root directory for policy records. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, tenant_id: uuid.UUID) -> Path:
        return self._base_dir / f"{tenant_id}.json"

    def get(
        self, ctx: RequestContext, tenant_id: uuid.UUID
    ) -> Optional[TenantPolicyConfiguration]:
        path = self._path(tenant_id)
        if not path.exists():
            return None
        try:
            return TenantPolicyConfiguration.from_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.error("Failed to read policy record %s: %s", path, exc)
            raise PolicyStoreError(tenant_id, str(exc)) from exc

    def save(
        self,
        ctx: RequestContext,
        tenant_id: uuid.UUID,
        config: TenantPolicyConfiguration,
    ) -> None:
        path = self._path(tenant_id)
        try:
            path.write_text(config.to_json(), encoding="utf-8")
        except OSError as exc:
            raise PolicyStoreError(tenant_id, str(exc)) from exc

    def delete(self, tenant_id: uuid.UUID) -> bool:
        path = self._path(tenant_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_projects(self) -> list[str]:
        """Return the IDs of all configured projects, sorted."""
        return sorted(p.stem for p in self._base_dir.glob("*.json"))


__all__ = [
    "FilesystemPolicyConfigStore",
    "InMemoryPolicyConfigStore",
    "PolicyConfigStore",
    "PolicyStoreError",
]
