"""Boundary contracts for external collaborators, with reference implementations.

The policy engine consumes three collaborators beyond the config store:

- a tenant-scoped resource provider (``acquire`` → handle with ``release``),
- an integration-presence oracle (consulted only for the data liaison loadout),
- a metadata store (see :mod:`capability_policy.arbitration.store`).

The in-memory implementations here back the test suite, the CLI, and the
development server. Production deployments substitute their own objects
satisfying the same protocols.
"""
from __future__ import annotations

import itertools
import threading
import uuid
from typing import Optional, Protocol

from capability_policy.identity.context import RequestContext


class ResourceHandle(Protocol):
    """A tenant-scoped resource owned by exactly one request."""

    tenant_id: uuid.UUID

    def release(self) -> None: ...


class ResourceProvider(Protocol):
    """Acquires tenant-scoped resources."""

    def acquire(self, ctx: RequestContext, tenant_id: uuid.UUID) -> ResourceHandle: ...


class IntegrationOracle(Protocol):
    """Reports whether the data liaison integration is installed for a tenant."""

    def is_integration_installed(self, ctx: RequestContext, tenant_id: uuid.UUID) -> bool: ...


class ScopedHandle:
    """Handle returned by :class:`InMemoryResourceProvider`.

    ``release`` is idempotent: only the first call returns the handle to
    the provider.
    """

    def __init__(self, provider: InMemoryResourceProvider, tenant_id: uuid.UUID, handle_id: int) -> None:
        self.tenant_id = tenant_id
        self.handle_id = handle_id
        self._provider = provider
        self._released = False
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._provider._on_release(self)

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"ScopedHandle(tenant={self.tenant_id}, id={self.handle_id}, {state})"


class InMemoryResourceProvider:
    """Resource provider that tracks outstanding handles.

    Parameters
    ----------
    fail_with:
        When set, :meth:`acquire` raises this exception instead of returning
        a handle. Used to simulate infrastructure outages.
    """

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.fail_with = fail_with
        self._counter = itertools.count(1)
        self._outstanding: dict[int, ScopedHandle] = {}
        self._acquired_total = 0
        self._lock = threading.Lock()

    def acquire(self, ctx: RequestContext, tenant_id: uuid.UUID) -> ScopedHandle:
        if self.fail_with is not None:
            raise self.fail_with
        handle = ScopedHandle(self, tenant_id, next(self._counter))
        with self._lock:
            self._outstanding[handle.handle_id] = handle
            self._acquired_total += 1
        return handle

    def _on_release(self, handle: ScopedHandle) -> None:
        with self._lock:
            self._outstanding.pop(handle.handle_id, None)

    @property
    def outstanding(self) -> int:
        """Number of acquired handles not yet released."""
        with self._lock:
            return len(self._outstanding)

    @property
    def acquired_total(self) -> int:
        """Number of handles ever acquired."""
        with self._lock:
            return self._acquired_total


class StaticIntegrationOracle:
    """Oracle backed by a fixed set of tenants that have the integration.

    Parameters
    ----------
    installed:
        Tenants for which the integration is present.
    fail_with:
        When set, every lookup raises this exception.
    """

    def __init__(
        self,
        installed: Optional[set[uuid.UUID]] = None,
        fail_with: Optional[Exception] = None,
    ) -> None:
        self._installed = set(installed or ())
        self.fail_with = fail_with
        self._lock = threading.Lock()

    def install(self, tenant_id: uuid.UUID) -> None:
        with self._lock:
            self._installed.add(tenant_id)

    def uninstall(self, tenant_id: uuid.UUID) -> None:
        with self._lock:
            self._installed.discard(tenant_id)

    def is_integration_installed(self, ctx: RequestContext, tenant_id: uuid.UUID) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            return tenant_id in self._installed


__all__ = [
    "InMemoryResourceProvider",
    "IntegrationOracle",
    "ResourceHandle",
    "ResourceProvider",
    "ScopedHandle",
    "StaticIntegrationOracle",
]
