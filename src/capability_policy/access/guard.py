"""CapabilityGuard — the per-request authorization sequence.

Every capability handler runs behind the same five steps:

1. read the caller's claims (``Unauthorized`` when absent),
2. parse the tenant identifier (``InvalidTenant`` when malformed),
3. acquire a tenant-scoped resource handle (``ResourceUnavailable``),
4. load the tenant's policy configuration (``ConfigurationUnavailable``),
5. resolve the group state and consult the access checker
   (``CapabilityNotEnabled``).

Once a handle has been acquired it is released on every failure path,
including interrupts raised while the guard is running. On success the
handle is handed to the caller inside an :class:`AccessGrant`, which the
caller must release (``with guard.access(...)`` and the
:meth:`CapabilityGuard.capability` decorator do this automatically).

Quick start
-----------
::

    guard = CapabilityGuard(deps)

    @guard.capability("update_column")
    def update_column(grant, params):
        writer.write(grant.context, params.string("column"), params.string("description"),
                     grant.origin)
"""
from __future__ import annotations

import functools
import logging
import threading
import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from capability_policy.access.checker import is_accessible
from capability_policy.access.params import ParameterReader
from capability_policy.arbitration.precedence import Origin
from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.config.policy import TenantPolicyConfiguration
from capability_policy.config.store import PolicyConfigStore
from capability_policy.errors import (
    CapabilityAccessError,
    CapabilityNotEnabled,
    ConfigurationUnavailable,
    InvalidTenant,
    ResourceUnavailable,
    Unauthorized,
)
from capability_policy.identity.classification import CallerClassification, Claims, classify
from capability_policy.identity.context import (
    ORIGIN_KEY,
    TENANT_SCOPE_KEY,
    ClaimsSource,
    ContextClaimsSource,
    RequestContext,
)
from capability_policy.providers import IntegrationOracle, ResourceHandle, ResourceProvider
from capability_policy.resolver.group_state import GroupState, resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PolicyDependencies:
    """Collaborators shared by the guard and the discovery filter.

    Parameters
    ----------
    resources:
        Tenant-scoped resource provider.
    config_store:
        Policy configuration backend.
    integration_oracle:
        Data liaison presence oracle. ``None`` means "never installed".
    claims_source:
        Where claims come from (defaults to the claims carried on the context).
    catalog:
        The capability universe (defaults to the built-in catalog).
    """

    resources: ResourceProvider
    config_store: PolicyConfigStore
    integration_oracle: Optional[IntegrationOracle] = None
    claims_source: ClaimsSource = field(default_factory=ContextClaimsSource)
    catalog: CapabilityCatalog = field(default_factory=CapabilityCatalog.default)


def parse_tenant_id(raw: str) -> uuid.UUID:
    """Parse a tenant identifier, raising :class:`InvalidTenant` when malformed."""
    try:
        return uuid.UUID(str(raw))
    except (ValueError, AttributeError, TypeError) as exc:
        raise InvalidTenant(str(raw), str(exc)) from exc


def origin_for(who: CallerClassification) -> Origin:
    """Return the write origin of a caller: agents are automated, people manual."""
    if who is CallerClassification.AGENT:
        return Origin.AUTOMATED
    return Origin.MANUAL


def acquire_handle(
    deps: PolicyDependencies, ctx: RequestContext, tenant_id: uuid.UUID
) -> ResourceHandle:
    try:
        return deps.resources.acquire(ctx, tenant_id)
    except CapabilityAccessError:
        raise
    except Exception as exc:
        logger.error("Failed to acquire tenant resources for project %s: %s", tenant_id, exc)
        raise ResourceUnavailable(str(tenant_id), str(exc)) from exc


def load_configuration(
    deps: PolicyDependencies, ctx: RequestContext, tenant_id: uuid.UUID
) -> Optional[TenantPolicyConfiguration]:
    try:
        return deps.config_store.get(ctx, tenant_id)
    except Exception as exc:
        logger.error("Failed to load policy configuration for project %s: %s", tenant_id, exc)
        raise ConfigurationUnavailable(str(tenant_id), str(exc)) from exc


def integration_installed(
    deps: PolicyDependencies,
    ctx: RequestContext,
    tenant_id: uuid.UUID,
    who: CallerClassification,
) -> bool:
    """Consult the integration oracle; any failure counts as "not installed"."""
    if deps.integration_oracle is None:
        return False
    if who not in (CallerClassification.USER, CallerClassification.ADMINISTRATOR):
        return False
    try:
        return bool(deps.integration_oracle.is_integration_installed(ctx, tenant_id))
    except Exception as exc:
        logger.warning(
            "Integration check failed for project %s, assuming not installed: %s",
            tenant_id,
            exc,
        )
        return False


def resolve_for_request(
    deps: PolicyDependencies,
    ctx: RequestContext,
    tenant_id: uuid.UUID,
    who: CallerClassification,
) -> GroupState:
    """Steps 4–5 up to resolution: load configuration and resolve group state."""
    config = load_configuration(deps, ctx, tenant_id)
    installed = integration_installed(deps, ctx, tenant_id, who)
    return resolve(config, who, integration_installed=installed)


class AccessGrant:
    """A successful authorization, owning one live resource handle.

    Parameters
    ----------
    tenant_id:
        The parsed tenant identifier.
    context:
        The tenant-scoped request context (carries the handle and origin).
    classification:
        The caller's classification.
    capability:
        The capability that was authorized.
    handle:
        The resource handle to release when the caller is done.
    """

    def __init__(
        self,
        tenant_id: uuid.UUID,
        context: RequestContext,
        classification: CallerClassification,
        capability: str,
        handle: ResourceHandle,
    ) -> None:
        self.tenant_id = tenant_id
        self.context = context
        self.classification = classification
        self.capability = capability
        self._handle = handle
        self._released = False
        self._lock = threading.Lock()

    @property
    def origin(self) -> Origin:
        return origin_for(self.classification)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Release the resource handle. Safe to call more than once."""
        with self._lock:
            if self._released:
                return
            self._released = True
        self._handle.release()

    def __enter__(self) -> AccessGrant:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __iter__(self) -> Iterator[object]:
        # Allows ``tenant_id, ctx, release = guard.authorize(...)``.
        return iter((self.tenant_id, self.context, self.release))


class CapabilityGuard:
    """Authorizes capability invocations for one request at a time.

    The guard holds no per-request state and caches nothing, so a single
    instance may serve any number of concurrent requests.

    Parameters
    ----------
    deps:
        Shared collaborators.
    """

    def __init__(self, deps: PolicyDependencies) -> None:
        self._deps = deps

    @property
    def dependencies(self) -> PolicyDependencies:
        return self._deps

    def authorize(self, ctx: RequestContext, capability_name: str) -> AccessGrant:
        """Run the five-step authorization for *capability_name*.

        Returns
        -------
        AccessGrant
            Holds the tenant ID, the tenant-scoped context, and the live
            handle. The caller must call :meth:`AccessGrant.release`.

        Raises
        ------
        Unauthorized, InvalidTenant, ResourceUnavailable,
        ConfigurationUnavailable, CapabilityNotEnabled
        """
        claims: Optional[Claims] = self._deps.claims_source.claims_from(ctx)
        if claims is None:
            raise Unauthorized()

        tenant_id = parse_tenant_id(claims.project_id)
        who = classify(claims)

        handle = acquire_handle(self._deps, ctx, tenant_id)
        try:
            scoped = ctx.with_value(TENANT_SCOPE_KEY, handle)
            state = resolve_for_request(self._deps, scoped, tenant_id, who)
            if not is_accessible(
                capability_name, state, who.is_agent, catalog=self._deps.catalog
            ):
                logger.debug(
                    "Capability %s denied for %s in project %s",
                    capability_name,
                    who.value,
                    tenant_id,
                )
                raise CapabilityNotEnabled(capability_name)
            return AccessGrant(
                tenant_id=tenant_id,
                context=scoped.with_value(ORIGIN_KEY, origin_for(who)),
                classification=who,
                capability=capability_name,
                handle=handle,
            )
        except BaseException:
            handle.release()
            raise

    @contextmanager
    def access(self, ctx: RequestContext, capability_name: str) -> Iterator[AccessGrant]:
        """Authorize and yield the grant, releasing it when the block exits."""
        grant = self.authorize(ctx, capability_name)
        try:
            yield grant
        finally:
            grant.release()

    def capability(
        self, capability_name: str
    ) -> Callable[
        [Callable[[AccessGrant, ParameterReader], T]],
        Callable[[RequestContext, Optional[Mapping[str, object]]], T],
    ]:
        """Decorator wrapping a handler ``handler(grant, params)`` in the guard.

        The wrapped function takes ``(ctx, arguments)``; arguments are
        wrapped in a :class:`ParameterReader` before the handler sees them.
        """

        def decorator(
            handler: Callable[[AccessGrant, ParameterReader], T],
        ) -> Callable[[RequestContext, Optional[Mapping[str, object]]], T]:
            @functools.wraps(handler)
            def wrapper(
                ctx: RequestContext, arguments: Optional[Mapping[str, object]] = None
            ) -> T:
                with self.access(ctx, capability_name) as grant:
                    return handler(grant, ParameterReader(arguments))

            wrapper.capability_name = capability_name  # type: ignore[attr-defined]
            return wrapper

        return decorator


__all__ = [
    "AccessGrant",
    "CapabilityGuard",
    "PolicyDependencies",
    "origin_for",
    "parse_tenant_id",
    "resolve_for_request",
]
