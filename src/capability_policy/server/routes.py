"""Route handler functions for the capability-policy HTTP server.

Each function accepts parsed request data and returns a tuple of
(status_code, response_dict). The HTTP handler in app.py calls these
functions and serializes the results to JSON.
"""
from __future__ import annotations

import uuid

from pydantic import ValidationError

from capability_policy.access.discovery import DiscoveryFilter, describe_policy
from capability_policy.access.guard import CapabilityGuard, PolicyDependencies, parse_tenant_id
from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.config.policy import PolicyUpdate, TenantPolicyConfiguration, apply_update
from capability_policy.config.store import InMemoryPolicyConfigStore, PolicyStoreError
from capability_policy.errors import CapabilityAccessError, ConfigurationUnavailable
from capability_policy.identity.classification import Claims, classify
from capability_policy.identity.context import RequestContext
from capability_policy.providers import InMemoryResourceProvider, StaticIntegrationOracle
from capability_policy.server.models import (
    AuthorizeRequest,
    AuthorizeResponse,
    CallerRequest,
    DiscoverResponse,
    ErrorResponse,
    HealthResponse,
    PolicyResponse,
)

_STATUS_BY_CODE: dict[str, int] = {
    "authentication_required": 401,
    "invalid_project_id": 422,
    "invalid_parameter": 422,
    "capability_not_enabled": 403,
    "precedence_blocked": 409,
    "resource_unavailable": 503,
    "configuration_unavailable": 503,
}


def _build_state() -> tuple[InMemoryPolicyConfigStore, StaticIntegrationOracle, PolicyDependencies]:
    store = InMemoryPolicyConfigStore()
    oracle = StaticIntegrationOracle()
    deps = PolicyDependencies(
        resources=InMemoryResourceProvider(),
        config_store=store,
        integration_oracle=oracle,
    )
    return store, oracle, deps


# Module-level shared state
_config_store, _oracle, _deps = _build_state()


def reset_state() -> None:
    """Reset all shared state — used in tests and for clean restarts."""
    global _config_store, _oracle, _deps
    _config_store, _oracle, _deps = _build_state()


def dependencies() -> PolicyDependencies:
    """Return the collaborators currently backing the routes."""
    return _deps


def _error(exc: CapabilityAccessError) -> tuple[int, dict[str, object]]:
    status = _STATUS_BY_CODE.get(exc.code, 500)
    return status, ErrorResponse(
        error=exc.message, code=exc.code, details=exc.details
    ).model_dump()


def _context_for(request: CallerRequest) -> RequestContext:
    return RequestContext(
        claims=Claims(
            subject=request.subject,
            project_id=request.project_id,
            roles=tuple(request.roles),
        )
    )


def _policy_response(
    tenant_id: uuid.UUID, stored: TenantPolicyConfiguration | None
) -> PolicyResponse:
    effective = stored if stored is not None else TenantPolicyConfiguration.defaults()
    installed = _oracle.is_integration_installed(RequestContext(), tenant_id)
    preview = describe_policy(stored, _deps.catalog, integration_installed=installed)
    return PolicyResponse(
        project_id=str(tenant_id),
        configured=stored is not None,
        developer=effective.developer.model_dump(),
        user=effective.user.model_dump(),
        agent_tools=effective.agent_tools.model_dump(),
        updated_at=effective.updated_at.isoformat() if effective.updated_at else None,
        user_capabilities=preview["user"],
        administrator_capabilities=preview["administrator"],
        agent_capabilities=preview["agent"],
    )


def handle_get_policy(project_id: str) -> tuple[int, dict[str, object]]:
    """Handle GET /projects/{id}/policy.

    Returns the stored toggles (or the defaults, with ``configured=False``)
    and the capabilities each classification would see.
    """
    try:
        tenant_id = parse_tenant_id(project_id)
    except CapabilityAccessError as exc:
        return _error(exc)

    try:
        stored = _config_store.get(RequestContext(), tenant_id)
    except PolicyStoreError as exc:
        return _error(ConfigurationUnavailable(str(tenant_id), str(exc)))

    return 200, _policy_response(tenant_id, stored).model_dump()


def handle_update_policy(project_id: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle PUT /projects/{id}/policy.

    Applies a partial update; the record is created on first update.
    """
    try:
        tenant_id = parse_tenant_id(project_id)
    except CapabilityAccessError as exc:
        return _error(exc)

    try:
        update = PolicyUpdate.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(error="Validation error", detail=str(exc)).model_dump()

    ctx = RequestContext()
    try:
        updated = apply_update(_config_store.get(ctx, tenant_id), update)
        _config_store.save(ctx, tenant_id, updated)
    except PolicyStoreError as exc:
        return _error(ConfigurationUnavailable(str(tenant_id), str(exc)))

    return 200, _policy_response(tenant_id, updated).model_dump()


def handle_set_integration(project_id: str, body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle PUT /projects/{id}/integration with body ``{"installed": bool}``."""
    try:
        tenant_id = parse_tenant_id(project_id)
    except CapabilityAccessError as exc:
        return _error(exc)

    installed = body.get("installed")
    if not isinstance(installed, bool):
        return 422, ErrorResponse(
            error="Validation error", detail="installed must be a boolean."
        ).model_dump()

    if installed:
        _oracle.install(tenant_id)
    else:
        _oracle.uninstall(tenant_id)
    return 200, {"project_id": str(tenant_id), "installed": installed}


def handle_discover(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /capabilities/discover."""
    try:
        request = CallerRequest.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(error="Validation error", detail=str(exc)).model_dump()

    ctx = _context_for(request)
    try:
        names = DiscoveryFilter(_deps).names(ctx)
    except CapabilityAccessError as exc:
        return _error(exc)

    return 200, DiscoverResponse(
        classification=classify(ctx.claims).value,
        capabilities=names,
    ).model_dump()


def handle_authorize(body: dict[str, object]) -> tuple[int, dict[str, object]]:
    """Handle POST /capabilities/authorize.

    Runs the full guard and releases the handle immediately; the response
    only reports the decision.
    """
    try:
        request = AuthorizeRequest.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(error="Validation error", detail=str(exc)).model_dump()

    try:
        with CapabilityGuard(_deps).access(_context_for(request), request.capability) as grant:
            response = AuthorizeResponse(
                capability=request.capability,
                project_id=str(grant.tenant_id),
                classification=grant.classification.value,
                origin=grant.origin.value,
            )
    except CapabilityAccessError as exc:
        return _error(exc)

    return 200, response.model_dump()


def handle_health() -> tuple[int, dict[str, object]]:
    """Handle GET /health."""
    response = HealthResponse(capability_count=len(CapabilityCatalog.default()))
    return 200, response.model_dump()


__all__ = [
    "dependencies",
    "handle_authorize",
    "handle_discover",
    "handle_get_policy",
    "handle_health",
    "handle_set_integration",
    "handle_update_policy",
    "reset_state",
]
