"""Error taxonomy for capability access and write arbitration.

Every error carries a stable ``code`` and a ``details`` mapping so that a
caller can render it as a structured result instead of an opaque failure.

Errors are split into two families:

- *Actionable* errors (``Unauthorized``, ``InvalidTenant``,
  ``CapabilityNotEnabled``, ``PrecedenceBlocked``, ``InvalidParameter``) are
  expected, user-facing outcomes. The caller can correct its request.
- *Infrastructure* errors (``ResourceUnavailable``,
  ``ConfigurationUnavailable``) are transient faults propagated verbatim.
"""
from __future__ import annotations

from typing import Optional


class CapabilityAccessError(Exception):
    """Base class for all policy engine errors.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    details:
        Optional structured context (capability name, origins, ...).
    """

    code: str = "capability_access_error"
    actionable: bool = True

    def __init__(self, message: str, details: Optional[dict[str, object]] = None) -> None:
        self.message = message
        self.details: dict[str, object] = dict(details or {})
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Serialise to the structured error result shape."""
        result: dict[str, object] = {
            "error": True,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result


class Unauthorized(CapabilityAccessError):
    """Raised when the request carries no caller identity."""

    code = "authentication_required"

    def __init__(self, message: str = "authentication required") -> None:
        super().__init__(message)


class InvalidTenant(CapabilityAccessError):
    """Raised when the tenant identifier in the claims is malformed.

    Parameters
    ----------
    tenant_id:
        The raw identifier that failed to parse.
    """

    code = "invalid_project_id"

    def __init__(self, tenant_id: str, reason: str = "") -> None:
        self.tenant_id = tenant_id
        message = f"invalid project ID: {tenant_id!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, {"project_id": tenant_id})


class ResourceUnavailable(CapabilityAccessError):
    """Raised when the tenant-scoped resource handle cannot be acquired."""

    code = "resource_unavailable"
    actionable = False

    def __init__(self, tenant_id: str, cause: str = "") -> None:
        self.tenant_id = tenant_id
        super().__init__(
            f"failed to acquire tenant resources for project {tenant_id}: {cause}".rstrip(": "),
            {"project_id": tenant_id},
        )


class ConfigurationUnavailable(CapabilityAccessError):
    """Raised when the tenant policy configuration cannot be read."""

    code = "configuration_unavailable"
    actionable = False

    def __init__(self, tenant_id: str, cause: str = "") -> None:
        self.tenant_id = tenant_id
        super().__init__(
            f"failed to check capability configuration for project {tenant_id}: {cause}".rstrip(": "),
            {"project_id": tenant_id},
        )


class CapabilityNotEnabled(CapabilityAccessError):
    """Raised when policy denies the requested capability.

    Parameters
    ----------
    capability:
        Name of the capability that was requested.
    """

    code = "capability_not_enabled"

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(
            f"{capability} tool is not enabled for this project",
            {"capability": capability},
        )


class PrecedenceBlocked(CapabilityAccessError):
    """Raised when write arbitration refuses to overwrite existing metadata.

    Parameters
    ----------
    existing_origin:
        Origin of the value currently stored.
    attempted_origin:
        Origin of the actor attempting the write.
    """

    code = "precedence_blocked"

    def __init__(self, existing_origin: str, attempted_origin: str, key: str = "") -> None:
        self.existing_origin = existing_origin
        self.attempted_origin = attempted_origin
        self.key = key
        details: dict[str, object] = {
            "existing_origin": existing_origin,
            "attempted_origin": attempted_origin,
        }
        if key:
            details["key"] = key
        super().__init__(
            "cannot modify metadata: precedence blocked "
            f"(existing: {existing_origin}, modifier: {attempted_origin})",
            details,
        )


class InvalidParameter(CapabilityAccessError):
    """Raised when a capability argument is missing or has the wrong type.

    Parameters
    ----------
    name:
        The parameter name.
    expected_kind:
        The kind the capability requires (``"string"``, ``"integer"``, ...).
    actual_kind:
        The kind that was supplied (``"missing"`` when absent).
    """

    code = "invalid_parameter"

    def __init__(self, name: str, expected_kind: str, actual_kind: str) -> None:
        self.name = name
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind
        super().__init__(
            f"parameter {name!r} must be {expected_kind}, got {actual_kind}",
            {"parameter": name, "expected": expected_kind, "actual": actual_kind},
        )


__all__ = [
    "CapabilityAccessError",
    "CapabilityNotEnabled",
    "ConfigurationUnavailable",
    "InvalidParameter",
    "InvalidTenant",
    "PrecedenceBlocked",
    "ResourceUnavailable",
    "Unauthorized",
]
