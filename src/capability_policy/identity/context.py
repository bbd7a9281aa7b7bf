"""RequestContext and the claims-source boundary."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Protocol

from capability_policy.identity.classification import Claims

TENANT_SCOPE_KEY = "tenant_scope"
ORIGIN_KEY = "origin"


@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request context.

    Derived contexts are created with :meth:`with_value`; the original is
    never modified, so a context can be handed to concurrent work safely.

    Parameters
    ----------
    claims:
        Verified claims, or ``None`` for an unauthenticated request.
    values:
        Request-scoped values (tenant scope handle, write origin, ...).
    """

    claims: Optional[Claims] = None
    values: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    def with_value(self, key: str, value: object) -> RequestContext:
        """Return a new context with *key* bound to *value*."""
        merged = dict(self.values)
        merged[key] = value
        return RequestContext(claims=self.claims, values=MappingProxyType(merged))

    def value(self, key: str, default: object = None) -> object:
        return self.values.get(key, default)


class ClaimsSource(Protocol):
    """Returns the verified claims for a request, or ``None``."""

    def claims_from(self, ctx: RequestContext) -> Optional[Claims]: ...


class ContextClaimsSource:
    """Claims source that reads the claims carried on the context itself."""

    def claims_from(self, ctx: RequestContext) -> Optional[Claims]:
        return ctx.claims
