"""Caller classification and the claims it is derived from.

Identity is verified upstream; this module only interprets verified claims.
A request's claims are mapped onto exactly one :class:`CallerClassification`,
which is the only identity input the resolver consults.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

AGENT_SUBJECT = "agent"

ROLE_ADMIN = "admin"
ROLE_DATA = "data"
ROLE_USER = "user"

# Higher value wins when a caller carries several roles.
_ROLE_PRIORITY: dict[str, int] = {
    ROLE_USER: 0,
    ROLE_DATA: 1,
    ROLE_ADMIN: 2,
}


class CallerClassification(str, Enum):
    """The four kinds of caller the policy engine distinguishes."""

    UNAUTHENTICATED = "unauthenticated"
    AGENT = "agent"
    USER = "user"
    ADMINISTRATOR = "administrator"

    @property
    def is_agent(self) -> bool:
        return self is CallerClassification.AGENT


@dataclass(frozen=True)
class Claims:
    """Verified claims attached to a request.

    Parameters
    ----------
    subject:
        The authenticated subject. API-key authenticated agents use the
        literal subject ``"agent"``.
    project_id:
        Raw tenant identifier; parsed and validated by the guard.
    roles:
        Role names granted to the subject (``"admin"``, ``"data"``, ``"user"``).
    """

    subject: str
    project_id: str
    roles: tuple[str, ...] = field(default_factory=tuple)


def effective_role(roles: tuple[str, ...]) -> str:
    """Return the highest-privilege known role, falling back to ``"user"``."""
    best = ROLE_USER
    best_priority = _ROLE_PRIORITY[ROLE_USER]
    for role in roles:
        priority = _ROLE_PRIORITY.get(role)
        if priority is not None and priority > best_priority:
            best, best_priority = role, priority
    return best


def classify(claims: Optional[Claims]) -> CallerClassification:
    """Map verified claims onto a caller classification.

    Absent claims classify as ``UNAUTHENTICATED``. An agent subject is always
    ``AGENT`` regardless of roles. ``admin`` and ``data`` roles classify as
    ``ADMINISTRATOR``; anything else is an ordinary ``USER``.
    """
    if claims is None:
        return CallerClassification.UNAUTHENTICATED
    if claims.subject == AGENT_SUBJECT:
        return CallerClassification.AGENT
    if effective_role(claims.roles) in (ROLE_ADMIN, ROLE_DATA):
        return CallerClassification.ADMINISTRATOR
    return CallerClassification.USER
