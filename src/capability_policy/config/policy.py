"""TenantPolicyConfiguration — per-project declarative loadout toggles.

One toggle group per configurable loadout family. A project with no stored
record is *unconfigured* and resolves through :meth:`TenantPolicyConfiguration.defaults`;
that is a different state from an explicit record with every toggle off.

Records are created lazily by :func:`apply_update` the first time an
administrator customizes a project.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeveloperToggles(BaseModel):
    """Toggles applied to administrator callers.

    Parameters
    ----------
    enabled:
        Whether the developer group is on. When off, the developer core
        loadout and both ``add_*`` toggles have no effect.
    add_query_tools:
        Add the query loadout for administrators.
    add_ontology_maintenance:
        Add ontology maintenance and ontology questions for administrators,
        independent of the user toggle.
    """

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = True
    add_query_tools: bool = Field(default=True, alias="addQueryTools")
    add_ontology_maintenance: bool = Field(default=True, alias="addOntologyMaintenance")


class UserToggles(BaseModel):
    """Toggles applied to ordinary authenticated users (and inherited by administrators)."""

    model_config = ConfigDict(populate_by_name=True)

    allow_ontology_maintenance: bool = Field(default=True, alias="allowOntologyMaintenance")


class AgentToolsToggles(BaseModel):
    """Toggles applied to automated agents. Agents are opt-in."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False


class TenantPolicyConfiguration(BaseModel):
    """Stored policy record for one project.

    Parameters
    ----------
    developer:
        Administrator toggles.
    user:
        Ordinary user toggles.
    agent_tools:
        Automated agent toggles.
    updated_at:
        UTC time of the last explicit customization, or ``None`` for the
        in-memory defaults.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    developer: DeveloperToggles = Field(default_factory=DeveloperToggles)
    user: UserToggles = Field(default_factory=UserToggles)
    agent_tools: AgentToolsToggles = Field(default_factory=AgentToolsToggles, alias="agentTools")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def defaults(cls) -> TenantPolicyConfiguration:
        """Return the documented defaults used for unconfigured projects."""
        return cls()

    @classmethod
    def all_disabled(cls) -> TenantPolicyConfiguration:
        """Return an explicit record with every toggle switched off."""
        return cls(
            developer=DeveloperToggles(
                enabled=False, add_query_tools=False, add_ontology_maintenance=False
            ),
            user=UserToggles(allow_ontology_maintenance=False),
            agent_tools=AgentToolsToggles(enabled=False),
        )

    def to_json(self) -> str:
        """Serialise using the camelCase wire names."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> TenantPolicyConfiguration:
        return cls.model_validate_json(raw)


class PolicyUpdate(BaseModel):
    """Partial update of a policy record.

    ``None`` means "not sent" and leaves the stored value untouched, which is
    distinct from an explicit ``False``.
    """

    model_config = ConfigDict(populate_by_name=True)

    developer_enabled: Optional[bool] = Field(default=None, alias="developerEnabled")
    add_query_tools: Optional[bool] = Field(default=None, alias="addQueryTools")
    add_ontology_maintenance: Optional[bool] = Field(default=None, alias="addOntologyMaintenance")
    allow_ontology_maintenance: Optional[bool] = Field(
        default=None, alias="allowOntologyMaintenance"
    )
    agent_tools_enabled: Optional[bool] = Field(default=None, alias="agentToolsEnabled")

    def is_empty(self) -> bool:
        """Return True when no field was sent."""
        return not self.model_dump(exclude_none=True)


def _pick(sent: Optional[bool], current: bool) -> bool:
    return current if sent is None else sent


def apply_update(
    existing: Optional[TenantPolicyConfiguration],
    update: PolicyUpdate,
    now: Optional[datetime] = None,
) -> TenantPolicyConfiguration:
    """Apply *update* on top of *existing* (or the defaults when absent).

    Parameters
    ----------
    existing:
        The stored record, or ``None`` for an unconfigured project.
    update:
        Fields to change.
    now:
        Timestamp to record (defaults to UTC now).

    Returns
    -------
    TenantPolicyConfiguration
        A new record; *existing* is never modified.
    """
    base = existing if existing is not None else TenantPolicyConfiguration.defaults()
    return TenantPolicyConfiguration(
        developer=DeveloperToggles(
            enabled=_pick(update.developer_enabled, base.developer.enabled),
            add_query_tools=_pick(update.add_query_tools, base.developer.add_query_tools),
            add_ontology_maintenance=_pick(
                update.add_ontology_maintenance, base.developer.add_ontology_maintenance
            ),
        ),
        user=UserToggles(
            allow_ontology_maintenance=_pick(
                update.allow_ontology_maintenance, base.user.allow_ontology_maintenance
            ),
        ),
        agent_tools=AgentToolsToggles(
            enabled=_pick(update.agent_tools_enabled, base.agent_tools.enabled),
        ),
        updated_at=now or _utcnow(),
    )


__all__ = [
    "AgentToolsToggles",
    "DeveloperToggles",
    "PolicyUpdate",
    "TenantPolicyConfiguration",
    "UserToggles",
    "apply_update",
]
