"""Loadout identifiers and the immutable capability descriptor."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LoadoutID(str, Enum):
    """Named groupings of capabilities toggled together by tenant configuration.

    DEFAULT               — always enabled, including for unauthenticated callers.
    DEVELOPER_CORE        — diagnostic and DDL/DML capabilities for developers.
    QUERY                 — ad-hoc querying and schema/ontology reads.
    ONTOLOGY_MAINTENANCE  — capabilities that mutate ontology metadata.
    ONTOLOGY_QUESTIONS    — answering pending ontology questions.
    DATA_LIAISON          — query suggestion workflow of the data liaison integration.
    AGENT_TOOLS           — the restricted set reachable by automated agents.
    """

    DEFAULT = "default"
    DEVELOPER_CORE = "developer_core"
    QUERY = "query"
    ONTOLOGY_MAINTENANCE = "ontology_maintenance"
    ONTOLOGY_QUESTIONS = "ontology_questions"
    DATA_LIAISON = "data_liaison"
    AGENT_TOOLS = "agent_tools"


@dataclass(frozen=True)
class CapabilitySpec:
    """A single named operation and the loadouts that enable it.

    Parameters
    ----------
    name:
        Unique, stable capability name (e.g. ``"query"``).
    loadouts:
        The loadouts this capability belongs to. A capability may belong to
        more than one loadout.
    description:
        Short human-readable summary shown in discovery listings.
    """

    name: str
    loadouts: frozenset[LoadoutID]
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("CapabilitySpec.name must not be empty.")
        if not self.loadouts:
            raise ValueError(
                f"CapabilitySpec {self.name!r} must belong to at least one loadout."
            )

    def in_loadout(self, loadout: LoadoutID) -> bool:
        """Return True if this capability belongs to *loadout*."""
        return loadout in self.loadouts

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dictionary with loadouts in enum order."""
        return {
            "name": self.name,
            "description": self.description,
            "loadouts": [lo.value for lo in LoadoutID if lo in self.loadouts],
        }
