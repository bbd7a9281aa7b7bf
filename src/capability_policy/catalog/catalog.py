"""CapabilityCatalog — the closed, ordered universe of capabilities.

The catalog is an immutable value. :meth:`CapabilityCatalog.default` builds
the built-in table; tests construct their own catalog by passing specs to the
constructor. Nothing in the package mutates a catalog after construction.

Catalog order is the canonical presentation order: discovery listings and
merged loadouts are always returned in this order.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from functools import lru_cache
from typing import Optional

from capability_policy.catalog.loadout import CapabilitySpec, LoadoutID

_D = LoadoutID.DEFAULT
_DEV = LoadoutID.DEVELOPER_CORE
_Q = LoadoutID.QUERY
_OM = LoadoutID.ONTOLOGY_MAINTENANCE
_OQ = LoadoutID.ONTOLOGY_QUESTIONS
_DL = LoadoutID.DATA_LIAISON
_AT = LoadoutID.AGENT_TOOLS

# (name, loadouts, description) in canonical order.
_BUILTIN_TABLE: tuple[tuple[str, tuple[LoadoutID, ...], str], ...] = (
    # Default
    ("health", (_D,), "Server health check"),
    # Developer core
    ("echo", (_DEV,), "Echo back input message for testing"),
    ("execute", (_DEV,), "Execute DDL/DML statements"),
    # Query
    ("validate", (_Q,), "Check SQL syntax without executing"),
    ("query", (_Q,), "Execute read-only SQL SELECT statements"),
    ("explain_query", (_Q,), "Analyze SQL query performance with EXPLAIN ANALYZE"),
    ("list_approved_queries", (_Q, _AT), "List pre-approved SQL queries"),
    ("execute_approved_query", (_Q, _AT), "Execute a pre-approved query by ID"),
    ("search_schema", (_Q,), "Full-text search across tables, columns, and entities"),
    ("get_schema", (_Q,), "Get database schema with entity semantics"),
    ("get_context", (_Q,), "Get unified database context with progressive depth"),
    ("get_entity", (_Q,), "Retrieve full entity details including aliases and relationships"),
    ("get_glossary_sql", (_Q,), "Get SQL definition for a business term"),
    ("get_ontology", (_Q,), "Get business ontology for query generation"),
    ("get_query_history", (_Q,), "Get recent query execution history"),
    ("list_glossary", (_Q,), "List all business glossary terms"),
    ("list_project_knowledge", (_Q,), "List domain facts recorded for the project"),
    ("get_column_metadata", (_Q,), "Get semantic metadata recorded for a column"),
    ("probe_column", (_Q,), "Deep-dive into a column with statistics and joinability"),
    ("probe_columns", (_Q,), "Batch variant of probe_column"),
    ("probe_relationship", (_Q,), "Deep-dive into relationships between entities"),
    ("sample", (_Q,), "Quick data preview from a table"),
    # Data liaison
    ("suggest_query_update", (_DL,), "Suggest a change to an existing approved query"),
    ("list_query_suggestions", (_DL,), "List pending query suggestions"),
    ("get_query_suggestion", (_DL,), "Get a single pending query suggestion"),
    ("approve_query_suggestion", (_DL,), "Approve a pending query suggestion"),
    ("reject_query_suggestion", (_DL,), "Reject a pending query suggestion"),
    ("create_approved_query", (_DL,), "Create a new approved query"),
    ("update_approved_query", (_DL,), "Update an existing approved query"),
    ("delete_approved_query", (_DL,), "Delete an approved query"),
    # Ontology questions
    ("list_ontology_questions", (_OQ,), "List ontology questions with filtering and pagination"),
    ("dismiss_ontology_question", (_OQ,), "Mark a question as not worth pursuing"),
    ("escalate_ontology_question", (_OQ,), "Mark a question as requiring human domain knowledge"),
    ("resolve_ontology_question", (_OQ,), "Mark an ontology question as resolved"),
    ("skip_ontology_question", (_OQ,), "Mark a question as skipped for revisiting later"),
    # Ontology maintenance
    ("create_glossary_term", (_OM,), "Create a new business glossary term with SQL definition"),
    ("create_entity", (_OM,), "Create a new entity in the ontology"),
    ("update_table", (_OM,), "Add or update semantic information about a table"),
    ("update_column", (_OM,), "Add or update semantic information about a column"),
    ("update_entity", (_OM,), "Create or update entity metadata"),
    ("update_glossary_term", (_OM,), "Create or update a business glossary term"),
    ("update_project_knowledge", (_OM,), "Create or update domain facts"),
    ("update_relationship", (_OM,), "Create or update a relationship between entities"),
    ("add_entity_alias", (_OM,), "Add an alias to an entity"),
    ("remove_entity_alias", (_OM,), "Remove an alias from an entity"),
    ("delete_table_metadata", (_OM,), "Clear custom metadata for a table"),
    ("delete_column_metadata", (_OM,), "Clear custom metadata for a column"),
    ("delete_entity", (_OM,), "Remove an incorrectly identified entity"),
    ("delete_glossary_term", (_OM,), "Delete a business glossary term"),
    ("delete_project_knowledge", (_OM,), "Remove incorrect or outdated domain facts"),
    ("delete_relationship", (_OM,), "Remove an incorrectly identified relationship"),
    ("refresh_schema", (_OM,), "Refresh schema from the datasource and detect changes"),
    ("scan_data_changes", (_OM,), "Scan for data-level changes in selected tables"),
    ("list_pending_changes", (_OM,), "List pending ontology changes awaiting review"),
    ("approve_change", (_OM,), "Approve a pending ontology change and apply it"),
    ("reject_change", (_OM,), "Reject a pending ontology change"),
    ("approve_all_changes", (_OM,), "Approve all pending ontology changes that can be applied"),
)


class CapabilityCatalog:
    """Immutable, ordered collection of :class:`CapabilitySpec`.

    Parameters
    ----------
    specs:
        Capabilities in canonical order.

    Raises
    ------
    ValueError
        If two capabilities share a name, or the ``default`` loadout does not
        contain exactly one capability.
    """

    def __init__(self, specs: Iterable[CapabilitySpec]) -> None:
        ordered = tuple(specs)
        index: dict[str, int] = {}
        for position, spec in enumerate(ordered):
            if spec.name in index:
                raise ValueError(f"Duplicate capability name {spec.name!r} in catalog.")
            index[spec.name] = position

        defaults = [spec.name for spec in ordered if LoadoutID.DEFAULT in spec.loadouts]
        if len(defaults) != 1:
            raise ValueError(
                "The default loadout must contain exactly one capability, "
                f"found {len(defaults)}: {defaults}"
            )

        self._specs = ordered
        self._index = index

    @classmethod
    def default(cls) -> CapabilityCatalog:
        """Return the built-in catalog (a shared immutable value)."""
        return _builtin_catalog()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def all_capabilities(self) -> list[CapabilitySpec]:
        """Return every capability in canonical order."""
        return list(self._specs)

    def get(self, name: str) -> Optional[CapabilitySpec]:
        """Return the spec for *name*, or ``None`` when it is not in the catalog."""
        position = self._index.get(name)
        if position is None:
            return None
        return self._specs[position]

    def order_of(self, name: str) -> int:
        """Return the canonical position of *name*, or ``-1`` if unknown."""
        return self._index.get(name, -1)

    def capabilities_in(self, loadout: LoadoutID) -> list[CapabilitySpec]:
        """Return the capabilities belonging to *loadout*, in canonical order."""
        return [spec for spec in self._specs if loadout in spec.loadouts]

    def merge_loadouts(self, *loadouts: LoadoutID) -> list[CapabilitySpec]:
        """Return the deduplicated union of *loadouts*, in canonical order."""
        wanted = frozenset(loadouts)
        return [spec for spec in self._specs if spec.loadouts & wanted]

    @property
    def default_capability(self) -> CapabilitySpec:
        """The single always-available capability."""
        return self.capabilities_in(LoadoutID.DEFAULT)[0]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[CapabilitySpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __repr__(self) -> str:
        return f"CapabilityCatalog({len(self._specs)} capabilities)"


@lru_cache(maxsize=1)
def _builtin_catalog() -> CapabilityCatalog:
    return CapabilityCatalog(
        CapabilitySpec(name=name, loadouts=frozenset(loadouts), description=description)
        for name, loadouts, description in _BUILTIN_TABLE
    )


__all__ = ["CapabilityCatalog"]
