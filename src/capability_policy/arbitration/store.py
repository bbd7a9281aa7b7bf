"""Metadata store boundary and the writer that arbitrates around it."""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

from capability_policy.arbitration.precedence import MetadataRecord, Origin, require_overwrite
from capability_policy.identity.context import RequestContext

logger = logging.getLogger(__name__)

# Called with the current record (or None); raises to veto the change.
RecordCheck = Callable[[Optional[MetadataRecord]], None]


class MetadataStore(ABC):
    """Abstract base class for metadata record backends.

    Keys are opaque strings such as ``"column:orders.status"``. Backends are
    expected to provide their own per-tenant isolation.

    :meth:`put_if` and :meth:`delete_if` must run the check and the change as
    one atomic step: no other write to the same key may land between them.
    """

    @abstractmethod
    def get_existing(self, ctx: RequestContext, key: str) -> Optional[MetadataRecord]:
        """Return the current record for *key*, or ``None``."""

    @abstractmethod
    def put(self, ctx: RequestContext, key: str, record: MetadataRecord) -> None:
        """Create or replace the record for *key*."""

    @abstractmethod
    def delete(self, ctx: RequestContext, key: str) -> bool:
        """Remove the record for *key*. Returns True when one existed."""

    @abstractmethod
    def put_if(
        self, ctx: RequestContext, key: str, record: MetadataRecord, check: RecordCheck
    ) -> None:
        """Store *record* unless *check* raises for the current record."""

    @abstractmethod
    def delete_if(self, ctx: RequestContext, key: str, check: RecordCheck) -> bool:
        """Remove *key* unless *check* raises. Returns True when one was removed."""


class InMemoryMetadataStore(MetadataStore):
    """Thread-safe dict-backed metadata store."""

    def __init__(self) -> None:
        self._records: dict[str, MetadataRecord] = {}
        self._lock = threading.Lock()

    def get_existing(self, ctx: RequestContext, key: str) -> Optional[MetadataRecord]:
        with self._lock:
            return self._records.get(key)

    def put(self, ctx: RequestContext, key: str, record: MetadataRecord) -> None:
        with self._lock:
            self._records[key] = record

    def delete(self, ctx: RequestContext, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def put_if(
        self, ctx: RequestContext, key: str, record: MetadataRecord, check: RecordCheck
    ) -> None:
        with self._lock:
            check(self._records.get(key))
            self._records[key] = record

    def delete_if(self, ctx: RequestContext, key: str, check: RecordCheck) -> bool:
        with self._lock:
            existing = self._records.get(key)
            if existing is None:
                return False
            check(existing)
            del self._records[key]
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._records)


class MetadataWriter:
    """Commits metadata changes only when write arbitration allows them.

    The precedence check runs inside the store's conditional write, so a
    manual value committed concurrently is never replaced by an automated one.

    Parameters
    ----------
    store:
        The metadata backend.
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    def write(
        self,
        ctx: RequestContext,
        key: str,
        value: object,
        actor_origin: Origin,
        now: Optional[datetime] = None,
    ) -> MetadataRecord:
        """Overwrite *key* with *value* on behalf of an actor of *actor_origin*.

        Returns
        -------
        MetadataRecord
            The record that was committed.

        Raises
        ------
        PrecedenceBlocked
            If the existing value is manual and the actor is automated.
        """
        record = MetadataRecord(
            value=value,
            origin=actor_origin,
            updated_at=now or datetime.now(timezone.utc),
        )
        self._store.put_if(
            ctx,
            key,
            record,
            lambda existing: require_overwrite(existing, actor_origin, key=key),
        )
        logger.debug("Wrote metadata %s (origin=%s)", key, actor_origin.value)
        return record

    def clear(self, ctx: RequestContext, key: str, actor_origin: Origin) -> bool:
        """Delete *key*, subject to the same arbitration as an overwrite.

        Returns
        -------
        bool
            True when a record existed and was removed.
        """
        return self._store.delete_if(
            ctx, key, lambda existing: require_overwrite(existing, actor_origin, key=key)
        )


__all__ = ["InMemoryMetadataStore", "MetadataStore", "MetadataWriter", "RecordCheck"]
