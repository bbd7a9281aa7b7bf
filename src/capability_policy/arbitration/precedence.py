"""Write arbitration — who may overwrite an existing metadata value.

Every metadata value carries the :class:`Origin` of its last writer. A value
written by a human (``MANUAL``) can only be overwritten by another human;
values written by automation (``AUTOMATED``) can be overwritten by anyone.
A key with no value yet can always be written.

This check is independent of capability access: a caller that passed the
guard for a mutating capability must still pass :func:`can_overwrite`
before its change is committed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from capability_policy.errors import PrecedenceBlocked


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Origin(str, Enum):
    """Provenance of a metadata value.

    MANUAL     — written by a human or administrative actor.
    AUTOMATED  — written by a non-human modifier (agent, scheduled job).
    """

    MANUAL = "manual"
    AUTOMATED = "automated"


@dataclass(frozen=True)
class MetadataRecord:
    """A stored metadata value together with its provenance.

    Parameters
    ----------
    value:
        The annotation payload (description, label, ...).
    origin:
        Origin of the last writer.
    updated_at:
        UTC time of the last write.
    """

    value: object
    origin: Origin
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, object]:
        return {
            "value": self.value,
            "origin": self.origin.value,
            "updated_at": self.updated_at.isoformat(),
        }


def can_overwrite(existing: Optional[MetadataRecord], actor_origin: Origin) -> bool:
    """Return True if an actor of *actor_origin* may overwrite *existing*.

    Parameters
    ----------
    existing:
        The current record, or ``None`` when nothing is stored yet.
    actor_origin:
        Origin of the actor attempting the write.

    Returns
    -------
    bool
        - ``True`` when *existing* is ``None`` (first write).
        - ``True`` when *existing* is ``AUTOMATED``.
        - ``True`` when *existing* is ``MANUAL`` and the actor is ``MANUAL``.
        - ``False`` otherwise.
    """
    if existing is None:
        return True
    if existing.origin is Origin.MANUAL:
        return actor_origin is Origin.MANUAL
    return True


def require_overwrite(
    existing: Optional[MetadataRecord],
    actor_origin: Origin,
    key: str = "",
) -> None:
    """Raise :class:`PrecedenceBlocked` unless :func:`can_overwrite` allows the write."""
    if existing is not None and not can_overwrite(existing, actor_origin):
        raise PrecedenceBlocked(
            existing_origin=existing.origin.value,
            attempted_origin=actor_origin.value,
            key=key,
        )


__all__ = ["MetadataRecord", "Origin", "can_overwrite", "require_overwrite"]
