"""Write arbitration for shared metadata records."""
from __future__ import annotations

from capability_policy.arbitration.precedence import (
    MetadataRecord,
    Origin,
    can_overwrite,
    require_overwrite,
)
from capability_policy.arbitration.store import (
    InMemoryMetadataStore,
    MetadataStore,
    MetadataWriter,
)

__all__ = [
    "InMemoryMetadataStore",
    "MetadataRecord",
    "MetadataStore",
    "MetadataWriter",
    "Origin",
    "can_overwrite",
    "require_overwrite",
]
