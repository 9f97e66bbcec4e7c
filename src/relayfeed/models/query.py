"""Query descriptors sent to relays.

A [QueryDescriptor][relayfeed.models.query.QueryDescriptor] is a pure
value mirroring a NIP-01 filter. It doubles as a cache-key component
through [cache_params()][relayfeed.models.query.QueryDescriptor.cache_params].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .constants import EVENT_KIND_MAX


@dataclass(frozen=True, slots=True)
class QueryDescriptor:
    """Immutable NIP-01 style filter.

    Attributes:
        kinds: Event kinds to match (empty = any kind).
        ids: Event ids to match (empty = any id).
        authors: Author pubkeys to match (empty = any author).
        referenced_ids: Values for the ``#e`` tag filter (empty = no tag
            filter).
        limit: Maximum number of events each relay should return.

    Examples:
        ```python
        QueryDescriptor(kinds=frozenset({7}), referenced_ids=frozenset({note_id}), limit=500)
        QueryDescriptor.by_id(note_id)
        ```
    """

    kinds: frozenset[int] = field(default_factory=frozenset)
    ids: frozenset[str] = field(default_factory=frozenset)
    authors: frozenset[str] = field(default_factory=frozenset)
    referenced_ids: frozenset[str] = field(default_factory=frozenset)
    limit: int = 100

    def __post_init__(self) -> None:
        for name in ("kinds", "ids", "authors", "referenced_ids"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))
        for kind in self.kinds:
            if isinstance(kind, bool) or not isinstance(kind, int):
                raise TypeError(f"kinds must contain ints, got {type(kind).__name__}")
            if not 0 <= kind <= EVENT_KIND_MAX:
                raise ValueError(f"kind must be between 0 and {EVENT_KIND_MAX}")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise TypeError(f"limit must be an int, got {type(self.limit).__name__}")
        if self.limit < 1:
            raise ValueError("limit must be positive")

    @classmethod
    def by_id(cls, note_id: str) -> QueryDescriptor:
        """Single-id lookup (limit 1)."""
        return cls(ids=frozenset({note_id}), limit=1)

    def cache_params(self) -> dict[str, Any]:
        """Canonical JSON-serializable form (sets sorted) for cache keys."""
        return {
            "kinds": sorted(self.kinds),
            "ids": sorted(self.ids),
            "authors": sorted(self.authors),
            "#e": sorted(self.referenced_ids),
            "limit": self.limit,
        }
