"""Pure frozen dataclasses with zero I/O for notes, relays, and queries.

The models layer is the foundation of the diamond DAG. It has no
dependencies on any other relayfeed package. All validation happens in
``__post_init__`` so invalid instances never escape the constructor.

Attributes:
    Note: Immutable Nostr note (content item) with tag helpers.
    RelayEndpoint: Validated relay URL with read/write flags.
    RelayConfig: Versioned snapshot of the relay list.
    QueryDescriptor: NIP-01 style filter used as a cache-key component.
    ResolutionContext: Depth/visited state for recursive resolution.
    ResolvedNote: A note split into text, link, and embed segments.
    ReactionSummary: Count and reactor keys for one reaction symbol.
    Profile: Author profile with tolerant metadata parsing.

See Also:
    [relayfeed.services][]: Components that consume these models.
"""

from .constants import (
    DEFAULT_REACTION,
    DEFAULT_RELAY_URL,
    EVENT_KIND_MAX,
    MAX_EMBED_DEPTH,
    EventKind,
    FeedCategory,
    ReferenceType,
)
from .note import Note
from .query import QueryDescriptor
from .relay import RelayConfig, RelayEndpoint, normalize_relay_url
from .resolution import (
    DecodedReference,
    EmbeddedNoteSegment,
    LinkSegment,
    NotFoundSegment,
    ResolutionContext,
    ResolvedNote,
    Segment,
    TextSegment,
)
from .social import Profile, ProfileMetadata, ReactionSummary


__all__ = [
    "DEFAULT_REACTION",
    "DEFAULT_RELAY_URL",
    "EVENT_KIND_MAX",
    "MAX_EMBED_DEPTH",
    "DecodedReference",
    "EmbeddedNoteSegment",
    "EventKind",
    "FeedCategory",
    "LinkSegment",
    "NotFoundSegment",
    "Note",
    "Profile",
    "ProfileMetadata",
    "QueryDescriptor",
    "ReactionSummary",
    "ReferenceType",
    "RelayConfig",
    "RelayEndpoint",
    "ResolutionContext",
    "ResolvedNote",
    "Segment",
    "TextSegment",
    "normalize_relay_url",
]
