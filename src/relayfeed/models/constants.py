"""Shared constants for the models layer.

Defines enumerations and limits that are used across multiple model and
service modules. Placing them here avoids circular dependencies between
the models and services layers.

See Also:
    [relayfeed.services.classifier][]: Maps
        [FeedCategory][relayfeed.models.constants.FeedCategory] values to
        [EventKind][relayfeed.models.constants.EventKind] sets.
    [relayfeed.services.resolver][]: Bounds recursive embedding with
        ``MAX_EMBED_DEPTH``.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class EventKind(IntEnum):
    """Well-known Nostr event kinds consumed by the feed.

    Attributes:
        METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note; replies carry ``e`` tags.
        REACTION: Kind 7 -- reaction to another note (NIP-25).
        RELAY_LIST: Kind 10002 -- NIP-65 relay list metadata.
        LONG_FORM: Kind 30023 -- long-form article (NIP-23).
        MUSIC_TRACK: Kind 31337 -- music track (Zapstr).
        VIDEO: Kind 34235 -- video event (NIP-71).

    See Also:
        [Note][relayfeed.models.note.Note]: The content item that carries
            these kinds.
        ``EVENT_KIND_MAX``: Maximum valid event kind value (65535).
    """

    METADATA = 0
    TEXT_NOTE = 1
    REACTION = 7
    RELAY_LIST = 10_002
    LONG_FORM = 30_023
    MUSIC_TRACK = 31_337
    VIDEO = 34_235


class FeedCategory(StrEnum):
    """Feed views selectable by the user.

    Each member maps to a fixed set of kinds in
    [CATEGORY_KINDS][relayfeed.services.classifier.CATEGORY_KINDS].
    ``PHOTOS`` shares kind 1 with ``TEXT`` and is narrowed further by
    content inspection.
    """

    ALL = "all"
    TEXT = "text"
    ARTICLES = "articles"
    PHOTOS = "photos"
    MUSIC = "music"
    VIDEOS = "videos"


class ReferenceType(StrEnum):
    """Kind of entity a decoded ``nostr:`` reference points at."""

    NOTE = "note"
    OTHER = "other"


EVENT_KIND_MAX = 65_535

# Recursive embedding stops expanding references at this depth
MAX_EMBED_DEPTH = 2

# Relay used when the configuration has no readable endpoint
DEFAULT_RELAY_URL = "wss://relay.primal.net"

# Reaction symbol substituted when a reaction has empty content
DEFAULT_REACTION = "❤️"

# Tag names with protocol meaning for the feed
TAG_EVENT = "e"
TAG_PUBKEY = "p"
TAG_HASHTAG = "t"
TAG_RELAY = "r"
TAG_IMETA = "imeta"
TAG_CONTENT_WARNING = "content-warning"
