"""
Immutable Nostr note (content item) received from a relay.

A [Note][relayfeed.models.note.Note] is a plain frozen snapshot of a signed
Nostr event: once received it is never mutated, only re-fetched and
replaced. Identity is the event ``id``.

Notes are built either from a ``nostr_sdk.Event`` returned by the relay
client ([from_nostr_event()][relayfeed.models.note.Note.from_nostr_event])
or from a NIP-01 JSON object
([from_dict()][relayfeed.models.note.Note.from_dict]).

See Also:
    [relayfeed.utils.protocol][]: Converts fetched SDK events into notes.
    [relayfeed.services.classifier][]: Filters notes by kind and tags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._validation import (
    freeze_tags,
    validate_hex_id,
    validate_instance,
    validate_str_no_null,
    validate_timestamp,
)
from .constants import EVENT_KIND_MAX, TAG_EVENT


if TYPE_CHECKING:
    from collections.abc import Mapping

    from nostr_sdk import Event as NostrEvent


@dataclass(frozen=True, slots=True)
class Note:
    """Immutable Nostr note with tag helpers.

    Attributes:
        id: Event ID as 64-character lowercase hex.
        pubkey: Author public key as 64-character lowercase hex.
        kind: Integer event kind (e.g. 1 for text notes).
        created_at: Unix timestamp of event creation.
        content: Raw event body.
        tags: Ordered tag entries; the first element of each is the tag name.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ids are not hex, the kind is out of range, or any
            string contains null bytes.

    Examples:
        ```python
        note = Note(
            id="a" * 64,
            pubkey="b" * 64,
            kind=1,
            created_at=1700000000,
            content="gm",
            tags=(("t", "nostr"),),
        )
        note.tag_values("t")  # ['nostr']
        note.is_reply          # False
        ```
    """

    id: str
    pubkey: str
    kind: int
    created_at: int
    content: str
    tags: tuple[tuple[str, ...], ...] = field(default=())

    def __post_init__(self) -> None:
        """Validate field types and normalize ``tags`` to nested tuples."""
        validate_hex_id(self.id, "id")
        validate_hex_id(self.pubkey, "pubkey")
        validate_timestamp(self.created_at, "created_at")
        validate_instance(self.kind, int, "kind")
        if isinstance(self.kind, bool) or not 0 <= self.kind <= EVENT_KIND_MAX:
            raise ValueError(f"kind must be between 0 and {EVENT_KIND_MAX}")
        validate_str_no_null(self.content, "content")
        object.__setattr__(self, "tags", freeze_tags(self.tags, "tags"))

    def has_tag(self, name: str) -> bool:
        """Return ``True`` if any tag entry is named *name*."""
        return any(tag[0] == name for tag in self.tags)

    def tag_values(self, name: str) -> list[str]:
        """Return the first value of every tag named *name*, in order.

        Tags that carry only a name (no value) are skipped.
        """
        return [tag[1] for tag in self.tags if tag[0] == name and len(tag) > 1]

    @property
    def is_reply(self) -> bool:
        """Whether the note references another note through an ``e`` tag."""
        return self.has_tag(TAG_EVENT)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Note:
        """Build a note from a NIP-01 event JSON object.

        Args:
            data: Mapping with ``id``, ``pubkey``, ``kind``, ``created_at``,
                ``content`` and ``tags`` keys. Extra keys (e.g. ``sig``) are
                ignored.

        Raises:
            KeyError: If a required key is missing.
            TypeError: If a value has the wrong type.
            ValueError: If a value fails validation.
        """
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            kind=data["kind"],
            created_at=data["created_at"],
            content=data["content"],
            tags=data.get("tags", ()),
        )

    @classmethod
    def from_nostr_event(cls, event: NostrEvent) -> Note:
        """Build a note from a ``nostr_sdk.Event``.

        Note:
            Signature verification is the caller's responsibility; see
            [fetch_notes()][relayfeed.utils.protocol.fetch_notes].
        """
        return cls(
            id=event.id().to_hex(),
            pubkey=event.author().to_hex(),
            kind=event.kind().as_u16(),
            created_at=event.created_at().as_secs(),
            content=event.content(),
            tags=[list(tag.as_vec()) for tag in event.tags().to_vec()],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON representation (without signature)."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "kind": self.kind,
            "created_at": self.created_at,
            "content": self.content,
            "tags": [list(tag) for tag in self.tags],
        }
