"""Types produced by content reference resolution.

Resolution turns a note body into an ordered sequence of segments. Each
segment records the ``[start, end)`` range of the parent body it was taken
from, so the ranges of one body's segments tile it exactly.

See Also:
    [ContentResolver][relayfeed.services.resolver.ContentResolver]: Produces
        these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .constants import MAX_EMBED_DEPTH, ReferenceType


if TYPE_CHECKING:
    from .note import Note


@dataclass(frozen=True, slots=True)
class DecodedReference:
    """Result of decoding a bech32 ``nostr:`` identifier.

    Attributes:
        type: ``NOTE`` when ``data`` is an event id, ``OTHER`` otherwise.
        data: Hex event id for notes; the hex pubkey or raw identifier for
            other entities.
    """

    type: ReferenceType
    data: str


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """Recursion state threaded through resolution.

    ``depth`` strictly increases along every recursion path. ``visited``
    holds the ids of the notes currently being expanded on this path.
    """

    depth: int = 0
    visited: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError("depth must be non-negative")

    @property
    def can_expand(self) -> bool:
        """Whether references found at this depth may still be fetched."""
        return self.depth < MAX_EMBED_DEPTH

    def descend(self, note_id: str) -> ResolutionContext:
        """Return the context for resolving a note embedded at this level."""
        return ResolutionContext(depth=self.depth + 1, visited=self.visited | {note_id})


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal text from the body."""

    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class LinkSegment:
    """A bare URL, rendered as a link without fetching."""

    url: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class EmbeddedNoteSegment:
    """A reference that was fetched and resolved one level deeper."""

    reference: str
    resolved: ResolvedNote
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class NotFoundSegment:
    """A note reference whose target could not be fetched.

    Attributes:
        note_id: Hex id that was looked up.
        reference: ``note1…`` identifier for manual navigation.
    """

    note_id: str
    reference: str
    start: int
    end: int


Segment = TextSegment | LinkSegment | EmbeddedNoteSegment | NotFoundSegment


@dataclass(frozen=True, slots=True)
class ResolvedNote:
    """A note with its body split into segments and its images extracted."""

    note: Note
    segments: tuple[Segment, ...]
    images: tuple[str, ...]
    depth: int

    def plain_text(self) -> str:
        """Reassemble the body from the segments' source ranges."""
        return "".join(self.note.content[s.start : s.end] for s in self.segments)
