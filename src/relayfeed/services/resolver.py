"""Content reference resolver.

Splits a note body into [TextSegment][relayfeed.models.resolution.TextSegment],
[LinkSegment][relayfeed.models.resolution.LinkSegment],
[EmbeddedNoteSegment][relayfeed.models.resolution.EmbeddedNoteSegment] and
[NotFoundSegment][relayfeed.models.resolution.NotFoundSegment] values,
fetching embedded ``nostr:note1...`` / ``nostr:nevent1...`` references
through the [RelayGroup][relayfeed.services.multiplexer.RelayGroup] and
resolving them recursively.

Recursion is bounded by depth: at ``MAX_EMBED_DEPTH`` the body is returned
as a single raw text segment with no further scanning. A reference to a
note already on the current resolution path is also rendered raw, so a
self-reference costs at most one lookup.

Failures degrade per reference: an undecodable identifier stays literal
text, and a note that cannot be fetched becomes a not-found placeholder.

Examples:
    ```python
    resolver = ContentResolver(group, cache=cache)
    resolved = await resolver.resolve(note)
    for segment in resolved.segments:
        ...
    ```
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

from relayfeed.core.cache import cache_key
from relayfeed.core.exceptions import ConnectivityError, DecodeError
from relayfeed.core.logger import Logger
from relayfeed.media.images import extract_images
from relayfeed.models.constants import ReferenceType
from relayfeed.models.query import QueryDescriptor
from relayfeed.models.resolution import (
    EmbeddedNoteSegment,
    LinkSegment,
    NotFoundSegment,
    ResolutionContext,
    ResolvedNote,
    TextSegment,
)
from relayfeed.utils.protocol import decode_reference, note_reference


if TYPE_CHECKING:
    from collections.abc import Callable

    from relayfeed.core.cache import QueryCache
    from relayfeed.models.note import Note
    from relayfeed.models.relay import RelayConfig
    from relayfeed.models.resolution import DecodedReference, Segment

    from .multiplexer import RelayGroup


# Group 1: bare URL. Group 2: bech32 identifier after "nostr:".
TOKEN_PATTERN = re.compile(
    r"(https?://[^\s]+)"
    r"|nostr:((?:note1|nevent1|npub1|nprofile1|naddr1)[023456789acdefghjklmnpqrstuvwxyz]+)"
)


class ContentResolver:
    """Resolves note bodies into segments, expanding embedded notes.

    Args:
        group: Multiplexer used for single-id lookups.
        cache: Optional cache; lookups are keyed by
            ``("note", id, config.version)``.
        decoder: NIP-19 decoder, replaceable in tests.
    """

    def __init__(
        self,
        group: RelayGroup,
        *,
        cache: QueryCache | None = None,
        decoder: Callable[[str], DecodedReference] = decode_reference,
    ) -> None:
        self._group = group
        self._cache = cache
        self._decoder = decoder
        self._logger = Logger("resolver")

    async def resolve(self, note: Note, ctx: ResolutionContext | None = None) -> ResolvedNote:
        """Resolve *note* at the depth given by *ctx* (default: top level).

        The relay configuration is read once, so every lookup of one
        resolution uses the same snapshot.
        """
        if ctx is None:
            ctx = ResolutionContext(visited=frozenset({note.id}))
        return await self._resolve(note, ctx, self._group.current_config())

    async def fetch_note(self, note_id: str, config: RelayConfig | None = None) -> Note | None:
        """Single-id lookup (limit 1), cached per configuration version.

        Returns:
            The note, or ``None`` if no relay returned it or every relay
            failed.
        """
        if config is None:
            config = self._group.current_config()
        try:
            return await self._lookup(note_id, config)
        except ConnectivityError as e:
            self._logger.debug("lookup_failed", note_id=note_id, error=str(e))
            return None

    async def _lookup(self, note_id: str, config: RelayConfig) -> Note | None:
        async def load() -> Note | None:
            notes = await self._group.query(
                [QueryDescriptor.by_id(note_id)], config, operation="note"
            )
            return next((n for n in notes if n.id == note_id), None)

        if self._cache is None:
            return await load()
        key = cache_key("note", {"id": note_id}, config.version)
        return await self._cache.get_or_load(key, load)

    async def _resolve(
        self, note: Note, ctx: ResolutionContext, config: RelayConfig
    ) -> ResolvedNote:
        images = tuple(extract_images(note))
        if not ctx.can_expand:
            return _raw(note, ctx.depth, images)

        body = note.content
        tokens: list[tuple[re.Match[str], DecodedReference | None]] = []
        wanted: list[str] = []
        for match in TOKEN_PATTERN.finditer(body):
            decoded = None
            if match.group(2) is not None:
                decoded = self._decode(match.group(2))
                if decoded is not None and decoded.type == ReferenceType.NOTE:
                    wanted.append(decoded.data)
            tokens.append((match, decoded))

        expanded = await self._expand_all(list(dict.fromkeys(wanted)), ctx, config)

        segments: list[Segment] = []
        cursor = 0
        for match, decoded in tokens:
            start, end = match.span()
            if start > cursor:
                segments.append(TextSegment(body[cursor:start], cursor, start))
            cursor = end

            if match.group(1) is not None:
                segments.append(LinkSegment(match.group(1), start, end))
            elif decoded is None or decoded.type != ReferenceType.NOTE:
                segments.append(TextSegment(match.group(0), start, end))
            else:
                resolved = expanded.get(decoded.data)
                if resolved is None:
                    reference = _safe_note_reference(decoded.data)
                    segments.append(NotFoundSegment(decoded.data, reference, start, end))
                else:
                    segments.append(EmbeddedNoteSegment(match.group(2), resolved, start, end))

        if cursor < len(body):
            segments.append(TextSegment(body[cursor:], cursor, len(body)))

        return ResolvedNote(note, tuple(segments), images, ctx.depth)

    def _decode(self, value: str) -> DecodedReference | None:
        try:
            return self._decoder(value)
        except DecodeError as e:
            self._logger.debug("reference_decode_failed", reference=value, error=str(e))
            return None

    async def _expand_all(
        self, note_ids: list[str], ctx: ResolutionContext, config: RelayConfig
    ) -> dict[str, ResolvedNote]:
        """Fetch and resolve every distinct referenced id concurrently."""
        if not note_ids:
            return {}

        tasks: dict[str, asyncio.Task[ResolvedNote | None]] = {}
        async with asyncio.TaskGroup() as tg:
            for note_id in note_ids:
                tasks[note_id] = tg.create_task(self._expand(note_id, ctx, config))

        return {
            note_id: resolved
            for note_id, task in tasks.items()
            if (resolved := task.result()) is not None
        }

    async def _expand(
        self, note_id: str, ctx: ResolutionContext, config: RelayConfig
    ) -> ResolvedNote | None:
        embedded = await self.fetch_note(note_id, config)
        if embedded is None:
            return None
        child = ctx.descend(note_id)
        if note_id in ctx.visited:
            return _raw(embedded, child.depth, tuple(extract_images(embedded)))
        return await self._resolve(embedded, child, config)


def _raw(note: Note, depth: int, images: tuple[str, ...]) -> ResolvedNote:
    """Terminal rendering: the whole body as one text segment."""
    body = note.content
    segments = (TextSegment(body, 0, len(body)),) if body else ()
    return ResolvedNote(note, segments, images, depth)


def _safe_note_reference(note_id: str) -> str:
    try:
        return note_reference(note_id)
    except DecodeError:
        return note_id
