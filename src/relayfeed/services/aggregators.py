"""Reaction and reply aggregation for a parent note.

Both aggregators query the relay group for notes that reference the
parent through an ``#e`` tag filter. Results are derived fresh per call
and never persisted.

See Also:
    [FeedClient.reactions()][relayfeed.services.feed.FeedClient.reactions]
    and [FeedClient.replies()][relayfeed.services.feed.FeedClient.replies]:
    Cached entry points that turn a total relay failure into an empty
    result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relayfeed.models.constants import DEFAULT_REACTION, EventKind
from relayfeed.models.query import QueryDescriptor
from relayfeed.models.social import ReactionSummary


if TYPE_CHECKING:
    from collections.abc import Iterable

    from relayfeed.models.note import Note
    from relayfeed.models.relay import RelayConfig

    from .multiplexer import RelayGroup


REACTION_LIMIT = 500
REPLY_LIMIT = 100


def group_reactions(reactions: Iterable[Note]) -> dict[str, ReactionSummary]:
    """Group reaction notes by their literal content.

    Empty content counts as ``DEFAULT_REACTION``. Reactor keys keep
    arrival order and are not deduplicated.
    """
    reactors: dict[str, list[str]] = {}
    for reaction in reactions:
        symbol = reaction.content or DEFAULT_REACTION
        reactors.setdefault(symbol, []).append(reaction.pubkey)
    return {symbol: ReactionSummary.from_keys(keys) for symbol, keys in reactors.items()}


def sort_newest_first(notes: Iterable[Note]) -> list[Note]:
    """Sort by ``created_at`` descending; ties keep their relative order."""
    return sorted(notes, key=lambda n: n.created_at, reverse=True)


async def aggregate_reactions(
    group: RelayGroup,
    parent_id: str,
    config: RelayConfig | None = None,
    limit: int = REACTION_LIMIT,
) -> dict[str, ReactionSummary]:
    """Fetch kind-7 reactions to *parent_id* and group them by symbol.

    Raises:
        AllRelaysFailedError: If no relay answered.
    """
    descriptor = QueryDescriptor(
        kinds=frozenset({EventKind.REACTION}),
        referenced_ids=frozenset({parent_id}),
        limit=limit,
    )
    notes = await group.query([descriptor], config, operation="reactions")
    return group_reactions(n for n in notes if n.kind == EventKind.REACTION)


async def fetch_replies(
    group: RelayGroup,
    parent_id: str,
    config: RelayConfig | None = None,
    limit: int = REPLY_LIMIT,
) -> list[Note]:
    """Fetch kind-1 notes referencing *parent_id*, newest first.

    Raises:
        AllRelaysFailedError: If no relay answered.
    """
    descriptor = QueryDescriptor(
        kinds=frozenset({EventKind.TEXT_NOTE}),
        referenced_ids=frozenset({parent_id}),
        limit=limit,
    )
    notes = await group.query([descriptor], config, operation="replies")
    return sort_newest_first(n for n in notes if n.kind == EventKind.TEXT_NOTE)
