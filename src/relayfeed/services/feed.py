"""Feed client facade.

[FeedClient][relayfeed.services.feed.FeedClient] wires the feed core
together: it owns the
[RelayConfigStore][relayfeed.core.config_store.RelayConfigStore], the
[QueryCache][relayfeed.core.cache.QueryCache], the
[RelayGroup][relayfeed.services.multiplexer.RelayGroup] and the
[ContentResolver][relayfeed.services.resolver.ContentResolver], and exposes
the read paths a feed UI needs.

Every relay-dependent read is cached under
``(operation, params, config.version)``, so a relay-list change makes old
results unreachable at once; the store subscription then evicts them to
free memory. A total relay failure is turned into an empty result and a
warning, never an exception.

Examples:
    ```python
    async with FeedClient.from_yaml("config/feed.yaml") as client:
        await client.sync_relays(pubkey)
        notes = await client.fetch_feed("photos")
        resolved = [await client.resolve(n) for n in notes]
    ```
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Self, TypeVar

from relayfeed.core.cache import QueryCache, cache_key
from relayfeed.core.config_store import RelayConfigStore
from relayfeed.core.exceptions import ConnectivityError
from relayfeed.core.logger import Logger
from relayfeed.core.metrics import MetricsServer
from relayfeed.models.constants import EventKind, FeedCategory
from relayfeed.models.query import QueryDescriptor
from relayfeed.models.social import Profile
from relayfeed.utils.protocol import fetch_notes

from .aggregators import aggregate_reactions, fetch_replies
from .classifier import category_kinds, classify, filter_nsfw
from .configs import FeedConfig
from .layout import MasonryLayout
from .multiplexer import RelayGroup
from .profiles import fetch_profile
from .relay_sync import RelayListSync
from .resolver import ContentResolver


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from pathlib import Path
    from types import TracebackType

    from relayfeed.models.note import Note
    from relayfeed.models.relay import RelayConfig
    from relayfeed.models.resolution import ResolutionContext, ResolvedNote
    from relayfeed.models.social import ReactionSummary

    from .multiplexer import QueryFn


_T = TypeVar("_T")

USER_POSTS_LIMIT = 50


class FeedClient:
    """Entry point for feed reads over a versioned relay configuration.

    Args:
        config: Client configuration; defaults to ``FeedConfig()``.
        query_fn: Per-relay query primitive, replaceable in tests.
    """

    def __init__(
        self, config: FeedConfig | None = None, *, query_fn: QueryFn = fetch_notes
    ) -> None:
        self._config = config or FeedConfig()
        self._logger = Logger("feed")

        self._store = RelayConfigStore(self._config.relay_config())
        self._cache = QueryCache(
            stale_time=self._config.cache.stale_time,
            max_entries=self._config.cache.max_entries,
        )
        self._group = RelayGroup.from_config(self._config.multiplexer, self._store, query_fn)
        self._resolver = ContentResolver(self._group, cache=self._cache)
        self._relay_sync = RelayListSync(
            self._store, self._group, timeout=self._config.multiplexer.sync_timeout
        )
        self._metrics = MetricsServer(self._config.metrics)
        self._unsubscribe = self._store.subscribe(self._on_config_changed)

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Self:
        """Create a client from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the configuration is invalid.
        """
        return cls(FeedConfig.from_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create a client from a configuration dictionary.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        return cls(FeedConfig.from_dict(data), **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        """Start the metrics endpoint when enabled."""
        await self._metrics.start()
        self._logger.info("client_started", relays=len(self._store.read().endpoints))
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        """Stop the metrics endpoint."""
        await self._metrics.stop()
        self._logger.info("client_stopped")

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def store(self) -> RelayConfigStore:
        return self._store

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def group(self) -> RelayGroup:
        return self._group

    @property
    def resolver(self) -> ContentResolver:
        return self._resolver

    def create_layout(self, measure: Callable[[], Awaitable[Sequence[float]]]) -> MasonryLayout:
        """Build a [MasonryLayout][relayfeed.services.layout.MasonryLayout]
        with the configured layout parameters."""
        return MasonryLayout(measure, self._config.layout)

    def _on_config_changed(self, config: RelayConfig) -> None:
        evicted = self._cache.evict_versions_before(config.version)
        self._logger.info(
            "relay_config_changed",
            version=config.version,
            relays=len(config.endpoints),
            evicted=evicted,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def _cached(
        self,
        operation: str,
        params: Any,
        loader: Callable[[RelayConfig], Awaitable[_T]],
        empty: _T,
    ) -> _T:
        """Load through the cache under the current configuration version.

        Connectivity failures are not cached and yield *empty*.
        """
        config = self._store.read()
        key = cache_key(operation, params, config.version)
        try:
            return await self._cache.get_or_load(key, lambda: loader(config))
        except ConnectivityError as e:
            self._logger.warning("query_failed", operation=operation, error=str(e))
            return empty

    async def fetch_feed(
        self, category: FeedCategory | str = FeedCategory.ALL, limit: int | None = None
    ) -> list[Note]:
        """Fetch and classify one feed view.

        In safe mode notes flagged by the NSFW heuristic are dropped.
        """
        category = FeedCategory(category)
        if limit is None:
            limit = self._config.feed_limit
        descriptor = QueryDescriptor(kinds=category_kinds(category), limit=limit)

        async def load(config: RelayConfig) -> list[Note]:
            notes = await self._group.query([descriptor], config, operation="feed")
            return classify(notes, category)

        notes = await self._cached("feed", {"category": category.value, "q": descriptor}, load, [])
        if self._config.safe_mode:
            return filter_nsfw(notes)
        return list(notes)

    async def fetch_user_posts(self, pubkey: str, limit: int = USER_POSTS_LIMIT) -> list[Note]:
        """Top-level kind-1 notes by *pubkey* (replies excluded)."""
        descriptor = QueryDescriptor(
            kinds=frozenset({EventKind.TEXT_NOTE}), authors=frozenset({pubkey}), limit=limit
        )

        async def load(config: RelayConfig) -> list[Note]:
            notes = await self._group.query([descriptor], config, operation="user_posts")
            return [n for n in notes if n.pubkey == pubkey and not n.is_reply]

        return list(await self._cached("user_posts", descriptor, load, []))

    async def fetch_note(self, note_id: str) -> Note | None:
        """Single note by id, or ``None`` if not found."""
        return await self._resolver.fetch_note(note_id)

    async def resolve(self, note: Note, ctx: ResolutionContext | None = None) -> ResolvedNote:
        """Resolve embedded references in *note*."""
        return await self._resolver.resolve(note, ctx)

    async def reactions(self, parent_id: str) -> dict[str, ReactionSummary]:
        """Reactions to *parent_id* grouped by symbol; empty on failure."""
        limit = self._config.reaction_limit
        summary = await self._cached(
            "reactions",
            {"parent": parent_id, "limit": limit},
            lambda config: aggregate_reactions(self._group, parent_id, config, limit),
            {},
        )
        return dict(summary)

    async def replies(self, parent_id: str) -> list[Note]:
        """Replies to *parent_id*, newest first; empty on failure."""
        limit = self._config.reply_limit
        replies = await self._cached(
            "replies",
            {"parent": parent_id, "limit": limit},
            lambda config: fetch_replies(self._group, parent_id, config, limit),
            [],
        )
        return list(replies)

    async def profile(self, pubkey: str) -> Profile:
        """Author profile with bounded retry.

        After the last failed attempt a bare
        [Profile][relayfeed.models.social.Profile] is returned.
        """

        async def load(config: RelayConfig) -> Profile:
            return await self._with_retry(
                "profile", lambda: fetch_profile(self._group, pubkey, config)
            )

        return await self._cached("profile", {"pubkey": pubkey}, load, Profile(pubkey))

    async def _with_retry(self, operation: str, call: Callable[[], Awaitable[_T]]) -> _T:
        """Run *call*, retrying connectivity failures with backoff.

        The final attempt is not guarded, so its failure propagates.
        """
        retry = self._config.retry
        for attempt in range(retry.max_attempts - 1):
            try:
                return await call()
            except ConnectivityError as e:
                delay = retry.delay(attempt)
                self._logger.debug(
                    "retrying", operation=operation, attempt=attempt + 1, delay=delay, error=str(e)
                )
                await asyncio.sleep(delay)
        return await call()

    # -------------------------------------------------------------------------
    # Relay list
    # -------------------------------------------------------------------------

    async def sync_relays(self, pubkey: str) -> bool:
        """Log *pubkey* in and adopt their published relay list if newer."""
        return await self._relay_sync.on_user_changed(pubkey)

    async def logout(self) -> bool:
        """Return to the default relay."""
        return await self._relay_sync.on_user_changed(None)
