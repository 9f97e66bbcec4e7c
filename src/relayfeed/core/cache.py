"""
Cache-key staleness tracking and the in-memory query cache.

Every cached relay query is keyed by ``(operation, parameters, version)``
where ``version`` is the
[RelayConfig.version][relayfeed.models.relay.RelayConfig] the query ran
under. Bumping the version on a relay-list change therefore makes every
dependent entry unreachable without any explicit eviction call; lookups
that do not depend on relay selection pass ``version=None``.

[QueryCache][relayfeed.core.cache.QueryCache] adds a stale time, a size
bound, and in-flight sharing: concurrent callers of the same key await a
single load.

Examples:
    ```python
    key = cache_key("note", {"id": note_id}, config.version)
    note = await cache.get_or_load(key, lambda: group.query([...]))
    ```
"""

from __future__ import annotations

import asyncio
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple, TypeVar

from .metrics import CACHE_EVENTS


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


_T = TypeVar("_T")


class CacheKey(NamedTuple):
    """Stable identity of a cached query.

    Attributes:
        operation: Logical operation name (e.g. ``"note"``, ``"reactions"``).
        params: Canonical JSON encoding of the parameters.
        version: Relay configuration version, or ``None`` when the query
            does not depend on relay selection.
    """

    operation: str
    params: str
    version: int | None


def _canonical(value: Any) -> Any:
    """``json.dumps`` fallback for sets and objects exposing ``cache_params()``."""
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    cache_params = getattr(value, "cache_params", None)
    if callable(cache_params):
        return cache_params()
    raise TypeError(f"Cannot use {type(value).__name__} in a cache key")


def cache_key(operation: str, params: Any, version: int | None = None) -> CacheKey:
    """Derive the cache key for ``operation(params)`` under a config version.

    Equal inputs always give equal keys: mappings are encoded with sorted
    keys and sets are sorted, so construction order never matters.

    Raises:
        TypeError: If *params* contains a value that cannot be encoded.
    """
    encoded = json.dumps(params, sort_keys=True, separators=(",", ":"), default=_canonical)
    return CacheKey(operation, encoded, version)


@dataclass(slots=True)
class _Entry:
    value: Any
    stored_at: float


@dataclass(slots=True)
class _Load:
    task: asyncio.Task[Any]
    waiters: int = 0


class QueryCache:
    """Bounded in-memory cache of query results with a stale time.

    Entries older than ``stale_time`` seconds are treated as missing. When
    more than ``max_entries`` are stored the least recently used entry is
    dropped. Exceptions raised by loaders are never cached.
    """

    def __init__(
        self,
        stale_time: float = 300.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = stale_time
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, _Entry] = OrderedDict()
        self._inflight: dict[CacheKey, _Load] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, CacheKey) and self._fresh_entry(key) is not None

    def _fresh_entry(self, key: CacheKey) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self._stale_time:
            del self._entries[key]
            return None
        return entry

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Return the fresh value for *key*, or *default*."""
        entry = self._fresh_entry(key)
        if entry is None:
            CACHE_EVENTS.labels(event="miss").inc()
            return default
        CACHE_EVENTS.labels(event="hit").inc()
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: CacheKey, value: Any) -> None:
        """Store *value* under *key*, evicting the oldest entry if full."""
        self._entries[key] = _Entry(value, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            CACHE_EVENTS.labels(event="evict").inc()

    async def get_or_load(self, key: CacheKey, loader: Callable[[], Awaitable[_T]]) -> _T:
        """Return the cached value for *key*, loading it on a miss.

        Concurrent callers for the same key share one load. Cancelling one
        caller leaves the load running for the others; when the last
        caller is cancelled the load is cancelled too and nothing is
        stored.
        """
        entry = self._fresh_entry(key)
        if entry is not None:
            CACHE_EVENTS.labels(event="hit").inc()
            self._entries.move_to_end(key)
            return entry.value  # type: ignore[no-any-return]

        load = self._inflight.get(key)
        if load is None:
            CACHE_EVENTS.labels(event="miss").inc()
            load = _Load(asyncio.ensure_future(loader()))
            self._inflight[key] = load
            load.task.add_done_callback(lambda _: self._on_loaded(key, load))

        load.waiters += 1
        try:
            return await asyncio.shield(load.task)  # type: ignore[no-any-return]
        finally:
            load.waiters -= 1
            if load.waiters == 0 and not load.task.done():
                self._abandon(key, load)

    def _abandon(self, key: CacheKey, load: _Load) -> None:
        if self._inflight.get(key) is load:
            del self._inflight[key]
        load.task.cancel()

    def _on_loaded(self, key: CacheKey, load: _Load) -> None:
        if self._inflight.get(key) is load:
            del self._inflight[key]
        task = load.task
        if not task.cancelled() and task.exception() is None:
            self.set(key, task.result())

    def evict_versions_before(self, version: int) -> int:
        """Drop entries bound to a configuration version older than *version*.

        Version-independent entries (``version=None``) are kept.

        Returns:
            Number of entries removed.
        """
        stale = [k for k in self._entries if k.version is not None and k.version < version]
        for key in stale:
            del self._entries[key]
        if stale:
            CACHE_EVENTS.labels(event="evict").inc(len(stale))
        return len(stale)

    def clear(self) -> None:
        """Drop every entry. In-flight loads still complete and are stored."""
        self._entries.clear()
