"""Relay group query multiplexer.

[RelayGroup][relayfeed.services.multiplexer.RelayGroup] selects the
readable relays of a [RelayConfig][relayfeed.models.relay.RelayConfig],
sends the same query to all of them concurrently, and merges the answers
into one deduplicated list of notes.

Every relay call runs in its own task under one ``asyncio.TaskGroup`` and
shares a single absolute deadline. A relay that fails or misses the
deadline is logged, counted, and left out of the merge; it never cancels
its siblings. Only when every relay fails does the query raise
[AllRelaysFailedError][relayfeed.core.exceptions.AllRelaysFailedError].

There is no retry at this layer.

See Also:
    [fetch_notes()][relayfeed.utils.protocol.fetch_notes]: Default
        per-relay query primitive.
    [RelayConfigStore][relayfeed.core.config_store.RelayConfigStore]:
        Source of the configuration snapshot when none is passed.

Examples:
    ```python
    group = RelayGroup(store=store)
    notes = await group.query([QueryDescriptor(kinds=frozenset({1}), limit=50)])
    ```
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from relayfeed.core.exceptions import AllRelaysFailedError
from relayfeed.core.logger import Logger
from relayfeed.core.metrics import QUERY_DURATION_SECONDS, RELAY_QUERIES
from relayfeed.models.constants import DEFAULT_RELAY_URL
from relayfeed.models.relay import RelayConfig, normalize_relay_url
from relayfeed.utils.protocol import fetch_notes


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from relayfeed.core.config_store import RelayConfigStore
    from relayfeed.models.note import Note
    from relayfeed.models.query import QueryDescriptor

    from .configs import MultiplexerConfig

    QueryFn = Callable[[str, Sequence[QueryDescriptor], float], Awaitable[list[Note]]]


DEFAULT_TIMEOUT = 1.5
MIN_TIMEOUT = 0.1
MAX_TIMEOUT = 30.0


def select_read_urls(config: RelayConfig, default_relay: str = DEFAULT_RELAY_URL) -> list[str]:
    """Return the URLs to query for *config*.

    Endpoints with ``read=True`` in configuration order (duplicates
    removed), or exactly ``[default_relay]`` when there are none.
    """
    urls = list(dict.fromkeys(config.read_urls()))
    return urls or [default_relay]


def merge_notes(results: Sequence[Sequence[Note]]) -> list[Note]:
    """Union of per-relay results deduplicated by id, first occurrence wins."""
    merged: dict[str, Note] = {}
    for notes in results:
        for note in notes:
            merged.setdefault(note.id, note)
    return list(merged.values())


def _validate_timeout(timeout: float) -> float:
    if not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        raise ValueError(f"timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT}, got {timeout}")
    return timeout


class RelayGroup:
    """Concurrent fan-out of queries to the readable relays of a configuration.

    Args:
        query_fn: Per-relay primitive ``(url, descriptors, timeout) -> notes``.
        store: Configuration store read when ``query()`` gets no explicit
            configuration.
        default_relay: Relay used when no endpoint is readable.
        timeout: Default aggregate timeout in seconds (0.1 to 30).
    """

    def __init__(
        self,
        query_fn: QueryFn = fetch_notes,
        *,
        store: RelayConfigStore | None = None,
        default_relay: str = DEFAULT_RELAY_URL,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    ) -> None:
        self._query_fn = query_fn
        self._store = store
        self._default_relay = normalize_relay_url(default_relay)
        self._timeout = _validate_timeout(timeout)
        self._logger = Logger("multiplexer")

    @classmethod
    def from_config(
        cls,
        config: MultiplexerConfig,
        store: RelayConfigStore | None = None,
        query_fn: QueryFn = fetch_notes,
    ) -> RelayGroup:
        return cls(
            query_fn,
            store=store,
            default_relay=config.default_relay,
            timeout=config.timeout,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def default_relay(self) -> str:
        return self._default_relay

    def current_config(self) -> RelayConfig:
        """The configuration a query would use right now."""
        if self._store is not None:
            return self._store.read()
        return RelayConfig()

    async def query(
        self,
        descriptors: Sequence[QueryDescriptor],
        config: RelayConfig | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
        *,
        operation: str = "query",
    ) -> list[Note]:
        """Send *descriptors* to every readable relay and merge the answers.

        Args:
            descriptors: Filters, each sent as its own request per relay.
            config: Snapshot to select relays from; defaults to the store's
                current snapshot.
            timeout: Aggregate deadline in seconds; defaults to the group's.
            operation: Label for the duration histogram.

        Returns:
            Notes deduplicated by id. Partial results when some relays fail.

        Raises:
            AllRelaysFailedError: If every selected relay failed or timed out.
        """
        if config is None:
            config = self.current_config()
        timeout = self._timeout if timeout is None else _validate_timeout(timeout)
        urls = select_read_urls(config, self._default_relay)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        start = time.monotonic()

        tasks: list[asyncio.Task[list[Note] | None]] = []
        async with asyncio.TaskGroup() as tg:
            tasks.extend(
                tg.create_task(self._query_relay(url, descriptors, deadline)) for url in urls
            )

        results = [r for r in (task.result() for task in tasks) if r is not None]
        QUERY_DURATION_SECONDS.labels(operation=operation).observe(time.monotonic() - start)

        if not results:
            self._logger.warning("all_relays_failed", operation=operation, relays=len(urls))
            raise AllRelaysFailedError(urls)

        merged = merge_notes(results)
        self._logger.debug(
            "query_completed",
            operation=operation,
            relays=len(urls),
            succeeded=len(results),
            notes=len(merged),
        )
        return merged

    async def _query_relay(
        self,
        url: str,
        descriptors: Sequence[QueryDescriptor],
        deadline: float,
    ) -> list[Note] | None:
        """Query one relay; ``None`` on failure so siblings keep running."""
        remaining = max(deadline - asyncio.get_running_loop().time(), 0.0)
        try:
            async with asyncio.timeout_at(deadline):
                notes = await self._query_fn(url, descriptors, remaining)
        except TimeoutError:
            RELAY_QUERIES.labels(relay=url, outcome="timeout").inc()
            self._logger.debug("relay_timeout", relay=url)
            return None
        # nostr-sdk Rust FFI can raise arbitrary exception types
        except Exception as e:
            RELAY_QUERIES.labels(relay=url, outcome="error").inc()
            self._logger.debug("relay_failed", relay=url, error=str(e), error_type=type(e).__name__)
            return None

        RELAY_QUERIES.labels(relay=url, outcome="ok").inc()
        return list(notes)
