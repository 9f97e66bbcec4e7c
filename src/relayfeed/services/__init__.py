"""Feed components built on the relay query primitive.

Services are the top layer of the diamond DAG, depending on
[relayfeed.core][relayfeed.core], [relayfeed.media][relayfeed.media],
[relayfeed.utils][relayfeed.utils], and [relayfeed.models][relayfeed.models].

```text
RelayGroup -> {ContentResolver, classify, aggregators} -> MasonryLayout
```

Attributes:
    RelayGroup: Concurrent fan-out to readable relays with merge and
        partial-failure tolerance.
    ContentResolver: Depth-bounded expansion of embedded note references.
    classify: Category filtering with reply exclusion; ``is_likely_nsfw``
        is the advisory content-safety pass.
    MasonryLayout: Two-phase (estimate, then measure and correct) column
        balancer.
    aggregate_reactions / fetch_replies: Secondary content of a parent note.
    RelayListSync: NIP-65 relay list sync into the configuration store.
    FeedClient: Facade owning store, cache, multiplexer, and resolver.

See Also:
    [RelayConfigStore][relayfeed.core.config_store.RelayConfigStore]: The
        versioned configuration every component reads.

Examples:
    ```python
    from relayfeed.services import FeedClient

    async with FeedClient() as client:
        notes = await client.fetch_feed("videos")
    ```
"""

from .aggregators import aggregate_reactions, fetch_replies, group_reactions
from .classifier import CATEGORY_KINDS, category_kinds, classify, filter_nsfw, is_likely_nsfw
from .configs import (
    CacheConfig,
    FeedConfig,
    LayoutConfig,
    MultiplexerConfig,
    RelayEndpointConfig,
    RetryConfig,
)
from .feed import FeedClient
from .layout import (
    ColumnAssignment,
    LayoutPhase,
    MasonryLayout,
    clamp_columns,
    distribute,
    estimate_height,
    is_unbalanced,
    redistribute,
)
from .multiplexer import RelayGroup, merge_notes, select_read_urls
from .profiles import display_name, fetch_profile
from .relay_sync import RelayListSync, parse_relay_list
from .resolver import ContentResolver


__all__ = [
    "CATEGORY_KINDS",
    "CacheConfig",
    "ColumnAssignment",
    "ContentResolver",
    "FeedClient",
    "FeedConfig",
    "LayoutConfig",
    "LayoutPhase",
    "MasonryLayout",
    "MultiplexerConfig",
    "RelayEndpointConfig",
    "RelayGroup",
    "RelayListSync",
    "RetryConfig",
    "aggregate_reactions",
    "category_kinds",
    "clamp_columns",
    "classify",
    "display_name",
    "distribute",
    "estimate_height",
    "fetch_profile",
    "fetch_replies",
    "filter_nsfw",
    "group_reactions",
    "is_likely_nsfw",
    "is_unbalanced",
    "merge_notes",
    "parse_relay_list",
    "redistribute",
    "select_read_urls",
]
