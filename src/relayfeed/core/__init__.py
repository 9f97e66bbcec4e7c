"""Core layer providing the shared infrastructure for feed components.

Sits in the middle of the diamond DAG -- depends only on
``relayfeed.models`` and is depended upon by ``relayfeed.services``.

Attributes:
    RelayConfigStore: Single writer of the versioned relay configuration.
        See [RelayConfigStore][relayfeed.core.config_store.RelayConfigStore].
    QueryCache: In-memory result cache keyed by operation, parameters and
        configuration version. See [QueryCache][relayfeed.core.cache.QueryCache].
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][relayfeed.core.logger.Logger].
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint for metrics exposition.
        See [MetricsServer][relayfeed.core.metrics.MetricsServer].
    YAML: Safe YAML loading with ``yaml.safe_load()`` to prevent code execution.
        See [load_yaml()][relayfeed.core.yaml.load_yaml].

Examples:
    ```python
    from relayfeed.core import QueryCache, RelayConfigStore, cache_key

    store = RelayConfigStore()
    cache = QueryCache(stale_time=300)
    key = cache_key("note", {"id": note_id}, store.read().version)
    ```

See Also:
    [relayfeed.models][relayfeed.models]: Pure dataclass models consumed by this layer.
    [relayfeed.services][relayfeed.services]: Components that depend on this layer.
"""

from .cache import CacheKey, QueryCache, cache_key
from .config_store import RelayConfigStore
from .exceptions import (
    AllRelaysFailedError,
    ConfigurationError,
    ConnectivityError,
    DecodeError,
    ProtocolError,
    RelayFeedError,
    RelayTimeoutError,
)
from .logger import Logger, StructuredFormatter, configure_logging, format_kv_pairs
from .metrics import (
    CACHE_EVENTS,
    QUERY_DURATION_SECONDS,
    RELAY_QUERIES,
    MetricsConfig,
    MetricsServer,
)
from .yaml import load_yaml


__all__ = [
    "CACHE_EVENTS",
    "QUERY_DURATION_SECONDS",
    "RELAY_QUERIES",
    "AllRelaysFailedError",
    "CacheKey",
    "ConfigurationError",
    "ConnectivityError",
    "DecodeError",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "ProtocolError",
    "QueryCache",
    "RelayConfigStore",
    "RelayFeedError",
    "RelayTimeoutError",
    "StructuredFormatter",
    "cache_key",
    "configure_logging",
    "format_kv_pairs",
    "load_yaml",
]
