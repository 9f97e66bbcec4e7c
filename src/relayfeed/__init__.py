r"""relayfeed -- Nostr feed client core.

Assembles a social feed from notes fetched concurrently from many relays:
fan-out queries with partial-failure tolerance, versioned cache keys,
depth-bounded resolution of embedded note references, category and
content-safety filtering, and a two-phase masonry layout balancer.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services          Multiplexer, resolver, classifier, layout
             /   |    \
          core  media  utils    Cache, config store, logging, protocol
             \   |    /
              models            Pure frozen dataclasses (zero I/O)
```

Note:
    For lightweight usage, import directly from subpackages::

        from relayfeed.models import Note
        from relayfeed.services import classify

    Top-level imports (``from relayfeed import FeedClient``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("relayfeed")

__all__ = [
    "ContentResolver",
    "FeedCategory",
    "FeedClient",
    "FeedConfig",
    "Logger",
    "MasonryLayout",
    "Note",
    "QueryCache",
    "RelayConfig",
    "RelayConfigStore",
    "RelayEndpoint",
    "RelayGroup",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("relayfeed.core", "Logger"),
    "QueryCache": ("relayfeed.core", "QueryCache"),
    "RelayConfigStore": ("relayfeed.core", "RelayConfigStore"),
    "FeedCategory": ("relayfeed.models", "FeedCategory"),
    "Note": ("relayfeed.models", "Note"),
    "RelayConfig": ("relayfeed.models", "RelayConfig"),
    "RelayEndpoint": ("relayfeed.models", "RelayEndpoint"),
    "ContentResolver": ("relayfeed.services", "ContentResolver"),
    "FeedClient": ("relayfeed.services", "FeedClient"),
    "FeedConfig": ("relayfeed.services", "FeedConfig"),
    "MasonryLayout": ("relayfeed.services", "MasonryLayout"),
    "RelayGroup": ("relayfeed.services", "RelayGroup"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'relayfeed' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
