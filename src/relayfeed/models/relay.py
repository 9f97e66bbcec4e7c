"""
Relay endpoints and the versioned relay configuration.

A [RelayEndpoint][relayfeed.models.relay.RelayEndpoint] is a validated
WebSocket URL with NIP-65 read/write capability flags. A
[RelayConfig][relayfeed.models.relay.RelayConfig] is an immutable snapshot
of the endpoint list plus a ``version`` that strictly increases on every
semantic change; cached query results keyed by an older version are stale.

See Also:
    [RelayConfigStore][relayfeed.core.config_store.RelayConfigStore]: The
        single writer that produces new configuration snapshots.
    [cache_key()][relayfeed.core.cache.cache_key]: Binds cached results to
        ``RelayConfig.version``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from ._validation import validate_instance, validate_str_not_empty, validate_timestamp
from .constants import DEFAULT_RELAY_URL


def normalize_relay_url(raw: str) -> str:
    """Validate and normalize a relay WebSocket URL.

    Lower-cases scheme and host, collapses duplicate slashes in the path
    and strips a trailing slash.

    Raises:
        ValueError: If the scheme is not ``ws``/``wss``, the URI is
            invalid, or it carries a query string or fragment.
    """
    validate_str_not_empty(raw, "url")
    uri = uri_reference(raw.strip()).normalize()

    validator = (
        Validator()
        .require_presence_of("scheme", "host")
        .allow_schemes("ws", "wss")
        .check_validity_of("scheme", "host", "port", "path")
    )

    try:
        validator.validate(uri)
    except UnpermittedComponentError:
        raise ValueError("Invalid scheme: must be ws or wss") from None
    except ValidationError as e:
        raise ValueError(f"Invalid URL: {e}") from None

    if uri.query:
        raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
    if uri.fragment:
        raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

    path = uri.path or ""
    while "//" in path:
        path = path.replace("//", "/")
    path = path.rstrip("/")

    port = f":{uri.port}" if uri.port else ""
    return f"{uri.scheme}://{uri.host}{port}{path}"


@dataclass(frozen=True, slots=True)
class RelayEndpoint:
    """A relay URL with read/write capability flags.

    Attributes:
        url: Normalized WebSocket URL.
        read: Whether queries may be sent to this relay.
        write: Whether notes may be published to this relay.

    Examples:
        ```python
        RelayEndpoint("wss://Relay.Damus.io/")
        # RelayEndpoint(url='wss://relay.damus.io', read=True, write=True)
        ```
    """

    url: str
    read: bool = True
    write: bool = True

    def __post_init__(self) -> None:
        validate_instance(self.read, bool, "read")
        validate_instance(self.write, bool, "write")
        object.__setattr__(self, "url", normalize_relay_url(self.url))


@dataclass(frozen=True, slots=True)
class RelayConfig:
    """Immutable, versioned snapshot of the relay list.

    Attributes:
        endpoints: Ordered relay endpoints.
        version: Monotonic counter; advances on every semantic change.
        updated_at: ``created_at`` of the relay-list note the endpoints were
            taken from, or ``0`` for the built-in default.
    """

    endpoints: tuple[RelayEndpoint, ...] = field(default=())
    version: int = 0
    updated_at: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoints", tuple(self.endpoints))
        for endpoint in self.endpoints:
            validate_instance(endpoint, RelayEndpoint, "endpoints")
        validate_timestamp(self.version, "version")
        validate_timestamp(self.updated_at, "updated_at")

    def read_urls(self) -> list[str]:
        """URLs of endpoints with ``read=True``, in configuration order."""
        return [endpoint.url for endpoint in self.endpoints if endpoint.read]

    def write_urls(self) -> list[str]:
        """URLs of endpoints with ``write=True``, in configuration order."""
        return [endpoint.url for endpoint in self.endpoints if endpoint.write]

    @classmethod
    def default(cls, version: int = 0) -> RelayConfig:
        """Configuration holding only the built-in default relay."""
        return cls(endpoints=(RelayEndpoint(DEFAULT_RELAY_URL),), version=version)
