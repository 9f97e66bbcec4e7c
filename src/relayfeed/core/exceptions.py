"""relayfeed exception hierarchy.

Provides typed exceptions for the error categories of the feed core, so
callers can contain failures at the smallest unit that can degrade (one
relay, one reference, one note) while letting ``CancelledError`` propagate
untouched.

Exception hierarchy:

```text
RelayFeedError (base -- never raised directly)
├── ConfigurationError        -- config validation, missing keys, bad YAML
├── ConnectivityError         -- relay unreachable, network failures
│   ├── RelayTimeoutError     -- a single relay did not answer in time
│   └── AllRelaysFailedError  -- every relay of a fan-out failed
└── ProtocolError             -- NIP parsing/validation failures
    └── DecodeError           -- malformed bech32 reference
```

See Also:
    [RelayGroup][relayfeed.services.multiplexer.RelayGroup]: Raises
        [AllRelaysFailedError][relayfeed.core.exceptions.AllRelaysFailedError]
        on total fan-out failure.
    [decode_reference()][relayfeed.utils.protocol.decode_reference]: Raises
        [DecodeError][relayfeed.core.exceptions.DecodeError].
"""

from __future__ import annotations


class RelayFeedError(Exception):
    """Base exception for all relayfeed errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(RelayFeedError):
    """Invalid or missing configuration (YAML file, dict, relay list).

    See Also:
        [FeedConfig.from_yaml()][relayfeed.services.configs.FeedConfig.from_yaml]:
            Wraps pydantic validation failures in this exception.
    """


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(RelayFeedError):
    """Base for all relay/network connectivity errors."""


class RelayTimeoutError(ConnectivityError):
    """A single relay did not answer before the shared deadline."""


class AllRelaysFailedError(ConnectivityError):
    """Every relay selected for a query failed or timed out.

    Callers treat this as "no data" and render an empty state.

    Attributes:
        urls: Relay URLs that were queried.
    """

    def __init__(self, urls: list[str]) -> None:
        self.urls = urls
        super().__init__(f"All {len(urls)} relay(s) failed: {', '.join(urls)}")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(RelayFeedError):
    """NIP parsing, validation, or compliance failure."""


class DecodeError(ProtocolError):
    """A bech32 ``nostr:`` identifier could not be decoded.

    Contained at the single-reference level: the resolver renders the
    literal text instead.
    """
