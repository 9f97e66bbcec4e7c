"""
Owned, versioned relay configuration with change subscriptions.

[RelayConfigStore][relayfeed.core.config_store.RelayConfigStore] is the
single writer of [RelayConfig][relayfeed.models.relay.RelayConfig]. Every
update is a read-modify-write that produces a new immutable snapshot with
exactly one version bump, then notifies subscribers. Readers (the
multiplexer, the cache-key derivation) only ever see whole snapshots.

Examples:
    ```python
    store = RelayConfigStore()
    unsubscribe = store.subscribe(lambda cfg: print(cfg.version))
    store.replace([RelayEndpoint("wss://nos.lol")], updated_at=1700000000)
    unsubscribe()
    ```
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from relayfeed.models.relay import RelayConfig, RelayEndpoint


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


logger = logging.getLogger(__name__)


class RelayConfigStore:
    """Holds the current relay configuration and notifies on change.

    The initial configuration defaults to the built-in single relay
    (``updated_at=0``).
    """

    def __init__(self, initial: RelayConfig | None = None) -> None:
        self._config = initial if initial is not None else RelayConfig.default()
        self._listeners: list[Callable[[RelayConfig], None]] = []

    def read(self) -> RelayConfig:
        """Return the current snapshot."""
        return self._config

    def subscribe(self, listener: Callable[[RelayConfig], None]) -> Callable[[], None]:
        """Register *listener* for future changes.

        Returns:
            A callable that removes the listener. Calling it twice is a no-op.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, mutator: Callable[[RelayConfig], RelayConfig]) -> RelayConfig:
        """Apply *mutator* to the current snapshot atomically.

        The mutator returns the desired snapshot; its ``version`` is
        ignored and replaced with ``current.version + 1``. If the endpoints
        and ``updated_at`` are unchanged nothing happens and no listener
        is called.

        Returns:
            The snapshot in effect after the call.
        """
        current = self._config
        proposed = mutator(current)
        if proposed.endpoints == current.endpoints and proposed.updated_at == current.updated_at:
            return current

        self._config = RelayConfig(
            endpoints=proposed.endpoints,
            version=current.version + 1,
            updated_at=proposed.updated_at,
        )
        logger.debug(
            "relay_config_updated version=%s relays=%s",
            self._config.version,
            len(self._config.endpoints),
        )
        for listener in list(self._listeners):
            listener(self._config)
        return self._config

    def replace(self, endpoints: Iterable[RelayEndpoint], updated_at: int) -> RelayConfig:
        """Replace the endpoint list with one taken from a relay-list note."""
        new_endpoints = tuple(endpoints)
        return self.update(
            lambda current: RelayConfig(endpoints=new_endpoints, updated_at=updated_at)
        )

    def reset(self) -> RelayConfig:
        """Return to the built-in default relay (e.g. on logout)."""
        return self.update(lambda current: RelayConfig.default())
