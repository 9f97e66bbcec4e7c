"""NIP-65 relay list synchronization.

[RelayListSync][relayfeed.services.relay_sync.RelayListSync] is the
external writer of the relay configuration: on login it fetches the
user's kind-10002 relay list and replaces the store's endpoints when the
list is newer than the stored one; on logout it resets the store to the
single default relay.

Each ``r`` tag is ``["r", <url>, <marker>?]``. No marker means the relay is
used for both reading and writing; ``read`` or ``write`` restricts it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relayfeed.core.exceptions import ConnectivityError
from relayfeed.core.logger import Logger
from relayfeed.models.constants import TAG_RELAY, EventKind
from relayfeed.models.query import QueryDescriptor
from relayfeed.models.relay import RelayEndpoint


if TYPE_CHECKING:
    from relayfeed.core.config_store import RelayConfigStore
    from relayfeed.models.note import Note

    from .multiplexer import RelayGroup


SYNC_TIMEOUT = 5.0

_MARKER_READ = "read"
_MARKER_WRITE = "write"


def parse_relay_list(note: Note) -> list[RelayEndpoint]:
    """Extract relay endpoints from the ``r`` tags of a kind-10002 note.

    Invalid URLs are skipped. A URL listed twice keeps its first entry.
    """
    endpoints: dict[str, RelayEndpoint] = {}
    for tag in note.tags:
        if tag[0] != TAG_RELAY or len(tag) < 2:
            continue
        marker = tag[2] if len(tag) > 2 and tag[2] else None
        try:
            endpoint = RelayEndpoint(
                tag[1],
                read=marker is None or marker == _MARKER_READ,
                write=marker is None or marker == _MARKER_WRITE,
            )
        except (TypeError, ValueError):
            continue
        endpoints.setdefault(endpoint.url, endpoint)
    return list(endpoints.values())


class RelayListSync:
    """Keeps a [RelayConfigStore][relayfeed.core.config_store.RelayConfigStore]
    in step with the logged-in user's published relay list.

    Args:
        store: The configuration store to write.
        group: Multiplexer used to fetch the relay list.
        timeout: Aggregate timeout for the relay-list query.
    """

    def __init__(
        self,
        store: RelayConfigStore,
        group: RelayGroup,
        timeout: float = SYNC_TIMEOUT,  # noqa: ASYNC109
    ) -> None:
        self._store = store
        self._group = group
        self._timeout = timeout
        self._current_user: str | None = None
        self._logger = Logger("relay_sync")

    @property
    def current_user(self) -> str | None:
        return self._current_user

    async def on_user_changed(self, pubkey: str | None) -> bool:
        """Track login state: reset on logout, sync on login.

        A logged-out session holding more than one relay is also reset.

        Returns:
            ``True`` if the store was changed.
        """
        previous, self._current_user = self._current_user, pubkey
        if pubkey is None:
            if previous is not None or len(self._store.read().endpoints) > 1:
                self._logger.info("relay_list_reset", reason="logged_out")
                before = self._store.read().version
                return self._store.reset().version != before
            return False
        return await self.sync(pubkey)

    async def sync(self, pubkey: str) -> bool:
        """Fetch the newest relay list of *pubkey* and apply it if newer.

        Failures are logged and leave the store untouched.

        Returns:
            ``True`` if the store was updated.
        """
        descriptor = QueryDescriptor(
            kinds=frozenset({EventKind.RELAY_LIST}), authors=frozenset({pubkey}), limit=1
        )
        try:
            notes = await self._group.query(
                [descriptor], timeout=self._timeout, operation="relay_list"
            )
        except ConnectivityError as e:
            self._logger.warning("relay_list_fetch_failed", pubkey=pubkey, error=str(e))
            return False

        candidates = [n for n in notes if n.kind == EventKind.RELAY_LIST and n.pubkey == pubkey]
        if not candidates:
            self._logger.info("relay_list_missing", pubkey=pubkey)
            return False

        newest = max(candidates, key=lambda n: n.created_at)
        current = self._store.read()
        if newest.created_at <= current.updated_at:
            self._logger.debug("relay_list_up_to_date", updated_at=current.updated_at)
            return False

        endpoints = parse_relay_list(newest)
        if not endpoints:
            self._logger.info("relay_list_empty", pubkey=pubkey, note_id=newest.id)
            return False

        updated = self._store.replace(endpoints, updated_at=newest.created_at)
        self._logger.info(
            "relay_list_synced", pubkey=pubkey, relays=len(endpoints), version=updated.version
        )
        return True
