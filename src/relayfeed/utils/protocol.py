"""Nostr protocol client operations for relayfeed.

Provides the client factory, NIP-01 filter construction from
[QueryDescriptor][relayfeed.models.query.QueryDescriptor], single-relay
note fetching, and NIP-19 bech32 reference decoding. Everything that
touches the ``nostr_sdk`` FFI lives here so the services layer can be
tested with plain async fakes.

Attributes:
    create_client: Read-only client factory.
    create_filter: Convert a query descriptor into a ``nostr_sdk.Filter``.
    fetch_notes: Fetch notes matching descriptors from one relay.
    decode_reference: Decode a ``note1``/``nevent1``/``npub1``/... string.
    note_reference: Encode a hex event id as ``note1``.
    short_npub: Abbreviated ``npub1`` form of a public key for display.

See Also:
    [RelayGroup][relayfeed.services.multiplexer.RelayGroup]: Uses
        [fetch_notes()][relayfeed.utils.protocol.fetch_notes] as its
        default per-relay query function.
    [ContentResolver][relayfeed.services.resolver.ContentResolver]: Uses
        [decode_reference()][relayfeed.utils.protocol.decode_reference] for
        ``nostr:`` references in note bodies.

Examples:
    ```python
    from relayfeed.models import QueryDescriptor
    from relayfeed.utils.protocol import fetch_notes

    notes = await fetch_notes(
        "wss://relay.primal.net",
        [QueryDescriptor(kinds=frozenset({1}), limit=20)],
        timeout=1.5,
    )
    ```
"""

from __future__ import annotations

import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from nostr_sdk import (
    Alphabet,
    Client,
    ClientBuilder,
    EventId,
    Filter,
    Kind,
    Nip19Event,
    PublicKey,
    RelayUrl,
    SingleLetterTag,
)

from relayfeed.core.exceptions import DecodeError
from relayfeed.models.constants import ReferenceType
from relayfeed.models.note import Note
from relayfeed.models.resolution import DecodedReference


if TYPE_CHECKING:
    from collections.abc import Iterable

    from relayfeed.models.query import QueryDescriptor


logger = logging.getLogger(__name__)

# bech32 human-readable prefixes that point at something other than a note
_NON_NOTE_PREFIXES: tuple[str, ...] = ("npub1", "nprofile1", "naddr1")


def create_client() -> Client:
    """Create a read-only Nostr client (call ``add_relay()`` before use)."""
    return ClientBuilder().build()


def create_filter(descriptor: QueryDescriptor) -> Filter:
    """Build a nostr-sdk ``Filter`` from a query descriptor.

    Raises:
        nostr_sdk.NostrSdkError: If an id or author is not valid hex.
    """
    f = Filter().limit(descriptor.limit)

    if descriptor.kinds:
        f = f.kinds([Kind(k) for k in sorted(descriptor.kinds)])
    if descriptor.ids:
        f = f.ids([EventId.parse(i) for i in sorted(descriptor.ids)])
    if descriptor.authors:
        f = f.authors([PublicKey.parse(a) for a in sorted(descriptor.authors)])
    if descriptor.referenced_ids:
        tag = SingleLetterTag.lowercase(Alphabet.E)
        for value in sorted(descriptor.referenced_ids):
            f = f.custom_tag(tag, value)

    return f


async def fetch_notes(
    url: str,
    descriptors: Iterable[QueryDescriptor],
    timeout: float,  # noqa: ASYNC109
) -> list[Note]:
    """Fetch every note matching any of *descriptors* from a single relay.

    Events failing signature verification or model validation are
    skipped and logged at DEBUG level.

    Args:
        url: Relay WebSocket URL.
        descriptors: Filters sent as separate requests on one connection.
        timeout: Per-request timeout in seconds.

    Returns:
        Notes in the order the relay returned them (possibly with
        duplicates across descriptors).

    Raises:
        OSError: On connection failures.
        TimeoutError: If the relay does not answer in time.
    """
    client = create_client()
    await client.add_relay(RelayUrl.parse(url))

    notes: list[Note] = []
    try:
        await client.connect()
        for descriptor in descriptors:
            events = await client.fetch_events(
                create_filter(descriptor), timedelta(seconds=timeout)
            )
            for evt in events.to_vec():
                if not evt.verify():
                    logger.debug("invalid_signature relay=%s id=%s", url, evt.id().to_hex())
                    continue
                try:
                    notes.append(Note.from_nostr_event(evt))
                except (TypeError, ValueError) as e:
                    logger.debug("invalid_note relay=%s error=%s", url, e)
        await client.disconnect()
    finally:
        # nostr-sdk Rust FFI can raise arbitrary exception types during cleanup
        with contextlib.suppress(Exception):
            await client.shutdown()

    return notes


def decode_reference(value: str) -> DecodedReference:
    """Decode a NIP-19 bech32 identifier (without the ``nostr:`` prefix).

    ``note1`` and ``nevent1`` resolve to the referenced event id as hex.
    ``npub1``, ``nprofile1`` and ``naddr1`` are recognized but reported as
    [ReferenceType.OTHER][relayfeed.models.constants.ReferenceType].

    Raises:
        DecodeError: If the string has an unknown prefix or invalid bech32
            data.
    """
    value = value.strip()
    try:
        if value.startswith("note1"):
            return DecodedReference(ReferenceType.NOTE, EventId.parse(value).to_hex())
        if value.startswith("nevent1"):
            event_id = Nip19Event.from_bech32(value).event_id()
            return DecodedReference(ReferenceType.NOTE, event_id.to_hex())
    # nostr-sdk Rust FFI can raise arbitrary exception types
    except Exception as e:
        raise DecodeError(f"Invalid bech32 reference {value!r}: {e}") from e

    if value.startswith(_NON_NOTE_PREFIXES):
        return DecodedReference(ReferenceType.OTHER, value)
    raise DecodeError(f"Unsupported reference prefix: {value[:10]!r}")


def note_reference(note_id: str) -> str:
    """Encode a 64-character hex event id as a ``note1`` bech32 string.

    Raises:
        DecodeError: If *note_id* is not a valid event id.
    """
    try:
        return EventId.parse(note_id).to_bech32()
    # nostr-sdk Rust FFI can raise arbitrary exception types
    except Exception as e:
        raise DecodeError(f"Invalid event id {note_id!r}: {e}") from e


def short_npub(pubkey: str) -> str:
    """Abbreviated ``npub1`` form of *pubkey* for display, e.g. ``npub1abcd...wxyz``.

    Falls back to abbreviating the raw string if it is not a valid key.
    """
    try:
        encoded = PublicKey.parse(pubkey).to_bech32()
    # nostr-sdk Rust FFI can raise arbitrary exception types
    except Exception:
        encoded = pubkey
    if len(encoded) <= 16:
        return encoded
    return f"{encoded[:9]}...{encoded[-4:]}"
