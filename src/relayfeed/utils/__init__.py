"""Nostr protocol helpers wrapping the ``nostr_sdk`` FFI.

The utils layer sits in the middle of the diamond DAG, depending only on
[relayfeed.models][relayfeed.models] and the exception types of
[relayfeed.core.exceptions][relayfeed.core.exceptions]. It provides the
primitive per-relay query and the NIP-19 reference codec consumed by
[relayfeed.services][relayfeed.services].

Attributes:
    protocol: Client factory, filter construction, single-relay note
        fetching, and bech32 reference decoding/encoding.

See Also:
    [RelayGroup][relayfeed.services.multiplexer.RelayGroup]: Fans
        [fetch_notes()][relayfeed.utils.protocol.fetch_notes] out across
        the configured read relays.

Examples:
    ```python
    from relayfeed.utils.protocol import decode_reference, fetch_notes
    ```
"""
