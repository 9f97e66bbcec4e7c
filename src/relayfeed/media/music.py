"""Zapstr music track links."""

from __future__ import annotations

import re


_ZAPSTR_URL = re.compile(r"zapstr\.live/[a-zA-Z0-9_-]+")
_ZAPSTR_TRACK_ID = re.compile(r"zapstr\.live/(?:track/)?([a-zA-Z0-9_-]+)")

ZAPSTR_EMBED_BASE = "https://zapstr.live/embed/"


def is_zapstr_url(url: str) -> bool:
    """Whether *url* points at a Zapstr track (``/<id>``, ``/track/<id>`` or ``/naddr1...``)."""
    return _ZAPSTR_URL.search(url) is not None


def zapstr_embed_url(url: str) -> str | None:
    """Return the iframe player URL for a Zapstr track link, or ``None``.

    Examples:
        ```python
        zapstr_embed_url("https://zapstr.live/track/abc-123")
        # 'https://zapstr.live/embed/abc-123'
        ```
    """
    match = _ZAPSTR_TRACK_ID.search(url)
    if match is None:
        return None
    return ZAPSTR_EMBED_BASE + match.group(1)
