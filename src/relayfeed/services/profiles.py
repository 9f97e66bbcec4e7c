"""Author profiles from kind-0 metadata notes.

A malformed metadata body never fails the lookup: the
[Profile][relayfeed.models.social.Profile] keeps the note but has
``metadata=None``, and [display_name()][relayfeed.services.profiles.display_name]
falls back to a shortened ``npub``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from relayfeed.core.logger import Logger
from relayfeed.models.constants import EventKind
from relayfeed.models.query import QueryDescriptor
from relayfeed.models.social import Profile, ProfileMetadata
from relayfeed.utils.protocol import short_npub


if TYPE_CHECKING:
    from relayfeed.models.note import Note
    from relayfeed.models.relay import RelayConfig

    from .multiplexer import RelayGroup


_logger = Logger("profiles")


def parse_metadata(content: str) -> ProfileMetadata | None:
    """Parse a kind-0 body; ``None`` if it is not a valid JSON object."""
    try:
        return ProfileMetadata.model_validate_json(content)
    except ValidationError:
        return None


def profile_from_note(pubkey: str, note: Note | None) -> Profile:
    if note is None:
        return Profile(pubkey)
    metadata = parse_metadata(note.content)
    if metadata is None:
        _logger.debug("malformed_metadata", pubkey=pubkey, note_id=note.id)
    return Profile(pubkey, event=note, metadata=metadata)


def display_name(profile: Profile) -> str:
    """``display_name``, then ``name``, then an abbreviated ``npub``."""
    metadata = profile.metadata
    if metadata is not None:
        if metadata.display_name:
            return metadata.display_name
        if metadata.name:
            return metadata.name
    return short_npub(profile.pubkey)


async def fetch_profile(
    group: RelayGroup,
    pubkey: str,
    config: RelayConfig | None = None,
    timeout: float | None = None,  # noqa: ASYNC109
) -> Profile:
    """Fetch the newest kind-0 note of *pubkey*.

    Returns:
        The profile; ``event`` is ``None`` when no relay had one.

    Raises:
        AllRelaysFailedError: If no relay answered.
    """
    descriptor = QueryDescriptor(
        kinds=frozenset({EventKind.METADATA}), authors=frozenset({pubkey}), limit=1
    )
    notes = await group.query([descriptor], config, timeout, operation="profile")
    candidates = [n for n in notes if n.kind == EventKind.METADATA and n.pubkey == pubkey]
    newest = max(candidates, key=lambda n: n.created_at, default=None)
    return profile_from_note(pubkey, newest)
