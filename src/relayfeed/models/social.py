"""Derived social data: reaction aggregates and author profiles.

Neither type is persisted; both are derived fresh from query results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict


if TYPE_CHECKING:
    from collections.abc import Iterable

    from .note import Note


@dataclass(frozen=True, slots=True)
class ReactionSummary:
    """Count and reactor keys for one reaction symbol.

    Attributes:
        count: Number of reactions carrying the symbol.
        reactor_keys: Reacting public keys in arrival order, not deduplicated.
    """

    count: int = 0
    reactor_keys: tuple[str, ...] = ()

    @classmethod
    def from_keys(cls, reactor_keys: Iterable[str]) -> ReactionSummary:
        keys = tuple(reactor_keys)
        return cls(count=len(keys), reactor_keys=keys)


class ProfileMetadata(BaseModel):
    """NIP-01 kind-0 profile metadata.

    Unknown keys are kept; known keys must be strings when present.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str | None = None
    display_name: str | None = None
    about: str | None = None
    picture: str | None = None
    banner: str | None = None
    website: str | None = None
    nip05: str | None = None
    lud16: str | None = None


@dataclass(frozen=True, slots=True)
class Profile:
    """An author's kind-0 note with its parsed metadata.

    Attributes:
        pubkey: Author public key (hex).
        event: The kind-0 note, or ``None`` if none was found.
        metadata: Parsed metadata, or ``None`` when the body was malformed.
    """

    pubkey: str
    event: Note | None = None
    metadata: ProfileMetadata | None = None
