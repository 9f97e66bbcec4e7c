"""Note factories and an in-memory relay network shared across test packages.

Usage: Registered via ``pytest_plugins`` in the root ``conftest.py``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import pytest

from relayfeed.models import Note, QueryDescriptor


AUTHOR = "b" * 64
CREATED_AT = 1_700_000_000


def hex_id(n: int) -> str:
    """Deterministic 64-char hex id for small integers."""
    return f"{n:064x}"


def make_note(
    n: int = 1,
    *,
    kind: int = 1,
    content: str = "",
    tags: Iterable[Sequence[str]] = (),
    pubkey: str = AUTHOR,
    created_at: int = CREATED_AT,
) -> Note:
    return Note(
        id=hex_id(n),
        pubkey=pubkey,
        kind=kind,
        created_at=created_at,
        content=content,
        tags=tuple(tuple(t) for t in tags),
    )


def matches(descriptor: QueryDescriptor, note: Note) -> bool:
    """Subset of NIP-01 filter matching used by the fake relays."""
    if descriptor.kinds and note.kind not in descriptor.kinds:
        return False
    if descriptor.ids and note.id not in descriptor.ids:
        return False
    if descriptor.authors and note.pubkey not in descriptor.authors:
        return False
    return not (
        descriptor.referenced_ids
        and not descriptor.referenced_ids.intersection(note.tag_values("e"))
    )


class FakeRelays:
    """In-memory per-relay query function.

    Relays not listed in ``per_relay`` serve ``notes``. URLs in ``failing``
    raise ``OSError``; URLs in ``delays`` sleep before answering. URLs that
    answered are recorded in ``completed``.
    """

    def __init__(self, notes: Iterable[Note] = ()) -> None:
        self.notes: list[Note] = list(notes)
        self.per_relay: dict[str, list[Note]] = {}
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, list[QueryDescriptor]]] = []
        self.completed: list[str] = []

    def add(self, *notes: Note) -> None:
        self.notes.extend(notes)

    async def __call__(
        self, url: str, descriptors: Sequence[QueryDescriptor], timeout: float
    ) -> list[Note]:
        self.calls.append((url, list(descriptors)))
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.failing:
            raise OSError(f"connection refused: {url}")
        available = self.per_relay.get(url, self.notes)
        result: list[Note] = []
        for descriptor in descriptors:
            found = [n for n in available if matches(descriptor, n)]
            result.extend(found[: descriptor.limit])
        self.completed.append(url)
        return result

    def urls_called(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def note_factory() -> Callable[..., Note]:
    """Factory building valid notes from a small integer id."""
    return make_note


@pytest.fixture
def fake_relays() -> FakeRelays:
    """Empty in-memory relay network."""
    return FakeRelays()


@pytest.fixture
def sample_notes() -> dict[str, Any]:
    """Mixed-kind batch covering every feed category."""
    return {
        "text": make_note(1, content="gm nostr"),
        "reply": make_note(2, content="agreed", tags=[["e", hex_id(1)]]),
        "photo": make_note(3, content="look https://cdn.example.com/cat.png"),
        "imeta": make_note(
            4, content="pic", tags=[["imeta", "url https://cdn.example.com/a.webp"]]
        ),
        "article": make_note(5, kind=30023, content="# Long read"),
        "article_reply": make_note(6, kind=30023, tags=[["e", hex_id(5)]]),
        "track": make_note(7, kind=31337, content="new single"),
        "video": make_note(8, kind=34235, content="clip"),
        "reaction": make_note(9, kind=7, content="+", tags=[["e", hex_id(1)]]),
    }
