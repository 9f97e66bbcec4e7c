"""
Unit tests for models.resolution and models.social modules.

Tests:
- ResolutionContext depth bounding and descend()
- ResolvedNote.plain_text() reassembly
- ReactionSummary construction and immutability
- ProfileMetadata tolerance of unknown keys
"""

from dataclasses import FrozenInstanceError

import pytest
from pydantic import ValidationError

from relayfeed.models import (
    MAX_EMBED_DEPTH,
    LinkSegment,
    ProfileMetadata,
    ReactionSummary,
    ResolutionContext,
    ResolvedNote,
    TextSegment,
)
from tests.fixtures.notes import make_note


class TestResolutionContext:
    """Depth state threaded through resolution."""

    def test_top_level_can_expand(self):
        assert ResolutionContext().can_expand

    def test_descend_increments_depth_and_records_id(self):
        ctx = ResolutionContext().descend("a" * 64)
        assert ctx.depth == 1
        assert ctx.visited == frozenset({"a" * 64})

    def test_expansion_stops_at_max_depth(self):
        ctx = ResolutionContext()
        for n in range(MAX_EMBED_DEPTH):
            ctx = ctx.descend(str(n))
        assert ctx.depth == MAX_EMBED_DEPTH
        assert not ctx.can_expand

    def test_negative_depth(self):
        with pytest.raises(ValueError):
            ResolutionContext(depth=-1)


class TestResolvedNote:
    """Segment reassembly."""

    def test_plain_text_reassembles_body(self):
        note = make_note(content="see https://x.example.com now")
        resolved = ResolvedNote(
            note,
            (
                TextSegment("see ", 0, 4),
                LinkSegment("https://x.example.com", 4, 25),
                TextSegment(" now", 25, 29),
            ),
            (),
            0,
        )
        assert resolved.plain_text() == note.content


class TestReactionSummary:
    """ReactionSummary construction."""

    def test_from_keys_keeps_duplicates(self):
        summary = ReactionSummary.from_keys(["a", "a"])
        assert summary.count == 2
        assert summary.reactor_keys == ("a", "a")

    def test_empty(self):
        assert ReactionSummary() == ReactionSummary.from_keys([])

    def test_frozen(self):
        summary = ReactionSummary.from_keys(["a"])
        with pytest.raises(FrozenInstanceError):
            summary.count = 5  # type: ignore[misc]


class TestProfileMetadata:
    """Kind-0 metadata parsing."""

    def test_extra_keys_kept(self):
        metadata = ProfileMetadata.model_validate({"name": "alice", "pronouns": "they/them"})
        assert metadata.name == "alice"
        assert metadata.model_extra == {"pronouns": "they/them"}

    def test_wrong_type_rejected(self):
        with pytest.raises(ValidationError):
            ProfileMetadata.model_validate({"name": ["not", "a", "string"]})
