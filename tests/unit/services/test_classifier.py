"""
Unit tests for services.classifier module.

Tests:
- category_kinds() mapping
- classify() per feed category, reply filtering, and stability
- is_likely_nsfw() tag, keyword, and domain signals
"""

import pytest

from relayfeed.models import EventKind, FeedCategory
from relayfeed.services.classifier import (
    category_kinds,
    classify,
    filter_nsfw,
    is_likely_nsfw,
)
from tests.fixtures.notes import hex_id, make_note


def _ids(notes) -> list[str]:
    return [n.id for n in notes]


# ============================================================================
# category_kinds Tests
# ============================================================================


class TestCategoryKinds:
    """Tests for category_kinds()."""

    def test_all(self) -> None:
        assert category_kinds("all") == {1, 30023, 31337, 34235}

    def test_photos_share_text_kind(self) -> None:
        assert category_kinds(FeedCategory.PHOTOS) == category_kinds(FeedCategory.TEXT) == {1}

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            category_kinds("podcasts")


# ============================================================================
# classify Tests
# ============================================================================


class TestClassify:
    """Tests for classify()."""

    def test_photos(self, sample_notes) -> None:
        result = classify(sample_notes.values(), FeedCategory.PHOTOS)
        assert _ids(result) == _ids([sample_notes["photo"], sample_notes["imeta"]])

    def test_articles_exclude_replies(self, sample_notes) -> None:
        result = classify(sample_notes.values(), "articles")
        assert _ids(result) == [sample_notes["article"].id]

    def test_text(self, sample_notes) -> None:
        result = classify(sample_notes.values(), "text")
        assert _ids(result) == _ids(
            [sample_notes["text"], sample_notes["photo"], sample_notes["imeta"]]
        )

    def test_music(self, sample_notes) -> None:
        assert _ids(classify(sample_notes.values(), "music")) == [sample_notes["track"].id]

    def test_all_drops_only_text_replies(self, sample_notes) -> None:
        result = classify(sample_notes.values(), "all")
        expected = ["text", "photo", "imeta", "article", "article_reply", "track", "video"]
        assert _ids(result) == [sample_notes[k].id for k in expected]

    def test_videos_scenario(self) -> None:
        notes = [make_note(i, content=f"text {i}") for i in range(1, 7)]
        notes += [
            make_note(7, kind=EventKind.VIDEO),
            make_note(8, kind=EventKind.VIDEO, tags=[["e", hex_id(1)]]),
            make_note(9, kind=EventKind.VIDEO),
            make_note(10, kind=EventKind.VIDEO, tags=[["e", hex_id(2)]]),
        ]
        result = classify(notes, "videos")
        assert _ids(result) == [hex_id(7), hex_id(9)]

    def test_photo_replies_dropped(self) -> None:
        reply = make_note(1, content="https://x.example.com/a.png", tags=[["e", hex_id(2)]])
        assert classify([reply], "photos") == []

    def test_stable_order(self) -> None:
        notes = [make_note(i, content=f"n{i}") for i in (5, 3, 9, 1)]
        assert _ids(classify(notes, "text")) == _ids(notes)

    def test_empty(self) -> None:
        assert classify([], "all") == []


# ============================================================================
# NSFW Heuristic Tests
# ============================================================================


class TestIsLikelyNsfw:
    """Tests for is_likely_nsfw()."""

    def test_content_warning_tag(self) -> None:
        assert is_likely_nsfw(make_note(tags=[["content-warning", "spoilers"]]))

    def test_hashtag_case_insensitive(self) -> None:
        assert is_likely_nsfw(make_note(tags=[["t", "NSFW"]]))

    def test_safe_hashtag(self) -> None:
        assert not is_likely_nsfw(make_note(tags=[["t", "photography"]]))

    def test_keyword_whole_word(self) -> None:
        assert is_likely_nsfw(make_note(content="this is Explicit stuff"))

    def test_keyword_with_symbol(self) -> None:
        assert is_likely_nsfw(make_note(content="strictly 18+ only"))

    def test_multi_word_keyword(self) -> None:
        assert is_likely_nsfw(make_note(content="Adult content ahead"))

    @pytest.mark.parametrize("content", ["new sextant arrived", "visiting Essex", "xxxl shirt"])
    def test_keyword_inside_word_ignored(self, content: str) -> None:
        assert not is_likely_nsfw(make_note(content=content))

    def test_domain(self) -> None:
        assert is_likely_nsfw(make_note(content="https://www.RedGifs.com/watch/abc"))

    def test_clean_note(self) -> None:
        assert not is_likely_nsfw(make_note(content="gm, coffee and a sunrise"))

    def test_filter_nsfw_keeps_order(self) -> None:
        clean_a = make_note(1, content="gm")
        flagged = make_note(2, content="nsfw")
        clean_b = make_note(3, content="gn")
        assert filter_nsfw([clean_a, flagged, clean_b]) == [clean_a, clean_b]
