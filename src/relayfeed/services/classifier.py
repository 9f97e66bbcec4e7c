"""Feed classifier and content-safety heuristic.

[classify()][relayfeed.services.classifier.classify] narrows a raw batch of
notes to one [FeedCategory][relayfeed.models.constants.FeedCategory]:

1. Keep only kinds in the category's kind set.
2. ``photos``: keep kind-1 notes that contain an image URL or carry an
   ``imeta`` tag.
3. Drop replies (notes with an ``e`` tag). For ``all`` only kind-1 replies
   are dropped.

[is_likely_nsfw()][relayfeed.services.classifier.is_likely_nsfw] is a
separate, composable pass. It is a best-effort keyword/domain heuristic:
advisory filtering, not a safety guarantee.

Filtering is stable: output keeps input order.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from relayfeed.media.images import has_image
from relayfeed.models.constants import (
    TAG_CONTENT_WARNING,
    TAG_HASHTAG,
    EventKind,
    FeedCategory,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from relayfeed.models.note import Note


CATEGORY_KINDS: dict[FeedCategory, frozenset[int]] = {
    FeedCategory.ALL: frozenset(
        {EventKind.TEXT_NOTE, EventKind.LONG_FORM, EventKind.MUSIC_TRACK, EventKind.VIDEO}
    ),
    FeedCategory.TEXT: frozenset({EventKind.TEXT_NOTE}),
    FeedCategory.ARTICLES: frozenset({EventKind.LONG_FORM}),
    FeedCategory.PHOTOS: frozenset({EventKind.TEXT_NOTE}),
    FeedCategory.MUSIC: frozenset({EventKind.MUSIC_TRACK}),
    FeedCategory.VIDEOS: frozenset({EventKind.VIDEO}),
}

NSFW_HASHTAGS: frozenset[str] = frozenset(
    {"nsfw", "porn", "xxx", "adult", "nude", "nudity", "sex", "sexual", "explicit", "18+", "nudes"}
)

NSFW_KEYWORDS: tuple[str, ...] = (
    "nsfw",
    "porn",
    "xxx",
    "nude",
    "naked",
    "sex",
    "explicit",
    "18+",
    "adult content",
    "not safe for work",
)

NSFW_DOMAINS: tuple[str, ...] = (
    "imgur.com/a/",
    "redgifs.com",
    "pornhub.com",
    "xvideos.com",
    "onlyfans.com",
)

# Whole-word match; lookarounds instead of \b so "18+" works
_NSFW_KEYWORD_PATTERN = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(k) for k in NSFW_KEYWORDS) + r")(?!\w)",
    re.IGNORECASE,
)


def category_kinds(category: FeedCategory | str) -> frozenset[int]:
    """Kind set queried for *category*.

    Raises:
        ValueError: If *category* is not a known category name.
    """
    return CATEGORY_KINDS[FeedCategory(category)]


def classify(notes: Iterable[Note], category: FeedCategory | str) -> list[Note]:
    """Filter *notes* down to those shown in the *category* view."""
    category = FeedCategory(category)
    kinds = CATEGORY_KINDS[category]

    selected = [note for note in notes if note.kind in kinds]

    if category == FeedCategory.PHOTOS:
        selected = [n for n in selected if n.kind == EventKind.TEXT_NOTE and has_image(n)]

    if category == FeedCategory.ALL:
        return [n for n in selected if not (n.kind == EventKind.TEXT_NOTE and n.is_reply)]
    return [n for n in selected if not n.is_reply]


def is_likely_nsfw(note: Note) -> bool:
    """Heuristic NSFW check on tags and body.

    Flags a note that has a ``content-warning`` tag, an unsafe ``t``
    hashtag, an unsafe keyword as a whole word in the body, or a link to a
    known adult-content domain.
    """
    if note.has_tag(TAG_CONTENT_WARNING):
        return True
    if any(value.lower() in NSFW_HASHTAGS for value in note.tag_values(TAG_HASHTAG)):
        return True
    if _NSFW_KEYWORD_PATTERN.search(note.content):
        return True
    content = note.content.lower()
    return any(domain in content for domain in NSFW_DOMAINS)


def filter_nsfw(notes: Iterable[Note]) -> list[Note]:
    """Drop notes flagged by [is_likely_nsfw()][relayfeed.services.classifier.is_likely_nsfw]."""
    return [note for note in notes if not is_likely_nsfw(note)]
