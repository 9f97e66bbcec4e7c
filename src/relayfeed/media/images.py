"""Image URL extraction from note bodies and ``imeta`` tags.

Two patterns are used on purpose: the embed gallery only shows URLs that
end in a raster image extension, while the photos feed view also accepts
SVG and matches anywhere in the body.

See Also:
    [classify()][relayfeed.services.classifier.classify]: Uses
        [has_image()][relayfeed.media.images.has_image] for the photos view.
    [ContentResolver][relayfeed.services.resolver.ContentResolver]: Fills
        ``ResolvedNote.images`` with
        [extract_images()][relayfeed.media.images.extract_images].
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from relayfeed.models.constants import TAG_IMETA


if TYPE_CHECKING:
    from relayfeed.models.note import Note


# Gallery images shown under a resolved note
IMAGE_URL_PATTERN = re.compile(r"https?://[^\s]+\.(?:jpg|jpeg|png|gif|webp|bmp)", re.IGNORECASE)

# Photos feed filter
PHOTO_URL_PATTERN = re.compile(r"https?://.*\.(?:jpg|jpeg|png|gif|webp|bmp|svg)", re.IGNORECASE)

MAX_IMAGES = 4

_IMETA_URL_PREFIX = "url "


def imeta_urls(note: Note) -> list[str]:
    """Return the ``url`` field of every ``imeta`` tag, in tag order."""
    urls: list[str] = []
    for tag in note.tags:
        if tag[0] != TAG_IMETA:
            continue
        for item in tag[1:]:
            if item.startswith(_IMETA_URL_PREFIX):
                urls.append(item[len(_IMETA_URL_PREFIX) :])
                break
    return urls


def extract_images(note: Note, limit: int = MAX_IMAGES) -> list[str]:
    """Collect image URLs from the body and ``imeta`` tags.

    Body URLs come first, then tag URLs; duplicates are dropped keeping
    the first occurrence, and at most *limit* URLs are returned.
    """
    found = IMAGE_URL_PATTERN.findall(note.content) + imeta_urls(note)
    return list(dict.fromkeys(found))[:limit]


def has_image(note: Note) -> bool:
    """Whether the note looks like a photo post (image URL or ``imeta`` tag)."""
    return bool(PHOTO_URL_PATTERN.search(note.content)) or note.has_tag(TAG_IMETA)
