"""Media helpers: image extraction and music embed links.

Pure functions over [Note][relayfeed.models.note.Note] bodies and tags,
shared by the resolver (gallery images) and the classifier (photos view).

Attributes:
    extract_images: Up to four deduplicated image URLs from body and tags.
    has_image: Photo-post predicate used by the photos feed.
    is_zapstr_url: Recognize Zapstr track links.
    zapstr_embed_url: Map a Zapstr track link to its iframe player URL.
"""

from .images import (
    IMAGE_URL_PATTERN,
    MAX_IMAGES,
    PHOTO_URL_PATTERN,
    extract_images,
    has_image,
    imeta_urls,
)
from .music import ZAPSTR_EMBED_BASE, is_zapstr_url, zapstr_embed_url


__all__ = [
    "IMAGE_URL_PATTERN",
    "MAX_IMAGES",
    "PHOTO_URL_PATTERN",
    "ZAPSTR_EMBED_BASE",
    "extract_images",
    "has_image",
    "imeta_urls",
    "is_zapstr_url",
    "zapstr_embed_url",
]
