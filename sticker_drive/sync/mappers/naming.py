"""Filename -> display title, tags, caption and slug derivation.

Everything here is pure and total: no I/O and no failure modes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

IMAGE_EXTENSION_RE = re.compile(
    r"\.(png|jpe?g|gif|webp|svg|bmp|tiff?)$", re.IGNORECASE
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in",
        "on", "at", "to", "for", "of", "with", "by",
    }
)

MAX_TAGS = 5
MIN_TAG_LENGTH = 3
SLUG_SUFFIX_LENGTH = 6

CAPTION_TEMPLATE = "{title} - Share to spread media literacy!"


@dataclass(frozen=True)
class DerivedName:
    """Display title and search tags derived from a filename."""

    title: str
    tags: list[str] = field(default_factory=list)


def derive_title(filename: str) -> str:
    """Strip a known image extension and turn ``-``/``_`` into spaces."""
    stem = IMAGE_EXTENSION_RE.sub("", filename)
    return re.sub(r"[-_]", " ", stem)


def derive_tags(title: str) -> list[str]:
    """Lowercase keywords from a title, at most MAX_TAGS, first-seen order."""
    tags: list[str] = []
    for word in title.lower().split():
        if len(word) < MIN_TAG_LENGTH or word in STOP_WORDS or word in tags:
            continue
        tags.append(word)
        if len(tags) == MAX_TAGS:
            break
    return tags


def derive(filename: str) -> DerivedName:
    """Derive the display title and tag set for a Drive filename.

    Example:
        >>> derive("My-Sticker_Name.png")
        DerivedName(title='My Sticker Name', tags=['sticker', 'name'])
    """
    title = derive_title(filename)
    return DerivedName(title=title, tags=derive_tags(title))


def build_caption(title: str) -> str:
    """Suggested share caption for a sticker."""
    return CAPTION_TEMPLATE.format(title=title)


def slugify(name: str) -> str:
    """Lowercase, whitespace to hyphens, drop anything outside [a-z0-9-]."""
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def disambiguate_slug(slug: str, folder_id: str) -> str:
    """Suffix a colliding slug with a fragment of the Drive folder id."""
    return f"{slug}-{folder_id[:SLUG_SUFFIX_LENGTH]}"
