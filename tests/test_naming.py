"""Unit tests for sticker_drive.sync.mappers.naming."""

from __future__ import annotations

import pytest

from sticker_drive.sync.mappers.naming import (
    MAX_TAGS,
    build_caption,
    derive,
    derive_tags,
    derive_title,
    disambiguate_slug,
    slugify,
)


# ---------------------------------------------------------------------------
# TestDeriveTitle
# ---------------------------------------------------------------------------


class TestDeriveTitle:
    """Tests for derive_title."""

    def test_strips_extension_and_separators(self):
        assert derive_title("My-Sticker_Name.png") == "My Sticker Name"

    @pytest.mark.parametrize(
        "filename", ["cat.PNG", "cat.jpeg", "cat.JPG", "cat.webp", "cat.tif"]
    )
    def test_known_extensions_case_insensitive(self, filename):
        assert derive_title(filename) == "cat"

    def test_unknown_extension_is_kept(self):
        assert derive_title("notes.txt") == "notes.txt"

    def test_only_trailing_extension_removed(self):
        assert derive_title("png-facts.png") == "png facts"


# ---------------------------------------------------------------------------
# TestDeriveTags
# ---------------------------------------------------------------------------


class TestDeriveTags:
    """Tests for derive_tags."""

    def test_example_from_filename(self):
        assert derive("My-Sticker_Name.png").tags == ["sticker", "name"]

    def test_drops_short_words_and_stop_words(self):
        assert derive_tags("Check the Facts and Sources for it") == [
            "check",
            "facts",
            "sources",
        ]

    def test_lowercases_and_deduplicates(self):
        assert derive_tags("Fake FAKE fake news") == ["fake", "news"]

    def test_capped(self):
        tags = derive_tags("alpha bravo charlie delta echo foxtrot golf")
        assert len(tags) == MAX_TAGS
        assert tags[-1] == "echo"

    def test_empty_title(self):
        assert derive_tags("") == []


# ---------------------------------------------------------------------------
# TestCaptionAndSlug
# ---------------------------------------------------------------------------


class TestCaptionAndSlug:
    """Tests for build_caption, slugify and disambiguate_slug."""

    def test_caption(self):
        assert build_caption("Think First") == (
            "Think First - Share to spread media literacy!"
        )

    def test_slugify(self):
        assert slugify("Media  Literacy 101!") == "media-literacy-101"

    def test_slugify_non_ascii_removed(self):
        assert slugify("Café Facts") == "caf-facts"

    def test_disambiguate_uses_folder_prefix(self):
        assert disambiguate_slug("facts", "1AbCdEfGhIj") == "facts-1AbCdE"
