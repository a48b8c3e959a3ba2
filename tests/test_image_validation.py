"""Unit tests for sticker_drive.images.validation."""

from __future__ import annotations

import pytest

from sticker_drive.images.validation import (
    extract_confirm_url,
    looks_like_html,
    sniff_image_type,
    validate_image_response,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 100
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 100
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 100
HTML = b"<!DOCTYPE html><html><head><title>Google Drive</title></head><body>" + b" " * 100


class TestSniffImageType:
    """Tests for sniff_image_type."""

    @pytest.mark.parametrize(
        "content, expected",
        [
            (PNG, "image/png"),
            (JPEG, "image/jpeg"),
            (b"GIF89a" + b"\x00" * 10, "image/gif"),
            (WEBP, "image/webp"),
            (b"BM" + b"\x00" * 10, "image/bmp"),
            (b"II*\x00" + b"\x00" * 10, "image/tiff"),
            (b"\x00\x00\x01\x00" + b"\x00" * 10, "image/x-icon"),
            (b'  <svg xmlns="http://www.w3.org/2000/svg"></svg>', "image/svg+xml"),
            (b'<?xml version="1.0"?><svg></svg>', "image/svg+xml"),
        ],
    )
    def test_signatures(self, content, expected):
        assert sniff_image_type(content) == expected

    def test_unknown(self):
        assert sniff_image_type(b"hello world") is None
        assert sniff_image_type(b"<?xml version='1.0'?><feed/>") is None


class TestValidateImageResponse:
    """Tests for validate_image_response."""

    def test_tiny_bodies_rejected(self):
        verdict = validate_image_response(b"\x89PNG\r\n\x1a\n", "image/png")

        assert not verdict.accepted
        assert "too small" in verdict.reason

    def test_html_rejected_despite_image_type(self):
        verdict = validate_image_response(HTML, "image/png")

        assert not verdict.accepted
        assert verdict.is_html

    def test_html_content_type_rejected(self):
        assert looks_like_html(b"whatever", "text/html; charset=utf-8")

    def test_magic_bytes_win_over_declared_type(self):
        verdict = validate_image_response(PNG, "application/octet-stream")

        assert verdict.accepted
        assert verdict.content_type == "image/png"

    def test_declared_image_needs_size(self):
        assert not validate_image_response(b"\x01" * 400, "image/heic").accepted

        verdict = validate_image_response(b"\x01" * 600, "image/heic")
        assert verdict.accepted
        assert verdict.content_type == "image/heic"

    def test_octet_stream_needs_more(self):
        assert not validate_image_response(b"\x01" * 900, "application/octet-stream").accepted
        assert validate_image_response(b"\x01" * 1100, "application/octet-stream").accepted

    def test_unknown_type_rejected(self):
        assert not validate_image_response(b"\x01" * 5000, "application/json").accepted


class TestExtractConfirmUrl:
    """Tests for extract_confirm_url."""

    BASE = "https://drive.google.com/uc?export=download&id=abc"

    def test_form_interstitial(self):
        html = """
        <form id="download-form" action="https://drive.usercontent.google.com/download" method="get">
          <input type="hidden" name="id" value="abc">
          <input type="hidden" name="export" value="download">
          <input type="hidden" name="confirm" value="t">
          <input type="hidden" name="uuid" value="123">
        </form>
        """

        url = extract_confirm_url(html, self.BASE)

        assert url.startswith("https://drive.usercontent.google.com/download?")
        assert "confirm=t" in url
        assert "id=abc" in url

    def test_relative_confirm_link(self):
        html = '<a id="uc-download-link" href="/uc?export=download&amp;confirm=XyZ1&amp;id=abc">Download anyway</a>'

        url = extract_confirm_url(html, self.BASE)

        assert url == "https://drive.google.com/uc?export=download&confirm=XyZ1&id=abc"

    def test_bare_confirm_input(self):
        html = '<div><input name="confirm" value="tok"></div>'

        url = extract_confirm_url(html, self.BASE)

        assert url == "https://drive.google.com/uc?export=download&id=abc&confirm=tok"

    def test_no_confirmation(self):
        assert extract_confirm_url("<html><body>Sign in</body></html>", self.BASE) is None

    def test_token_only_in_script(self):
        html = (
            "<html><head><script>var downloadUrl = "
            "'/uc?export=download&confirm=AbC1&id=abc';</script></head>"
            "<body>Google Drive can't scan this file for viruses.</body></html>"
        )

        url = extract_confirm_url(html, self.BASE)

        assert url == "https://drive.google.com/uc?export=download&id=abc&confirm=AbC1"
