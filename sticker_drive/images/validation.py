"""Deciding whether fetched bytes are really an image.

Drive happily answers image URLs with 200 and an HTML page (login walls,
virus-scan interstitials, quota notices). Bytes are only served when they
look like an image.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

MIN_IMAGE_BYTES = 50
MIN_DECLARED_IMAGE_BYTES = 500
MIN_OCTET_STREAM_BYTES = 1000

OCTET_STREAM = "application/octet-stream"

# Token embedded in scripts or text on newer interstitials.
CONFIRM_TOKEN_RE = re.compile(r"confirm=([0-9A-Za-z_-]+)")

# Leading bytes -> content type
IMAGE_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
]


@dataclass(frozen=True)
class ImageVerdict:
    """Result of validating a response body."""

    accepted: bool
    content_type: str | None = None
    is_html: bool = False
    reason: str = ""


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def sniff_image_type(content: bytes) -> str | None:
    """Content type from magic bytes, or None if unrecognised."""
    for signature, content_type in IMAGE_SIGNATURES:
        if content.startswith(signature):
            return content_type
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    head = content[:1024].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "image/svg+xml"
    return None


def looks_like_html(content: bytes, content_type: str | None = None) -> bool:
    if _media_type(content_type) == "text/html":
        return True
    head = content[:512].lstrip().lower()
    return head.startswith(b"<!doctype html") or head.startswith(b"<html")


def validate_image_response(content: bytes, content_type: str | None) -> ImageVerdict:
    """Accept or reject a fetched body.

    Order matters: size floor, HTML rejection, magic bytes, then the
    declared type with a size floor for ``image/*`` and octet-stream.
    """
    if len(content) < MIN_IMAGE_BYTES:
        return ImageVerdict(False, reason=f"too small ({len(content)} bytes)")

    if looks_like_html(content, content_type):
        return ImageVerdict(False, is_html=True, reason="HTML page instead of image")

    sniffed = sniff_image_type(content)
    if sniffed:
        return ImageVerdict(True, sniffed)

    declared = _media_type(content_type)
    if declared.startswith("image/") and len(content) > MIN_DECLARED_IMAGE_BYTES:
        return ImageVerdict(True, declared)
    if declared == OCTET_STREAM and len(content) > MIN_OCTET_STREAM_BYTES:
        return ImageVerdict(True, OCTET_STREAM)

    return ImageVerdict(False, reason=f"unrecognised content ({declared or 'no type'})")


def _with_query_param(url: str, key: str, value: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


def extract_confirm_url(html: str, base_url: str) -> str | None:
    """Find the "download anyway" target on a Drive confirmation page.

    Handles the form-based interstitial, a plain ``confirm=`` link, a
    ``confirm`` input, and finally any ``confirm=`` token in the page text
    (scripts included). The last two re-request ``base_url`` with the token.

    Returns:
        Absolute URL to follow, or None if the page is not a confirmation
    """
    soup = BeautifulSoup(html, "html.parser")

    for form in soup.find_all("form", action=True):
        inputs = {
            field["name"]: field.get("value", "")
            for field in form.find_all("input", attrs={"name": True})
        }
        if "confirm" in inputs:
            action = urljoin(base_url, form["action"])
            return f"{action}?{urlencode(inputs)}"

    for link in soup.find_all("a", href=True):
        if "confirm=" in link["href"]:
            return urljoin(base_url, link["href"])

    for field in soup.find_all("input", attrs={"name": "confirm"}):
        if field.get("value"):
            return _with_query_param(base_url, "confirm", field["value"])

    match = CONFIRM_TOKEN_RE.search(html)
    if match:
        return _with_query_param(base_url, "confirm", match.group(1))
    return None
