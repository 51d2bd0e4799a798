"""Media type and charset resolution for fetched content.

The fetcher depends on the ``ContentResolver`` protocol; the default
``HeaderContentResolver`` trusts the Content-Type header first and falls
back to sniffing the decompressed bytes and the URL.
"""

import codecs
import mimetypes
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse

from bs4 import BeautifulSoup


# Leading bytes used to sniff a media type when no header is present
_MAGIC_NUMBERS: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"%PDF-", "application/pdf"),
    (b"\x1f\x8b", "application/gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
)

_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

_XML_ENCODING_RE = re.compile(rb"^<\?xml[^>]*encoding=[\"']([A-Za-z0-9._:-]+)[\"']")

# Bytes inspected when sniffing
_SNIFF_LENGTH = 1024

_TEXTUAL_TYPES = frozenset(
    {
        "application/javascript",
        "application/json",
        "application/ld+json",
        "application/manifest+json",
        "application/rss+xml",
        "application/atom+xml",
        "application/xhtml+xml",
        "application/xml",
        "image/svg+xml",
    }
)


@dataclass(frozen=True)
class ContentTypeData:
    """Resolved media type and charset.

    Attributes:
        media_type: MIME essence (``type/subtype``), or None.
        charset: Lower-cased charset name, or None.
    """

    media_type: str | None = None
    charset: str | None = None


class ContentResolver(Protocol):
    """Protocol for media type and charset resolution."""

    def resolve(
        self,
        headers: Mapping[str, str],
        uri: str,
        content: bytes | None,
    ) -> ContentTypeData:
        """Resolve media type and charset for a response.

        Args:
            headers: Response headers (case-insensitive lookup).
            uri: URI of the response.
            content: Decompressed body bytes.

        Returns:
            ContentTypeData for the response.
        """
        ...


def parse_content_type(value: str | None) -> tuple[str | None, dict[str, str]]:
    """Split a Content-Type value into its essence and parameters.

    Args:
        value: Header value such as ``text/html; charset="UTF-8"``.

    Returns:
        Lower-cased essence (None if invalid) and lower-cased parameter map.
    """
    if not value:
        return None, {}

    essence, *raw_params = value.split(";")
    essence = essence.strip().lower()
    params: dict[str, str] = {}
    for raw in raw_params:
        name, sep, param_value = raw.partition("=")
        if not sep:
            continue
        params[name.strip().lower()] = param_value.strip().strip('"').strip()

    if "/" not in essence:
        return None, params
    return essence, params


def is_textual(media_type: str | None) -> bool:
    """Check if a media type carries text."""
    if not media_type:
        return False
    return (
        media_type.startswith("text/")
        or media_type in _TEXTUAL_TYPES
        or media_type.endswith(("+xml", "+json"))
    )


def is_supported_charset(charset: str | None) -> bool:
    """Check if ``charset`` names a text codec Python can decode.

    Bytes-to-bytes codecs such as ``base64`` or ``zlib`` are not charsets.
    """
    if not charset:
        return False
    try:
        info = codecs.lookup(charset)
    except LookupError:
        return False
    return getattr(info, "_is_text_encoding", True)


def decode_body(content: bytes | None, charset: str | None) -> str | None:
    """Decode content with a charset without ever guessing.

    Args:
        content: Bytes to decode.
        charset: Charset name.

    Returns:
        Decoded text, or None when the charset is unsupported or the bytes
        are not valid in it.
    """
    if content is None or not is_supported_charset(charset):
        return None
    try:
        return content.decode(charset)  # type: ignore[arg-type]
    except UnicodeDecodeError:
        return None


def sniff_media_type(content: bytes | None) -> str | None:
    """Guess a media type from the leading bytes of the content."""
    if not content:
        return None

    head = content[:_SNIFF_LENGTH]
    for magic, media_type in _MAGIC_NUMBERS:
        if head.startswith(magic):
            return media_type
    if head.startswith(b"RIFF") and head[8:12] == b"WEBP":
        return "image/webp"

    text = head.lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if text.startswith((b"<!doctype html", b"<html", b"<head", b"<body")):
        return "text/html"
    if text.startswith(b"<svg"):
        return "image/svg+xml"
    if text.startswith(b"<?xml"):
        return "text/xml"
    return None


def media_type_from_uri(uri: str) -> str | None:
    """Guess a media type from the URL path extension."""
    path = urlparse(uri).path
    if not path:
        return None
    media_type, _ = mimetypes.guess_type(path)
    return media_type


def sniff_charset(content: bytes | None, media_type: str | None) -> str | None:
    """Find a charset declared inside the content itself.

    Checks the byte-order mark, then ``<meta>`` tags for HTML and the XML
    declaration for XML.

    Args:
        content: Decompressed body bytes.
        media_type: Resolved media type.

    Returns:
        Lower-cased charset name, or None.
    """
    if not content:
        return None

    for bom, charset in _BOMS:
        if content.startswith(bom):
            return charset

    head = content[: _SNIFF_LENGTH * 4]
    if media_type in ("text/html", "application/xhtml+xml"):
        soup = BeautifulSoup(head, "lxml")
        meta = soup.find("meta", attrs={"charset": True})
        if meta is not None:
            return str(meta["charset"]).strip().lower() or None
        for tag in soup.find_all("meta", attrs={"http-equiv": True}):
            if str(tag.get("http-equiv", "")).lower() != "content-type":
                continue
            _, params = parse_content_type(str(tag.get("content", "")))
            if params.get("charset"):
                return params["charset"].lower()

    match = _XML_ENCODING_RE.match(head.lstrip())
    if match:
        return match.group(1).decode("ascii").lower()
    return None


class HeaderContentResolver:
    """Resolves media type and charset from headers, content and URL."""

    def resolve(
        self,
        headers: Mapping[str, str],
        uri: str,
        content: bytes | None,
    ) -> ContentTypeData:
        """Resolve media type and charset for a response.

        Args:
            headers: Response headers (case-insensitive lookup).
            uri: URI of the response.
            content: Decompressed body bytes.

        Returns:
            ContentTypeData for the response.
        """
        media_type, params = parse_content_type(headers.get("content-type"))
        if media_type is None:
            media_type = sniff_media_type(content) or media_type_from_uri(uri)

        charset = params.get("charset", "").lower() or None
        if charset is None:
            charset = sniff_charset(content, media_type)
        if charset is None and is_textual(media_type):
            charset = "utf-8" if decode_body(content or b"", "utf-8") is not None else None

        return ContentTypeData(media_type=media_type, charset=charset)
