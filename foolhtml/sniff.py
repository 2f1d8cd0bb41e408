"""
Content sniffing for bundled files.

Follows the WHATWG "MIME sniffing" signature table, the same one browsers use
to guess a type from the first bytes of a response, so that what we call an
image or a HTML page here is what the viewer frame will agree with.
"""

from __future__ import annotations

import enum
import pathlib
from typing import List, Tuple

SNIFF_LEN = 512

HTML_EXTENSIONS = {".html", ".htm"}

_WHITESPACE = b"\t\n\x0c\r "

# Tags that mark a document as HTML when they open it (after whitespace).
# Each must be followed by a space or '>' to count.
_HTML_PREFIXES = [
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
]

_EXACT_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\x1a\x45\xdf\xa3", "video/webm"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    (b"\x00\x01\x00\x00", "font/ttf"),
    (b"OTTO", "font/otf"),
    (b"ttcf", "font/collection"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
]

# Container formats: (outer tag, inner tag at offset 8, type).
_RIFF_LIKE = [
    (b"RIFF", b"WEBPVP", "image/webp"),
    (b"RIFF", b"AVI ", "video/avi"),
    (b"RIFF", b"WAVE", "audio/wave"),
    (b"FORM", b"AIFF", "audio/aiff"),
]

_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


class ContentKind(enum.Enum):
    HTML = "html"
    IMAGE = "image"
    OTHER = "other"


def _looks_like_html(head: bytes) -> bool:
    upper = head.upper()
    for prefix in _HTML_PREFIXES:
        if not upper.startswith(prefix):
            continue
        rest = head[len(prefix):len(prefix) + 1]
        if rest in (b" ", b">"):
            return True
    return False


def _is_mp4(data: bytes) -> bool:
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size or data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            # minor_version, not a brand
            continue
        if data[start:start + 3] == b"mp4":
            return True
    return False


def sniff_content_type(data: bytes) -> str:
    """Guess a MIME type from the leading bytes of ``data``.

    Always returns a value; unknown binary data is ``application/octet-stream``
    and unknown text is ``text/plain; charset=utf-8``.
    """
    data = data[:SNIFF_LEN]

    head = data.lstrip(_WHITESPACE)
    if _looks_like_html(head):
        return "text/html; charset=utf-8"
    if head.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"

    for signature, mime in _EXACT_SIGNATURES:
        if data.startswith(signature):
            return mime

    for outer, inner, mime in _RIFF_LIKE:
        if data.startswith(outer) and data[8:8 + len(inner)] == inner:
            return mime

    if _is_mp4(data):
        return "video/mp4"

    if any(b in _BINARY_BYTES for b in data):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def classify(data: bytes, path: pathlib.Path | str) -> Tuple[ContentKind, str]:
    """Return the processing strategy for a file plus its sniffed type."""
    content_type = sniff_content_type(data)
    ext = pathlib.PurePath(path).suffix.lower()
    if content_type.startswith("text/html") or ext in HTML_EXTENSIONS:
        return ContentKind.HTML, content_type
    if content_type.startswith("image/"):
        return ContentKind.IMAGE, content_type
    return ContentKind.OTHER, content_type
