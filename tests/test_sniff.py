"""Content sniffing and classification."""

from __future__ import annotations

import pytest

from foolhtml.sniff import ContentKind, classify, sniff_content_type


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"<!DOCTYPE html><html></html>", "text/html; charset=utf-8"),
        (b"  \n\t<HTML lang=en>", "text/html; charset=utf-8"),
        (b"<p>paragraph", "text/html; charset=utf-8"),
        (b"<!-- comment -->", "text/html; charset=utf-8"),
        (b"<?xml version='1.0'?><svg/>", "text/xml; charset=utf-8"),
        (b"GIF89a\x01\x00", "image/gif"),
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", "image/jpeg"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"BM\x00\x00", "image/bmp"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"PK\x03\x04rest", "application/zip"),
        (b"\xef\xbb\xbfhello", "text/plain; charset=utf-8"),
        (b"<hello>", "text/plain; charset=utf-8"),
        (b"<pre>not a signature", "text/plain; charset=utf-8"),
        (b"just some words\n", "text/plain; charset=utf-8"),
        (b"", "text/plain; charset=utf-8"),
        (b"\x00\x01\x02binary", "application/octet-stream"),
    ],
)
def test_sniff_content_type(data: bytes, expected: str) -> None:
    assert sniff_content_type(data) == expected


def test_sniff_png(png_bytes: bytes) -> None:
    assert sniff_content_type(png_bytes) == "image/png"


def test_sniff_only_looks_at_leading_bytes() -> None:
    data = b"a" * 600 + b"\x00"
    assert sniff_content_type(data) == "text/plain; charset=utf-8"


def test_sniff_mp4() -> None:
    data = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom"
    assert sniff_content_type(data) == "video/mp4"


def test_classify_html_by_content() -> None:
    kind, content_type = classify(b"<html><body>x</body></html>", "page.txt")
    assert kind is ContentKind.HTML
    assert content_type.startswith("text/html")


@pytest.mark.parametrize("name", ["page.html", "PAGE.HTML", "old.htm"])
def test_classify_html_extension_wins(name: str) -> None:
    kind, content_type = classify(b"plain words", name)
    assert kind is ContentKind.HTML
    assert content_type == "text/plain; charset=utf-8"


def test_classify_image(png_bytes: bytes) -> None:
    assert classify(png_bytes, "pixel.bin") == (ContentKind.IMAGE, "image/png")


def test_classify_other() -> None:
    assert classify(b"<hello>", "x.txt")[0] is ContentKind.OTHER
    assert classify(b"\x00\x00\x00", "blob")[0] is ContentKind.OTHER


def test_classify_is_pure(png_bytes: bytes) -> None:
    assert classify(png_bytes, "a.png") == classify(png_bytes, "a.png")
