"""
Inline the external resources of an HTML document.

Stylesheets (<link rel="stylesheet" href=...>), scripts (<script src=...></script>)
and images (<img src=...>) that point at local files are replaced with their
content, so the page keeps working once it is lifted out of its directory.
Remote references are left alone unless fetching is switched on.

Tags are located with the stdlib HTML tokenizer rather than regexes, then the
replacements are spliced into the original text: everything we do not touch
stays byte-for-byte identical.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import pathlib
import re
import urllib.parse
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import List, Optional, Tuple

import requests

from .sniff import sniff_content_type

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
TEXT_ONLY_ELEMENTS = ("title", "textarea")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]+:")
_TAG_NAME_RE = re.compile(r"<[^\s/>]+")
# Same shape as html.parser's tolerant attribute pattern.
_ATTR_RE = re.compile(
    r"""(?P<name>[^\s/>][^\s/=>]*)(?:\s*=+\s*(?P<value>'[^']*'|"[^"]*"|(?!['"])[^>\s]*))?"""
)


@dataclass
class InlineOptions:
    fetch_remote: bool = False
    timeout: float = DEFAULT_FETCH_TIMEOUT
    session: Optional[requests.Session] = None


@dataclass
class ResourceRef:
    kind: str   # "stylesheet" | "script" | "image"
    ref: str    # attribute value as the browser sees it
    start: int  # offsets into the source text
    end: int
    tag: str    # original tag text


def is_remote(ref: str) -> bool:
    """True for absolute URLs (any scheme) and protocol-relative ones."""
    return ref.startswith("//") or bool(_SCHEME_RE.match(ref))


def is_fetchable(ref: str) -> bool:
    lowered = ref.lower()
    return lowered.startswith(("http://", "https://", "//"))


def is_local(ref: str) -> bool:
    return bool(ref) and not ref.startswith("#") and not is_remote(ref)


class _ResourceScanner(HTMLParser):
    def __init__(self, text: str) -> None:
        super().__init__(convert_charrefs=True)
        self.text = text
        self.refs: List[ResourceRef] = []
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)
        self._pending_script: Optional[Tuple[int, str]] = None
        # Browsers read <title> and <textarea> content as text, not markup.
        self._text_only: Optional[str] = None

    def _offset(self) -> int:
        lineno, col = self.getpos()
        return self._line_starts[lineno - 1] + col

    def handle_starttag(self, tag, attrs):
        if self._text_only:
            return
        if tag in TEXT_ONLY_ELEMENTS:
            self._text_only = tag
            return
        raw = self.get_starttag_text() or ""
        start = self._offset()
        end = start + len(raw)
        values = {}
        for name, value in attrs:
            values.setdefault(name, value)

        if tag == "link":
            rel = (values.get("rel") or "").strip().lower()
            href = values.get("href")
            if rel == "stylesheet" and href:
                self.refs.append(ResourceRef("stylesheet", href.strip(), start, end, raw))
        elif tag == "script":
            src = values.get("src")
            self._pending_script = (start, src.strip()) if src else None
        elif tag == "img":
            src = values.get("src")
            if src:
                self.refs.append(ResourceRef("image", src.strip(), start, end, raw))

    def handle_startendtag(self, tag, attrs):
        # <script .../> has no closing tag to pair with; leave it be.
        if tag in ("link", "img"):
            self.handle_starttag(tag, attrs)

    def handle_data(self, data):
        if self._pending_script and data.strip():
            self._pending_script = None

    def handle_endtag(self, tag):
        if self._text_only:
            if tag == self._text_only:
                self._text_only = None
            return
        if tag != "script" or self._pending_script is None:
            return
        start, src = self._pending_script
        self._pending_script = None
        close = self.text.find(">", self._offset())
        if close < 0:
            return
        end = close + 1
        self.refs.append(ResourceRef("script", src, start, end, self.text[start:end]))


def scan_resources(content: str, name: str = "<string>") -> List[ResourceRef]:
    """List every stylesheet, script and image reference in document order.

    Markup the tokenizer gives up on ends the scan early; whatever was found
    before that point is still returned.
    """
    scanner = _ResourceScanner(content)
    try:
        scanner.feed(content)
        scanner.close()
    except AssertionError as exc:
        logger.warning("Could not parse %s past line %d: %s", name, scanner.getpos()[0], exc)
    return sorted(scanner.refs, key=lambda r: r.start)


def _fetch(url: str, options: InlineOptions) -> bytes:
    if url.startswith("//"):
        url = "https:" + url
    getter = options.session.get if options.session is not None else requests.get
    resp = getter(url, timeout=options.timeout)
    if not 200 <= resp.status_code < 300:
        raise requests.HTTPError(f"HTTP {resp.status_code} for {url}", response=resp)
    return resp.content


def _load(ref: str, base_dir: pathlib.Path, options: InlineOptions) -> Tuple[bytes, str]:
    """Return (bytes, name) for a reference; raises on any failure."""
    if is_remote(ref):
        return _fetch(ref, options), urllib.parse.urlsplit(ref).path
    rel = urllib.parse.unquote(urllib.parse.urlsplit(ref).path)
    if not rel:
        raise FileNotFoundError(f"empty path in reference {ref!r}")
    target = base_dir / rel.lstrip("/")
    return target.read_bytes(), str(target)


def _wants(ref: ResourceRef, options: InlineOptions) -> bool:
    if ref.kind == "image" and ref.ref.lower().startswith("data:"):
        return False
    if is_local(ref.ref):
        return True
    return options.fetch_remote and is_fetchable(ref.ref)


def image_data_uri(data: bytes, name: str = "") -> str:
    mime = sniff_content_type(data)
    if not mime.startswith("image/"):
        guessed, _ = mimetypes.guess_type(name)
        if guessed and guessed.startswith("image/"):
            mime = guessed
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _replace_src(tag: str, new_value: str) -> str:
    name_end = _TAG_NAME_RE.match(tag)
    pos = name_end.end() if name_end else 0
    for m in _ATTR_RE.finditer(tag, pos):
        if m.group("name").lower() == "src":
            return tag[:m.start()] + f'src="{new_value}"' + tag[m.end():]
    return tag


def _rewrite(ref: ResourceRef, data: bytes, name: str) -> str:
    if ref.kind == "stylesheet":
        return "<style>" + data.decode("utf-8", errors="replace") + "</style>"
    if ref.kind == "script":
        return "<script>" + data.decode("utf-8", errors="replace") + "</script>"
    return _replace_src(ref.tag, image_data_uri(data, name))


_LABELS = {"stylesheet": "CSS", "script": "JS", "image": "image"}


def inline_resources(html_path: pathlib.Path | str, content: str,
                     options: InlineOptions | None = None) -> str:
    """Return ``content`` with its resources inlined.

    References are resolved against the directory of ``html_path``. A
    reference that cannot be read (or fetched) keeps its original tag and
    is reported with a warning; it never fails the call.
    """
    options = options or InlineOptions()
    base_dir = pathlib.Path(html_path).parent
    out: List[str] = []
    pos = 0
    for ref in scan_resources(content, str(html_path)):
        if not _wants(ref, options):
            continue
        try:
            data, name = _load(ref.ref, base_dir, options)
        except (OSError, ValueError, requests.RequestException) as exc:
            logger.warning("Failed to fetch %s resource %s: %s", _LABELS[ref.kind], ref.ref, exc)
            continue
        out.append(content[pos:ref.start])
        out.append(_rewrite(ref, data, name))
        pos = ref.end
    out.append(content[pos:])
    return "".join(out)
