#!/usr/bin/env python3
"""
Bundle files and directories into a single self-contained HTML viewer.

Features
- Accepts any mix of files and directories (walked recursively, hidden files skipped)
- HTML files get their local stylesheets, scripts and images inlined
  * <link rel="stylesheet"> becomes <style>
  * <script src> becomes an inline <script>
  * <img src> becomes a data: URI
- Images are wrapped in a centered viewer page, everything else in an escaped <pre>
- Optional syntax highlighting (Pygments) and Markdown rendering for text files
- Every document is shown in a sandboxed iframe; a sidebar (or tab strip) switches between them
- The output opens from disk with no network access

Usage
    foolhtml out.html index.html assets/ notes.txt

Notes
- Remote references (https://..., //cdn...) are kept as-is unless --fetch-remote is given.
- A reference that cannot be read is left untouched and reported as a warning.
"""

from __future__ import annotations

import argparse
import base64
import html
import json
import logging
import os
import pathlib
import re
import sys
import tempfile
import webbrowser
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

# External deps
import markdown  # Python-Markdown
import requests
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from . import __version__
from .inliner import DEFAULT_FETCH_TIMEOUT, InlineOptions, image_data_uri, inline_resources
from .sniff import ContentKind, classify

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Combined Files"
LAYOUTS = ("sidebar", "tabs")
MARKDOWN_EXTENSIONS = {".md", ".markdown", ".mdown", ".mkd", ".mkdn"}

# C0 controls (bar tab/newline/CR) and DEL shown as Unicode control pictures.
_CONTROL_PICTURES = {c: 0x2400 + c for c in range(0x20) if c not in (0x09, 0x0A, 0x0D)}
_CONTROL_PICTURES[0x7F] = 0x2421

_DATA_ISLAND_RE = re.compile(
    r'<script type="application/json" id="bundle-data">(.*?)</script>', re.DOTALL
)


class BundleError(RuntimeError):
    """Raised when the bundle as a whole cannot be produced."""


@dataclass
class BundleOptions:
    fetch_remote: bool = False
    timeout: float = DEFAULT_FETCH_TIMEOUT
    skip_missing: bool = False       # missing/unreadable inputs: warn instead of failing
    include_original: bool = True
    highlight: bool = False
    render_markdown: bool = False
    layout: str = "sidebar"
    title: str = DEFAULT_TITLE


@dataclass
class ResolvedFile:
    path: pathlib.Path  # absolute path on disk
    data: bytes


@dataclass(frozen=True)
class BundleEntry:
    name: str            # path relative to the common root (slash-separated)
    content_type: str    # sniffed MIME type
    kind: ContentKind
    html: str            # processed / preview document
    original: Optional[str] = None  # base64 of the original bytes


@dataclass
class BundleSummary:
    output: pathlib.Path
    root: pathlib.Path
    entries: List[BundleEntry]
    size: int
    warnings: List[str] = field(default_factory=list)


def bytes_human(n: int) -> str:
    """Human-readable bytes: 1 decimal for KiB and above, integer for B."""
    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    f = float(n)
    i = 0
    while f >= 1024.0 and i < len(units) - 1:
        f /= 1024.0
        i += 1
    if i == 0:
        return f"{int(f)} {units[i]}"
    return f"{f:.1f} {units[i]}"


# ---------------------------------------------------------------------------
# Path resolution


def _absolute(p: str | os.PathLike) -> pathlib.Path:
    return pathlib.Path(os.path.abspath(os.fspath(p)))


def _problem(message: str, skip_missing: bool, warnings: List[str]) -> None:
    if not skip_missing:
        raise BundleError(message)
    logger.warning("%s (skipped)", message)
    warnings.append(message)


def discover_files(inputs: Iterable[str | os.PathLike], *, skip_missing: bool = False,
                   exclude: Iterable[pathlib.Path] = ()) -> Tuple[List[pathlib.Path], List[str]]:
    """Expand inputs into a flat, ordered, de-duplicated list of absolute file paths.

    Files given directly come first, in argument order, followed by the
    contents of each directory argument walked in lexical order. Files whose
    name starts with "." are skipped inside directories. Returns the paths and
    the warnings collected for inputs that were skipped.
    """
    inputs = list(inputs)
    if not inputs:
        raise BundleError("no input paths supplied")

    excluded = {_absolute(p) for p in exclude}
    warnings: List[str] = []
    direct: List[pathlib.Path] = []
    walked: List[pathlib.Path] = []

    for name in inputs:
        path = _absolute(name)
        if path.is_dir():
            def onerror(exc: OSError, top=name) -> None:
                _problem(f"error walking directory {top}: {exc}", skip_missing, warnings)

            for dirpath, dirnames, filenames in os.walk(path, onerror=onerror):
                dirnames.sort()
                for filename in sorted(filenames):
                    if not filename.startswith("."):
                        walked.append(pathlib.Path(dirpath, filename))
        elif path.is_file():
            direct.append(path)
        else:
            _problem(f"input path does not exist or is not a regular file: {name}", skip_missing, warnings)

    seen = set()
    files: List[pathlib.Path] = []
    for path in direct + walked:
        if path in seen or path in excluded:
            continue
        seen.add(path)
        files.append(path)
    return files, warnings


def common_root(paths: List[pathlib.Path]) -> pathlib.Path:
    """Deepest directory containing every path (falls back to the filesystem root)."""
    if not paths:
        raise ValueError("common_root() needs at least one path")
    root = paths[0].parent
    for path in paths[1:]:
        directory = path.parent
        while root != directory and root not in directory.parents:
            if root.parent == root:
                break
            root = root.parent
    return root


def display_name(path: pathlib.Path, root: pathlib.Path) -> str:
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        # e.g. different drives on Windows
        return path.name
    return rel.replace(os.sep, "/")


def read_files(paths: List[pathlib.Path], *, skip_missing: bool = False,
               warnings: Optional[List[str]] = None) -> List[ResolvedFile]:
    warnings = warnings if warnings is not None else []
    files: List[ResolvedFile] = []
    for path in paths:
        try:
            files.append(ResolvedFile(path, path.read_bytes()))
        except OSError as exc:
            _problem(f"error reading file {path}: {exc}", skip_missing, warnings)
    return files


# ---------------------------------------------------------------------------
# Previews for non-HTML files


def image_preview(data: bytes, name: str = "") -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(name)}</title></head>"
        "<body style=\"margin:0;display:flex;justify-content:center;align-items:center;"
        "height:100vh;background:#f0f0f0;\">"
        f"<img src=\"{image_data_uri(data, name)}\" alt=\"{html.escape(name)}\" "
        "style=\"max-width:100%;max-height:100%;object-fit:contain;\">"
        "</body></html>"
    )


def text_preview(data: bytes, name: str = "") -> str:
    text = data.decode("utf-8", errors="replace").translate(_CONTROL_PICTURES)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(name)}</title></head>"
        "<body style=\"margin:0;padding:10px;\">"
        "<pre style=\"white-space:pre-wrap;word-wrap:break-word;font-family:monospace;\">"
        f"{html.escape(text)}</pre></body></html>"
    )


def render_markdown_text(md_text: str) -> str:
    return markdown.markdown(md_text, extensions=["fenced_code", "tables", "toc"])


def _lexer_for(filename: str):
    try:
        lexer = get_lexer_for_filename(filename, stripall=False)
    except ClassNotFound:
        return None
    return None if isinstance(lexer, TextLexer) else lexer


def highlight_code(text: str, lexer, formatter: HtmlFormatter) -> str:
    return highlight(text, lexer, formatter)


def markdown_preview(data: bytes, name: str = "") -> str:
    body = render_markdown_text(data.decode("utf-8", errors="replace"))
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(name)}</title>"
        "<style>body{font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;"
        "max-width:50rem;margin:2rem auto;padding:0 1rem;line-height:1.6}"
        "pre{background:#f6f8fa;padding:1rem;overflow:auto}"
        "table{border-collapse:collapse}td,th{border:1px solid #ddd;padding:.3rem .6rem}</style>"
        f"</head><body>{body}</body></html>"
    )


def highlighted_preview(data: bytes, name: str, lexer) -> str:
    formatter = HtmlFormatter(nowrap=False)
    css = formatter.get_style_defs(".highlight")
    body = highlight_code(data.decode("utf-8", errors="replace"), lexer, formatter)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(name)}</title>"
        f"<style>body{{margin:0;padding:10px}}{css}"
        ".highlight pre{white-space:pre-wrap;word-wrap:break-word}</style>"
        f"</head><body>{body}</body></html>"
    )


def build_preview(kind: ContentKind, data: bytes, name: str,
                  options: Optional[BundleOptions] = None) -> str:
    """Standalone HTML document presenting a non-HTML file."""
    options = options or BundleOptions()
    if kind is ContentKind.IMAGE:
        return image_preview(data, name)
    ext = pathlib.PurePosixPath(name).suffix.lower()
    if options.render_markdown and ext in MARKDOWN_EXTENSIONS:
        return markdown_preview(data, name)
    if options.highlight:
        lexer = _lexer_for(pathlib.PurePosixPath(name).name)
        if lexer is not None:
            return highlighted_preview(data, name, lexer)
    return text_preview(data, name)


# ---------------------------------------------------------------------------
# Per-file pipeline


def build_entry(resolved: ResolvedFile, root: pathlib.Path, options: BundleOptions,
                inline_options: Optional[InlineOptions] = None) -> BundleEntry:
    name = display_name(resolved.path, root)
    kind, content_type = classify(resolved.data, resolved.path)
    logger.debug("Processing %s as %s (%s)", name, kind.value, content_type)
    if kind is ContentKind.HTML:
        text = resolved.data.decode("utf-8", errors="replace")
        body = inline_resources(resolved.path, text, inline_options or InlineOptions())
    else:
        body = build_preview(kind, resolved.data, name, options)
    original = base64.b64encode(resolved.data).decode("ascii") if options.include_original else None
    return BundleEntry(name=name, content_type=content_type, kind=kind, html=body, original=original)


def build_entries(inputs: Iterable[str | os.PathLike], options: Optional[BundleOptions] = None, *,
                  exclude: Iterable[pathlib.Path] = ()) -> Tuple[List[BundleEntry], pathlib.Path, List[str]]:
    """Discover, read and process every input. Raises BundleError when nothing survives."""
    options = options or BundleOptions()
    paths, warnings = discover_files(inputs, skip_missing=options.skip_missing, exclude=exclude)
    files = read_files(paths, skip_missing=options.skip_missing, warnings=warnings)
    if not files:
        raise BundleError("no valid input files processed")

    root = common_root([f.path for f in files])
    inline_options = InlineOptions(fetch_remote=options.fetch_remote, timeout=options.timeout)
    if options.fetch_remote:
        inline_options.session = requests.Session()
    try:
        entries = [build_entry(f, root, options, inline_options) for f in files]
    finally:
        if inline_options.session is not None:
            inline_options.session.close()
    return entries, root, warnings


# ---------------------------------------------------------------------------
# Rendering


def _b64_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def encode_entries(entries: List[BundleEntry]) -> str:
    """JSON for the page's data island.

    Each document travels as base64 of its UTF-8 bytes, so its text never
    meets the HTML parser of the viewer page. The JSON itself is made safe to
    sit inside <script> by escaping <, > and &.
    """
    payload = [
        {
            "name": e.name,
            "type": e.content_type,
            "kind": e.kind.value,
            "html": _b64_text(e.html),
            "original": e.original,
        }
        for e in entries
    ]
    text = json.dumps(payload, ensure_ascii=True)
    return text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def extract_entries(document: str) -> List[BundleEntry]:
    """Read the entries back out of a rendered bundle page."""
    m = _DATA_ISLAND_RE.search(document)
    if m is None:
        raise BundleError("no bundle data found in document")
    entries = []
    for item in json.loads(m.group(1)):
        entries.append(BundleEntry(
            name=item["name"],
            content_type=item["type"],
            kind=ContentKind(item["kind"]),
            html=base64.b64decode(item["html"]).decode("utf-8"),
            original=item.get("original"),
        ))
    return entries


def build_html(entries: List[BundleEntry], title: str = DEFAULT_TITLE, layout: str = "sidebar") -> str:
    if not entries:
        raise BundleError("refusing to render an empty bundle")
    if layout not in LAYOUTS:
        raise BundleError(f"unknown layout {layout!r} (expected one of {', '.join(LAYOUTS)})")

    data_json = encode_entries(entries)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{html.escape(title)}</title>
<style>
  * {{ box-sizing: border-box; }}
  html, body {{ height: 100%; }}
  body {{
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
    margin: 0;
    display: flex;
    overflow: hidden;
  }}
  body.layout-sidebar {{ flex-direction: row; }}
  body.layout-tabs {{ flex-direction: column; }}

  #file-nav {{ background: #f7f7f7; overflow: auto; }}
  #file-nav ul {{ list-style: none; margin: 0; padding: 0; }}
  #file-nav a {{
    display: block;
    padding: 4px 8px;
    border-radius: 3px;
    color: #333;
    text-decoration: none;
    cursor: pointer;
    font-size: 13px;
    white-space: nowrap;
    overflow: hidden;
    text-overflow: ellipsis;
  }}
  #file-nav a:hover {{ background: #e0e0e0; }}
  #file-nav a.active {{ background: #007bff; color: #fff; }}

  .layout-sidebar #file-nav {{ width: 260px; flex-shrink: 0; padding: 10px; border-right: 1px solid #ccc; }}
  .layout-tabs #file-nav {{ padding: 6px 6px 0; border-bottom: 1px solid #ccc; }}
  .layout-tabs #file-nav ul {{ display: flex; gap: 4px; overflow-x: auto; }}
  .layout-tabs #file-nav a {{ border-radius: 4px 4px 0 0; }}

  #viewer {{ flex-grow: 1; display: flex; flex-direction: column; min-width: 0; min-height: 0; }}
  #viewer-bar {{
    display: flex;
    justify-content: space-between;
    align-items: center;
    gap: 1rem;
    padding: 4px 10px;
    font-size: 12px;
    color: #555;
    border-bottom: 1px solid #eee;
  }}
  #viewer-bar a {{ color: #007bff; }}
  #content-frame {{ flex-grow: 1; width: 100%; border: none; }}
</style>
</head>
<body class="layout-{layout}">
<nav id="file-nav"><ul id="file-list"></ul></nav>
<main id="viewer">
  <div id="viewer-bar">
    <span id="current-name"></span>
    <a id="download-original" href="#" hidden>Download original</a>
  </div>
  <iframe id="content-frame" sandbox="allow-scripts allow-same-origin"></iframe>
</main>

<script type="application/json" id="bundle-data">{data_json}</script>
<script>
(function () {{
  const files = JSON.parse(document.getElementById("bundle-data").textContent);
  const list = document.getElementById("file-list");
  const frame = document.getElementById("content-frame");
  const current = document.getElementById("current-name");
  const download = document.getElementById("download-original");
  let activeLink = null;

  function decode(b64) {{
    const bin = atob(b64);
    const bytes = new Uint8Array(bin.length);
    for (let i = 0; i < bin.length; i++) {{
      bytes[i] = bin.charCodeAt(i);
    }}
    return new TextDecoder("utf-8").decode(bytes);
  }}

  function show(index, link) {{
    const file = files[index];
    if (activeLink) {{
      activeLink.classList.remove("active");
    }}
    link.classList.add("active");
    activeLink = link;

    frame.srcdoc = decode(file.html);
    current.textContent = file.name;
    if (file.original) {{
      download.href = "data:application/octet-stream;base64," + file.original;
      download.download = file.name.split("/").pop();
      download.hidden = false;
    }} else {{
      download.hidden = true;
    }}
  }}

  files.forEach(function (file, index) {{
    const item = document.createElement("li");
    const link = document.createElement("a");
    link.href = "#";
    link.textContent = file.name;
    link.title = file.name + " (" + file.type + ")";
    link.addEventListener("click", function (e) {{
      e.preventDefault();
      show(index, link);
    }});
    item.appendChild(link);
    list.appendChild(item);
  }});

  // Open the first file by default
  const first = list.querySelector("a");
  if (first) {{
    show(0, first);
  }}
}})();
</script>
</body>
</html>
"""


def write_atomic(path: pathlib.Path, text: str) -> None:
    """Write ``text`` next to ``path`` and rename it into place."""
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise BundleError(f"error writing output file {path}: {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        # mkstemp creates 0600; give the result the mode open() would
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp, 0o666 & ~umask)
        os.replace(tmp, path)
    except OSError as exc:
        pathlib.Path(tmp).unlink(missing_ok=True)
        raise BundleError(f"error writing output file {path}: {exc}") from exc


def bundle(output: str | os.PathLike, inputs: Iterable[str | os.PathLike],
           options: Optional[BundleOptions] = None) -> BundleSummary:
    """Run the whole pipeline and write the bundle to ``output``.

    Nothing is written unless every stage succeeds.
    """
    options = options or BundleOptions()
    out_path = _absolute(output)
    entries, root, warnings = build_entries(inputs, options, exclude=[out_path])
    document = build_html(entries, title=options.title, layout=options.layout)
    write_atomic(out_path, document)
    return BundleSummary(
        output=out_path,
        root=root,
        entries=entries,
        size=out_path.stat().st_size,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# CLI


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="foolhtml",
        description="Bundle files and directories into a single self-contained HTML viewer",
    )
    ap.add_argument("output", help="Output HTML file path")
    ap.add_argument("inputs", nargs="+", help="Files or directories to include")
    ap.add_argument("--fetch-remote", action="store_true", help="Also inline http(s):// and // references")
    ap.add_argument("--timeout", type=float, default=DEFAULT_FETCH_TIMEOUT, help="Timeout for each remote fetch (seconds)")
    ap.add_argument("--skip-missing", action="store_true", help="Warn about missing or unreadable inputs instead of failing")
    ap.add_argument("--layout", choices=LAYOUTS, default="sidebar", help="Navigation layout of the viewer page")
    ap.add_argument("--title", default=DEFAULT_TITLE, help="Title of the viewer page")
    ap.add_argument("--no-original", action="store_true", help="Don't embed the original bytes for download")
    ap.add_argument("--highlight", action="store_true", help="Syntax-highlight source files with Pygments")
    ap.add_argument("--markdown", action="store_true", help="Render Markdown files as HTML")
    ap.add_argument("--open", action="store_true", help="Open the result in a browser when done")
    ap.add_argument("-v", "--verbose", action="store_true", help="Increase log verbosity")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def options_from_args(args: argparse.Namespace) -> BundleOptions:
    return BundleOptions(
        fetch_remote=args.fetch_remote,
        timeout=args.timeout,
        skip_missing=args.skip_missing,
        include_original=not args.no_original,
        highlight=args.highlight,
        render_markdown=args.markdown,
        layout=args.layout,
        title=args.title,
    )


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"📦 Bundling {len(args.inputs)} input path(s) into {args.output}", file=sys.stderr)
    try:
        summary = bundle(args.output, args.inputs, options_from_args(args))
    except BundleError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    for warning in summary.warnings:
        print(f"⚠️  {warning}", file=sys.stderr)
    print(
        f"✓ Combined {len(summary.entries)} files into {summary.output} ({bytes_human(summary.size)})",
        file=sys.stderr,
    )

    if args.open:
        print(f"🌐 Opening {summary.output} in browser...", file=sys.stderr)
        webbrowser.open(summary.output.as_uri())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
