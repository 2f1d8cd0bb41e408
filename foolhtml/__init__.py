"""Bundle files and directories into a single self-contained HTML viewer."""

__version__ = "0.1.0"

from .foolhtml import (  # noqa: E402
    BundleEntry,
    BundleError,
    BundleOptions,
    BundleSummary,
    build_entries,
    build_html,
    bundle,
    common_root,
    discover_files,
    display_name,
    extract_entries,
)
from .inliner import InlineOptions, inline_resources  # noqa: E402
from .sniff import ContentKind, classify, sniff_content_type  # noqa: E402

__all__ = [
    "BundleEntry",
    "BundleError",
    "BundleOptions",
    "BundleSummary",
    "ContentKind",
    "InlineOptions",
    "build_entries",
    "build_html",
    "bundle",
    "classify",
    "common_root",
    "discover_files",
    "display_name",
    "extract_entries",
    "inline_resources",
    "sniff_content_type",
]
